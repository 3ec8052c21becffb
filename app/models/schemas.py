from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, model_validator
from starlette.responses import JSONResponse

from app.db.models import EDITABLE_COLUMNS


class UserRecord(BaseModel):
    ID: int
    Firstname: str
    Lastname: str
    Occupation: str


class UsersResponse(BaseModel):
    Users: list[UserRecord]


class UserPayload(BaseModel):
    """Body of create and update requests.

    Keys match case-insensitively (``firstname`` fills ``Firstname``) and
    unknown keys are ignored. When two keys fold to the same field the
    later one wins. ``ID`` is accepted but never written.
    """

    model_config = ConfigDict(extra="ignore")

    ID: StrictInt | None = Field(default=None, ge=0)
    Firstname: StrictStr | None = None
    Lastname: StrictStr | None = None
    Occupation: StrictStr | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_key_case(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        canonical = {name.lower(): name for name in cls.model_fields}
        folded: dict[str, Any] = {}
        for key, value in data.items():
            name = canonical.get(key.lower(), key)
            # Later keys overwrite earlier ones, whatever their case; null never does.
            if value is None and name in folded:
                continue
            folded[name] = value
        return folded

    def supplied_fields(self) -> dict[str, str]:
        """Column values present in the body with a string value."""
        return {
            column: getattr(self, wire_name)
            for wire_name, column in EDITABLE_COLUMNS.items()
            if wire_name in self.model_fields_set and getattr(self, wire_name) is not None
        }


class PrettyJSONResponse(JSONResponse):
    """JSON rendered with a one-space indent."""

    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, indent=1).encode("utf-8")
