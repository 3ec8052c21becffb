import re
from typing import Any, Callable

import structlog
from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError

from app.db.store import UserStore
from app.models.schemas import PrettyJSONResponse, UserPayload, UsersResponse
from app.observability.telemetry import Telemetry

# Matches strconv.Atoi: optional sign, ASCII digits, 64-bit range.
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

INVALID_ID = "Invalid User ID"
UNPARSEABLE_BODY = "Unable to parse data"
RECORD_MISSING = "Record does not exist"
RECORD_UPDATED = "Record updated successfuly"
RECORD_DELETED = "Record Deleted"

logger = structlog.get_logger("users")


def parse_user_id(raw: str) -> int | None:
    """Return the integer ID in ``raw``, or None when it is not one."""
    if not _ID_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _invalid_id(raw: str) -> PlainTextResponse:
    logger.warning("user_id.invalid", raw_id=raw)
    return PlainTextResponse(INVALID_ID, status_code=404)


async def _read_payload(request: Request) -> UserPayload | None:
    """Decode the body as JSON whatever its Content-Type says."""
    body = await request.body()
    try:
        return UserPayload.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("request.body_invalid", errors=[err["type"] for err in exc.errors()])
        return None


def build_router(store: UserStore, telemetry: Telemetry) -> APIRouter:
    """Bind the five user handlers to ``store`` and register them.

    Every registration goes through ``telemetry.wrap`` under its
    ``METHOD /path`` transaction name.
    """
    router = APIRouter(tags=["users"])

    def register(method: str, path: str, handler: Callable[..., Any]) -> None:
        name = f"{method} {path.replace('{user_id}', '{id}')}"
        router.add_api_route(path, telemetry.wrap(name, handler), methods=[method])

    def list_users() -> Response:
        logger.info("users.list")
        users = store.list_users()
        return PrettyJSONResponse(UsersResponse(Users=users).model_dump())

    def get_user(user_id: str) -> Response:
        logger.info("users.get", raw_id=user_id)
        parsed = parse_user_id(user_id)
        if parsed is None:
            return _invalid_id(user_id)

        user = store.get_user(parsed)
        if user is None:
            return PrettyJSONResponse({})
        return PrettyJSONResponse(user.model_dump())

    async def create_user(request: Request) -> Response:
        logger.info("users.create")
        payload = await _read_payload(request)
        if payload is None:
            return PlainTextResponse(UNPARSEABLE_BODY, status_code=400)

        user = await run_in_threadpool(store.create_user, payload.supplied_fields())
        return PrettyJSONResponse({}, headers={"Location": f"/users/{user.ID}"})

    async def update_user(user_id: str, request: Request) -> Response:
        logger.info("users.update", raw_id=user_id)
        payload = await _read_payload(request)
        if payload is None:
            return PlainTextResponse(UNPARSEABLE_BODY, status_code=400)

        parsed = parse_user_id(user_id)
        if parsed is None:
            return _invalid_id(user_id)

        updated = await run_in_threadpool(store.update_user, parsed, payload.supplied_fields())
        if updated is None:
            logger.warning("users.update.missing", user_id=parsed)
            return PlainTextResponse(RECORD_MISSING, status_code=400)
        return PlainTextResponse(RECORD_UPDATED)

    def delete_user(user_id: str) -> Response:
        logger.info("users.delete", raw_id=user_id)
        parsed = parse_user_id(user_id)
        if parsed is None:
            return _invalid_id(user_id)

        store.delete_user(parsed)
        return PlainTextResponse(RECORD_DELETED)

    register("GET", "/users", list_users)
    register("GET", "/users/{user_id}", get_user)
    register("POST", "/users/{user_id}", update_user)
    register("POST", "/users", create_user)
    register("DELETE", "/users/{user_id}", delete_user)
    return router
