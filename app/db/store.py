from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import delete, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.db.models import User
from app.errors import StoreError
from app.models.schemas import UserRecord

logger = logging.getLogger(__name__)


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        ID=user.id,
        Firstname=user.firstname or "",
        Lastname=user.lastname or "",
        Occupation=user.occupation or "",
    )


class UserStore:
    """Store access for ``User`` rows.

    One short-lived session per call; any SQLAlchemy error is rolled back and
    re-raised as ``StoreError``. Safe to share between request threads.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    @contextmanager
    def session(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("store.error", extra={"operation": operation, "error": str(exc)})
            raise StoreError("Database operation failed", operation) from exc
        finally:
            db.close()

    def list_users(self) -> list[UserRecord]:
        with self.session("list") as db:
            users = db.execute(select(User)).scalars().all()
            return [_to_record(u) for u in users]

    def get_user(self, user_id: int) -> UserRecord | None:
        with self.session("get") as db:
            user = db.get(User, user_id)
            return _to_record(user) if user else None

    def create_user(self, fields: dict[str, str]) -> UserRecord:
        with self.session("create") as db:
            user = User(
                firstname=fields.get("firstname", ""),
                lastname=fields.get("lastname", ""),
                occupation=fields.get("occupation", ""),
            )
            db.add(user)
            db.commit()
            logger.info("user.created", extra={"user_id": user.id})
            return _to_record(user)

    def update_user(self, user_id: int, fields: dict[str, str]) -> UserRecord | None:
        with self.session("update") as db:
            user = db.get(User, user_id)
            if user is None:
                return None
            for column, value in fields.items():
                setattr(user, column, value)
            db.commit()
            logger.info("user.updated", extra={"user_id": user_id, "fields": sorted(fields)})
            return _to_record(user)

    def delete_user(self, user_id: int) -> bool:
        with self.session("delete") as db:
            result = db.execute(delete(User).where(User.id == user_id))
            db.commit()
            logger.info("user.deleted", extra={"user_id": user_id, "rows": result.rowcount})
            return result.rowcount > 0

    def count_users(self) -> int:
        with self.session("count") as db:
            return db.scalar(select(func.count()).select_from(User)) or 0

    def ping(self) -> bool:
        try:
            with self.session("ping") as db:
                db.execute(text("SELECT 1"))
            return True
        except StoreError:
            return False
