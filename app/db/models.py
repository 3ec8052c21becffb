from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Integer, Text
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# SQLite only autoincrements INTEGER PRIMARY KEY columns.
IdType = (
    BigInteger()
    .with_variant(Integer, "sqlite")
    .with_variant(mysql.BIGINT(unsigned=True), "mysql", "mariadb")
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    firstname: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lastname: Mapped[str] = mapped_column(Text, nullable=False, default="")
    occupation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


# Columns that carry client-supplied text, keyed by wire name.
EDITABLE_COLUMNS = {
    "Firstname": "firstname",
    "Lastname": "lastname",
    "Occupation": "occupation",
}
