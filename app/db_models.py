"""SQLModel database models for RouteGuard storage.

These models serve as both SQLAlchemy ORM models AND Pydantic models.
Stores hand out detached ``RouteRecord`` values rather than ``Route`` rows.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class Route(SQLModel, table=True):
    """Routing rule for one service.

    ``rule`` is the single source of truth, always ``<match> => <filter>``.
    """

    __tablename__ = "routes"

    id: int | None = Field(default=None, primary_key=True)
    service: str = Field(index=True)
    name: str = Field(default="")
    rule: str = Field(default="")
    force: bool = Field(default=False, index=True)
    enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Provider(SQLModel, table=True):
    """Registered provider of a service (feeds the service picker)."""

    __tablename__ = "providers"

    id: int | None = Field(default=None, primary_key=True)
    service: str = Field(index=True)
    address: str = Field(default="")
    registered_at: datetime = Field(default_factory=utcnow)


class Setting(SQLModel, table=True):
    """Key-value settings stored in DB, overriding env vars."""

    __tablename__ = "settings"

    key: str = Field(primary_key=True)
    value: str = Field(default="")
    updated_at: datetime = Field(default_factory=utcnow)
