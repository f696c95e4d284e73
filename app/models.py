"""API data models for the RouteGuard access-control service."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .route_record import RouteRecord


class AccessEntry(BaseModel):
    """One consumer address in a service's access list.

    ``id`` is a per-response counter starting at 1, not a stored identity.
    """

    id: int
    service: str
    address: str
    allowed: bool = Field(..., description="True for whitelisted, False for blacklisted")


class AccessCreateRequest(BaseModel):
    """Request model for granting or denying addresses."""

    services: list[str] = Field(default_factory=list, description="Target service names")
    addresses: str = Field(default="", description="Newline-separated consumer addresses")
    allowed: bool = Field(default=False, description="Whitelist (True) or blacklist (False)")


class AccessDeleteItem(BaseModel):
    """A (service, address) pair to remove from the access list."""

    service: str
    address: str
    id: int | None = Field(default=None, description="Listing id, ignored")
    allowed: bool | None = Field(default=None, description="Listing direction, ignored")


class RouteResponse(BaseModel):
    """Stored route as returned after a write."""

    id: int | None
    service: str
    name: str
    rule: str
    force: bool
    enabled: bool

    @classmethod
    def from_record(cls, record: RouteRecord) -> RouteResponse:
        return cls(
            id=record.id,
            service=record.service,
            name=record.name,
            rule=record.rule,
            force=record.force,
            enabled=record.enabled,
        )


class AccessCreateResponse(BaseModel):
    """Response model for a grant/deny call."""

    routes: list[RouteResponse]
    count: int


class AccessDeleteResponse(BaseModel):
    """Response model for a revoke call."""

    updated: list[int]
    deleted: list[int]


class ProviderRegistrationRequest(BaseModel):
    """Request model for registering a service provider."""

    service: str = Field(..., description="Fully qualified service name")
    address: str = Field(default="", description="Provider address")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: datetime
    version: str = "0.1.0"
