"""Access-control route registration."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Query

from .accesses import AccessListReconciler, AccessValidationError
from .addresses import parse_address_list
from .condition_rule import ParseError
from .models import (
    AccessCreateRequest,
    AccessCreateResponse,
    AccessDeleteItem,
    AccessDeleteResponse,
    AccessEntry,
    ProviderRegistrationRequest,
    RouteResponse,
)
from .route_record import MalformedRuleError
from .storage import ProviderStore, StoreError


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, AccessValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (ParseError, MalformedRuleError)):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=503, detail=f"Route store unavailable: {e}")


def register_access_routes(
    app: FastAPI,
    *,
    reconciler: AccessListReconciler,
    provider_store: ProviderStore,
) -> None:
    """Register black/white list endpoints."""

    @app.get("/api/v1/accesses", response_model=list[AccessEntry])
    def search_accesses(
        service: str | None = Query(None, description="Exact service name"),
        address: str | None = Query(None, description="Consumer address"),
    ):
        """List access entries by service, else by address, else all."""
        try:
            return reconciler.list_accesses(service=service, address=address)
        except StoreError as e:
            raise _to_http_error(e) from e

    @app.post("/api/v1/accesses", response_model=AccessCreateResponse)
    def create_accesses(request: AccessCreateRequest):
        """Whitelist or blacklist addresses on one or more services."""
        try:
            routes = reconciler.grant(
                request.services, parse_address_list(request.addresses), request.allowed
            )
        except (AccessValidationError, ParseError, MalformedRuleError, StoreError) as e:
            raise _to_http_error(e) from e
        return AccessCreateResponse(
            routes=[RouteResponse.from_record(r) for r in routes], count=len(routes)
        )

    @app.post("/api/v1/accesses/delete", response_model=AccessDeleteResponse)
    def delete_accesses(items: list[AccessDeleteItem]):
        """Remove addresses from the access lists of their services."""
        try:
            result = reconciler.revoke((item.service, item.address) for item in items)
        except (ParseError, MalformedRuleError, StoreError) as e:
            raise _to_http_error(e) from e
        return AccessDeleteResponse(updated=result.updated, deleted=result.deleted)

    @app.get("/api/v1/accesses/services", response_model=list[str])
    def list_access_services():
        """Service names for the service picker."""
        return reconciler.list_services()

    @app.post("/api/v1/providers")
    def register_provider(request: ProviderRegistrationRequest):
        """Register a provider so its service shows up in the picker."""
        if not request.service.strip():
            raise HTTPException(status_code=400, detail="Service name is required")
        provider_id = provider_store.register(request.service.strip(), request.address.strip())
        return {"status": "registered", "id": provider_id}
