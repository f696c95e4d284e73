"""SQLModel-backed storage for RouteGuard."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from .database import get_db
from .db_models import Provider, Route
from .route_record import RouteRecord

logger = logging.getLogger(__name__)

# Route columns copied between rows and records
_ROUTE_FIELDS = ("service", "name", "rule", "force", "enabled")


class StoreError(Exception):
    """Raised when the route store cannot complete an operation."""


def _to_record(row: Route) -> RouteRecord:
    return RouteRecord(
        id=row.id,
        service=row.service,
        name=row.name,
        rule=row.rule,
        force=row.force,
        enabled=row.enabled,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _simple_name(service: str) -> str:
    return service.rsplit(".", 1)[-1]


class RouteStore:
    """Storage for routes. Lookups return force routes ordered by id."""

    def _select(self, *conditions) -> list[RouteRecord]:
        stmt = select(Route).where(col(Route.force).is_(True), *conditions).order_by(Route.id)
        try:
            with get_db() as session:
                rows = list(session.exec(stmt).all())
        except SQLAlchemyError as e:
            raise StoreError(f"Route lookup failed: {e}") from e
        return [_to_record(r) for r in rows]

    def find_by_service(self, service: str) -> list[RouteRecord]:
        return self._select(Route.service == service)

    def find_by_address(self, address: str) -> list[RouteRecord]:
        """Force routes whose rule text contains *address* (a substring prefilter)."""
        return self._select(col(Route.rule).contains(address, autoescape=True))

    def find_all(self) -> list[RouteRecord]:
        return self._select()

    def get(self, route_id: int) -> RouteRecord | None:
        try:
            with get_db() as session:
                row = session.get(Route, route_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Route {route_id} lookup failed: {e}") from e
        return _to_record(row) if row else None

    def create(self, record: RouteRecord) -> int:
        """Insert *record* and set its id."""
        row = Route(**{name: getattr(record, name) for name in _ROUTE_FIELDS})
        try:
            with get_db() as session:
                session.add(row)
                session.flush()
                record.id = row.id
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create route for {record.service}: {e}") from e
        record.created_at = row.created_at
        record.updated_at = row.updated_at
        logger.info(f"Created route {record.id} for {record.service}: {record.rule}")
        return record.id

    def update(self, record: RouteRecord) -> None:
        try:
            with get_db() as session:
                row = session.get(Route, record.id) if record.id is not None else None
                if row is None:
                    raise StoreError(f"Route {record.id} not found")
                for name in _ROUTE_FIELDS:
                    setattr(row, name, getattr(record, name))
                row.updated_at = datetime.now(timezone.utc)
                session.add(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update route {record.id}: {e}") from e
        record.updated_at = row.updated_at
        logger.info(f"Updated route {record.id} for {record.service}: {record.rule}")

    def delete(self, route_id: int) -> None:
        try:
            with get_db() as session:
                row = session.get(Route, route_id)
                if row is None:
                    raise StoreError(f"Route {route_id} not found")
                session.delete(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete route {route_id}: {e}") from e
        logger.info(f"Deleted route {route_id}")

    def clear(self) -> None:
        with get_db() as session:
            for r in session.exec(select(Route)).all():
                session.delete(r)


class ProviderStore:
    """Storage for registered providers, used to list service names."""

    def register(self, service: str, address: str = "") -> int:
        with get_db() as session:
            existing = session.exec(
                select(Provider).where(Provider.service == service, Provider.address == address)
            ).first()
            if existing:
                return existing.id
            provider = Provider(service=service, address=address)
            session.add(provider)
            session.flush()
            return provider.id

    def list_service_names(self) -> list[str]:
        """Distinct service names, sorted by simple name then full name."""
        with get_db() as session:
            names = set(session.exec(select(Provider.service)).all())
        return sorted(names, key=lambda s: (_simple_name(s), s))

    def clear(self) -> None:
        with get_db() as session:
            for p in session.exec(select(Provider)).all():
                session.delete(p)


# Global store instances
route_store = RouteStore()
provider_store = ProviderStore()
