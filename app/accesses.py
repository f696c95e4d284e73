"""Consumer black/white lists kept as force routes.

Each service has at most one access-control route in practice, with the
shape ``consumer.host = <denied> & consumer.host != <allowed> => false``.
A route whose address clause empties out is deleted along with any other
clauses it carries.

Updates are plain read-modify-write against the route store with no
version check. Two concurrent grants on one service can lose a write;
callers that need stronger guarantees must serialize per service.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .addresses import normalize_address
from .condition_rule import MatchPair, ParseError, decode, encode
from .models import AccessEntry
from .route_record import MalformedRuleError, RouteRecord
from .settings import get_setting
from .storage import ProviderStore, RouteStore, provider_store, route_store

logger = logging.getLogger(__name__)


class AccessValidationError(Exception):
    """Raised when a grant request names no services or no addresses."""


@dataclass
class RevokeResult:
    """Route ids touched by a revoke call."""

    updated: list[int] = field(default_factory=list)
    deleted: list[int] = field(default_factory=list)


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


class AccessListReconciler:
    """List, grant and revoke consumer addresses per service."""

    def __init__(
        self,
        store: RouteStore | None = None,
        providers: ProviderStore | None = None,
        normalize: Callable[..., str] = normalize_address,
        clause_key: str | None = None,
    ):
        self.store = store if store is not None else route_store
        self.providers = providers if providers is not None else provider_store
        self.normalize = normalize
        self._clause_key = clause_key

    @property
    def clause_key(self) -> str:
        return self._clause_key or get_setting("access.clause_key")

    def _decode(self, route: RouteRecord) -> dict[str, MatchPair]:
        route.split()
        return decode(route.match_rule)

    # ── Queries ──────────────────────────────────────────────────────────

    def list_accesses(
        self, service: str | None = None, address: str | None = None
    ) -> list[AccessEntry]:
        """Enumerate access entries, filtered by service or else by address.

        An address filter keeps whole routes whose address clause holds that
        exact address. Routes whose rule cannot be split or parsed are
        logged and skipped.
        """
        service = (service or "").strip()
        address = self.normalize(address, "")
        by_address = not service and bool(address)
        if service:
            routes = self.store.find_by_service(service)
        elif by_address:
            routes = self.store.find_by_address(address)
        else:
            routes = self.store.find_all()

        key = self.clause_key
        ids = itertools.count(1)
        entries: list[AccessEntry] = []
        for route in routes:
            try:
                pair = self._decode(route).get(key)
            except (MalformedRuleError, ParseError) as e:
                logger.error(f"Skipping route {route.id} of {route.service}: {e}")
                continue
            if pair is None:
                continue
            if by_address and address not in pair.matches and address not in pair.unmatches:
                continue
            for host in sorted(pair.matches):
                entries.append(
                    AccessEntry(id=next(ids), service=route.service, address=host, allowed=False)
                )
            for host in sorted(pair.unmatches):
                entries.append(
                    AccessEntry(id=next(ids), service=route.service, address=host, allowed=True)
                )
        return entries

    def list_services(self) -> list[str]:
        return self.providers.list_service_names()

    # ── Mutations ────────────────────────────────────────────────────────

    def grant(
        self, services: Iterable[str], addresses: Iterable[str], allow: bool
    ) -> list[RouteRecord]:
        """Whitelist (``allow``) or blacklist *addresses* on every service.

        An address already present in the opposite set is left there.
        Returns the routes written, in service order.
        """
        targets = _unique(s.strip() for s in services or () if s and s.strip())
        if not targets:
            raise AccessValidationError("Services is required.")
        hosts = _unique(h for h in (self.normalize(a) for a in addresses or ()) if h)
        if not hosts:
            raise AccessValidationError("Addresses is required.")

        key = self.clause_key
        written = []
        for service in targets:
            routes = self.store.find_by_service(service)
            if routes:
                route = routes[0]
                condition = self._decode(route)
                is_new = False
            else:
                route = RouteRecord.new_force_route(
                    service,
                    name=service + get_setting("access.route_name_suffix"),
                    filter_rule=get_setting("access.default_filter_rule"),
                )
                condition = {}
                is_new = True

            pair = condition.setdefault(key, MatchPair())
            target = pair.unmatches if allow else pair.matches
            target.update(hosts)

            route.match_rule = encode(condition)
            route.join()
            if is_new:
                self.store.create(route)
            else:
                self.store.update(route)
            logger.info(
                f"{'Allowed' if allow else 'Denied'} {len(hosts)} address(es) on {service} "
                f"(route {route.id})"
            )
            written.append(route)
        return written

    def revoke(self, entries: Iterable[tuple[str, str]]) -> RevokeResult:
        """Remove (service, address) pairs from whichever set holds them.

        A route is deleted once its address clause is empty, whatever other
        clauses it carries; otherwise it is rewritten without the removed
        addresses.
        """
        pending: dict[str, set[str]] = {}
        for service, address in entries:
            service = (service or "").strip()
            host = self.normalize(address, "")
            if not service or not host:
                logger.warning(f"Ignoring revoke entry with blank field: {service!r}, {address!r}")
                continue
            pending.setdefault(service, set()).add(host)

        key = self.clause_key
        result = RevokeResult()
        for service, hosts in pending.items():
            routes = self.store.find_by_service(service)
            if not routes:
                logger.warning(f"No access-control route for {service}, nothing to revoke")
                continue
            for route in routes:
                condition = self._decode(route)
                pair = condition.get(key)
                if pair is None:
                    continue
                pair.discard_all(hosts)
                if pair.is_empty():
                    self.store.delete(route.id)
                    result.deleted.append(route.id)
                    continue
                route.match_rule = encode(condition)
                route.join()
                self.store.update(route)
                result.updated.append(route.id)
        return result


reconciler = AccessListReconciler()
