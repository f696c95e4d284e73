"""Route records and the ``match => filter`` rule split."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

RULE_SEPARATOR = " => "


class MalformedRuleError(Exception):
    """Raised when a stored rule is not exactly ``<match> => <filter>``."""

    def __init__(self, rule: str, route_id: int | None = None):
        self.rule = rule
        self.route_id = route_id
        where = f" (route {route_id})" if route_id is not None else ""
        super().__init__(f'Illegal route condition rule{where}: "{rule}"')


def split_rule(rule: str, route_id: int | None = None) -> tuple[str, str]:
    """Split a stored rule into (match_rule, filter_rule)."""
    parts = (rule or "").split(RULE_SEPARATOR)
    if len(parts) != 2:
        raise MalformedRuleError(rule, route_id)
    return parts[0], parts[1]


def join_rule(match_rule: str, filter_rule: str) -> str:
    return f"{match_rule}{RULE_SEPARATOR}{filter_rule}"


@dataclass
class RouteRecord:
    """A route as seen by the access-control layer.

    Only ``rule`` is persisted. ``match_rule`` and ``filter_rule`` are
    filled by :meth:`split` after loading and folded back by :meth:`join`
    before saving.
    """

    service: str
    rule: str = ""
    id: int | None = None
    name: str = ""
    force: bool = False
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    match_rule: str = field(default="", compare=False)
    filter_rule: str = field(default="", compare=False)

    @classmethod
    def new_force_route(cls, service: str, name: str, filter_rule: str) -> RouteRecord:
        """Build an unsaved, enabled force route with an empty match rule."""
        return cls(
            service=service,
            name=name,
            force=True,
            enabled=True,
            filter_rule=filter_rule,
        )

    def split(self) -> RouteRecord:
        self.match_rule, self.filter_rule = split_rule(self.rule, self.id)
        return self

    def join(self) -> RouteRecord:
        self.rule = join_rule(self.match_rule, self.filter_rule)
        return self
