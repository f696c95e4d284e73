"""DB-backed settings with env-var fallback for RouteGuard.

Resolution order: DB value > env var > default.
All settings are defined in SETTING_DEFS. Values are cached in memory
with a short TTL to avoid repeated DB reads.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlmodel import select

from .database import get_db
from .db_models import Setting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettingDef:
    """Definition of a single setting."""

    key: str
    env_var: str
    default: str
    description: str
    group: str  # e.g. "access", "operational"


# ── Registry ─────────────────────────────────────────────────────────────────

SETTING_DEFS: dict[str, SettingDef] = {}


def _reg(key: str, env_var: str, default: str, description: str, group: str):
    SETTING_DEFS[key] = SettingDef(key, env_var, default, description, group)


# Access control
_reg(
    "access.clause_key",
    "ACCESS_CLAUSE_KEY",
    "consumer.host",
    "Condition-rule clause holding consumer addresses",
    "access",
)
_reg(
    "access.default_filter_rule",
    "ACCESS_DEFAULT_FILTER_RULE",
    "false",
    "Filter rule given to a service's first access-control route",
    "access",
)
_reg(
    "access.route_name_suffix",
    "ACCESS_ROUTE_NAME_SUFFIX",
    " blackwhitelist",
    "Appended to the service name when naming a new access-control route",
    "access",
)
_reg(
    "access.address_placeholder",
    "ACCESS_ADDRESS_PLACEHOLDER",
    "",
    "Address used when a supplied address is blank",
    "access",
)

# Operational
_reg(
    "operational.log_level",
    "LOG_LEVEL",
    "INFO",
    "Root log level applied at startup",
    "operational",
)


# ── TTL cache ────────────────────────────────────────────────────────────────

_CACHE_TTL = 5  # seconds
_cache: dict[str, str] = {}
_cache_time: float = 0.0


def _refresh_cache() -> None:
    """Bulk-load all settings from DB into the cache."""
    global _cache, _cache_time
    try:
        with get_db() as session:
            rows = session.exec(select(Setting)).all()
        _cache = {r.key: r.value for r in rows}
    except Exception:
        # DB not ready yet (e.g. before init_db), use empty cache
        _cache = {}
    _cache_time = time.monotonic()


def invalidate_cache() -> None:
    """Force next get_setting() to re-read from DB."""
    global _cache_time
    _cache_time = 0.0


def _ensure_cache() -> None:
    if time.monotonic() - _cache_time > _CACHE_TTL:
        _refresh_cache()


def _get_def(key: str) -> SettingDef:
    defn = SETTING_DEFS.get(key)
    if defn is None:
        raise KeyError(f"Unknown setting: {key}")
    return defn


# ── Accessors ────────────────────────────────────────────────────────────────


def get_setting(key: str) -> str:
    """Return the effective value for *key*.

    Resolution: DB (non-empty) > env var (non-empty) > default.
    Raises KeyError for unknown keys.
    """
    defn = _get_def(key)

    _ensure_cache()
    db_val = _cache.get(key)
    if db_val is not None and db_val != "":
        return db_val

    env_val = os.environ.get(defn.env_var, "")
    if env_val:
        return env_val

    return defn.default


def get_setting_source(key: str) -> str:
    """Return where the effective value comes from: 'db', 'env', or 'default'."""
    defn = _get_def(key)

    _ensure_cache()
    db_val = _cache.get(key)
    if db_val is not None and db_val != "":
        return "db"

    if os.environ.get(defn.env_var, ""):
        return "env"

    return "default"


# ── CRUD ─────────────────────────────────────────────────────────────────────


def set_setting(key: str, value: str) -> None:
    """Write a setting to the DB (upsert)."""
    defn = _get_def(key)

    with get_db() as session:
        existing = session.get(Setting, key)
        if existing:
            existing.value = value
            existing.updated_at = datetime.now(timezone.utc)
            session.add(existing)
        else:
            session.add(
                Setting(
                    key=key,
                    value=value,
                    updated_at=datetime.now(timezone.utc),
                )
            )
    invalidate_cache()


def delete_setting(key: str) -> bool:
    """Remove a setting from the DB (reverts to env/default). Returns True if existed."""
    _get_def(key)

    with get_db() as session:
        existing = session.get(Setting, key)
        if existing:
            session.delete(existing)
            invalidate_cache()
            return True
    return False


def list_settings(group: str | None = None) -> list[dict]:
    """List all settings with metadata, values and sources."""
    _ensure_cache()
    result = []
    for defn in SETTING_DEFS.values():
        if group and defn.group != group:
            continue
        value = get_setting(defn.key)
        result.append(
            {
                "key": defn.key,
                "value": value,
                "source": get_setting_source(defn.key),
                "description": defn.description,
                "group": defn.group,
                "env_var": defn.env_var,
                "default": defn.default,
            }
        )
    return result


def clear_settings() -> None:
    """Delete all settings from DB (for tests)."""
    with get_db() as session:
        for s in session.exec(select(Setting)).all():
            session.delete(s)
    invalidate_cache()


def log_settings_sources() -> None:
    """Log the source of each setting on startup."""
    _ensure_cache()
    for defn in SETTING_DEFS.values():
        source = get_setting_source(defn.key)
        value = get_setting(defn.key)
        logger.info(f"Setting {defn.key}: source={source}, value={value!r}")
