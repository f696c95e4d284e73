"""Tests for DB-backed settings system."""

import logging
import os

import pytest

# ── Resolution order ─────────────────────────────────────────────────────────


def test_default_value():
    """Setting returns default when no DB or env value."""
    from app.settings import get_setting, get_setting_source

    old = os.environ.pop("ACCESS_DEFAULT_FILTER_RULE", None)
    try:
        assert get_setting("access.default_filter_rule") == "false"
        assert get_setting_source("access.default_filter_rule") == "default"
    finally:
        if old is not None:
            os.environ["ACCESS_DEFAULT_FILTER_RULE"] = old


def test_env_overrides_default():
    """Env var overrides default."""
    from app.settings import get_setting, get_setting_source, invalidate_cache

    old = os.environ.get("ACCESS_CLAUSE_KEY")
    os.environ["ACCESS_CLAUSE_KEY"] = "consumer.application"
    invalidate_cache()
    try:
        assert get_setting("access.clause_key") == "consumer.application"
        assert get_setting_source("access.clause_key") == "env"
    finally:
        if old is not None:
            os.environ["ACCESS_CLAUSE_KEY"] = old
        else:
            del os.environ["ACCESS_CLAUSE_KEY"]
        invalidate_cache()


def test_db_overrides_env():
    """DB value overrides env var."""
    from app.settings import get_setting, get_setting_source, invalidate_cache, set_setting

    old = os.environ.get("ACCESS_ROUTE_NAME_SUFFIX")
    os.environ["ACCESS_ROUTE_NAME_SUFFIX"] = "-env"
    invalidate_cache()
    try:
        set_setting("access.route_name_suffix", "-db")
        assert get_setting("access.route_name_suffix") == "-db"
        assert get_setting_source("access.route_name_suffix") == "db"
    finally:
        if old is not None:
            os.environ["ACCESS_ROUTE_NAME_SUFFIX"] = old
        else:
            del os.environ["ACCESS_ROUTE_NAME_SUFFIX"]
        invalidate_cache()


def test_delete_reverts_to_default():
    """Deleting a DB setting reverts to the default."""
    from app.settings import delete_setting, get_setting, get_setting_source, set_setting

    set_setting("operational.log_level", "DEBUG")
    assert get_setting("operational.log_level") == "DEBUG"

    assert delete_setting("operational.log_level") is True
    assert delete_setting("operational.log_level") is False
    if "LOG_LEVEL" not in os.environ:
        assert get_setting_source("operational.log_level") == "default"


# ── Listing ──────────────────────────────────────────────────────────────────


def test_list_with_group_filter():
    """list_settings filters by group."""
    from app.settings import list_settings

    access_settings = list_settings(group="access")
    assert len(access_settings) == 4
    assert all(s["group"] == "access" for s in access_settings)


def test_list_shows_stored_value():
    """Listed entries carry the resolved value unmasked, with its source."""
    from app.settings import list_settings, set_setting

    set_setting("access.route_name_suffix", " acl")
    entry = next(s for s in list_settings() if s["key"] == "access.route_name_suffix")
    assert entry["value"] == " acl"
    assert entry["source"] == "db"
    assert set(entry) == {
        "key", "value", "source", "description", "group", "env_var", "default"
    }


def test_unknown_key_raises():
    """Getting an unknown key raises KeyError."""
    from app.settings import get_setting, set_setting

    with pytest.raises(KeyError, match="Unknown setting"):
        get_setting("nonexistent.key")
    with pytest.raises(KeyError, match="Unknown setting"):
        set_setting("nonexistent.key", "x")


def test_log_settings_sources(caplog):
    from app.settings import log_settings_sources

    with caplog.at_level(logging.INFO, logger="app.settings"):
        log_settings_sources()
    assert "Setting access.clause_key: source=" in caplog.text


# ── Startup logging ──────────────────────────────────────────────────────────


def test_configure_logging_uses_setting():
    from app.main import configure_logging
    from app.settings import set_setting

    root = logging.getLogger()
    old_level = root.level
    try:
        set_setting("operational.log_level", "warning")
        configure_logging()
        assert root.level == logging.WARNING

        set_setting("operational.log_level", "bogus")
        configure_logging()
        assert root.level == logging.INFO
    finally:
        root.setLevel(old_level)


# ── API routes ───────────────────────────────────────────────────────────────


def test_api_list_settings(client):
    """GET /api/v1/settings returns all settings."""
    resp = client.get("/api/v1/settings")
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 5
    assert {s["key"] for s in data["settings"]} >= {"access.clause_key", "operational.log_level"}


def test_api_list_settings_with_group(client):
    resp = client.get("/api/v1/settings", params={"group": "operational"})
    assert resp.status_code == 200
    assert [s["key"] for s in resp.json()["settings"]] == ["operational.log_level"]


def test_api_unknown_group_404(client):
    resp = client.get("/api/v1/settings", params={"group": "nope"})
    assert resp.status_code == 404
