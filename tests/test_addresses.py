"""Tests for consumer address normalization."""

import pytest

from app.addresses import normalize_address, parse_address_list
from app.settings import set_setting


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10.0.0.1", "10.0.0.1"),
        ("  10.0.0.1  ", "10.0.0.1"),
        ("10.0.0.1:20880", "10.0.0.1"),
        ("dubbo://10.0.0.1:20880/com.example.DemoService?x=1", "10.0.0.1"),
        ("admin@10.0.0.1:22", "10.0.0.1"),
        ("192.168.*.*", "192.168.*.*"),
        ("::1", "::1"),
        ("fe80::1", "fe80::1"),
        ("[fe80::1]:20880", "fe80::1"),
        ("consumer-host.internal:8080", "consumer-host.internal"),
    ],
)
def test_normalize_address(raw, expected):
    assert normalize_address(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_blank_uses_default(raw):
    assert normalize_address(raw, "0.0.0.0") == "0.0.0.0"


def test_blank_uses_placeholder_setting():
    """Without an explicit default the configured placeholder is used."""
    assert normalize_address("  ") == ""
    set_setting("access.address_placeholder", "0.0.0.0")
    assert normalize_address("  ") == "0.0.0.0"


def test_parse_address_list():
    text = "10.0.0.1\n\n  10.0.0.2 \r\n   \n10.0.0.3"
    assert parse_address_list(text) == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]


@pytest.mark.parametrize("text", [None, "", "\n\n"])
def test_parse_address_list_empty(text):
    assert parse_address_list(text) == []
