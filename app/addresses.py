"""Consumer address normalization."""

from __future__ import annotations

import ipaddress

from .settings import get_setting


def _is_ip_literal(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def normalize_address(raw: str | None, default: str | None = None) -> str:
    """Reduce *raw* to a bare host or IP.

    Strips ``scheme://``, ``/path``, ``user@`` and ``:port`` the way URLs
    are written in the registry. Bare IPv6 literals are kept whole. Blank
    input becomes *default*, or the ``access.address_placeholder`` setting.
    """
    address = (raw or "").strip()
    if not address:
        return default if default is not None else get_setting("access.address_placeholder")
    if _is_ip_literal(address):
        return address

    i = address.find("://")
    if i >= 0:
        address = address[i + 3 :]
    i = address.find("/")
    if i >= 0:
        address = address[:i]
    i = address.find("@")
    if i >= 0:
        address = address[i + 1 :]
    if address.startswith("["):
        # [v6]:port
        address = address[1:].split("]", 1)[0]
    elif not _is_ip_literal(address):
        i = address.find(":")
        if i >= 0:
            address = address[:i]
    return address.strip()


def parse_address_list(text: str | None) -> list[str]:
    """Split a newline-separated address block, dropping blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]
