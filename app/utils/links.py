"""Validation for untrusted URLs submitted through the bot webhook."""

from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import urlsplit, urlunsplit

_FORBIDDEN_CHARS = set(" \t\r\n\x00\\<>\"`")


def _bare_host(host: str) -> str:
    host = host.lower().rstrip(".")
    return host[4:] if host.startswith("www.") else host


def host_allowed(host: str, allowed_hosts: Iterable[str]) -> bool:
    """True if *host* equals or is a subdomain of an allow-listed entry (``www.`` ignored)."""
    candidate = _bare_host(host)
    for entry in allowed_hosts:
        allowed = _bare_host(entry.strip())
        if not allowed:
            continue
        if candidate == allowed or candidate.endswith("." + allowed):
            return True
    return False


def sanitize_link(value: str, allowed_hosts: Iterable[str] | None = None) -> str | None:
    """Return the normalized https URL, or None if *value* is not an acceptable link."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or any(ch in _FORBIDDEN_CHARS or ord(ch) < 0x20 for ch in value):
        return None

    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return None

    if parts.scheme.lower() != "https":
        return None
    # user:pass@host links are phishing / SSRF bait
    if parts.username is not None or parts.password is not None or "@" in parts.netloc:
        return None
    if not parts.hostname:
        return None

    try:
        host = parts.hostname.encode("idna").decode("ascii").lower()
    except UnicodeError:
        return None

    allowed_hosts = list(allowed_hosts or [])
    if allowed_hosts and not host_allowed(host, allowed_hosts):
        return None

    if ":" in host:
        host = f"[{host}]"
    netloc = host if port in (None, 443) else f"{host}:{port}"
    return urlunsplit(("https", netloc, parts.path or "/", parts.query, parts.fragment))


def sanitize_links(
    values: Iterable[str], allowed_hosts: Iterable[str] | None = None
) -> tuple[list[str], list[str]]:
    """Sanitize each link independently. Returns ``(valid, rejected)``."""
    allowed_hosts = list(allowed_hosts or [])
    valid: list[str] = []
    rejected: list[str] = []
    for value in values:
        cleaned = sanitize_link(value, allowed_hosts)
        if cleaned is None:
            rejected.append(value)
        else:
            valid.append(cleaned)
    return valid, rejected
