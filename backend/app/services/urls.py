from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


class InvalidUrl(ValueError):
    """Raised when a raw string cannot be parsed as an absolute URL."""


def canonicalize(raw: str) -> str:
    """
    Normalise a user-supplied URL so equivalent addresses compare equal.

    - trim whitespace
    - lower-case scheme and host
    - drop the fragment
    - drop the port when it is the scheme's default (80/http, 443/https)
    - strip trailing slashes from a non-root path; an empty path becomes "/"

    Idempotent: canonicalize(canonicalize(x)) == canonicalize(x).
    """
    if not isinstance(raw, str):
        raise InvalidUrl(f"URL must be a string, got {type(raw).__name__}")

    trimmed = raw.strip()
    try:
        parts = urlsplit(trimmed)
        port = parts.port
    except ValueError as e:
        raise InvalidUrl(f"Invalid URL: {trimmed!r}") from e

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        raise InvalidUrl(f"Invalid URL: {trimmed!r}")

    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"

    netloc = host
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{host}:{port}"

    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = parts.path
    if len(path) > 1:
        path = path.rstrip("/")
    if not path:
        path = "/"

    return urlunsplit((scheme, netloc, path, parts.query, ""))
