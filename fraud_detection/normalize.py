"""Domain normalization.

Turns an arbitrary user-submitted link into a bare, comparable host:
no scheme, userinfo, path, query, fragment or port, lower-cased, no
trailing dot. Never raises.
"""

from __future__ import annotations

import ipaddress
import re

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_HOST_CHARS_RE = re.compile(r"^[a-z0-9._\-]+$")

MAX_LABEL_LENGTH = 63
MAX_DOMAIN_LENGTH = 253


def _to_punycode(host: str) -> str:
    """Convert unicode hostname to punycode (idna)."""
    if host.isascii():
        return host
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError:
        return host


def is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _split_host_port(hostport: str) -> str:
    # [v6]:port
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            return hostport[1:]
        return hostport[1:end]

    # A bare IPv6 address ends in digits after its last colon; keep it whole.
    if is_ip_literal(hostport):
        return hostport

    host, sep, port = hostport.rpartition(":")
    if sep and port.isdigit():
        return host
    return hostport


def normalize_domain(link: str) -> str:
    """Extract the normalized domain of ``link``.

    Returns an empty string when nothing host-like is left.
    """
    raw = (link or "").strip()

    m = _SCHEME_RE.match(raw)
    if m:
        raw = raw[m.end():]
    elif raw.startswith("//"):
        raw = raw[2:]

    for sep in ("/", "?", "#"):
        idx = raw.find(sep)
        if idx != -1:
            raw = raw[:idx]

    # Drop userinfo: "user:pass@host" -> "host"
    if "@" in raw:
        raw = raw.rsplit("@", 1)[1]

    host = _split_host_port(raw).lower().rstrip(".")
    return _to_punycode(host)


def is_malformed_domain(domain: str) -> bool:
    """Whether a normalized domain cannot name a real host."""
    if not domain:
        return True
    if is_ip_literal(domain):
        return False
    if len(domain) > MAX_DOMAIN_LENGTH or not _HOST_CHARS_RE.match(domain):
        return True
    labels = domain.split(".")
    return any(not label or len(label) > MAX_LABEL_LENGTH for label in labels)
