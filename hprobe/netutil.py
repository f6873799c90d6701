"""Address resolution and raw socket creation."""

from __future__ import annotations

import socket


class ResolveError(OSError):
    """Raised when a host name cannot be resolved to an IPv4 address."""


def resolve_addr(hostname: str) -> str:
    """Resolve a dotted address or host name to a dotted IPv4 address."""
    try:
        packed = socket.inet_aton(hostname)
    except (OSError, ValueError):
        packed = None
    if packed is not None and packed != b"\xff\xff\xff\xff":
        return socket.inet_ntoa(packed)
    try:
        return socket.gethostbyname(hostname)
    except (OSError, UnicodeError) as exc:
        raise ResolveError(f"Unable to resolve '{hostname}'") from exc


def open_raw_socket() -> socket.socket:
    """Open a raw IPv4 socket for sending complete IP packets."""
    return socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_RAW)