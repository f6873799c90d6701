"""Port scanning helpers: port lists, reply bookkeeping and report lines."""

from __future__ import annotations

import socket
from pathlib import Path

MAXPORT = 65535
DEFAULT_PROBES = 8
SERVICES_FILE = Path("/etc/services")

_FLAG_LETTERS = "FSRPAYXY"


def tcp_strflags(flags) -> str:
    """Eight-character flag string: a letter for each set bit, '.' otherwise."""
    return "".join(
        letter if flags & (1 << bit) else "."
        for bit, letter in enumerate(_FLAG_LETTERS)
    )


def port_to_name(port) -> str:
    """Service name of a TCP/UDP port, or an empty string if it has none."""
    try:
        return socket.getservbyport(port)
    except (OSError, OverflowError, TypeError):
        return ""


def _is_number(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _known_ports(path: Path = SERVICES_FILE) -> set[int]:
    """Ports listed in the services database."""
    ports: set[int] = set()
    try:
        lines = path.read_text(encoding="latin-1").splitlines()
    except OSError:
        return ports
    for line in lines:
        fields = line.split("#", 1)[0].split()
        if len(fields) < 2:
            continue
        number, _, _ = fields[1].partition("/")
        if _is_number(number) and 0 <= int(number) <= MAXPORT:
            ports.add(int(number))
    return ports


def _ports_of(item: str) -> set[int]:
    if "-" in item:
        bounds = item.split("-")
        if len(bounds) != 2 or not all(_is_number(b) for b in bounds):
            raise ValueError(f"invalid port range: {item!r}")
        low, high = sorted(int(b) for b in bounds)
        if high > MAXPORT:
            raise ValueError(f"port out of range: {item!r}")
        return set(range(low, high + 1))
    if item == "all":
        return set(range(MAXPORT + 1))
    if item == "known":
        return _known_ports()
    if not _is_number(item) or int(item) > MAXPORT:
        raise ValueError(f"invalid port: {item!r}")
    return {int(item)}


def parse_ports(spec: str) -> set[int]:
    """Parse a port list such as "21-25,80,known,!23" into a set of ports.

    Items are applied left to right; an item starting with '!' removes its
    ports. Raises ValueError on a syntax error.
    """
    active: set[int] = set()
    for item in spec.split(","):
        negate = item.startswith("!")
        if negate:
            item = item[1:]
        ports = _ports_of(item)
        if negate:
            active -= ports
        else:
            active |= ports
    return active


def format_tcp_reply(sport, flags, ttl, ip_id, win, iplen) -> str:
    """Report line for a TCP reply from a scanned port."""
    name = port_to_name(sport)[:11]
    return (f"{sport:5d} {name:<11}: {tcp_strflags(flags)} "
            f"{ttl:3d} {ip_id:5d} {win:5d} {iplen:5d}")


def format_icmp_reply(port, ttl, iplen, ip_id, icmp_type, icmp_code, gateway) -> str:
    """Report line for an ICMP error quoting a probe to a scanned port."""
    return (f"{port:5d}:{'':22}{ttl:3d} {iplen:5d} {ip_id:5d}   "
            f"(ICMP {icmp_type:3d} {icmp_code:3d} from {gateway})")


def _trunc_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return -quotient if value < 0 else quotient


class ScanTable:
    """Per-port scan state: which ports await replies and retries left."""

    def __init__(self, ports, probes=DEFAULT_PROBES):
        self.probes = probes
        self._active: set[int] = set()
        self._retry: dict[int, int] = {}
        for port in ports:
            if not 0 <= port <= MAXPORT:
                raise ValueError(f"port out of range: {port}")
            self._active.add(port)
            self._retry[port] = probes
        self.average_rtt = 0.0
        self.replies = 0

    def mark_replied(self, port, rtt_ms) -> bool:
        """Record a reply; False if the port was not awaiting one."""
        if port not in self._active:
            return False
        self.replies += 1
        n = self.replies
        self.average_rtt = (self.average_rtt * (n - 1) / n) + _trunc_div(int(rtt_ms), n)
        self._active.discard(port)
        return True

    def pending(self) -> list[int]:
        """Ports to probe in the next round; each one uses up a retry."""
        ports = sorted(p for p in self._active if self._retry[p] and p < MAXPORT)
        for port in ports:
            self._retry[port] -= 1
        return ports

    def not_responding(self) -> list[int]:
        """Ports that used up every retry without a reply."""
        return sorted(p for p in self._active if not self._retry[p] and p < MAXPORT)