"""Receiving side of signed data transfer: extract payloads after a signature."""

from __future__ import annotations

from dataclasses import dataclass

IPHDR_SIZE = 20


def memstr(haystack, needle, size):
    """Offset of needle within the first size bytes of haystack, or None."""
    haystack = bytes(haystack)
    needle = bytes(needle)
    if size < len(needle):
        return None
    offset = haystack.find(needle, 0, size)
    return None if offset < 0 else offset


@dataclass(frozen=True)
class ListenEvent:
    """Outcome of a signed packet.

    payload holds the bytes after the signature; it is None when the packet
    was out of sequence, in which case restart_from is the id to resend from.
    """

    ip_id: int
    payload: bytes | None = None
    restart_from: int | None = None


class Listener:
    """Extracts the data that follows a signature in captured IP packets."""

    def __init__(self, sign, linkhdr_size=0, safe=False):
        self.sign = sign.encode("latin-1") if isinstance(sign, str) else bytes(sign)
        self.linkhdr_size = linkhdr_size
        self.safe = safe
        self.expected_id = 1

    def handle(self, packet):
        """Process one captured frame; None if it carries no signature."""
        packet = bytes(packet)
        if len(packet) < self.linkhdr_size + IPHDR_SIZE:
            return None
        ip_packet = packet[self.linkhdr_size:]
        ip_id = int.from_bytes(ip_packet[4:6], "big")
        size = min(len(ip_packet), int.from_bytes(ip_packet[2:4], "big"))
        found = memstr(ip_packet, self.sign, size)
        if found is None:
            return None
        if self.safe:
            if ip_id != self.expected_id:
                return ListenEvent(ip_id, None, self.expected_id)
            self.expected_id = (self.expected_id + 1) & 0xFFFF
        start = found + len(self.sign)
        return ListenEvent(ip_id, ip_packet[start:size])