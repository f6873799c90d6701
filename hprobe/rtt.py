"""Round-trip time tracking for sent probes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

S_SENT = 0
S_RECV = 1
DEFAULT_TABLE_SIZE = 400

_log = logging.getLogger(__name__)


@dataclass
class RttStats:
    """Running minimum, maximum and average of round-trip times in ms."""

    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    count: int = 0

    def add(self, ms_delay):
        """Account one round-trip time."""
        if self.min == 0 or ms_delay < self.min:
            self.min = ms_delay
        if self.max == 0 or ms_delay > self.max:
            self.max = ms_delay
        self.count += 1
        n = self.count
        self.avg = (self.avg * (n - 1) / n) + (ms_delay / n)


@dataclass
class DelayEntry:
    """When a probe was sent, from which port, and whether it was answered."""

    seq: int = -1
    src: int = 0
    sec: int = 0
    usec: int = 0
    status: int = S_SENT


@dataclass(frozen=True)
class RttResult:
    """Outcome of matching a reply against the sent probes."""

    seq: int
    status: int
    ms_delay: float


class DelayTable:
    """Ring of recently sent probes used to time their replies."""

    def __init__(self, size=DEFAULT_TABLE_SIZE):
        if size <= 0:
            raise ValueError("table size must be positive")
        self.entries = [DelayEntry() for _ in range(size)]
        self.index = 0
        self.stats = RttStats()

    def add(self, seq, src, sec, usec, status=S_SENT):
        """Record a sent probe, replacing the oldest entry."""
        self.entries[self.index % len(self.entries)] = DelayEntry(seq, src, sec, usec, status)
        self.index += 1

    def _find(self, seq, recvport):
        if seq != 0:
            return next((e for e in self.entries if e.seq == seq), None)
        return next((e for e in self.entries if e.src == recvport), None)

    def lookup(self, seq, recvport, now_sec, now_usec):
        """Match a reply by sequence number, or by port when seq is 0.

        The entry is marked received, and its previous status is returned so
        that duplicates can be told apart. Unknown replies give a delay of 0.
        """
        entry = self._find(seq, recvport)
        if entry is None:
            return RttResult(seq, 0, 0.0)
        if seq == 0:
            seq = entry.seq
        status = entry.status
        entry.status = S_RECV
        sec_delay = now_sec - entry.sec
        usec_delay = now_usec - entry.usec
        if sec_delay == 0 and usec_delay < 0:
            usec_delay += 1_000_000
        ms_delay = sec_delay * 1000 + usec_delay / 1000
        self.stats.add(ms_delay)
        if ms_delay < 0:
            _log.warning("negative round-trip time %f ms for seq %d", ms_delay, seq)
        return RttResult(seq, status, ms_delay)