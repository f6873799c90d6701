"""RC4-based 32-bit pseudo-random number generator."""

from __future__ import annotations

import operator
import os
import time

SBOX_SIZE = 256
ATOM_BITS = 32
ATOM_MASK = 0xFFFFFFFF
_DISCARD_AFTER_SEED = 32


class Rc4Random:
    """RC4 keystream generator producing 32-bit numbers."""

    def __init__(self, sbox):
        sbox = bytearray(sbox)
        if len(sbox) != SBOX_SIZE:
            raise ValueError(f"sbox must hold {SBOX_SIZE} bytes, got {len(sbox)}")
        self._sbox = sbox
        self._i = 0
        self._j = 0

    def rand(self) -> int:
        """Return the next 32-bit number; the first keystream byte is the lowest."""
        sbox = self._sbox
        result = 0
        for shift in range(0, ATOM_BITS, 8):
            self._i = (self._i + 1) & 0xFF
            si = sbox[self._i]
            self._j = (self._j + si) & 0xFF
            sj = sbox[self._j]
            sbox[self._i] = sj
            sbox[self._j] = si
            result |= sbox[(si + sj) & 0xFF] << shift
        return result

    def seed(self, data) -> None:
        """Mix bytes into the sbox, then discard some output."""
        for position, byte in enumerate(bytes(data)):
            self._sbox[position & 0xFF] ^= byte
        for _ in range(_DISCARD_AFTER_SEED):
            self.rand()


def identity_generator() -> Rc4Random:
    """Generator whose sbox starts as 0..255, giving a fixed sequence."""
    return Rc4Random(range(SBOX_SIZE))


def urandom_generator() -> Rc4Random:
    """Generator seeded from the system random source and the clock."""
    sbox = bytearray(os.urandom(SBOX_SIZE))
    for position in range(SBOX_SIZE):
        now = time.time()
        seconds = int(now)
        if position & 1:
            value = int((now - seconds) * 1_000_000)
        else:
            value = seconds
        sbox[position] ^= (value >> (position & 0xF)) & 0xFF
    return Rc4Random(sbox)


def random_atoms(length, rng) -> int:
    """Random number of at most |length| 32-bit atoms, negative if length < 0."""
    length = operator.index(length)
    negative = length < 0
    count = abs(length)
    value = 0
    for index in range(count):
        value |= (rng.rand() & ATOM_MASK) << (index * ATOM_BITS)
    return -value if negative else value