"""Bit operations on the magnitude of signed arbitrary-precision integers."""

from __future__ import annotations

import operator

from hprobe.bignum import BignumError


def _int(value) -> int:
    return operator.index(value)


def _index(i) -> int:
    i = _int(i)
    if i < 0:
        raise BignumError(f"bit index must be non-negative: {i}")
    return i


def _signed(negative: bool, magnitude: int) -> int:
    return -magnitude if negative else magnitude


def bit_length(z) -> int:
    """Number of bits needed to represent |z|; zero needs none."""
    return abs(_int(z)).bit_length()


def set_bit(z, i) -> int:
    """Return z with bit i of its magnitude set, keeping the sign."""
    z = _int(z)
    return _signed(z < 0, abs(z) | (1 << _index(i)))


def clear_bit(z, i) -> int:
    """Return z with bit i of its magnitude cleared, keeping the sign."""
    z = _int(z)
    return _signed(z < 0, abs(z) & ~(1 << _index(i)))


def test_bit(z, i) -> bool:
    """True if bit i of |z| is set; bits beyond the number are clear."""
    return bool(abs(_int(z)) >> _index(i) & 1)


def lshift(z, i) -> int:
    """Shift the magnitude of z left by i bits, keeping the sign."""
    z = _int(z)
    return _signed(z < 0, abs(z) << _index(i))


def rshift(z, i) -> int:
    """Shift the magnitude of z right by i bits, keeping the sign.

    This truncates toward zero, unlike Python's floor shift on negatives.
    """
    z = _int(z)
    return _signed(z < 0, abs(z) >> _index(i))


def bit_and(z, m) -> int:
    """AND the magnitudes of z and m.

    A value ANDed with itself is returned unchanged, sign included; any
    other result is non-negative.
    """
    z = _int(z)
    m = _int(m)
    if z == m:
        return z
    return abs(z) & abs(m)