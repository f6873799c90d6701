"""Signed arbitrary-precision integer arithmetic.

Numbers are plain Python integers viewed as a sign and a magnitude. The
functions keep the exact results of the sign/magnitude algorithms they
implement, including their edge cases.
"""

from __future__ import annotations

import operator

ATOM_BITS = 32
U32_MAX = 0xFFFFFFFF


class BignumError(ValueError):
    """Raised for an operation the arithmetic does not define."""


def _int(value) -> int:
    return operator.index(value)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def cmpabs(a, b) -> int:
    """Compare |a| with |b|: 1 if greater, 0 if equal, -1 if smaller."""
    return _sign(abs(_int(a)) - abs(_int(b)))


def cmp(a, b) -> int:
    """Compare a with b: 1 if greater, 0 if equal, -1 if smaller."""
    return _sign(_int(a) - _int(b))


def add(a, b) -> int:
    """Return a + b."""
    return _int(a) + _int(b)


def sub(a, b) -> int:
    """Return a - b."""
    return _int(a) - _int(b)


def mul(a, b) -> int:
    """Return a * b; the sign is the xor of the operand signs."""
    return _int(a) * _int(b)


def factorial(n) -> int:
    """Return n! for an unsigned 32-bit n.

    As in the underlying algorithm, zero yields zero rather than one.
    """
    n = _int(n)
    if n < 0 or n > U32_MAX:
        raise BignumError(f"factorial argument out of range: {n}")
    if n == 0:
        return 0
    result = 1
    for factor in range(2, n + 1):
        result *= factor
    return result


def power(base, exp) -> int:
    """Return base raised to exp by square-and-multiply.

    Negative exponents raise BignumError. The result is negative only for a
    negative base and an odd exponent. An exponent of zero yields |base|,
    which is what the square-and-multiply loop produces.
    """
    base = _int(base)
    exp = _int(exp)
    if exp < 0:
        raise BignumError("negative exponents are not supported")
    negative = base < 0 and exp & 1 == 1
    squared = abs(base)
    result = 1
    while exp > 1:
        if exp & 1:
            result *= squared
        exp >>= 1
        squared *= squared
    result *= squared
    return -result if negative else result