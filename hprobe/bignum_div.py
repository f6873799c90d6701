"""Division, modular arithmetic, roots and GCD for signed big integers.

Division truncates toward zero: the quotient's sign is the xor of the operand
signs, and the remainder takes the sign of the dividend. When the magnitudes
are equal the quotient is +1, whatever the signs.
"""

from __future__ import annotations

import math
import operator

from hprobe.bignum import BignumError, cmpabs


def _int(value) -> int:
    return operator.index(value)


def _check_divisor(d: int) -> None:
    if d == 0:
        raise BignumError("division by zero")


def tdiv_qr(z, d) -> tuple[int, int]:
    """Return (quotient, remainder) of z / d, truncating toward zero."""
    z = _int(z)
    d = _int(d)
    _check_divisor(d)
    order = cmpabs(z, d)
    if order < 0:
        return 0, z
    if order == 0:
        return 1, 0
    q, r = divmod(abs(z), abs(d))
    if (z < 0) != (d < 0):
        q = -q
    if z < 0:
        r = -r
    return q, r


def tdiv_q(z, d) -> int:
    """Return the truncated quotient of z / d."""
    return tdiv_qr(z, d)[0]


def tdiv_r(z, d) -> int:
    """Return the remainder of z / d; it has the sign of z."""
    z = _int(z)
    d = _int(d)
    _check_divisor(d)
    order = cmpabs(z, d)
    if order < 0:
        return z
    if order == 0:
        return 0
    r = abs(z) % abs(d)
    return -r if z < 0 else r


def mod(z, m) -> int:
    """Reduce z modulo m; the result lies in [0, |m|)."""
    z = _int(z)
    m = _int(m)
    r = tdiv_r(z, m)
    if r != 0 and z < 0:
        r = r - m if m < 0 else r + m
    return r


def powm(base, exp, m) -> int:
    """Return base**exp reduced modulo m by square-and-multiply.

    Negative exponents and a zero modulus raise BignumError. An exponent of
    zero yields |base| mod m, which is what the loop produces.
    """
    base = _int(base)
    exp = _int(exp)
    m = _int(m)
    if exp < 0:
        raise BignumError("negative exponents are not supported")
    _check_divisor(m)
    negative = base < 0 and exp & 1 == 1
    squared = abs(base)
    result = 1
    while exp > 1:
        if exp & 1:
            result = mod(result * squared, m)
        exp >>= 1
        squared = mod(squared * squared, m)
    result *= squared
    if negative:
        result = -result
    return mod(result, m)


def isqrt(z) -> int:
    """Return floor(sqrt(|z|))."""
    return math.isqrt(abs(_int(z)))


def gcd(a, b) -> int:
    """Return the greatest common divisor of |a| and |b|; gcd(a, 0) = |a|."""
    return math.gcd(_int(a), _int(b))