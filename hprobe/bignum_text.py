"""Conversion of signed big integers to and from text in bases 2 to 36."""

from __future__ import annotations

import math
import operator

from hprobe.bignum import BignumError

MIN_BASE = 2
MAX_BASE = 36
ATOM_BITS = 32

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_DIGIT_VALUES = {char: value for value, char in enumerate(_DIGITS)}
_SPACE = " \t\n\v\f\r"

# Digits of base b needed per 32-bit atom, to six decimal places.
_DIGITS_PER_ATOM = {
    base: round(ATOM_BITS / math.log2(base), 6)
    for base in range(MIN_BASE, MAX_BASE + 1)
}


def _check_base(base: int) -> int:
    base = operator.index(base)
    if base < MIN_BASE or base > MAX_BASE:
        raise BignumError(f"base must be between {MIN_BASE} and {MAX_BASE}: {base}")
    return base


def _atoms(magnitude: int) -> int:
    return (magnitude.bit_length() + ATOM_BITS - 1) // ATOM_BITS


def size_in_base(z, base) -> int:
    """Upper estimate of the digits of |z| in the base.

    The minus sign and any terminator are not counted.
    """
    base = _check_base(base)
    atoms = _atoms(abs(operator.index(z)))
    return int((_DIGITS_PER_ATOM[base] + 0.000001) * atoms + 1)


def to_str(z, base) -> str:
    """Render z in the base with lower-case digits and a leading '-' if negative."""
    base = _check_base(base)
    z = operator.index(z)
    if z == 0:
        return "0"
    magnitude = abs(z)
    digits = []
    while magnitude:
        magnitude, digit = divmod(magnitude, base)
        digits.append(_DIGITS[digit])
    if z < 0:
        digits.append("-")
    return "".join(reversed(digits))


def from_str(text: str, base) -> int:
    """Parse text as an integer in the base.

    Leading blanks and one leading '-' are accepted, and trailing blanks are
    ignored. With base 0 the base is guessed: a leading '0' means octal,
    '0x' hexadecimal and '0b' binary; anything else is decimal. Digits are
    case-insensitive. An empty number reads as zero. Any character that is
    not a digit of the base raises BignumError.
    """
    base = operator.index(base)
    body = text.lstrip(_SPACE)
    negative = False
    if body.startswith("-"):
        negative = True
        body = body[1:]
    if base == 0:
        base = 10
        if body.startswith("0"):
            base = 8
            body = body[1:]
            if body[:1].lower() == "x":
                base = 16
                body = body[1:]
            elif body[:1].lower() == "b":
                base = 2
                body = body[1:]
    base = _check_base(base)
    end = len(body)
    while end > 1 and body[end - 1] in _SPACE:
        end -= 1
    value = 0
    for char in body[:end]:
        digit = _DIGIT_VALUES.get(char.lower())
        if digit is None or digit >= base:
            raise BignumError(f"invalid digit {char!r} for base {base}")
        value = value * base + digit
    return -value if negative else value