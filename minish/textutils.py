"""Small text helpers shared by the builtins and the executor."""

from __future__ import annotations

import re
from string import ascii_letters

LONG_MAX = 2**63 - 1

_LEADING_SPACE = "\t\n\v\f\r "
_NUMBER = re.compile(r"([+-]?)(\d*)")
_ECHO_FLAG = re.compile(r"-n+")
_NAME_START = frozenset(ascii_letters + "_")


def parse_long(text: str) -> int:
    """Read a signed integer at the start of ``text`` after leading whitespace.

    Reading stops at the first non-digit; no digits give 0. Raises
    OverflowError when the value does not fit a signed 64-bit integer.
    """
    match = _NUMBER.match(text.lstrip(_LEADING_SPACE))
    sign, digits = match.groups()
    magnitude = int(digits) if digits else 0
    limit = LONG_MAX + 1 if sign == "-" else LONG_MAX
    if magnitude > limit:
        raise OverflowError(f"{text!r} is out of range")
    return -magnitude if sign == "-" else magnitude


def is_echo_flag(arg: str) -> bool:
    """Return whether ``arg`` is an ``echo`` option such as ``-n`` or ``-nnn``."""
    return _ECHO_FLAG.fullmatch(arg) is not None


def split_fields(text: str, sep: str) -> list[str]:
    """Split ``text`` at ``sep``, dropping empty fields."""
    return [part for part in text.split(sep) if part]


def is_name_char(char: str) -> bool:
    """Return whether ``char`` may start a variable name: a letter or ``_``."""
    return char in _NAME_START