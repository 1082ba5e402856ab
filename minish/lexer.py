"""Turning an input line into words: trimming, padding operators, splitting."""

from __future__ import annotations

import re

from minish.quoting import WHITESPACE, is_whitespace

OPERATORS = frozenset({"|", "<", ">", "<<", ">>"})

_PIECE = re.compile(
    r"""'[^']*'|"[^"]*"|['"].*|<<|>>|[<>|]|[^'"<>|]+""",
    re.DOTALL,
)
_WS_CLASS = re.escape(WHITESPACE)
_WORD = re.compile(rf"""(?:'[^']*'?|"[^"]*"?|[^{_WS_CLASS}'"])+""")


def trim_line(line: str) -> str | None:
    """Strip surrounding whitespace; return None when nothing is left."""
    trimmed = line.strip(WHITESPACE)
    return trimmed or None


def pad_operators(line: str) -> str:
    """Put spaces around ``|``, ``<``, ``>``, ``<<`` and ``>>`` outside quotes.

    A space is added only where the neighbouring character is not already
    whitespace. For the two-character operators a space before is added only
    from the third position of the line on.
    """
    parts: list[str] = []
    for match in _PIECE.finditer(line):
        piece = match.group()
        if piece not in OPERATORS:
            parts.append(piece)
            continue
        start, end = match.span()
        earliest = 2 if len(piece) == 2 else 1
        if start >= earliest and not is_whitespace(line[start - 1]):
            parts.append(" ")
        parts.append(piece)
        if end < len(line) and not is_whitespace(line[end]):
            parts.append(" ")
    return "".join(parts)


def split_words(line: str) -> list[str]:
    """Split ``line`` at whitespace, keeping quoted spans inside their word.

    Quotes are kept in the words; an unclosed quote runs to the end of the line.
    """
    return _WORD.findall(line)