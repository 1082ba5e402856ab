"""Quote handling: checking, marking and removing shell quotes."""

from __future__ import annotations

import re

WHITESPACE = " \t\n\v\f\r"
QUOTES = "'\""

# Marks that stand in for quote characters once a line has been split, so
# that quotes produced by expansion are not mistaken for syntax.
SINGLE_QUOTE_MARK = "\ue001"
DOUBLE_QUOTE_MARK = "\ue002"

_MARK_TABLE = str.maketrans({"'": SINGLE_QUOTE_MARK, '"': DOUBLE_QUOTE_MARK})
_UNMARK_TABLE = str.maketrans({SINGLE_QUOTE_MARK: "'", DOUBLE_QUOTE_MARK: '"'})
_MARKED_SPAN = re.compile(
    f"([{SINGLE_QUOTE_MARK}{DOUBLE_QUOTE_MARK}])(.*?)(?:\\1|\\Z)", re.DOTALL
)


def is_whitespace(char: str) -> bool:
    """Return whether ``char`` is a whitespace character for the shell."""
    return len(char) == 1 and char in WHITESPACE


def check_quotes(line: str) -> bool:
    """Return whether every quote opened in ``line`` is closed."""
    open_quote = None
    for char in line:
        if open_quote:
            if char == open_quote:
                open_quote = None
        elif char in QUOTES:
            open_quote = char
    return open_quote is None


def inside_quotes(line: str, index: int) -> bool:
    """Return whether position ``index`` lies strictly inside a quoted span."""
    open_quote = None
    start = -1
    for pos, char in enumerate(line):
        if open_quote:
            if char == open_quote:
                if start < index < pos:
                    return True
                open_quote = None
        elif char in QUOTES:
            open_quote, start = char, pos
    return open_quote is not None and index > start


def mark_quotes(text: str) -> str:
    """Replace quote characters with their marks."""
    return text.translate(_MARK_TABLE)


def unmark_quotes(text: str) -> str:
    """Turn quote marks back into quote characters."""
    return text.translate(_UNMARK_TABLE)


def remove_quotes(text: str) -> str:
    """Drop paired quote marks, keeping what they enclose.

    An unclosed mark is dropped and the rest of the text kept; a mark of the
    other kind inside a span is kept as it is.
    """
    return _MARKED_SPAN.sub(r"\2", text)