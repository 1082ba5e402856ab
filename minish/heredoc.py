"""Here-documents: reading their lines and storing the last one in a file."""

from __future__ import annotations

import itertools
import os
import tempfile
from collections.abc import Callable, Sequence

from minish.commands import Command, Redirection
from minish.tokens import TokenType

PROMPT = "> "

ReadLine = Callable[[str], "str | None"]

_counter = itertools.count()


def heredoc_file_name() -> str:
    """Return a fresh path in the temporary directory for a here-document."""
    return os.path.join(tempfile.gettempdir(), f".tmp{os.getpid()}{next(_counter)}")


def last_heredoc_index(redirections: Sequence[Redirection]) -> int | None:
    """Return the index of the last here-document, or None if there is none."""
    index = None
    for position, redirection in enumerate(redirections):
        if redirection.type is TokenType.DELIMITER:
            index = position
    return index


def read_heredoc(delimiter: str, read_line: ReadLine) -> list[str]:
    """Read lines until one equals ``delimiter`` or input ends.

    ``read_line`` is called with the prompt and returns None at end of input;
    an interrupt it raises is passed on.
    """
    lines = []
    while True:
        line = read_line(PROMPT)
        if line is None or line == delimiter:
            return lines
        lines.append(line)


def apply_heredocs(command: Command, read_line: ReadLine) -> str | None:
    """Read every here-document of ``command``; keep the last one in a file.

    The last here-document becomes an input file redirection to the file
    written; its path is returned. Returns None when there is none.
    """
    last = last_heredoc_index(command.redirections)
    if last is None:
        return None
    for redirection in command.redirections[:last]:
        if redirection.type is TokenType.DELIMITER:
            read_heredoc(redirection.target or "", read_line)
    final = command.redirections[last]
    lines = read_heredoc(final.target or "", read_line)
    path = heredoc_file_name()
    with open(path, "w", encoding="utf-8") as handle:
        handle.writelines(f"{line}\n" for line in lines)
    final.target = path
    final.type = TokenType.IN_FILE
    return path