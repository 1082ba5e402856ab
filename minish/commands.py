"""Building pipeline commands out of the tokens of a line."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from minish.lexer import pad_operators, split_words, trim_line
from minish.quoting import (
    DOUBLE_QUOTE_MARK,
    SINGLE_QUOTE_MARK,
    check_quotes,
    remove_quotes,
    unmark_quotes,
)
from minish.tokens import Token, TokenType, tokenize

INPUT_TYPES = frozenset({TokenType.IN_FILE, TokenType.DELIMITER})
OUTPUT_TYPES = frozenset({TokenType.OUT_FILE, TokenType.AOUT_FILE})
TARGET_TYPES = INPUT_TYPES | OUTPUT_TYPES


class UnclosedQuoteError(Exception):
    """Raised when a line holds a quote that is never closed."""

    def __init__(self, message: str = "syntax error related to unclosed quote") -> None:
        super().__init__(message)


@dataclass
class Redirection:
    """A file or here-document attached to a command."""

    target: str | None
    type: TokenType
    quoted: bool = False
    last: bool = False


@dataclass
class Command:
    """One command of a pipeline."""

    name: str | None = None
    args: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)
    var_flag: bool = False

    def argv(self) -> list[str]:
        """The command name followed by its arguments; empty without a name."""
        if self.name is None:
            return []
        return [self.name, *self.args]


def _has_quote_marks(text: str) -> bool:
    return SINGLE_QUOTE_MARK in text or DOUBLE_QUOTE_MARK in text


def _plain_text(text: str) -> str:
    return unmark_quotes(remove_quotes(text))


def build_commands(tokens: Iterable[Token]) -> list[Command]:
    """Group classified tokens into commands, one per pipeline segment.

    Quote marks are removed from every word; a here-document delimiter that
    carried quotes is flagged as quoted.
    """
    commands: list[Command] = []
    current: Command | None = None
    for token in tokens:
        if token.type is TokenType.PIPE:
            current = None
            continue
        if current is None:
            current = Command()
            commands.append(current)
        text = _plain_text(token.text)
        if token.type is TokenType.CMD:
            current.name = text
            current.var_flag = token.var_flag
        elif token.type is TokenType.OPTION:
            current.args.append(text)
        elif token.type in TARGET_TYPES:
            quoted = token.type is TokenType.DELIMITER and _has_quote_marks(token.text)
            current.redirections.append(Redirection(text, token.type, quoted))
    return commands


def mark_last_redirections(commands: Iterable[Command]) -> None:
    """Flag, in each command, the last input and the last output redirection."""
    for command in commands:
        last_in = last_out = None
        for redirection in command.redirections:
            if redirection.type in INPUT_TYPES:
                last_in = redirection
            elif redirection.type in OUTPUT_TYPES:
                last_out = redirection
        for redirection in command.redirections:
            redirection.last = redirection is last_in or redirection is last_out


def parse_line(line: str) -> list[Command]:
    """Parse an input line into its pipeline of commands.

    Returns an empty list for a blank line. Raises UnclosedQuoteError or
    ShellSyntaxError when the line is malformed.
    """
    if not check_quotes(line):
        raise UnclosedQuoteError()
    trimmed = trim_line(line)
    if trimmed is None:
        return []
    tokens = tokenize(split_words(pad_operators(trimmed)))
    commands = build_commands(tokens)
    mark_last_redirections(commands)
    return commands