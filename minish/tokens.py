"""Tokens of a command line: classification and syntax checking."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from minish.quoting import mark_quotes


class TokenType(enum.Enum):
    WORD = enum.auto()
    CMD = enum.auto()
    OPTION = enum.auto()
    PIPE = enum.auto()
    REDIR_IN = enum.auto()
    REDIR_OUT = enum.auto()
    REDIR_APPEND = enum.auto()
    REDIR_HEREDOC = enum.auto()
    IN_FILE = enum.auto()
    OUT_FILE = enum.auto()
    AOUT_FILE = enum.auto()
    DELIMITER = enum.auto()


REDIRECTIONS = frozenset(
    {
        TokenType.REDIR_IN,
        TokenType.REDIR_OUT,
        TokenType.REDIR_APPEND,
        TokenType.REDIR_HEREDOC,
    }
)

_OPERATOR_TYPES = {
    "|": TokenType.PIPE,
    "<": TokenType.REDIR_IN,
    ">": TokenType.REDIR_OUT,
    ">>": TokenType.REDIR_APPEND,
    "<<": TokenType.REDIR_HEREDOC,
}

_TARGET_TYPES = {
    TokenType.REDIR_IN: TokenType.IN_FILE,
    TokenType.REDIR_OUT: TokenType.OUT_FILE,
    TokenType.REDIR_APPEND: TokenType.AOUT_FILE,
    TokenType.REDIR_HEREDOC: TokenType.DELIMITER,
}


class ShellSyntaxError(Exception):
    """Raised when pipes and redirections are not followed by a word."""

    def __init__(self, message: str = "syntax error") -> None:
        super().__init__(message)


@dataclass
class Token:
    text: str
    type: TokenType
    var_flag: bool = False


def classify_words(words: Iterable[str]) -> list[Token]:
    """Make a token of each word: an operator type or a plain word."""
    return [Token(word, _OPERATOR_TYPES.get(word, TokenType.WORD)) for word in words]


def check_syntax(tokens: list[Token]) -> None:
    """Raise ShellSyntaxError if a pipe or redirection is misplaced."""
    if tokens and tokens[0].type is TokenType.PIPE:
        raise ShellSyntaxError()
    for token, following in zip(tokens, [*tokens[1:], None]):
        if token.type is TokenType.PIPE:
            if following is None or following.type is TokenType.PIPE:
                raise ShellSyntaxError()
        elif token.type in REDIRECTIONS:
            if following is None or following.type is TokenType.PIPE or following.type in REDIRECTIONS:
                raise ShellSyntaxError()


def assign_targets(tokens: list[Token]) -> None:
    """Give the token after each redirection its file or delimiter type."""
    for token, following in zip(tokens, tokens[1:]):
        target = _TARGET_TYPES.get(token.type)
        if target is not None:
            following.type = target


def assign_commands(tokens: list[Token]) -> None:
    """In each pipeline segment the first word is the command, the rest options."""
    command_found = False
    for token in tokens:
        if token.type is TokenType.PIPE:
            command_found = False
        elif token.type is TokenType.WORD:
            if command_found:
                token.type = TokenType.OPTION
            else:
                token.type = TokenType.CMD
                command_found = True


def tokenize(words: Iterable[str]) -> list[Token]:
    """Classify and check the words of a line and mark their quotes."""
    tokens = classify_words(words)
    check_syntax(tokens)
    assign_targets(tokens)
    for token in tokens:
        token.text = mark_quotes(token.text)
        token.var_flag = token.text.startswith("$")
    assign_commands(tokens)
    return tokens