"""The commands the shell runs itself: echo, cd, pwd, env, export, unset, exit."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from itertools import dropwhile
from string import digits
from typing import TextIO

from minish.environment import (
    Environment,
    is_valid_export_name,
    is_valid_unset_name,
    split_assignment,
)
from minish.textutils import is_echo_flag, parse_long, split_fields

_LEADING_SPACE = "\t\n\v\f\r "
_NUMERIC_BODY = frozenset(digits + " ")


class ExitRequest(Exception):
    """Raised by ``exit`` to ask the shell to stop with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def echo(args: Sequence[str], out: TextIO) -> int | None:
    """Print the arguments; leading ``-n`` options suppress the newline."""
    if not args:
        out.write("\n")
        return None
    newline = not is_echo_flag(args[0])
    out.write(" ".join(dropwhile(is_echo_flag, args)))
    if newline:
        out.write("\n")
    return 0


def _update_pwd(env: Environment, err: TextIO) -> int:
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"getcwd: {exc.strerror}\n")
        return 1
    old = env.get("PWD")
    env.set("PWD", cwd)
    env.set("OLDPWD", old)
    return 0


def cd(args: Sequence[str], env: Environment, out: TextIO, err: TextIO) -> int | None:
    """Change directory; ``.``, ``~`` and no argument go to ``HOME``."""
    if args:
        target = args[0]
        if not target:
            return None
        if target == "-":
            return pwd(out, err)
        directory = env.get("HOME") if target in (".", "~") else target
    else:
        directory = env.get("HOME")
    if not directory or not os.path.exists(directory):
        if not args:
            err.write("cd: HOME not set\n")
        else:
            err.write(f"cd: {directory or ''}: No such file or directory\n")
        return 1
    try:
        os.chdir(directory)
    except OSError as exc:
        err.write(f"chdir: {exc.strerror}\n")
        return 1
    return _update_pwd(env, err)


def pwd(out: TextIO, err: TextIO) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        err.write(f"getcwd: {exc.strerror}\n")
        return 1
    out.write(f"{cwd}\n")
    return 0


def env_command(env: Environment, out: TextIO) -> int:
    """Print every variable that has a value."""
    for line in env.env_listing():
        out.write(f"{line}\n")
    return 0


def export_command(
    args: Sequence[str], env: Environment, out: TextIO, err: TextIO
) -> int:
    """Set or declare variables; without arguments list them."""
    if not args:
        for line in env.export_listing():
            out.write(f"{line}\n")
        return 0
    failed = False
    for arg in args:
        name, value = split_assignment(arg)
        if not is_valid_export_name(name, arg):
            err.write(f"export: `{name}': not a valide identifier\n")
            failed = True
            continue
        if name.endswith("+"):
            env.append(name[:-1], value or "")
        elif value is not None and value.startswith("+"):
            if name in env:
                env.set(name, value)
        else:
            env.set(name, value)
    return 1 if failed else 0


def unset_command(args: Sequence[str], env: Environment, err: TextIO) -> int:
    """Remove variables; ``_`` is never removed."""
    failed = False
    for arg in args:
        if not is_valid_unset_name(arg):
            err.write(f"unset: `{arg}': not a valide identifier\n")
            failed = True
            continue
        if arg != "_":
            env.remove(arg)
    return 1 if failed else 0


def _not_numeric(arg: str) -> bool:
    if not arg.strip(" "):
        return True
    if len(split_fields(arg, " ")) > 1:
        return True
    body = arg.lstrip(_LEADING_SPACE)
    if body.startswith(("+", "-")):
        body = body[1:]
    if any(char not in _NUMERIC_BODY for char in body):
        return True
    try:
        parse_long(arg)
    except OverflowError:
        return True
    return False


def exit_command(
    args: Sequence[str], status: int, out: TextIO, err: TextIO
) -> int:
    """Raise ExitRequest, or return 1 when given too many numeric arguments."""
    if not args:
        raise ExitRequest(status)
    invalid = _not_numeric(args[0])
    if invalid:
        out.write("exit\n")
        err.write(f"minishell: exit: {args[0]}: numeric argument required\n")
        raise ExitRequest(255)
    if len(args) > 1:
        err.write("exit\nminishell: exit: too many arguments\n")
        return 1
    raise ExitRequest(parse_long(args[0]) % 256)


def run_builtin(
    argv: Sequence[str], env: Environment, status: int, out: TextIO, err: TextIO
) -> int | None:
    """Run ``argv`` if it names a builtin and return the new status.

    Returns None when ``argv`` is not a builtin.
    """
    if not argv or not argv[0]:
        return None
    name, args = argv[0], list(argv[1:])
    handlers: dict[str, Callable[[], int | None]] = {
        "echo": lambda: echo(args, out),
        "cd": lambda: cd(args, env, out, err),
        "pwd": lambda: pwd(out, err),
        "export": lambda: export_command(args, env, out, err),
        "unset": lambda: unset_command(args, env, err),
        "env": lambda: env_command(env, out),
        "exit": lambda: exit_command(args, status, out, err),
    }
    handler = handlers.get(name)
    if handler is None:
        return None
    result = handler()
    return status if result is None else result