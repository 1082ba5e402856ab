"""Running parsed commands: redirections, path lookup, builtins and pipelines."""

from __future__ import annotations

import io
import os
import subprocess
import sys
import tempfile
from collections.abc import Callable, Sequence
from contextlib import ExitStack, suppress
from dataclasses import dataclass
from typing import IO, Optional, Union

from minish.builtins import ExitRequest, run_builtin
from minish.commands import Command, Redirection, mark_last_redirections
from minish.environment import Environment
from minish.heredoc import apply_heredocs
from minish.textutils import split_fields
from minish.tokens import TokenType

DEFAULT_PATH = "/usr/gnu/bin:/usr/local/bin:/bin:/usr/bin:."

ReadLine = Callable[[str], Optional[str]]
_Stream = Union[IO[bytes], int, None]


class CommandNotRunnable(Exception):
    """Raised when a command cannot be started; carries the status to report."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class _Stage:
    """One launched pipeline stage: a running process or a finished status."""

    process: subprocess.Popen | None = None
    status: int = 0
    output: _Stream = None


def search_path(envp: Sequence[str]) -> str | None:
    """Return the value of ``PATH`` in ``envp``; a default for an empty one."""
    if not envp:
        return DEFAULT_PATH
    for entry in envp:
        key, sep, value = entry.partition("=")
        if sep and key == "PATH":
            return value
    return None


def _is_executable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _not_found(name: str, searched: bool) -> CommandNotRunnable:
    if searched:
        return CommandNotRunnable(127, f"minishell: command not found: {name}")
    return CommandNotRunnable(127, f"No such file or directory: {name}")


def resolve_command(name: str, envp: Sequence[str]) -> str:
    """Return the file to run for ``name``, searching ``PATH`` when needed.

    Raises CommandNotRunnable when no such program is found.
    """
    if name == ".":
        raise CommandNotRunnable(
            2,
            "minishell: .: filename argument required\n"
            ".: usage: . filename [arguments]",
        )
    if _is_executable_file(name):
        return name
    if "/" in name:
        raise _not_found(name, searched=False)
    directories = search_path(envp)
    if directories is None:
        raise _not_found(name, searched=False)
    for directory in split_fields(directories, ":"):
        candidate = f"{directory}/{name}"
        if _is_executable_file(candidate):
            return candidate
    raise _not_found(name, searched=True)


def check_permission(name: str) -> None:
    """Raise CommandNotRunnable for a file that is not executable or a directory."""
    if os.path.exists(name) and not os.access(name, os.X_OK):
        raise CommandNotRunnable(126, f"minishell: {name}: Permission denied")
    if os.path.isdir(name) and name not in (".", ".."):
        raise CommandNotRunnable(126, f"minishell: {name}: is a directory")


def split_command(argv: Sequence[str]) -> list[str]:
    """Split a command name that came from a variable into its words.

    Returns an empty list when the name holds nothing but spaces.
    """
    if not argv:
        return []
    fields = split_fields(argv[0], " ")
    if not fields:
        return []
    if len(fields) == 1:
        return list(argv)
    return [*fields, *argv[1:]]


def open_redirections(
    redirections: Sequence[Redirection],
) -> tuple[IO[bytes] | None, IO[bytes] | None]:
    """Open every file redirection in order; return the last input and output.

    Files that are not the last of their kind are opened (created or
    truncated) and closed again. Raises CommandNotRunnable with status 1 when
    a file cannot be opened.
    """
    with ExitStack() as stack:
        stdin: IO[bytes] | None = None
        stdout: IO[bytes] | None = None
        for redirection in redirections:
            target = redirection.target
            if target is None:
                raise CommandNotRunnable(1, "minishell: : ambiguous redirect")
            if redirection.type is TokenType.IN_FILE:
                try:
                    handle = open(target, "rb")
                except OSError:
                    raise CommandNotRunnable(
                        1, f"./minishell: no such file or directory: {target}"
                    ) from None
            elif redirection.type in (TokenType.OUT_FILE, TokenType.AOUT_FILE):
                mode = "wb" if redirection.type is TokenType.OUT_FILE else "ab"
                try:
                    handle = open(target, mode)
                except OSError as exc:
                    raise CommandNotRunnable(1, f"open: {exc.strerror}") from None
            else:
                continue
            if not redirection.last:
                handle.close()
                continue
            stack.enter_context(handle)
            if redirection.type is TokenType.IN_FILE:
                stdin = handle
            else:
                stdout = handle
        stack.pop_all()
        return stdin, stdout


def _report(error: CommandNotRunnable) -> None:
    sys.stderr.write(f"{error.message}\n")
    sys.stderr.flush()


def _close(stream: _Stream) -> None:
    if stream is not None and not isinstance(stream, int):
        stream.close()


def _copy_env(env: Environment) -> Environment:
    return Environment((key, env.get(key)) for key in env)


def _process_environ(env: Environment) -> dict[str, str]:
    return {key: value for key, _, value in (e.partition("=") for e in env.to_envp())}


def _deliver(text: str, stdout: IO[bytes] | None, last: bool) -> _Stream:
    """Send builtin output where it belongs; return what the next stage reads."""
    if stdout is not None:
        stdout.write(text.encode())
        return subprocess.DEVNULL
    if last:
        sys.stdout.write(text)
        sys.stdout.flush()
        return None
    buffer = tempfile.TemporaryFile()
    buffer.write(text.encode())
    buffer.seek(0)
    return buffer


def _launch(
    command: Command,
    env: Environment,
    status: int,
    inbound: _Stream,
    last: bool,
    in_shell: bool,
) -> _Stage:
    try:
        stdin, stdout = open_redirections(command.redirections)
    except CommandNotRunnable as exc:
        _report(exc)
        _close(inbound)
        return _Stage(status=exc.status, output=subprocess.DEVNULL)

    with ExitStack() as stack:
        if stdin is not None:
            _close(inbound)
            inbound = stdin
        stack.callback(_close, inbound)
        stack.callback(_close, stdout)

        argv = command.argv()
        out = io.StringIO()
        request: ExitRequest | None = None
        try:
            result = run_builtin(
                argv, env if in_shell else _copy_env(env), status, out, sys.stderr
            )
        except ExitRequest as exc:
            request, result = exc, exc.status
        if result is not None:
            output = _deliver(out.getvalue(), stdout, last)
            if request is not None and in_shell:
                raise request
            return _Stage(status=result, output=output)

        if command.var_flag:
            argv = split_command(argv)
        if not argv:
            return _Stage(status=0, output=subprocess.DEVNULL)
        try:
            check_permission(argv[0])
            path = resolve_command(argv[0], env.to_envp())
        except CommandNotRunnable as exc:
            _report(exc)
            return _Stage(status=exc.status, output=subprocess.DEVNULL)

        piped = not last and stdout is None
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            process = subprocess.Popen(
                argv,
                executable=path,
                stdin=inbound,
                stdout=subprocess.PIPE if piped else stdout,
                env=_process_environ(env),
            )
        except OSError:
            error = _not_found(argv[0], searched="/" not in argv[0])
            _report(error)
            return _Stage(status=error.status, output=subprocess.DEVNULL)
        if piped:
            output: _Stream = process.stdout
        else:
            output = None if last else subprocess.DEVNULL
        return _Stage(process=process, output=output)


def _finish(stage: _Stage) -> int:
    if stage.process is None:
        return stage.status
    code = stage.process.wait()
    return 128 - code if code < 0 else code


def _read_heredocs(command: Command, read_line: ReadLine, files: list[str]) -> None:
    path = apply_heredocs(command, read_line)
    if path is not None:
        files.append(path)


def _run_single(
    command: Command,
    env: Environment,
    status: int,
    read_line: ReadLine,
    files: list[str],
) -> int:
    try:
        _read_heredocs(command, read_line, files)
    except KeyboardInterrupt:
        return 1
    stage = _launch(command, env, status, None, last=True, in_shell=True)
    return _finish(stage)


def _run_pipeline(
    commands: Sequence[Command],
    env: Environment,
    status: int,
    read_line: ReadLine,
    files: list[str],
) -> int:
    stages: list[_Stage] = []
    inbound: _Stream = None
    for index, command in enumerate(commands):
        last = index == len(commands) - 1
        try:
            _read_heredocs(command, read_line, files)
        except KeyboardInterrupt:
            _close(inbound)
            for stage in stages:
                _finish(stage)
            return 1
        stage = _launch(command, env, status, inbound, last, in_shell=False)
        stages.append(stage)
        inbound = stage.output
    statuses = [_finish(stage) for stage in stages]
    return statuses[-1]


def execute(
    commands: Sequence[Command],
    env: Environment,
    status: int,
    read_line: ReadLine,
) -> int:
    """Run a pipeline and return its exit status.

    A lone builtin runs in the shell itself and may change ``env``; an
    ``exit`` there raises ExitRequest. In a pipeline builtins work on a copy.
    ``read_line`` supplies here-document lines.
    """
    if not commands:
        return status
    mark_last_redirections(commands)
    files: list[str] = []
    try:
        if len(commands) == 1:
            return _run_single(commands[0], env, status, read_line, files)
        return _run_pipeline(commands, env, status, read_line, files)
    finally:
        for path in files:
            with suppress(OSError):
                os.remove(path)