"""The interactive shell: prompt, parse, execute, repeat."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Mapping, Sequence
from contextlib import contextmanager, suppress
from typing import Iterator

from minish.builtins import ExitRequest
from minish.commands import UnclosedQuoteError, parse_line
from minish.environment import Environment
from minish.executor import execute
from minish.tokens import ShellSyntaxError

PROMPT = "minishell$ "
SYNTAX_ERROR_STATUS = 258
INTERRUPTED_STATUS = 1


def _children_running() -> bool:
    """Return whether a child process is still running (none reaped)."""
    try:
        pid, _ = os.waitpid(-1, os.WNOHANG)
    except ChildProcessError:
        return False
    return pid == 0


def _on_interrupt(signum: int, frame: object) -> None:
    # While a child runs it receives the interrupt itself; the shell waits on.
    if _children_running():
        return
    raise KeyboardInterrupt


@contextmanager
def _prompt_signals() -> Iterator[None]:
    """Install the shell's handlers for SIGINT and SIGQUIT, restoring them after."""
    saved = {}
    handlers = {signal.SIGINT: _on_interrupt}
    if hasattr(signal, "SIGQUIT"):
        handlers[signal.SIGQUIT] = signal.SIG_IGN
    if not hasattr(os, "WNOHANG"):
        handlers[signal.SIGINT] = signal.default_int_handler
    try:
        for signum, handler in handlers.items():
            saved[signum] = signal.signal(signum, handler)
        yield
    finally:
        for signum, handler in saved.items():
            signal.signal(signum, handler)


class Shell:
    """A shell session: its variables and the status of the last command."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.env = Environment.from_mapping(os.environ if environ is None else environ)
        self.status = 0

    @staticmethod
    def _read_line(prompt: str) -> str | None:
        try:
            return input(prompt)
        except EOFError:
            return None

    def run_line(self, line: str) -> int:
        """Parse and run one input line; return the new status.

        An ``exit`` run by the shell itself raises ExitRequest.
        """
        try:
            commands = parse_line(line)
        except UnclosedQuoteError as exc:
            sys.stderr.write(f"{exc}\n")
            return self.status
        except ShellSyntaxError as exc:
            sys.stderr.write(f"minishell: {exc}\n")
            self.status = SYNTAX_ERROR_STATUS
            return self.status
        if not commands:
            return self.status
        self.status = execute(commands, self.env, self.status, self._read_line)
        return self.status

    def repl(self) -> int:
        """Read and run lines until end of input or ``exit``; return the status."""
        with suppress(ImportError):
            import readline  # noqa: F401  (line editing and history for input())
        with _prompt_signals():
            while True:
                try:
                    line = self._read_line(PROMPT)
                except KeyboardInterrupt:
                    sys.stderr.write("\n")
                    self.status = INTERRUPTED_STATUS
                    continue
                if line is None or not sys.stdin.isatty():
                    sys.stderr.write("exit\n")
                    return self.status
                if not line:
                    continue
                try:
                    self.run_line(line)
                except ExitRequest as request:
                    return request.status
                except KeyboardInterrupt:
                    sys.stderr.write("\n")
                    self.status = INTERRUPTED_STATUS


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive shell; no arguments are accepted."""
    args = sys.argv[1:] if argv is None else list(argv)
    if args:
        sys.stderr.write("Error: too many arguments\n")
        return 1
    return Shell(os.environ).repl()


if __name__ == "__main__":
    raise SystemExit(main())