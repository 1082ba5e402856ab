# minish

A small interactive shell for POSIX systems. It reads command lines at a
`minishell$ ` prompt and runs them. It supports:

- pipelines: `ls -l | grep py | wc -l`
- redirections: `<`, `>`, `>>`; when several of one kind are given, every
  file is opened (output files are created or truncated) and the last one
  is used
- here-documents: `cat << EOF`, read line by line at a `> ` prompt until a
  line equal to the delimiter or end of input
- single and double quotes, which keep spaces and operators inside one word
  and are removed before the command runs
- the builtins `echo` (with `-n`), `cd`, `pwd`, `export` (including
  `NAME+=value`), `unset`, `env` and `exit`

Other commands are looked up in `PATH` and started as child processes.
A builtin given alone on a line runs in the shell itself and can change its
variables and working directory; inside a pipeline it works on a copy.

## Installing

```
pip install .
```

## Running

```
minish
```

The shell takes no arguments; passing any prints an error and exits with
status 1. End the session with `exit` or Ctrl-D. Without an argument,
`exit` ends the shell with the status of the last command; with a numeric
argument it uses that number modulo 256, and with a non-numeric one it exits
with 255. A line with a misplaced `|` or redirection is reported as a syntax
error and sets the status to 258.

```
minishell$ export GREETING=hello
minishell$ env | grep GREETING
GREETING=hello
minishell$ echo "a | b" | tr a-z A-Z
A | B
minishell$ cat << END > notes.txt
> first line
> END
minishell$ exit
```

## Using it from Python

```python
import os
from minish.shell import Shell

shell = Shell(os.environ)
status = shell.run_line("echo hello > out.txt")
```

`Shell.run_line` returns the new status, which is also kept in
`Shell.status`; the variables are in `Shell.env`, an
`minish.environment.Environment`. An `exit` run this way raises
`minish.builtins.ExitRequest`, whose `status` attribute holds the exit
status.

The parsing stage is usable on its own: `minish.commands.parse_line` turns a
line into a list of `Command` objects. Each has a `name`, a list of `args`,
an `argv()` method, and a list of `Redirection`s with a `target`, a `type`
(a `minish.tokens.TokenType`) and a `quoted` flag for here-document
delimiters written in quotes. It raises `UnclosedQuoteError` or
`minish.tokens.ShellSyntaxError` for malformed lines.
`minish.executor.execute` runs such a list against an `Environment`.

## What it does not do

- Variables are not expanded: `$NAME` and `$?` are passed to commands as
  written, and here-document lines are stored as typed, whether or not the
  delimiter was quoted.
- It is interactive only: when standard input is not a terminal it stops
  after the first line instead of running a script.
- There is no globbing, no `;`, `&&`, `||`, background jobs or
  subshells.

## Tests

```
pip install .[test]
pytest
```