import os
import signal

import pytest

from minish.builtins import ExitRequest
from minish.commands import Command, Redirection, parse_line
from minish.environment import Environment
from minish.executor import (
    DEFAULT_PATH,
    CommandNotRunnable,
    check_permission,
    execute,
    open_redirections,
    resolve_command,
    search_path,
    split_command,
)
from minish.tokens import TokenType


def _env():
    return Environment([("PATH", os.environ.get("PATH", "/bin:/usr/bin"))])


def _no_input(prompt):
    return None


def _lines(*lines):
    feed = iter(lines)
    return lambda prompt: next(feed, None)


def _script(directory, name, body, mode=0o755):
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(mode)
    return path


# search_path


def test_search_path_default_for_empty_environment():
    assert search_path([]) == DEFAULT_PATH
    assert DEFAULT_PATH == "/usr/gnu/bin:/usr/local/bin:/bin:/usr/bin:."


def test_search_path_finds_path_entry():
    assert search_path(["HOME=/home/x", "PATH=/a:/b"]) == "/a:/b"


def test_search_path_missing():
    assert search_path(["HOME=/home/x"]) is None


# resolve_command


def test_resolve_command_in_path(tmp_path):
    _script(tmp_path, "tool", "exit 0")
    assert resolve_command("tool", [f"PATH={tmp_path}"]) == f"{tmp_path}/tool"


def test_resolve_command_skips_non_executable(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    _script(first, "tool", "exit 0", mode=0o644)
    _script(second, "tool", "exit 0")
    assert resolve_command("tool", [f"PATH={first}:{second}"]) == f"{second}/tool"


def test_resolve_command_not_found(tmp_path):
    with pytest.raises(CommandNotRunnable) as info:
        resolve_command("no-such-tool", [f"PATH={tmp_path}"])
    assert info.value.status == 127
    assert info.value.message == "minishell: command not found: no-such-tool"


def test_resolve_command_missing_path_with_slash(tmp_path):
    missing = f"{tmp_path}/absent"
    with pytest.raises(CommandNotRunnable) as info:
        resolve_command(missing, [f"PATH={tmp_path}"])
    assert info.value.status == 127
    assert info.value.message == f"No such file or directory: {missing}"


def test_resolve_command_without_path_variable():
    with pytest.raises(CommandNotRunnable) as info:
        resolve_command("anything", ["HOME=/home/x"])
    assert info.value.message == "No such file or directory: anything"


def test_resolve_command_dot():
    with pytest.raises(CommandNotRunnable) as info:
        resolve_command(".", ["PATH=/bin"])
    assert info.value.status == 2
    assert "filename argument required" in info.value.message


def test_resolve_command_direct_executable(tmp_path):
    script = _script(tmp_path, "direct", "exit 0")
    assert resolve_command(str(script), []) == str(script)


# check_permission


def test_check_permission_not_executable(tmp_path):
    path = _script(tmp_path, "plain", "exit 0", mode=0o644)
    with pytest.raises(CommandNotRunnable) as info:
        check_permission(str(path))
    assert info.value.status == 126
    assert info.value.message == f"minishell: {path}: Permission denied"


def test_check_permission_directory(tmp_path):
    with pytest.raises(CommandNotRunnable) as info:
        check_permission(str(tmp_path))
    assert info.value.status == 126
    assert info.value.message.endswith(": is a directory")


# split_command


def test_split_command_splits_first_word():
    assert split_command(["ls -l", "x"]) == ["ls", "-l", "x"]


def test_split_command_single_word_unchanged():
    assert split_command([" ls ", "x"]) == [" ls ", "x"]


def test_split_command_blank():
    assert split_command(["   "]) == []
    assert split_command([]) == []


# open_redirections


def test_open_redirections_returns_last_files(tmp_path):
    source = tmp_path / "in"
    source.write_bytes(b"data")
    early = tmp_path / "early"
    early.write_bytes(b"old")
    target = tmp_path / "out"
    redirections = [
        Redirection(str(source), TokenType.IN_FILE, last=True),
        Redirection(str(early), TokenType.OUT_FILE),
        Redirection(str(target), TokenType.OUT_FILE, last=True),
    ]
    stdin, stdout = open_redirections(redirections)
    try:
        assert stdin.read() == b"data"
        stdout.write(b"new")
    finally:
        stdin.close()
        stdout.close()
    assert early.read_bytes() == b""
    assert target.read_bytes() == b"new"


def test_open_redirections_append(tmp_path):
    target = tmp_path / "log"
    target.write_bytes(b"a")
    stdin, stdout = open_redirections(
        [Redirection(str(target), TokenType.AOUT_FILE, last=True)]
    )
    stdout.write(b"b")
    stdout.close()
    assert stdin is None
    assert target.read_bytes() == b"ab"


def test_open_redirections_missing_input(tmp_path):
    missing = str(tmp_path / "missing")
    with pytest.raises(CommandNotRunnable) as info:
        open_redirections([Redirection(missing, TokenType.IN_FILE, last=True)])
    assert info.value.status == 1
    assert info.value.message == f"./minishell: no such file or directory: {missing}"


def test_open_redirections_ambiguous():
    with pytest.raises(CommandNotRunnable) as info:
        open_redirections([Redirection(None, TokenType.OUT_FILE, last=True)])
    assert "ambiguous redirect" in info.value.message


def test_open_redirections_no_files():
    assert open_redirections([]) == (None, None)


# execute


def test_execute_builtin_to_file(tmp_path):
    out = tmp_path / "out"
    status = execute(parse_line(f"echo hi there > {out}"), _env(), 0, _no_input)
    assert status == 0
    assert out.read_text() == "hi there\n"


def test_execute_builtin_to_stdout(capfd):
    status = execute(parse_line("echo visible"), _env(), 0, _no_input)
    assert status == 0
    assert capfd.readouterr().out == "visible\n"


def test_execute_external_status():
    assert execute(parse_line("sh -c 'exit 3'"), _env(), 0, _no_input) == 3


def test_execute_killed_by_signal():
    status = execute(parse_line("sh -c 'kill -9 $$'"), _env(), 0, _no_input)
    assert status == 128 + signal.SIGKILL


def test_execute_pipeline_builtin_to_external(tmp_path):
    out = tmp_path / "out"
    status = execute(parse_line(f"echo hello | cat > {out}"), _env(), 0, _no_input)
    assert status == 0
    assert out.read_text() == "hello\n"


def test_execute_pipeline_external_to_external(tmp_path):
    out = tmp_path / "out"
    line = f"sh -c 'echo one; echo two' | cat > {out}"
    assert execute(parse_line(line), _env(), 0, _no_input) == 0
    assert out.read_text() == "one\ntwo\n"


def test_execute_command_not_found(capfd):
    status = execute(parse_line("no-such-command-here"), _env(), 0, _no_input)
    assert status == 127
    assert "command not found: no-such-command-here" in capfd.readouterr().err


def test_execute_exit_alone_raises():
    with pytest.raises(ExitRequest) as info:
        execute(parse_line("exit 7"), _env(), 0, _no_input)
    assert info.value.status == 7


def test_execute_exit_in_pipeline_gives_status():
    assert execute(parse_line("exit 5 | exit 3"), _env(), 0, _no_input) == 3


def test_execute_export_alone_changes_env():
    env = _env()
    assert execute(parse_line("export A=1"), env, 0, _no_input) == 0
    assert env.get("A") == "1"


def test_execute_export_in_pipeline_keeps_env():
    env = _env()
    assert execute(parse_line("export A=1 | cat"), env, 0, _no_input) == 0
    assert "A" not in env


def test_execute_heredoc(tmp_path):
    out = tmp_path / "out"
    commands = parse_line(f"cat << EOF > {out}")
    status = execute(commands, _env(), 0, _lines("first", "second", "EOF"))
    assert status == 0
    assert out.read_text() == "first\nsecond\n"
    temp_file = commands[0].redirections[0].target
    assert not os.path.exists(temp_file)


def test_execute_heredoc_interrupted():
    def interrupt(prompt):
        raise KeyboardInterrupt

    assert execute(parse_line("cat << EOF"), _env(), 0, interrupt) == 1


def test_execute_missing_input_file(tmp_path, capfd):
    missing = tmp_path / "missing"
    status = execute(parse_line(f"cat < {missing}"), _env(), 0, _no_input)
    assert status == 1
    assert "no such file or directory" in capfd.readouterr().err


def test_execute_redirection_only_creates_file(tmp_path):
    out = tmp_path / "created"
    assert execute(parse_line(f"> {out}"), _env(), 0, _no_input) == 0
    assert out.exists()
    assert out.read_bytes() == b""


def test_execute_variable_command_is_split():
    command = Command(name="sh -c", args=["exit 4"], var_flag=True)
    assert execute([command], _env(), 0, _no_input) == 4


def test_execute_empty_pipeline_keeps_status():
    assert execute([], _env(), 9, _no_input) == 9