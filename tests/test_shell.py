import sys
from unittest.mock import MagicMock, patch

import pytest

from tapsetup.util.shell import CmdResult, run_cmd, which

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell commands")


@posix_only
def test_run_cmd_success(tmp_path):
    res = run_cmd("echo 'hello'", tmp_path)

    assert res.returncode == 0
    assert res.ok
    assert "hello" in res.stdout
    assert res.elapsed_s >= 0


@posix_only
def test_run_cmd_failure(tmp_path):
    res = run_cmd("false", tmp_path)

    assert res.returncode != 0
    assert not res.ok
    # Should not raise exception


@posix_only
def test_run_cmd_timeout(tmp_path):
    # run_cmd catches TimeoutExpired and returns rc=124
    res = run_cmd("sleep 2", tmp_path, timeout_s=0.5)

    assert res.returncode == 124
    assert "Timeout expired" in res.stderr


@posix_only
def test_run_cmd_capture_stderr(tmp_path):
    res = run_cmd("echo 'error message' >&2", tmp_path)

    assert res.returncode == 0
    assert "error message" in res.stderr
    assert res.output() == "error message"


def test_run_cmd_missing_binary(tmp_path):
    res = run_cmd(["definitely-not-a-real-binary-xyz"], tmp_path)

    assert res.returncode == 127
    assert "Command not found" in res.stderr


@posix_only
def test_run_cmd_log_path(tmp_path):
    log = tmp_path / "logs" / "tools.log"

    run_cmd(["echo", "one"], tmp_path, log_path=log)
    run_cmd(["echo", "two"], tmp_path, log_path=log)

    text = log.read_text()
    assert "$ echo one" in text
    assert "$ echo two" in text
    assert "[rc=0]" in text


def test_run_cmd_list_mode(tmp_path):
    """A list argument runs with shell=False."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        cmd = ["git", "-C", "some dir", "status"]
        res = run_cmd(cmd, tmp_path)

        args, kwargs = mock_run.call_args
        assert args[0] == cmd
        assert kwargs["shell"] is False
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"] is None
        assert res.cmd == "git -C 'some dir' status"


def test_run_cmd_env_overrides_merge(tmp_path, monkeypatch):
    monkeypatch.setenv("KEEP_ME", "1")
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        run_cmd(["brew", "create"], tmp_path, env={"EDITOR": "true"})

        env = mock_run.call_args.kwargs["env"]
        assert env["EDITOR"] == "true"
        assert env["KEEP_ME"] == "1"


def test_output_joins_streams():
    res = CmdResult(cmd="x", returncode=1, stdout="out\n", stderr="  err ", elapsed_s=0.0)
    assert res.output() == "out\nerr"
    assert CmdResult(cmd="x", returncode=1, stdout="", stderr="", elapsed_s=0.0).output() == ""


def test_which(tmp_path, monkeypatch):
    tool = tmp_path / "mytool"
    tool.write_text("#!/bin/sh\n")
    tool.chmod(0o755)
    monkeypatch.setenv("PATH", str(tmp_path))

    assert which("mytool") == str(tool)
    assert which("othertool") is None
