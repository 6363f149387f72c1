import sys

import pytest
from loguru import logger
from typer.testing import CliRunner

from fakes import World, fake_toolbox
from tapsetup import __version__
from tapsetup.cli import app
from tapsetup.state.schemas import RunStatus
from tapsetup.state.store import RunStateStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Fake tools wired into the CLI; returns (world, state_dir)."""
    world = World(root=tmp_path / "world")
    toolbox = fake_toolbox(world)
    monkeypatch.setattr("tapsetup.cli._toolbox", lambda config, log_path: toolbox)
    monkeypatch.setattr("tapsetup.cli.build_toolbox", lambda config, log_path=None: toolbox)
    monkeypatch.chdir(tmp_path)
    return world, tmp_path / "state"


def _only_run(state_dir):
    runs = RunStateStore(state_dir).list_runs()
    assert len(runs) == 1
    return runs[0].run_id


def test_cli_help():
    res = runner.invoke(app, ["--help"])
    assert res.exit_code == 0
    assert "Homebrew tap" in res.output


def test_cli_version():
    res = runner.invoke(app, ["--version"])
    assert res.exit_code == 0
    assert f"tap-setup version: {__version__}" in res.output


def test_run_help():
    res = runner.invoke(app, ["run", "--help"])
    assert res.exit_code == 0
    assert "--resume" in res.output


def test_run_completes(env):
    world, state_dir = env
    res = runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])

    assert res.exit_code == 0, res.output
    assert "Summary" in res.output
    assert "Next steps" in res.output
    run_id = _only_run(state_dir)
    assert RunStateStore(state_dir).load(run_id).status is RunStatus.COMPLETED
    assert (state_dir / "runs" / run_id / "events.jsonl").exists()
    assert "alice/homebrew-tools" in world.remote


def test_run_state_dir_from_env(env, monkeypatch):
    world, state_dir = env
    monkeypatch.setenv("TAP_SETUP_STATE_DIR", str(state_dir))

    res = runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--dry-run"])

    assert res.exit_code == 0, res.output
    assert "Plan" in res.output
    _only_run(state_dir)
    assert world.mutations() == []


def test_run_halt_then_resume(env):
    world, state_dir = env
    world.fail("gh.repo_create", "network is unreachable")

    res = runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])

    assert res.exit_code == 1
    assert "Failed step: repo-create (ApplyFailed)" in res.output
    run_id = _only_run(state_dir)
    assert f"--resume {run_id}" in res.output

    res = runner.invoke(app, ["run", "--resume", run_id, "--tap", "tools", "--state-dir", str(state_dir)])
    assert res.exit_code == 0, res.output


def test_resume_mismatch_exits_2(env):
    world, state_dir = env
    world.fail("gh.repo_create", "boom")
    runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])
    run_id = _only_run(state_dir)

    res = runner.invoke(app, ["run", "--resume", run_id, "--tap", "other", "--state-dir", str(state_dir)])

    assert res.exit_code == 2
    assert "InputMismatchOnResume" in res.output


def test_resume_accepts_padded_inputs(env):
    world, state_dir = env
    world.fail("gh.repo_create", "boom")
    runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])
    run_id = _only_run(state_dir)

    res = runner.invoke(
        app,
        ["run", "--resume", run_id, "--tap", " tools", "--owner", "alice ", "--state-dir", str(state_dir)],
    )

    assert res.exit_code == 0, res.output


def test_resume_invalid_input_is_usage_error(env):
    world, state_dir = env
    world.fail("gh.repo_create", "boom")
    runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])
    run_id = _only_run(state_dir)

    res = runner.invoke(app, ["run", "--resume", run_id, "--tap", "a/b", "--state-dir", str(state_dir)])

    assert res.exit_code == 2
    assert "InputMismatchOnResume" not in res.output


def test_resume_unknown_exits_2(env):
    _, state_dir = env
    res = runner.invoke(app, ["run", "--resume", "missing", "--state-dir", str(state_dir)])

    assert res.exit_code == 2
    assert "StateNotFound" in res.output


def test_resume_corrupt_exits_2(env):
    _, state_dir = env
    bad = state_dir / "runs" / "r1"
    bad.mkdir(parents=True)
    (bad / "state.json").write_text("{")

    res = runner.invoke(app, ["run", "--resume", "r1", "--state-dir", str(state_dir)])

    assert res.exit_code == 2
    assert "StateCorrupt" in res.output


def test_run_requires_owner_and_tap(env):
    _, state_dir = env
    res = runner.invoke(app, ["run", "--tap", "tools", "--state-dir", str(state_dir)])

    assert res.exit_code == 2
    assert not (state_dir / "runs").exists()


def test_run_invalid_inputs(env):
    _, state_dir = env
    res = runner.invoke(
        app, ["run", "--owner", "alice", "--tap", "tools", "--formula-mode", "brew-create", "--state-dir", str(state_dir)]
    )

    assert res.exit_code == 2
    assert not (state_dir / "runs").exists()


def test_run_missing_tools_exits_1(env):
    world, state_dir = env
    world.installed = set()

    res = runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])

    # Missing tools halt the run; it can be resumed once they are installed.
    assert res.exit_code == 1
    assert "PreflightMissingTool" in res.output


def test_status_and_list(env):
    _, state_dir = env
    runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])
    run_id = _only_run(state_dir)

    res = runner.invoke(app, ["status", "--run", run_id, "--state-dir", str(state_dir)])
    assert res.exit_code == 0
    assert "commit-push" in res.output

    res = runner.invoke(app, ["list", "--state-dir", str(state_dir)])
    assert res.exit_code == 0
    assert "completed" in res.output


def test_list_empty(env):
    _, state_dir = env
    res = runner.invoke(app, ["list", "--state-dir", str(state_dir)])
    assert res.exit_code == 0
    assert "No runs found" in res.output


def test_status_unknown(env):
    _, state_dir = env
    res = runner.invoke(app, ["status", "--run", "nope", "--state-dir", str(state_dir)])
    assert res.exit_code == 2


def test_doctor(env):
    world, state_dir = env
    res = runner.invoke(app, ["doctor", "--state-dir", str(state_dir)])
    assert res.exit_code == 0
    assert "tap-setup doctor" in res.output

    world.authed = False
    res = runner.invoke(app, ["doctor", "--state-dir", str(state_dir)])
    assert res.exit_code == 2


def test_init(tmp_path):
    res = runner.invoke(app, ["init", "--path", str(tmp_path)])
    assert res.exit_code == 0
    cfg = tmp_path / "tapsetup.yaml"
    assert "editor_policy" in cfg.read_text()

    cfg.write_text("remote: mine\n")
    res = runner.invoke(app, ["init", "--path", str(tmp_path)])
    assert res.exit_code == 0
    assert cfg.read_text() == "remote: mine\n"

    res = runner.invoke(app, ["init", "--path", str(tmp_path), "--force"])
    assert "editor_policy" in cfg.read_text()


def test_run_bad_config(env, tmp_path):
    _, state_dir = env
    (tmp_path / "tapsetup.yaml").write_text("editor_policy: loud\n")

    res = runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])

    assert res.exit_code == 2


def test_run_unparsable_config(env, tmp_path):
    _, state_dir = env
    (tmp_path / "tapsetup.yaml").write_text("remote: [unclosed\n")

    res = runner.invoke(app, ["run", "--owner", "alice", "--tap", "tools", "--state-dir", str(state_dir)])

    assert res.exit_code == 2
    assert not (state_dir / "runs").exists()
