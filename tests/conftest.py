import pytest

from fakes import World, fake_toolbox
from tapsetup.config import AppConfig
from tapsetup.inputs import build_inputs
from tapsetup.state.store import RunStateStore


@pytest.fixture
def world(tmp_path):
    return World(root=tmp_path / "world")


@pytest.fixture
def toolbox(world):
    return fake_toolbox(world)


@pytest.fixture
def store(tmp_path):
    return RunStateStore(tmp_path / "state")


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def inputs():
    return build_inputs(owner="alice", tap="tools")
