import pytest

from tapsetup.util.ids import new_run_id, normalize_token, validate_run_id


def test_validate_run_id_valid():
    assert validate_run_id("r1") == "r1"
    assert validate_run_id("20260101_120000_ab12") == "20260101_120000_ab12"
    assert validate_run_id("a" * 64) == "a" * 64


def test_validate_run_id_invalid():
    with pytest.raises(ValueError, match="Invalid run id"):
        validate_run_id("invalid/id")
    with pytest.raises(ValueError, match="Invalid run id"):
        validate_run_id("invalid id")
    with pytest.raises(ValueError, match="Invalid run id"):
        validate_run_id("../escape")
    with pytest.raises(ValueError):
        validate_run_id("a" * 65)
    with pytest.raises(ValueError):
        validate_run_id("")


def test_new_run_id():
    rid = new_run_id()
    assert validate_run_id(rid) == rid
    # YYYYMMDD_HHMMSS_xxxx
    date, time_, suffix = rid.split("_")
    assert len(date) == 8 and len(time_) == 6 and len(suffix) == 4


def test_normalize_token():
    assert normalize_token("owner", "  alice ") == "alice"

    with pytest.raises(ValueError, match="owner is required"):
        normalize_token("owner", "   ")
    with pytest.raises(ValueError, match="must not include '/'"):
        normalize_token("tap", "alice/tools")
    with pytest.raises(ValueError, match="must not contain whitespace"):
        normalize_token("tap", "my tools")
