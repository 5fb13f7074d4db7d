import pytest

from metaserve_backend.utils import env_bool, env_float, parse_bool


@pytest.mark.parametrize(
    "value,expected",
    [("1", True), ("true", True), ("ON", True), ("0", False), ("off", False), ("disabled", False), (2, True)],
)
def test_parse_bool(value, expected) -> None:
    assert parse_bool(value) is expected


def test_parse_bool_default_for_garbage() -> None:
    assert parse_bool("maybe", default=True) is True
    assert parse_bool(None, default=False) is False


def test_env_helpers(monkeypatch) -> None:
    monkeypatch.setenv("METASERVE_TEST_FLAG", "on")
    monkeypatch.setenv("METASERVE_TEST_FLOAT", "2.5")
    monkeypatch.setenv("METASERVE_TEST_BAD_FLOAT", "fast")
    assert env_bool("METASERVE_TEST_FLAG", False) is True
    assert env_bool("METASERVE_TEST_MISSING", True) is True
    assert env_float("METASERVE_TEST_FLOAT", 1.0) == 2.5
    assert env_float("METASERVE_TEST_BAD_FLOAT", 1.0) == 1.0
