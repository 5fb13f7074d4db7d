import pytest

from metaserve_backend.features.metadata import PluginRegistry


async def _parser_a(path):
    return {"who": "a"}


async def _parser_b(path):
    return {"who": "b"}


def test_register_normalizes_extension() -> None:
    reg = PluginRegistry()
    reg.register("JPG", _parser_a)
    assert reg.lookup(".jpg") is _parser_a
    assert ".jpg" in reg
    assert reg.extensions() == [".jpg"]


def test_register_keeps_single_leading_dot() -> None:
    reg = PluginRegistry()
    reg.register(".Png", _parser_a)
    assert reg.extensions() == [".png"]


def test_last_registration_wins() -> None:
    reg = PluginRegistry()
    reg.register(".jpg", _parser_a)
    reg.register("jpg", _parser_b)
    assert reg.lookup(".jpg") is _parser_b
    assert len(reg) == 1


def test_identical_registration_is_idempotent() -> None:
    reg = PluginRegistry()
    reg.register(".jpg", _parser_a)
    reg.register(".jpg", _parser_a)
    assert len(reg) == 1
    assert reg.lookup(".jpg") is _parser_a


def test_lookup_missing_and_empty() -> None:
    reg = PluginRegistry()
    assert reg.lookup(".gif") is None
    assert reg.lookup("") is None


def test_register_many() -> None:
    reg = PluginRegistry()
    reg.register_many(["jpg", ".JPEG"], _parser_a)
    assert reg.extensions() == [".jpeg", ".jpg"]


def test_register_rejects_bad_input() -> None:
    reg = PluginRegistry()
    with pytest.raises(ValueError):
        reg.register("", _parser_a)
    with pytest.raises(TypeError):
        reg.register(".jpg", "not callable")  # type: ignore[arg-type]


def test_registries_are_independent() -> None:
    first, second = PluginRegistry(), PluginRegistry()
    first.register(".jpg", _parser_a)
    assert second.lookup(".jpg") is None
