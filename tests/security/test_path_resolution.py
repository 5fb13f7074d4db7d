import os
from pathlib import Path

import pytest

from metaserve_backend import path_utils as pu
from metaserve_shared import ErrorCode


def _symlink_or_skip(link: Path, target: Path) -> None:
    try:
        os.symlink(target, link)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported on this platform")


def test_decode_request_path_percent_segments() -> None:
    assert pu.decode_request_path("/a%20b/c%2Ejpg") == "/a b/c.jpg"
    assert pu.decode_request_path("/caf%C3%A9.txt") == "/café.txt"


@pytest.mark.parametrize("raw", ["/bad%zz", "/trailing%", "/half%4", "/nul%00byte", "/latin%E9"])
def test_decode_request_path_rejects_malformed(raw) -> None:
    with pytest.raises(ValueError):
        pu.decode_request_path(raw)


def test_strip_leading_separators() -> None:
    assert pu.strip_leading_separators("///etc/passwd") == "etc/passwd"
    assert pu.strip_leading_separators("\\\\server\\share") == "server\\share"
    assert pu.strip_leading_separators("a/b") == "a/b"


def test_logical_file_path_cannot_be_overridden_by_absolute_request(tmp_path: Path) -> None:
    root = str(tmp_path)
    assert pu.logical_file_path(root, "/etc/passwd") == os.path.join(root, "etc", "passwd")
    assert pu.logical_file_path(root, "") == root


def test_is_within_root(tmp_path: Path) -> None:
    root = tmp_path / "root"
    assert pu.is_within_root(root, root)
    assert pu.is_within_root(root / "a" / "b.txt", root)
    assert pu.is_within_root(root / "..hidden", root)
    assert not pu.is_within_root(tmp_path / "other.txt", root)
    assert not pu.is_within_root(tmp_path / "rootling" / "x", root)


@pytest.mark.asyncio
async def test_resolve_inside_root(media_root: Path) -> None:
    res = await pu.resolve_request_path(str(media_root), "/sub/data.BIN")
    assert res.ok
    assert res.data.is_inside
    assert res.data.real_path == (media_root / "sub" / "data.BIN").resolve()
    assert res.data.real_root == media_root.resolve()


@pytest.mark.asyncio
async def test_resolve_root_itself_is_inside(media_root: Path) -> None:
    res = await pu.resolve_request_path(str(media_root), "/")
    assert res.ok
    assert res.data.real_path == media_root.resolve()


@pytest.mark.asyncio
async def test_resolve_dotdot_escape_is_denied(media_root: Path) -> None:
    res = await pu.resolve_request_path(str(media_root), "/../secret.txt")
    assert not res.ok
    assert res.code == ErrorCode.ACCESS_DENIED.value
    assert res.meta["resolved"].is_inside is False


@pytest.mark.asyncio
async def test_resolve_missing_file_is_not_a_security_rejection(media_root: Path) -> None:
    res = await pu.resolve_request_path(str(media_root), "/nope.txt")
    assert not res.ok
    assert res.code == ErrorCode.NOT_FOUND.value


@pytest.mark.asyncio
async def test_resolve_missing_file_outside_root_is_not_found(media_root: Path) -> None:
    res = await pu.resolve_request_path(str(media_root), "/../../definitely-missing")
    assert res.code == ErrorCode.NOT_FOUND.value


@pytest.mark.asyncio
async def test_symlink_pointing_outside_root_is_denied(media_root: Path) -> None:
    link = media_root / "innocent.txt"
    _symlink_or_skip(link, media_root.parent / "secret.txt")
    res = await pu.resolve_request_path(str(media_root), "/innocent.txt")
    assert res.code == ErrorCode.ACCESS_DENIED.value


@pytest.mark.asyncio
async def test_symlinked_directory_pointing_outside_root_is_denied(media_root: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "x.txt").write_text("x", encoding="utf-8")
    _symlink_or_skip(media_root / "escape", outside)
    res = await pu.resolve_request_path(str(media_root), "/escape/x.txt")
    assert res.code == ErrorCode.ACCESS_DENIED.value


@pytest.mark.asyncio
async def test_symlink_inside_root_is_allowed(media_root: Path) -> None:
    _symlink_or_skip(media_root / "alias.txt", media_root / "notes.txt")
    res = await pu.resolve_request_path(str(media_root), "/alias.txt")
    assert res.ok
    assert res.data.real_path == (media_root / "notes.txt").resolve()


@pytest.mark.asyncio
async def test_symlinked_root_is_canonicalized(media_root: Path, tmp_path: Path) -> None:
    root_link = tmp_path / "root-link"
    _symlink_or_skip(root_link, media_root)
    res = await pu.resolve_request_path(str(root_link), "/notes.txt")
    assert res.ok
    assert res.data.real_root == media_root.resolve()


@pytest.mark.asyncio
async def test_symlink_loop_is_a_resolution_failure(media_root: Path) -> None:
    _symlink_or_skip(media_root / "loop", media_root / "loop")
    res = await pu.resolve_request_path(str(media_root), "/loop")
    assert not res.ok
    assert res.code in (ErrorCode.INVALID_INPUT.value, ErrorCode.NOT_FOUND.value)
