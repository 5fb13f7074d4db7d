import sys
from pathlib import Path

import pytest

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    """A served root with a couple of files, plus a sibling outside it."""
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "notes.txt").write_text("hello", encoding="utf-8")
    (root / "sub" / "data.BIN").write_bytes(b"\x00" * 32)
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root
