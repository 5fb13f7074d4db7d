from __future__ import annotations

from pathlib import Path

# tests/ sits directly under the repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
