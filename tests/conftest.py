from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import WorkspaceBuilder  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point the workspace at tmp and drop any MATH_QUIZ_* settings."""

    for key in list(os.environ):
        if key.startswith("MATH_QUIZ_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "quiz-home"
    monkeypatch.setenv("MATH_QUIZ_DATA_HOME", str(home))
    return home


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)
