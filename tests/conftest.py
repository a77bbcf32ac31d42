from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable without an editable install.
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import flat_bank, grouped_bank  # noqa: E402


@pytest.fixture
def flat_questions() -> list[dict[str, Any]]:
    """Three two-option questions answered A, B, A."""

    return flat_bank(["A", "B", "A"])


@pytest.fixture
def grouped_questions() -> list[dict[str, Any]]:
    """Two titled groups holding two questions each."""

    return grouped_bank({"Limits": ["A", "B"], "Series": ["B", "A"]})


@pytest.fixture
def write_bank(tmp_path: Path) -> Callable[..., Path]:
    """Write a JSON bank under ``tmp_path`` and return its path."""

    def _write(payload: Any, name: str = "bank.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, ensure_ascii=False), "utf-8")
        return path

    return _write


@pytest.fixture
def workspace_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the quizbank workspace at a per-test directory."""

    root = tmp_path / "workspace"
    monkeypatch.setenv("QUIZBANK_DATA_HOME", str(root))
    monkeypatch.delenv("QUIZBANK_CONFIG", raising=False)
    return root
