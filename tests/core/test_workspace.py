from __future__ import annotations

import pytest

from quizbank.core import workspace


def test_ensure_workspace_creates_directories(tmp_path, monkeypatch):
    root = tmp_path / "data"
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    layout = workspace.ensure_workspace()

    assert layout.home == root
    assert layout.path_for("config") == root / "config"
    assert layout.path_for("logs").is_dir()
    assert all(layout.created.values())


def test_ensure_workspace_is_idempotent(tmp_path):
    root = tmp_path / "existing"

    workspace.ensure_workspace(path=root)
    second = workspace.ensure_workspace(path=root)

    assert not any(second.created.values())


def test_explicit_path_wins_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(tmp_path / "env"))

    layout = workspace.ensure_workspace(path=tmp_path / "flag")

    assert layout.home == tmp_path / "flag"
    assert not (tmp_path / "env").exists()


def test_ensure_workspace_without_create(tmp_path):
    root = tmp_path / "deferred"

    layout = workspace.ensure_workspace(path=root, create=False)

    assert not root.exists()
    assert not any(layout.created.values())


def test_ensure_workspace_errors_when_path_is_file(tmp_path):
    root = tmp_path / "file"
    root.write_text("not a dir", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=root)


def test_path_for_unknown_key_errors(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path, create=False)

    with pytest.raises(KeyError):
        layout.path_for("rag_dbs")
