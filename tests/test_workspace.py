"""Tests for workspace lifecycle."""

import logging
import os
import stat
from unittest.mock import patch

import pytest

from agentbench.benchmark.workspace import (
    WORKSPACE_PREFIX,
    Workspace,
    WorkspaceState,
    create_workspace,
)

from conftest import posix_only


class TestCreateWorkspace:
    def test_creates_empty_directory(self, work_dir):
        ws = create_workspace(work_dir)
        assert ws.dir.is_dir()
        assert ws.dir.parent == work_dir.resolve()
        assert ws.dir.name.startswith(WORKSPACE_PREFIX)
        assert list(ws.dir.iterdir()) == []
        assert ws.is_open
        assert ws.state == WorkspaceState.OPEN

    def test_unique_directories(self, work_dir):
        first = create_workspace(work_dir)
        second = create_workspace(work_dir)
        assert first.dir != second.dir

    def test_creates_missing_base(self, tmp_path):
        ws = create_workspace(tmp_path / "a" / "b")
        assert ws.dir.parent == (tmp_path / "a" / "b").resolve()

    def test_unwritable_base_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(OSError):
            create_workspace(blocker)


class TestWorkspaceClose:
    def test_deletes_tree(self, work_dir):
        ws = create_workspace(work_dir)
        nested = ws.dir / "a" / "b" / "c"
        nested.mkdir(parents=True)
        (nested / "file.txt").write_text("x")
        (ws.dir / "top.txt").write_text("y")

        ws.close()
        assert not ws.dir.exists()
        assert ws.state == WorkspaceState.CLOSED
        assert not ws.is_open

    def test_deletes_read_only_files(self, work_dir):
        ws = create_workspace(work_dir)
        ro = ws.dir / "readonly.txt"
        ro.write_text("x")
        os.chmod(ro, stat.S_IRUSR)
        ws.close()
        assert not ws.dir.exists()

    def test_second_close_is_noop(self, work_dir):
        ws = create_workspace(work_dir)
        ws.close()
        ws.close()
        assert ws.state == WorkspaceState.CLOSED

    def test_already_deleted_directory(self, tmp_path):
        ws = Workspace(tmp_path / "gone")
        ws.close()
        assert ws.state == WorkspaceState.CLOSED

    def test_context_manager_closes_on_error(self, work_dir):
        with pytest.raises(RuntimeError):
            with create_workspace(work_dir) as ws:
                (ws.dir / "f").write_text("x")
                raise RuntimeError("boom")
        assert not ws.dir.exists()
        assert ws.state == WorkspaceState.CLOSED

    def test_undeletable_entries_are_skipped(self, work_dir, caplog):
        ws = create_workspace(work_dir)
        (ws.dir / "stuck.txt").write_text("x")

        with patch("agentbench.benchmark.workspace.os.unlink", side_effect=PermissionError("denied")):
            with caplog.at_level(logging.WARNING):
                ws.close()

        assert ws.state == WorkspaceState.CLOSED
        assert "stuck.txt" in caplog.text
        # Still present because the unlink failed
        assert (ws.dir / "stuck.txt").exists()

    @posix_only
    def test_symlinked_directory_target_survives(self, tmp_path, work_dir):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.txt").write_text("keep")

        ws = create_workspace(work_dir)
        os.symlink(outside, ws.dir / "link")
        ws.close()

        assert not ws.dir.exists()
        assert (outside / "keep.txt").read_text() == "keep"
