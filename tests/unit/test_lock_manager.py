"""Tests for the PID-checked workflow lock."""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from ralph.core.models import LockInfo
from ralph.errors import LockError
from ralph.locking import LockManager, PosixProcessLiveness, lock_file_path

OTHER_PID = 424242


class FakeLiveness:
    """Treats only the listed PIDs as running."""

    def __init__(self, *alive):
        self.alive = set(alive)

    def is_alive(self, pid: int) -> bool:
        return pid in self.alive


def _write_lock(root, pid, issue_id="HLN-1", command="run"):
    path = lock_file_path(root)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({
        "pid": pid,
        "startedAt": "2026-01-01T00:00:00+00:00",
        "issueId": issue_id,
        "command": command,
    }))
    return path


@pytest.fixture
def manager():
    return LockManager(liveness=FakeLiveness(os.getpid()))


class TestAcquire:
    def test_acquires_free_root(self, tmp_path, manager):
        result = manager.acquire(tmp_path, "HLN-1", "run")

        assert result.acquired
        data = json.loads(lock_file_path(tmp_path).read_text())
        assert data["pid"] == os.getpid()
        assert data["issueId"] == "HLN-1"
        assert data["command"] == "run"
        assert datetime.fromisoformat(data["startedAt"]).tzinfo is not None

    def test_refuses_live_holder(self, tmp_path):
        _write_lock(tmp_path, OTHER_PID, issue_id="HLN-2")
        manager = LockManager(liveness=FakeLiveness(OTHER_PID))

        result = manager.acquire(tmp_path, "HLN-1", "run")

        assert not result.acquired
        assert result.existing_lock.pid == OTHER_PID
        assert result.existing_lock.issue_id == "HLN-2"

    def test_reclaims_stale_lock(self, tmp_path, manager):
        _write_lock(tmp_path, OTHER_PID, issue_id="HLN-OLD")

        result = manager.acquire(tmp_path, "HLN-1", "run")

        assert result.acquired
        info = manager.read_lock_info(tmp_path)
        assert info.pid == os.getpid()
        assert info.issue_id == "HLN-1"

    def test_reclaims_corrupt_lock(self, tmp_path, manager):
        path = lock_file_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text("{not json")

        assert manager.acquire(tmp_path, "HLN-1", "run").acquired

    def test_second_acquire_by_same_process_refused(self, tmp_path, manager):
        assert manager.acquire(tmp_path, "HLN-1", "run").acquired
        assert not manager.acquire(tmp_path, "HLN-1", "run").acquired

    def test_lost_creation_race(self, tmp_path, manager):
        with patch("ralph.utils.atomic_io.os.link", side_effect=FileExistsError):
            result = manager.acquire(tmp_path, "HLN-1", "run")

        assert not result.acquired
        assert list(lock_file_path(tmp_path).parent.iterdir()) == []

    def test_lock_file_is_complete_when_it_appears(self, tmp_path, manager):
        seen = []
        real_link = os.link

        def link(src, dst):
            seen.append(json.loads(Path(src).read_text())["issueId"])
            real_link(src, dst)

        with patch("ralph.utils.atomic_io.os.link", side_effect=link):
            assert manager.acquire(tmp_path, "HLN-1", "run").acquired

        assert seen == ["HLN-1"]
        assert list(lock_file_path(tmp_path).parent.iterdir()) == [lock_file_path(tmp_path)]


class TestStaleness:
    """A lock is live iff its file parses and its PID is running."""

    def test_no_file(self, tmp_path, manager):
        assert not manager.is_locked(tmp_path)

    def test_live_pid(self, tmp_path):
        _write_lock(tmp_path, OTHER_PID)
        assert LockManager(liveness=FakeLiveness(OTHER_PID)).is_locked(tmp_path)

    def test_dead_pid(self, tmp_path, manager):
        _write_lock(tmp_path, OTHER_PID)
        assert not manager.is_locked(tmp_path)

    def test_unparsable_file(self, tmp_path, manager):
        path = lock_file_path(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text('{"pid": "abc"}')

        assert manager.read_lock_info(tmp_path) is None
        assert not manager.is_locked(tmp_path)


class TestRelease:
    def test_release_own_lock(self, tmp_path, manager):
        manager.acquire(tmp_path, "HLN-1", "run")
        manager.release(tmp_path)
        assert not lock_file_path(tmp_path).exists()

    def test_release_leaves_foreign_lock(self, tmp_path):
        path = _write_lock(tmp_path, OTHER_PID)
        LockManager(liveness=FakeLiveness(OTHER_PID)).release(tmp_path)
        assert path.exists()

    def test_release_without_lock(self, tmp_path, manager):
        manager.release(tmp_path)

    def test_force_remove(self, tmp_path, manager):
        _write_lock(tmp_path, OTHER_PID)

        assert manager.force_remove(tmp_path) is True
        assert manager.force_remove(tmp_path) is False
        assert not lock_file_path(tmp_path).exists()


class TestHold:
    def test_releases_after_block(self, tmp_path, manager):
        with manager.hold(tmp_path, "HLN-1", "implement"):
            assert manager.read_lock_info(tmp_path).command == "implement"
        assert not lock_file_path(tmp_path).exists()

    def test_releases_on_error(self, tmp_path, manager):
        with pytest.raises(RuntimeError):
            with manager.hold(tmp_path, "HLN-1", "run"):
                raise RuntimeError("stage blew up")
        assert not lock_file_path(tmp_path).exists()

    def test_raises_when_held(self, tmp_path):
        _write_lock(tmp_path, OTHER_PID, issue_id="HLN-2")
        manager = LockManager(liveness=FakeLiveness(OTHER_PID))

        with pytest.raises(LockError) as exc_info:
            with manager.hold(tmp_path, "HLN-1", "run"):
                pass

        message = str(exc_info.value)
        assert message.startswith("Another Ralph workflow is already running (PID 424242")
        assert "for issue HLN-2" in message
        assert message.endswith("Wait for it to complete or manually remove the lock file.")


class TestLockInfo:
    def test_round_trips_camel_case_keys(self):
        info = LockInfo(
            pid=7,
            started_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            issue_id="HLN-1",
            command="run",
        )
        data = json.loads(info.to_json())
        assert set(data) == {"pid", "startedAt", "issueId", "command"}
        assert LockInfo.model_validate_json(info.to_json()) == info


class TestPosixProcessLiveness:
    def test_current_process_is_alive(self):
        assert PosixProcessLiveness().is_alive(os.getpid())

    @pytest.mark.parametrize("pid", [0, -1])
    def test_non_positive_pids_are_dead(self, pid):
        assert not PosixProcessLiveness().is_alive(pid)

    def test_missing_process(self):
        with patch("ralph.locking.liveness.os.kill", side_effect=ProcessLookupError):
            assert not PosixProcessLiveness().is_alive(OTHER_PID)

    def test_permission_denied_counts_as_alive(self):
        with patch("ralph.locking.liveness.os.kill", side_effect=PermissionError):
            assert PosixProcessLiveness().is_alive(OTHER_PID)
