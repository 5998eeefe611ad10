"""Tests for the repository guard."""

import threading
import time

import pytest

from backtor_restic.core.guard import RepositoryGuard


class TestRepositoryGuard:
    """Tests for RepositoryGuard."""

    def test_context_manager(self):
        """Test that the guard is held inside the with block only."""
        guard = RepositoryGuard()
        assert not guard.locked()
        with guard:
            assert guard.locked()
        assert not guard.locked()

    def test_released_on_exception(self):
        """Test that an exception inside the block releases the guard."""
        guard = RepositoryGuard()
        with pytest.raises(RuntimeError):
            with guard:
                raise RuntimeError("boom")
        assert not guard.locked()

    def test_second_caller_blocks(self):
        """Test that a second holder waits until the first releases."""
        guard = RepositoryGuard()
        order = []

        def second():
            with guard:
                order.append("second")

        with guard:
            thread = threading.Thread(target=second)
            thread.start()
            time.sleep(0.2)
            order.append("first")
        thread.join(timeout=5)

        assert order == ["first", "second"]

    def test_mutual_exclusion_under_load(self):
        """Test that concurrent holders never overlap."""
        guard = RepositoryGuard()
        active = 0
        max_active = 0
        counter_lock = threading.Lock()

        def work():
            nonlocal active, max_active
            with guard:
                with counter_lock:
                    active += 1
                    max_active = max(max_active, active)
                time.sleep(0.01)
                with counter_lock:
                    active -= 1

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert max_active == 1

    def test_file_lock(self, tmp_path):
        """Test that a configured lock file is taken while the guard is held."""
        lock_path = tmp_path / "repo.lock"
        guard = RepositoryGuard(lock_path)
        with guard:
            assert guard._file_lock.is_locked
        assert not guard._file_lock.is_locked
        assert not guard.locked()

    def test_no_file_lock_by_default(self):
        guard = RepositoryGuard()
        assert guard.lock_path is None
