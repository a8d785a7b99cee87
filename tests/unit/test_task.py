"""Tests for TaskNode freshness rules."""

import os

from buildos.runtime.task import TaskNode, TaskState


def _noop() -> None:
    return None


def _touch(path, mtime: int, content: str = "x"):
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


class TestTaskFreshness:
    def test_phony_task_is_never_up_to_date(self) -> None:
        task = TaskNode(name="install", callable=_noop)
        assert task.is_phony
        assert not task.is_up_to_date()

    def test_missing_output_is_stale(self, tmp_path) -> None:
        task = TaskNode(name="t", callable=_noop, outputs=[tmp_path / "absent"])
        assert not task.is_up_to_date()

    def test_output_without_inputs_is_fresh(self, tmp_path) -> None:
        out = _touch(tmp_path / "test.img", 1_000)
        assert TaskNode(name="t", callable=_noop, outputs=[out]).is_up_to_date()

    def test_newer_input_makes_task_stale(self, tmp_path) -> None:
        out = _touch(tmp_path / "out", 1_000)
        src = _touch(tmp_path / "src", 2_000)
        assert not TaskNode(name="t", callable=_noop, inputs=[src], outputs=[out]).is_up_to_date()

    def test_older_input_keeps_task_fresh(self, tmp_path) -> None:
        src = _touch(tmp_path / "src", 1_000)
        out = _touch(tmp_path / "out", 2_000)
        assert TaskNode(name="t", callable=_noop, inputs=[src], outputs=[out]).is_up_to_date()

    def test_oldest_output_decides(self, tmp_path) -> None:
        src = _touch(tmp_path / "src", 2_000)
        old = _touch(tmp_path / "old", 1_000)
        new = _touch(tmp_path / "new", 3_000)
        task = TaskNode(name="t", callable=_noop, inputs=[src], outputs=[old, new])
        assert not task.is_up_to_date()

    def test_missing_input_makes_task_stale(self, tmp_path) -> None:
        out = _touch(tmp_path / "out", 1_000)
        task = TaskNode(name="t", callable=_noop, inputs=[tmp_path / "gone"], outputs=[out])
        assert not task.is_up_to_date()

    def test_output_check_rejects(self, tmp_path) -> None:
        out = _touch(tmp_path / "test.img", 1_000, content="short")
        task = TaskNode(
            name="t", callable=_noop, outputs=[out],
            output_check=lambda: out.stat().st_size == 1024,
        )
        assert not task.is_up_to_date()

    def test_rebuilt_dependency_invalidates(self, tmp_path) -> None:
        out = _touch(tmp_path / "out", 1_000)
        dep = TaskNode(name="dep", callable=_noop, outputs=[tmp_path / "dep.out"])
        dep.state = TaskState.SUCCEEDED
        task = TaskNode(name="t", callable=_noop, depends_on=[dep], outputs=[out])
        assert not task.is_up_to_date()

        dep.state = TaskState.SKIPPED
        assert task.is_up_to_date()


class TestTaskLifecycle:
    def test_is_ready_requires_done_dependencies(self) -> None:
        dep = TaskNode(name="dep", callable=_noop)
        task = TaskNode(name="t", callable=_noop, depends_on=[dep])
        assert not task.is_ready
        dep.state = TaskState.SKIPPED
        assert task.is_ready
        dep.state = TaskState.FAILED
        assert not task.is_ready
