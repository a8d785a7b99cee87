"""Task state machine and task node definition."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from enum import StrEnum
from pathlib import Path
from typing import Any

from buildos.core.identifiers import TaskId, generate_task_id


class TaskState(StrEnum):
    """Task lifecycle states."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


# States that satisfy a dependent task's prerequisites.
DONE_STATES = frozenset({TaskState.SUCCEEDED, TaskState.SKIPPED})


def _mtime(path: Path) -> float | None:
    try:
        return os.stat(path).st_mtime
    except FileNotFoundError:
        return None


class TaskNode:
    """A single unit of work in a build graph.

    Wraps a callable with lifecycle state tracking, dependency edges, and
    the file artifacts it consumes and produces. A task with no declared
    outputs is phony and always runs.
    """

    def __init__(
        self,
        name: str,
        callable: Callable[..., Any],
        *,
        task_id: TaskId | None = None,
        depends_on: list[TaskNode] | None = None,
        inputs: Sequence[str | Path] | None = None,
        outputs: Sequence[str | Path] | None = None,
        output_check: Callable[[], bool] | None = None,
    ) -> None:
        self.id: TaskId = task_id or generate_task_id()
        self.name = name
        self.callable = callable
        self.state: TaskState = TaskState.PENDING
        self.result: Any = None
        self.error: Exception | None = None
        self.depends_on: list[TaskNode] = depends_on or []
        self.inputs: list[Path] = [Path(p) for p in inputs or []]
        self.outputs: list[Path] = [Path(p) for p in outputs or []]
        self.output_check = output_check

    @property
    def is_phony(self) -> bool:
        return not self.outputs

    @property
    def is_ready(self) -> bool:
        """True if all dependencies are done and this task is pending."""
        if self.state != TaskState.PENDING:
            return False
        return all(d.state in DONE_STATES for d in self.depends_on)

    def is_up_to_date(self) -> bool:
        """True if every output exists and no input is newer than the oldest output.

        Phony tasks are never up to date. A missing input makes the task
        stale so that its callable gets to report the missing file.
        """
        if self.is_phony:
            return False
        output_times = [_mtime(p) for p in self.outputs]
        if any(t is None for t in output_times):
            return False
        if self.output_check is not None and not self.output_check():
            return False
        # A dependency that actually ran invalidates this task.
        if any(d.state == TaskState.SUCCEEDED and not d.is_phony for d in self.depends_on):
            return False
        oldest_output = min(t for t in output_times if t is not None)
        for path in self.inputs:
            input_time = _mtime(path)
            if input_time is None or input_time > oldest_output:
                return False
        return True

    def __repr__(self) -> str:
        return f"TaskNode(name={self.name!r}, state={self.state.value})"
