"""DAG workflow — dependency graph with topological scheduling."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from buildos.core.errors import TaskExecutionError
from buildos.core.identifiers import RunId, generate_run_id
from buildos.runtime.event_log import EventLog
from buildos.runtime.sequence import SeqCounter
from buildos.runtime.task import TaskNode, TaskState
from buildos.schemas.events import RunFinished, RunStarted, TaskFinished, TaskStarted

logger = logging.getLogger(__name__)


class DAGWorkflow:
    """A directed acyclic graph of tasks with dependency edges."""

    def __init__(self, name: str, tasks: list[TaskNode] | None = None) -> None:
        self.name = name
        self.tasks: list[TaskNode] = tasks or []

    def get(self, name: str) -> TaskNode:
        """Look up a task by name. Raises TaskExecutionError if not found."""
        for task in self.tasks:
            if task.name == name:
                return task
        raise TaskExecutionError(f"No task named '{name}' in workflow '{self.name}'")

    def names(self) -> list[str]:
        return [t.name for t in self.tasks]

    def validate(self) -> None:
        """Validate the DAG: check for cycles and missing references.

        Raises TaskExecutionError on invalid graph.
        """
        task_set = set(id(t) for t in self.tasks)
        for task in self.tasks:
            for dep in task.depends_on:
                if id(dep) not in task_set:
                    raise TaskExecutionError(
                        f"Task '{task.name}' depends on '{dep.name}' which is not in the workflow"
                    )

        if len(self.topological_order()) != len(self.tasks):
            raise TaskExecutionError(f"DAG '{self.name}' contains a cycle")

    def topological_order(self) -> list[TaskNode]:
        """Return tasks in a valid topological order (Kahn's algorithm).

        Ties are broken by insertion order, so the result is stable.
        """
        position: dict[int, int] = {id(t): i for i, t in enumerate(self.tasks)}
        in_degree: dict[int, int] = {id(t): 0 for t in self.tasks}
        adjacency: dict[int, list[int]] = {id(t): [] for t in self.tasks}

        for task in self.tasks:
            for dep in task.depends_on:
                if id(dep) not in adjacency:
                    continue
                adjacency[id(dep)].append(id(task))
                in_degree[id(task)] += 1

        queue = deque(
            sorted((tid for tid, deg in in_degree.items() if deg == 0), key=position.__getitem__)
        )
        result: list[TaskNode] = []
        while queue:
            current = queue.popleft()
            result.append(self.tasks[position[current]])
            for neighbor in sorted(adjacency[current], key=position.__getitem__):
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        return result

    def select(self, targets: Iterable[str]) -> DAGWorkflow:
        """Return the sub-graph needed to produce the named targets.

        The result holds each requested task plus its transitive
        prerequisites, in the original insertion order.
        """
        wanted: set[int] = set()
        stack = [self.get(name) for name in targets]
        while stack:
            task = stack.pop()
            if id(task) in wanted:
                continue
            wanted.add(id(task))
            stack.extend(task.depends_on)
        return DAGWorkflow(
            name=self.name,
            tasks=[t for t in self.tasks if id(t) in wanted],
        )


class DAGExecutor:
    """Executes a DAGWorkflow respecting dependencies with controlled parallelism.

    Tasks whose declared outputs are up to date are skipped and count as
    satisfied for their dependents.
    """

    def __init__(self, event_log: EventLog, *, max_parallel: int = 1) -> None:
        self._event_log = event_log
        self._max_parallel = max_parallel

    def _execute_task(self, task: TaskNode, run_id: RunId, seq: SeqCounter) -> None:
        """Execute a single task, emitting events."""
        task.state = TaskState.RUNNING
        self._event_log.append(
            TaskStarted(
                run_id=run_id,
                seq=seq.next(),
                payload={"task_id": task.id, "task_name": task.name},
            )
        )

        logger.info("[%s] running", task.name)
        try:
            task.result = task.callable()
            task.state = TaskState.SUCCEEDED
        except Exception as exc:
            task.state = TaskState.FAILED
            task.error = exc
            logger.error("[%s] failed: %s", task.name, exc)

        payload: dict[str, str] = {
            "task_id": task.id,
            "task_name": task.name,
            "state": task.state.value,
        }
        if task.error is not None:
            payload["error"] = str(task.error)

        self._event_log.append(
            TaskFinished(run_id=run_id, seq=seq.next(), payload=payload)
        )

    def _skip_task(self, task: TaskNode, run_id: RunId, seq: SeqCounter) -> None:
        task.state = TaskState.SKIPPED
        logger.info("[%s] up to date", task.name)
        self._event_log.append(
            TaskFinished(
                run_id=run_id,
                seq=seq.next(),
                payload={
                    "task_id": task.id,
                    "task_name": task.name,
                    "state": task.state.value,
                    "reason": "up to date",
                },
            )
        )

    def run(
        self,
        dag: DAGWorkflow,
        *,
        run_id: RunId | None = None,
        seq: SeqCounter | None = None,
    ) -> RunId:
        """Execute the DAG respecting dependencies.

        Tasks with no unmet dependencies can run in parallel up to max_parallel.
        On any task failure, no new tasks are started; already running tasks
        are allowed to finish. Then TaskExecutionError is raised, chained to
        the first failing task's exception.

        Pass ``seq`` when task callables write their own events for the same
        run, so that every event gets a distinct sequence number.
        """
        dag.validate()

        rid = run_id or generate_run_id()
        counter = seq or SeqCounter()

        self._event_log.append(
            RunStarted(
                run_id=rid,
                seq=counter.next(),
                payload={"workflow": dag.name, "tasks": dag.names()},
            )
        )

        pending = dag.topological_order()
        failed_tasks: list[TaskNode] = []

        with ThreadPoolExecutor(max_workers=self._max_parallel) as pool:
            futures: dict[Future[None], TaskNode] = {}

            while pending or futures:
                # Submit ready tasks (only if no failures yet)
                progressed = not failed_tasks
                while progressed:
                    progressed = False
                    for task in [t for t in pending if t.is_ready]:
                        if len(futures) >= self._max_parallel:
                            break
                        pending.remove(task)
                        if task.is_up_to_date():
                            self._skip_task(task, rid, counter)
                            progressed = True
                            continue
                        fut = pool.submit(self._execute_task, task, rid, counter)
                        futures[fut] = task

                if not futures:
                    break

                done, _ = wait(list(futures), return_when=FIRST_COMPLETED)
                for fut in done:
                    task = futures.pop(fut)
                    if task.state == TaskState.FAILED:
                        failed_tasks.append(task)

        if failed_tasks:
            self._event_log.append(
                RunFinished(
                    run_id=rid,
                    seq=counter.next(),
                    payload={
                        "workflow": dag.name,
                        "outcome": "FAILED",
                        "failed_tasks": [t.name for t in failed_tasks],
                    },
                )
            )
            first_fail = failed_tasks[0]
            raise TaskExecutionError(
                f"Task '{first_fail.name}' failed: {first_fail.error}"
            ) from first_fail.error

        self._event_log.append(
            RunFinished(
                run_id=rid,
                seq=counter.next(),
                payload={"workflow": dag.name, "outcome": "SUCCEEDED"},
            )
        )
        return rid
