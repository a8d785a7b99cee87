"""BuildOS runtime — event log, task graph execution, and workspaces."""

from buildos.runtime.dag import DAGExecutor, DAGWorkflow
from buildos.runtime.event_log import EventLog, SQLiteEventLog
from buildos.runtime.sequence import SeqCounter
from buildos.runtime.task import TaskNode, TaskState
from buildos.runtime.workspace import Workspace, WorkspaceConfig

__all__ = [
    "DAGExecutor",
    "DAGWorkflow",
    "EventLog",
    "SQLiteEventLog",
    "SeqCounter",
    "TaskNode",
    "TaskState",
    "Workspace",
    "WorkspaceConfig",
]
