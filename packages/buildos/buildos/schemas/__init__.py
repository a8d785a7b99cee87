"""BuildOS schemas — Pydantic v2 models for events and artifacts."""

from buildos.schemas.artifact import ArtifactMeta
from buildos.schemas.events import (
    ArtifactCreated,
    ArtifactRemoved,
    BaseEvent,
    EventType,
    RunFinished,
    RunStarted,
    TaskFinished,
    TaskStarted,
    ToolCallFinished,
    ToolCallStarted,
)

__all__ = [
    "ArtifactCreated",
    "ArtifactMeta",
    "ArtifactRemoved",
    "BaseEvent",
    "EventType",
    "RunFinished",
    "RunStarted",
    "TaskFinished",
    "TaskStarted",
    "ToolCallFinished",
    "ToolCallStarted",
]
