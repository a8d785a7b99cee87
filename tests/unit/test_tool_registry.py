"""Tests for ToolRegistry and the BaseTool contract."""

import pytest
from pydantic import BaseModel

from buildos.core.errors import ToolValidationError
from buildos.tools.base import BaseTool, SideEffect
from buildos.tools.registry import ToolRegistry
from releaseos.tools import (
    ArtifactPublisherTool,
    CleanupTool,
    DiskImageTool,
)
from releaseos.workflows.release import create_registry


class DummyInput(BaseModel):
    x: str


class OtherInput(BaseModel):
    x: str
    extra: int = 0


class DummyOutput(BaseModel):
    y: str


class DummyTool(BaseTool):
    def __init__(self, tool_name: str = "dummy") -> None:
        self._name = tool_name

    @property
    def name(self) -> str:
        return self._name

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return DummyInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return DummyOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.PURE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, DummyInput)
        return DummyOutput(y=data.x.upper())


class TestToolRegistry:
    def test_register_and_lookup(self) -> None:
        registry = ToolRegistry()
        tool = DummyTool("my_tool")
        registry.register(tool)
        assert registry.lookup("my_tool") is tool
        assert registry.has("my_tool")
        assert len(registry) == 1

    def test_lookup_not_found(self) -> None:
        with pytest.raises(ToolValidationError, match="not registered"):
            ToolRegistry().lookup("nonexistent")

    def test_duplicate_registration(self) -> None:
        registry = ToolRegistry([DummyTool("dup")])
        with pytest.raises(ToolValidationError, match="already registered"):
            registry.register(DummyTool("dup"))

    def test_release_registry(self) -> None:
        registry = create_registry()
        assert len(registry) == 10
        assert {t.name for t in registry.list_tools()} >= {
            "source_stager",
            "package_builder",
            "artifact_validator",
            "install_mapper",
            "cleanup",
        }


class TestBaseTool:
    def test_coerce_input_from_compatible_model(self) -> None:
        out = DummyTool().execute(OtherInput(x="abc", extra=1))
        assert out == DummyOutput(y="ABC")

    def test_coerce_input_rejects_incompatible_model(self) -> None:
        with pytest.raises(ToolValidationError, match="Invalid input for tool 'dummy'"):
            DummyTool().execute(DummyOutput(y="abc"))

    def test_side_effect_classes(self) -> None:
        assert DiskImageTool().side_effect == SideEffect.WRITE
        assert CleanupTool().side_effect == SideEffect.DESTRUCTIVE
        assert ArtifactPublisherTool().side_effect == SideEffect.REMOTE
