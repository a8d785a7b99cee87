"""Tool substrate — base tool class and side-effect classification."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from buildos.core.errors import ToolValidationError


class SideEffect(StrEnum):
    """Classification of a tool's side effects."""

    PURE = "PURE"
    READ = "READ"
    WRITE = "WRITE"
    DESTRUCTIVE = "DESTRUCTIVE"
    REMOTE = "REMOTE"


class BaseTool(ABC):
    """Abstract base class for all pipeline tools.

    A tool is one stage's worth of work. Each tool declares typed
    input/output schemas, a side-effect class, and an execute method.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name identifying this tool."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Semantic version of this tool."""

    @property
    @abstractmethod
    def input_schema(self) -> type[BaseModel]:
        """Pydantic model class for validating input."""

    @property
    @abstractmethod
    def output_schema(self) -> type[BaseModel]:
        """Pydantic model class for validating output."""

    @property
    @abstractmethod
    def side_effect(self) -> SideEffect:
        """Side-effect classification of this tool."""

    @abstractmethod
    def execute(self, input_data: BaseModel) -> BaseModel:
        """Execute the tool with validated input. Returns validated output."""

    def validate_input(self, raw: dict[str, Any]) -> BaseModel:
        """Validate raw input dict against the input schema."""
        return self.input_schema.model_validate(raw)

    def validate_output(self, raw: dict[str, Any]) -> BaseModel:
        """Validate raw output dict against the output schema."""
        return self.output_schema.model_validate(raw)

    def coerce_input(self, input_data: BaseModel) -> BaseModel:
        """Return ``input_data`` as an instance of the input schema.

        Raises ToolValidationError when the data does not fit the schema.
        """
        if isinstance(input_data, self.input_schema):
            return input_data
        try:
            return self.validate_input(input_data.model_dump())
        except ValueError as exc:
            raise ToolValidationError(
                f"Invalid input for tool '{self.name}': {exc}"
            ) from exc
