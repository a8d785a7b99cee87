"""BuildOS tools — typed tool interface and registry."""

from buildos.tools.base import BaseTool, SideEffect
from buildos.tools.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "SideEffect",
    "ToolRegistry",
]
