"""Base skill interface for insight.

Skills are the tool system of the agent: each one has a name, a description
and a JSON Schema for its arguments, and an async execute() that returns a
JSON value which is handed back to the model as the tool result.

A skill signals failure by raising SkillError. The tool loop turns that into
an error result for the model instead of failing the whole query.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from insight.core.errors import InsightError
from insight.core.types import JSONValue


class SkillError(InsightError):
    """Raised by a skill when it cannot complete the requested call."""


@runtime_checkable
class Skill(Protocol):
    """Protocol every skill implements."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def parameters(self) -> dict[str, Any]: ...

    async def execute(self, **kwargs: Any) -> JSONValue: ...


class BaseSkill(ABC):
    """Generic base with name/description/parameters storage.

    Example:
        class EchoSkill(BaseSkill):
            def __init__(self) -> None:
                super().__init__(
                    name="echo",
                    description="Echo a message back",
                    parameters={
                        "type": "object",
                        "properties": {"message": {"type": "string"}},
                        "required": ["message"],
                    },
                )

            async def execute(self, message: str = "", **kwargs: Any) -> JSONValue:
                return {"echo": message}
    """

    def __init__(self, name: str, description: str, parameters: dict[str, Any]) -> None:
        self._name = name
        self._description = description
        self._parameters = parameters

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    @abstractmethod
    async def execute(self, **kwargs: Any) -> JSONValue:
        """Run the skill with validated arguments."""
        ...
