"""Skill registry with factory-based instantiation.

Skills are registered as factories, so a session can describe its tools to
the model without building them, and each skill is only created the first
time the model calls it.

Example:
    registry = SkillRegistry()
    registry.register("echo", EchoSkill, description="Echo", parameters={...})

    definitions = registry.get_definitions()   # no instantiation
    skill = registry.get("echo")               # instantiated and cached
    output = await skill.execute(message="hello")
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from insight.skill.base import Skill

SkillFactory = Callable[[], Skill]

# Provider tool-name rules: letter or underscore first, 1-64 chars
_TOOL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]{0,63}$")


@dataclass(frozen=True)
class SkillSpec:
    """Skill metadata, available without instantiating the skill.

    Attributes:
        name: The skill's registered name.
        description: Human-readable description of what the skill does.
        parameters: JSON Schema for the skill's parameters.
        factory: Factory function that creates the skill instance.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    factory: SkillFactory


class SkillRegistry:
    """Registry for the tools available to one session."""

    def __init__(self) -> None:
        self._specs: dict[str, SkillSpec] = {}
        self._instances: dict[str, Skill] = {}

    def register(
        self,
        name: str,
        factory: SkillFactory,
        *,
        description: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        """Register a skill factory with optional metadata.

        Re-registering a name replaces the factory and drops any cached
        instance. Metadata that is not given here is read from the skill
        instance when definitions are requested.

        Raises:
            ValueError: If the name is not a valid tool name.
        """
        if not _TOOL_NAME_RE.match(name):
            raise ValueError(f"Invalid tool name: {name!r}")

        self._instances.pop(name, None)
        self._specs[name] = SkillSpec(
            name=name,
            description=description or "",
            parameters=parameters or {},
            factory=factory,
        )

    def get(self, name: str) -> Skill | None:
        """Get a skill instance by name, creating it on first use."""
        if name in self._instances:
            return self._instances[name]

        spec = self._specs.get(name)
        if spec is None:
            return None

        skill = spec.factory()
        self._instances[name] = skill
        return skill

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get OpenAI-format tool definitions for all registered skills.

        Providers convert these to their own tool format.

        Returns:
            [{"type": "function", "function": {"name", "description", "parameters"}}]
        """
        definitions = []
        for name, spec in self._specs.items():
            description, parameters = spec.description, spec.parameters
            if not (description and parameters):
                skill = self.get(name)
                if skill is None:
                    continue
                description = description or skill.description
                parameters = parameters or skill.parameters
            definitions.append({
                "type": "function",
                "function": {
                    "name": name,
                    "description": description,
                    "parameters": parameters,
                },
            })
        return definitions

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs
