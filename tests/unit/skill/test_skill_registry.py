"""Tests for SkillRegistry and tool argument validation."""

import logging
from typing import Any

import pytest

from insight.skill.base import BaseSkill, Skill
from insight.skill.registry import SkillRegistry
from insight.skill.validation import ValidationError, validate_tool_arguments

PARAMS = {
    "type": "object",
    "properties": {"path": {"type": "string"}, "limit": {"type": "integer"}},
    "required": ["path"],
}


class CountingSkill(BaseSkill):
    created = 0

    def __init__(self) -> None:
        super().__init__("count", "Counts things", PARAMS)
        CountingSkill.created += 1

    async def execute(self, **kwargs: Any):
        return kwargs


@pytest.fixture(autouse=True)
def reset_counter():
    CountingSkill.created = 0


class TestSkillRegistry:
    """Tests for registration and lazy instantiation."""

    def test_definitions_without_instantiation(self) -> None:
        registry = SkillRegistry()
        registry.register("count", CountingSkill, description="Counts", parameters=PARAMS)

        assert registry.get_definitions() == [{
            "type": "function",
            "function": {"name": "count", "description": "Counts", "parameters": PARAMS},
        }]
        assert CountingSkill.created == 0

    def test_definitions_fall_back_to_instance(self) -> None:
        registry = SkillRegistry()
        registry.register("count", CountingSkill)
        [definition] = registry.get_definitions()
        assert definition["function"]["description"] == "Counts things"
        assert CountingSkill.created == 1

    def test_get_caches_instance(self) -> None:
        registry = SkillRegistry()
        registry.register("count", CountingSkill)
        first = registry.get("count")
        assert first is registry.get("count")
        assert isinstance(first, Skill)
        assert CountingSkill.created == 1

    def test_get_unknown(self) -> None:
        assert SkillRegistry().get("missing") is None

    def test_reregister_drops_cached_instance(self) -> None:
        registry = SkillRegistry()
        registry.register("count", CountingSkill)
        first = registry.get("count")
        registry.register("count", CountingSkill)
        assert registry.get("count") is not first

    @pytest.mark.parametrize("name", ["", "1abc", "has space", "x" * 65])
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(ValueError, match="Invalid tool name"):
            SkillRegistry().register(name, CountingSkill)

    def test_container_protocol(self) -> None:
        registry = SkillRegistry()
        registry.register("count", CountingSkill)
        registry.register("other_tool", CountingSkill)
        assert len(registry) == 2
        assert "count" in registry
        assert "missing" not in registry
        assert registry.names == ["count", "other_tool"]


class TestValidateToolArguments:
    """Tests for validate_tool_arguments()."""

    def test_valid_arguments(self) -> None:
        assert validate_tool_arguments({"path": "a", "limit": 2}, PARAMS) == {"path": "a", "limit": 2}

    def test_missing_required(self) -> None:
        with pytest.raises(ValidationError, match="'path' is a required property"):
            validate_tool_arguments({}, PARAMS)

    def test_type_mismatch_reports_path(self) -> None:
        with pytest.raises(ValidationError, match="at 'limit'"):
            validate_tool_arguments({"path": "a", "limit": "ten"}, PARAMS)

    def test_extra_arguments_dropped_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        test_logger = logging.getLogger("tests.skill")
        with caplog.at_level(logging.WARNING, logger="tests.skill"):
            result = validate_tool_arguments({"path": "a", "bogus": 1}, PARAMS, logger=test_logger)
        assert result == {"path": "a"}
        assert "bogus" in caplog.text
