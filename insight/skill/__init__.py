"""Skill (tool) system for insight."""

from insight.skill.base import BaseSkill, Skill, SkillError
from insight.skill.registry import SkillFactory, SkillRegistry, SkillSpec
from insight.skill.validation import ValidationError, validate_tool_arguments

__all__ = [
    "BaseSkill",
    "Skill",
    "SkillError",
    "SkillFactory",
    "SkillRegistry",
    "SkillSpec",
    "ValidationError",
    "validate_tool_arguments",
]
