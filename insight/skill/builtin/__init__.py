"""Built-in skills."""

from insight.skill.builtin.report import (
    REPORT_TOOL_NAME,
    ReportSkill,
    register_report_skill,
    validate_report_content,
)

__all__ = [
    "REPORT_TOOL_NAME",
    "ReportSkill",
    "register_report_skill",
    "validate_report_content",
]
