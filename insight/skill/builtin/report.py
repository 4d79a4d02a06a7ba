"""generate_report skill: publish a structured report to the client.

The model describes the report as a render tree:

    {
        "root": "card",
        "elements": {
            "card": {"key": "card", "type": "Card", "props": {"title": "Latency"},
                     "children": ["p95"]},
            "p95": {"key": "p95", "type": "Metric", "props": {"label": "p95", "value": "1.2s"},
                    "parentKey": "card"},
        },
    }

The tree is validated (shape, component types, key references) before it
is handed to the session, which forwards it to the client as a report
notice. Validation failures are returned to the model as the tool result so
it can correct the tree.
"""

from __future__ import annotations

import logging
from typing import Any

from insight.core.interfaces import ReportCallback
from insight.core.types import JSONValue
from insight.skill.base import BaseSkill
from insight.skill.registry import SkillRegistry
from insight.skill.validation import ValidationError, validate_tool_arguments

logger = logging.getLogger(__name__)

REPORT_TOOL_NAME = "generate_report"

COMPONENT_TYPES: tuple[str, ...] = (
    "Card",
    "Chart",
    "Text",
    "Heading",
    "List",
    "Table",
    "Metric",
    "Badge",
    "Alert",
    "Separator",
    "Code",
)

UI_ELEMENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "key": {"type": "string"},
        "type": {"type": "string", "enum": list(COMPONENT_TYPES)},
        "props": {"type": "object"},
        "children": {"type": "array", "items": {"type": "string"}},
        "parentKey": {"type": "string"},
    },
    "required": ["key", "type", "props"],
}

UI_TREE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "root": {"type": "string"},
        "elements": {"type": "object", "additionalProperties": UI_ELEMENT_SCHEMA},
    },
    "required": ["root", "elements"],
}

REPORT_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "Optional title for the report displayed in the header",
        },
        "content": {**UI_TREE_SCHEMA, "description": "The render tree structure"},
    },
    "required": ["content"],
}

REPORT_DESCRIPTION = (
    "Generate or update a structured report that will be displayed in the UI "
    "report panel. The report is a render tree: 'root' names the root element "
    "and 'elements' maps every key to an element with key, type, props and "
    "optional children (keys) and parentKey. Component types: "
    + ", ".join(COMPONENT_TYPES)
    + ". Use this tool to present structured analysis results, metrics, "
    "tables or formatted reports to the user."
)


def validate_report_content(content: Any) -> str | None:
    """Check a render tree. Returns an error message, or None when valid."""
    try:
        validate_tool_arguments({"content": content}, REPORT_PARAMETERS)
    except ValidationError as e:
        return f"Invalid tree structure: {e.message}"

    elements: dict[str, Any] = content["elements"]
    root = content["root"]
    if root not in elements:
        return f'Root element "{root}" not found in elements'

    for key, element in elements.items():
        for child in element.get("children", []):
            if child not in elements:
                return f'Child element "{child}" not found for parent "{key}"'
        parent = element.get("parentKey")
        if parent and parent not in elements:
            return f'Parent element "{parent}" not found for element "{key}"'

    return None


class ReportSkill(BaseSkill):
    """Validates a report and hands it to the session's report callback."""

    def __init__(self, on_report: ReportCallback) -> None:
        super().__init__(
            name=REPORT_TOOL_NAME,
            description=REPORT_DESCRIPTION,
            parameters=REPORT_PARAMETERS,
        )
        self._on_report = on_report

    async def execute(
        self, content: Any = None, title: str | None = None, **kwargs: Any
    ) -> JSONValue:
        error = validate_report_content(content)
        if error is not None:
            logger.info("Rejected report: %s", error)
            return {"success": False, "error": error}

        try:
            await self._on_report(content, title)
        except Exception as e:
            logger.warning("Report delivery failed: %s", e)
            return {"success": False, "error": f"Failed to broadcast report: {e}"}

        message = (
            f'Report "{title}" generated successfully' if title
            else "Report generated successfully"
        )
        return {"success": True, "message": message}


def register_report_skill(registry: SkillRegistry, on_report: ReportCallback) -> None:
    """Register generate_report, bound to ``on_report``."""
    registry.register(
        REPORT_TOOL_NAME,
        lambda: ReportSkill(on_report),
        description=REPORT_DESCRIPTION,
        parameters=REPORT_PARAMETERS,
    )
