"""Validation of tool arguments supplied by the model."""

from __future__ import annotations

import logging
from typing import Any

import jsonschema

from insight.core.errors import InsightError


class ValidationError(InsightError):
    """Raised when tool arguments do not match the tool's schema."""

    pass


def validate_tool_arguments(
    arguments: dict[str, Any],
    schema: dict[str, Any],
    logger: logging.Logger | None = None,
) -> dict[str, Any]:
    """Validate tool arguments against JSON schema.

    Validates required fields and types. Warns about (but allows) extra
    parameters. Returns only the known parameters.

    Args:
        arguments: The arguments provided by the model.
        schema: The JSON schema for the tool's parameters.
        logger: Optional logger for warnings about unknown params.

    Returns:
        Dict containing only valid, known parameters.

    Raises:
        ValidationError: If required params are missing or types don't match.
    """
    try:
        jsonschema.validate(arguments, schema)
    except jsonschema.ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path)
        where = f" at '{path}'" if path else ""
        raise ValidationError(f"Invalid argument{where}: {e.message}") from e

    schema_props = set(schema.get("properties", {}).keys())
    extras = set(arguments.keys()) - schema_props
    if extras and logger:
        logger.warning("Unknown tool arguments (ignored): %s", sorted(extras))

    return {k: v for k, v in arguments.items() if k in schema_props}
