"""JSON Schema validation utilities."""

from typing import Any

from jsonschema import Draft7Validator


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def create_tool_schema(
    parameters: list[dict[str, Any]],
    required: list[str] | None = None
) -> dict[str, Any]:
    """
    Create a JSON Schema from a list of parameter definitions.

    Args:
        parameters: List of parameter definitions with name, type, description
            and optional string constraints (min_length, pattern)
        required: List of required parameter names

    Returns:
        JSON Schema dictionary
    """
    properties = {}

    type_mapping = {
        "string": "string",
        "str": "string",
        "integer": "integer",
        "int": "integer",
        "number": "number",
        "boolean": "boolean",
        "bool": "boolean",
        "object": "object",
    }

    for param in parameters:
        param_schema: dict[str, Any] = {
            "type": type_mapping.get(param.get("type", "string"), "string"),
            "description": param.get("description", ""),
        }

        if "min_length" in param:
            param_schema["minLength"] = param["min_length"]

        if "pattern" in param:
            param_schema["pattern"] = param["pattern"]

        properties[param["name"]] = param_schema

    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
    }

    if required is not None:
        schema["required"] = required
    else:
        schema["required"] = [
            p["name"] for p in parameters
            if p.get("required", True)
        ]

    return schema
