"""Postman environment export parser.

Parses exported environment JSON into EnvironmentVariable models and
supplies the detector the format classifier relies on.
"""

import json
import re

from pydantic import ValidationError

from api_doc_import.errors import ParseError
from api_doc_import.log import get_logger
from .base import EnvironmentVariable, PostmanEnvironment

logger = get_logger(__name__)

SENSITIVE_KEYWORDS = (
    "token", "key", "secret", "password", "auth", "authorization",
    "bearer", "api_key", "apikey", "client_secret", "access_token",
    "refresh_token", "private_key", "credential", "pass", "pwd",
)

# Long opaque values (API keys, JWT segments) are treated as secrets
TOKEN_VALUE_PATTERN = re.compile(r"^[a-zA-Z0-9_\-.]{20,}$")


def should_be_secret(key: str, value: str) -> bool:
    """Guess whether a variable holds a credential, from its key or its value."""
    key_lower = key.lower()
    if any(keyword in key_lower for keyword in SENSITIVE_KEYWORDS):
        return True
    return bool(TOKEN_VALUE_PATTERN.match(value))


def parse_environment(content: str) -> PostmanEnvironment:
    """Parse a Postman environment export.

    Raises ParseError when the JSON is malformed, name or values are
    missing, or no variable has both a string key and a string value.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseError("Invalid environment file: malformed JSON") from e

    if not isinstance(data, dict):
        raise ParseError("Invalid environment file: not a valid JSON object")

    name = data.get("name")
    if not name or not isinstance(name, str):
        raise ParseError("Invalid environment file: missing or invalid name field")

    values = data.get("values")
    if not isinstance(values, list):
        raise ParseError("Invalid environment file: missing or invalid values array")

    try:
        variables = _parse_variables(values)
    except ValidationError as e:
        raise ParseError(f"Invalid environment file: {e}") from e

    if not variables:
        raise ParseError("Invalid environment file: no valid variables found")

    skipped = len(values) - len(variables)
    if skipped:
        logger.debug("Skipped %d environment entries without string key/value", skipped)

    try:
        return PostmanEnvironment(
            name=name,
            description=data.get("description") or None,
            variables=variables,
        )
    except ValidationError as e:
        raise ParseError(f"Invalid environment file: {e}") from e


def _parse_variables(values: list) -> list[EnvironmentVariable]:
    return [
        EnvironmentVariable(
            key=item["key"],
            value=item["value"],
            enabled=item.get("enabled") is not False,
            type=item.get("type") or "default",
            is_secret=should_be_secret(item["key"], item["value"]),
        )
        for item in values
        if isinstance(item, dict)
        and isinstance(item.get("key"), str)
        and isinstance(item.get("value"), str)
    ]


def looks_like_environment(data: object, file_name: str) -> bool:
    """Check already-parsed JSON against the environment export shape.

    The file name must mention "environment" or "env"; content markers
    alone are not enough.
    """
    if not isinstance(data, dict):
        return False
    name = data.get("name")
    if not name or not isinstance(name, str):
        return False
    if not isinstance(data.get("values"), list):
        return False

    has_scope = data.get("_postman_variable_scope") == "environment"
    exported_at = data.get("_postman_exported_at")
    has_export = bool(exported_at) and isinstance(exported_at, str)
    lower_name = file_name.lower()
    has_env_name = "environment" in lower_name or "env" in lower_name

    return (has_scope or has_export) and has_env_name


def is_postman_environment(content: str, file_name: str) -> bool:
    """Detect whether raw content is a Postman environment export."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, RecursionError):
        return False
    return looks_like_environment(data, file_name)
