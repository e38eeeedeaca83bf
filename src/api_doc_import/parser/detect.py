"""Auto-detect API documentation format.

Detection is an ordered chain of independent checks over the parsed
JSON; the first check that returns a verdict wins. Detection never
raises: every failure ends in an "unknown" verdict.
"""

import json
import re
from collections.abc import Callable

from .base import FileType, FileTypeResult, SupportResult
from .environment import looks_like_environment

DETECTED_CONFIDENCE = 0.95
FILENAME_CONFIDENCE = 0.6

OPENAPI_PATH_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")

YAML_INDICATORS = (
    re.compile(r"^---\s*$", re.MULTILINE),  # document separator
    re.compile(r"^\s*\w+:\s*$", re.MULTILINE),  # key followed by colon
    re.compile(r"^\s*-\s+", re.MULTILINE),  # list item
    re.compile(r"^\s*[\w-]+:\s+[\w-]", re.MULTILINE),  # key: value
)

FILENAME_PATTERNS: tuple[tuple[FileType, tuple[str, ...]], ...] = (
    ("environment", (
        "environment", "env", ".postman_environment.", "_environment.", "postman_env",
    )),
    ("postman", (
        "postman_collection", "collection", "newman", ".postman_collection.",
        "_collection.", "api_collection", "requests",
    )),
    ("openapi", (
        "openapi", "swagger", "api-docs", "api_spec", "spec.json", "spec.yaml",
        "spec.yml", "oas", "rest-api",
    )),
)

Check = Callable[[object, str], FileTypeResult | None]


def is_yaml_filename(file_name: str) -> bool:
    return file_name.lower().endswith((".yaml", ".yml"))


def detect_file_type(content: str, file_name: str) -> FileTypeResult:
    """Classify raw file content as postman, openapi, environment, or unknown."""
    try:
        data = json.loads(content)
    except (ValueError, RecursionError) as e:
        if is_likely_yaml(content, file_name):
            return FileTypeResult(
                type="unknown",
                confidence=0,
                details="YAML files are not currently supported. Please convert to JSON format.",
            )
        return FileTypeResult(
            type="unknown",
            confidence=0,
            details=f"File is not valid JSON and does not appear to be YAML: {e}",
        )

    for check in CHECKS:
        result = check(data, file_name)
        if result is not None:
            return result

    return FileTypeResult(
        type="unknown",
        confidence=0,
        details="Valid JSON but does not match Postman collection or OpenAPI specification format",
    )


def _check_postman(data: object, file_name: str) -> FileTypeResult | None:
    if not is_postman_collection(data):
        return None
    return FileTypeResult(
        type="postman",
        confidence=DETECTED_CONFIDENCE,
        details=f'Postman collection detected - contains info.name: "{data["info"]["name"]}"',
    )


def _check_openapi(data: object, file_name: str) -> FileTypeResult | None:
    if not is_openapi_spec(data):
        return None
    version = data.get("openapi") or data.get("swagger")
    return FileTypeResult(
        type="openapi",
        confidence=DETECTED_CONFIDENCE,
        details=f"OpenAPI specification detected - version: {version}",
    )


def _check_environment(data: object, file_name: str) -> FileTypeResult | None:
    if not looks_like_environment(data, file_name):
        return None
    return FileTypeResult(
        type="environment",
        confidence=DETECTED_CONFIDENCE,
        details=f'Postman environment detected - name: "{data["name"]}"',
    )


def _check_filename(data: object, file_name: str) -> FileTypeResult | None:
    file_type = detect_from_filename(file_name)
    if file_type == "unknown":
        return None
    return FileTypeResult(
        type=file_type,
        confidence=FILENAME_CONFIDENCE,
        details=(
            "Detected from filename pattern. "
            f"Please verify content is valid {file_type} format."
        ),
    )


# Order is precedence
CHECKS: tuple[Check, ...] = (_check_postman, _check_openapi, _check_environment, _check_filename)


def is_postman_collection(data: object) -> bool:
    if not isinstance(data, dict):
        return False
    info = data.get("info")
    if not isinstance(info, dict):
        return False
    if not info.get("name") or not isinstance(info["name"], str):
        return False

    schema = info.get("schema")
    has_postman_schema = isinstance(schema, str) and "postman" in schema
    has_items = isinstance(data.get("item"), list)
    has_postman_version = bool(info.get("_postman_id") or info.get("version") or has_postman_schema)

    return has_postman_schema or (has_items and has_postman_version)


def is_openapi_spec(data: object) -> bool:
    if not isinstance(data, dict):
        return False
    openapi = data.get("openapi")
    if isinstance(openapi, str) and openapi.startswith("3."):
        return True
    swagger = data.get("swagger")
    if isinstance(swagger, str) and swagger.startswith("2."):
        return True

    info, paths = data.get("info"), data.get("paths")
    if isinstance(info, dict) and isinstance(paths, dict) and paths:
        first_path = next(iter(paths.values()))
        if isinstance(first_path, dict):
            return any(method in first_path for method in OPENAPI_PATH_METHODS)
    return False


def detect_from_filename(file_name: str) -> FileType:
    lower_name = file_name.lower()
    for file_type, patterns in FILENAME_PATTERNS:
        if any(pattern in lower_name for pattern in patterns):
            return file_type
    if is_yaml_filename(lower_name):
        # Most YAML API files are OpenAPI specs
        return "openapi"
    return "unknown"


def is_likely_yaml(content: str, file_name: str) -> bool:
    if is_yaml_filename(file_name):
        return True
    matches = sum(1 for indicator in YAML_INDICATORS if indicator.search(content))
    stripped = content.strip()
    has_json_start = stripped.startswith("{") or stripped.startswith("[")
    return matches >= 2 and not has_json_start


def validate_file_type_support(file_type: FileType, file_name: str) -> SupportResult:
    """Decide whether a classified file can actually be imported."""
    if file_type == "postman":
        return SupportResult(supported=True, message="Postman collections are fully supported")
    if file_type == "openapi":
        if is_yaml_filename(file_name):
            return SupportResult(
                supported=False,
                message=(
                    "YAML OpenAPI specifications will be supported in a future update. "
                    "Please convert to JSON format."
                ),
            )
        return SupportResult(supported=True, message="JSON OpenAPI specifications are fully supported")
    if file_type == "environment":
        return SupportResult(supported=True, message="Postman environment files are fully supported")
    return SupportResult(
        supported=False,
        message=(
            "File format not recognized. Please ensure you are uploading a valid Postman "
            "collection, OpenAPI specification, or Postman environment (.json)"
        ),
    )
