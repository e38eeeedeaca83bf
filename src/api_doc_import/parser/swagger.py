"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 JSON documents into CanonicalRequest
models, resolving $ref schemas to build example request bodies. YAML
input is rejected outright.
"""

import json
import re
import time
from typing import Any

from pydantic import ValidationError

from api_doc_import.errors import ParseError
from api_doc_import.log import get_logger
from .base import AuthDetection, CanonicalRequest, OpenApiSpec, Parameter, RequestBody, SecurityScheme

logger = get_logger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options", "trace")
BODY_METHODS = ("POST", "PUT", "PATCH")
BODY_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded", "multipart/form-data")
AUTH_HEADER_MARKERS = ("authorization", "x-api-key", "x-auth-token")

YAML_NOT_SUPPORTED = (
    "YAML format is not currently supported. "
    "Please convert your OpenAPI specification to JSON format and try again."
)

STRING_FORMAT_EXAMPLES = {
    "email": "user@example.com",
    "date": "2024-01-01",
    "date-time": "2024-01-01T00:00:00Z",
    "uuid": "550e8400-e29b-41d4-a716-446655440000",
}


def parse_openapi(content: str, is_yaml: bool = False) -> OpenApiSpec:
    """Parse an OpenAPI/Swagger JSON document into an OpenApiSpec."""
    if is_yaml:
        raise ParseError(f"Failed to parse OpenAPI specification: {YAML_NOT_SUPPORTED}")

    try:
        doc = json.loads(content)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseError(f"Failed to parse OpenAPI specification: {e}") from e

    if not isinstance(doc, dict) or not (doc.get("openapi") or doc.get("swagger")):
        raise ParseError(
            "Failed to parse OpenAPI specification: missing openapi/swagger version"
        )

    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}
    base_url = _base_url(doc)
    components = doc.get("components") if isinstance(doc.get("components"), dict) else {}
    paths = doc.get("paths") if isinstance(doc.get("paths"), dict) else {}
    schemes = components.get("securitySchemes") or doc.get("securityDefinitions")
    description = info.get("description")

    try:
        return OpenApiSpec(
            name=str(info.get("title") or "Untitled API"),
            description=description if isinstance(description, str) else None,
            version=str(info.get("version") or "1.0.0"),
            base_url=base_url,
            requests=_extract_requests(paths, base_url, doc),
            security_schemes=schemes if isinstance(schemes, dict) else None,
        )
    except ValidationError as e:
        raise ParseError(f"Failed to parse OpenAPI specification: {e}") from e


def _base_url(doc: dict) -> str:
    servers = doc.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        return servers[0].get("url") or ""
    if doc.get("host"):
        # Swagger 2.0
        schemes = doc.get("schemes") or []
        protocol = "https" if "https" in schemes else "http"
        return f"{protocol}://{doc['host']}{doc.get('basePath') or ''}"
    return ""


def _extract_requests(paths: dict, base_url: str, doc: dict) -> list[CanonicalRequest]:
    requests = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            request = _parse_operation(method, path, operation, base_url, doc)
            if request is not None:
                requests.append(request)
    return requests


def _parse_operation(
    method: str, path: str, operation: dict, base_url: str, doc: dict
) -> CanonicalRequest | None:
    try:
        upper_method = method.upper()
        full_url = f"{base_url.rstrip('/')}{path}" if base_url else path
        operation_id = operation.get("operationId")
        name = operation.get("summary") or operation_id or f"{upper_method} {path}"
        request_id = operation_id or (
            f"{upper_method}_{re.sub(r'[^a-zA-Z0-9]', '_', path)}_{int(time.time() * 1000)}"
        )

        headers: dict[str, str] = {}
        parameters = _parse_parameters(operation.get("parameters"), headers, doc)
        body = None
        if upper_method in BODY_METHODS and operation.get("requestBody"):
            body = _parse_request_body(operation["requestBody"], headers, doc)
        _harvest_response_headers(operation.get("responses"), headers)

        return CanonicalRequest(
            id=request_id,
            name=name,
            method=upper_method,
            url=full_url,
            headers=headers,
            body=body,
            parameters=parameters,
        )
    except Exception as e:
        logger.warning("Skipping operation %s %s: %s", method.upper(), path, e)
        return None


def _parse_parameters(params, headers: dict[str, str], doc: dict) -> list[Parameter]:
    result = []
    if not isinstance(params, list):
        return result
    for p in params:
        if isinstance(p, dict) and "$ref" in p:
            p = resolve_ref(p["$ref"], doc)
        if not isinstance(p, dict) or not p.get("name"):
            continue

        example = p.get("example")
        result.append(
            Parameter(
                name=p["name"],
                location=p.get("in", "query"),
                required=p.get("required", False),
                param_schema=p.get("schema") or p.get("type") or "string",
                example=example,
            )
        )
        if p.get("in") == "header" and example:
            headers[p["name"]] = _to_header_value(example)
    return result


def _parse_request_body(body: dict, headers: dict[str, str], doc: dict) -> RequestBody | None:
    if "$ref" in body:
        body = resolve_ref(body["$ref"], doc) or {}
    content = body.get("content")
    if not isinstance(content, dict):
        return None

    for content_type in BODY_CONTENT_TYPES:
        media = content.get(content_type)
        if media is None:
            continue
        media = media if isinstance(media, dict) else {}
        schema = media.get("schema")
        example = _media_example(media)

        if example is None and content_type == "application/json" and schema:
            try:
                example = generate_example(schema, doc)
            except RecursionError:
                logger.warning("Could not generate example for %s body", content_type)

        headers["Content-Type"] = content_type
        raw = None
        if content_type == "application/json" and example is not None:
            raw = json.dumps(example, indent=2)
        return RequestBody(
            mode="raw" if raw is not None else content_type,
            raw=raw,
            content_type=content_type,
            body_schema=schema,
            example=example,
        )
    return None


def _media_example(media: dict) -> Any:
    if media.get("example"):
        return media["example"]
    examples = media.get("examples")
    if isinstance(examples, dict) and examples:
        # Named examples: {name: {summary, value}}
        first = next(iter(examples.values()))
        if isinstance(first, dict) and "value" in first:
            return first["value"]
        return examples
    return None


def _harvest_response_headers(responses, headers: dict[str, str]) -> None:
    """Copy auth-looking response header examples into the request headers."""
    if not isinstance(responses, dict):
        return
    success = responses.get("200") or responses.get("201") or responses.get("default")
    if not isinstance(success, dict) or not isinstance(success.get("headers"), dict):
        return
    for header_name, header_spec in success["headers"].items():
        if (
            isinstance(header_spec, dict)
            and header_spec.get("example")
            and "auth" in header_name.lower()
        ):
            headers[header_name] = _to_header_value(header_spec["example"])


def _to_header_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve_ref(ref: str, doc: dict, visited: frozenset[str] = frozenset()) -> Any:
    """Resolve a local "#/a/b/c" reference against the whole document.

    A reference already on the current resolution chain resolves to a
    placeholder object instead of being followed again.
    """
    if ref in visited:
        return {"type": "object", "description": f"Circular reference to {ref}"}
    if not ref.startswith("#/"):
        return None

    visited = visited | {ref}
    current: Any = doc
    for segment in ref[2:].split("/"):
        # JSON pointer escapes
        segment = segment.replace("~1", "/").replace("~0", "~")
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]

    if isinstance(current, dict) and "$ref" in current:
        return resolve_ref(current["$ref"], doc, visited)
    return current


def generate_example(schema: Any, doc: dict, visited: frozenset[str] = frozenset()) -> Any:
    """Build an example value for a JSON schema.

    visited holds the $refs on the current branch only, so the same
    schema may appear in sibling properties while self-references stop.
    """
    if not isinstance(schema, dict):
        return None

    if "$ref" in schema:
        ref = schema["$ref"]
        resolved = resolve_ref(ref, doc, visited)
        if not resolved:
            return None
        return generate_example(resolved, doc, visited | {ref})

    if "example" in schema:
        return schema["example"]

    schema_type = schema.get("type")
    enum = schema.get("enum")

    if schema_type == "string":
        if enum:
            return enum[0]
        if schema.get("format") in STRING_FORMAT_EXAMPLES:
            return STRING_FORMAT_EXAMPLES[schema["format"]]
        return "example" if schema.get("pattern") else "string"

    if schema_type in ("number", "integer"):
        if enum:
            return enum[0]
        return schema["minimum"] if "minimum" in schema else 0

    if schema_type == "boolean":
        return True

    if schema_type == "array":
        item = generate_example(schema.get("items"), doc, visited)
        return [item] if item is not None else []

    if schema_type == "object":
        return _object_example(schema, doc, visited)

    return None


def _object_example(schema: dict, doc: dict, visited: frozenset[str]) -> dict | None:
    properties = schema.get("properties") if isinstance(schema.get("properties"), dict) else {}
    obj = {}
    for prop_name, prop_schema in properties.items():
        value = generate_example(prop_schema, doc, visited)
        if value is not None:
            obj[prop_name] = value

    required = schema.get("required")
    if isinstance(required, list):
        for prop_name in required:
            if prop_name in obj or prop_name not in properties:
                continue
            value = generate_example(properties[prop_name], doc, visited)
            obj[prop_name] = value if value is not None else "required_value"

    return obj or None


def detect_openapi_auth(spec: OpenApiSpec) -> AuthDetection:
    """Detect declared security schemes and auth-like request headers."""
    schemes: list[SecurityScheme] = []

    for name, scheme in (spec.security_schemes or {}).items():
        if not isinstance(scheme, dict):
            continue
        scheme_type = scheme.get("type")
        if scheme_type == "http":
            description = f"HTTP {scheme.get('scheme')} authentication"
        elif scheme_type == "apiKey":
            description = f"API key in {scheme.get('in')}: {scheme.get('name')}"
        elif scheme_type == "oauth2":
            description = "OAuth 2.0 authentication"
        elif scheme_type == "openIdConnect":
            description = "OpenID Connect authentication"
        else:
            description = f"{scheme_type} authentication"
        schemes.append(SecurityScheme(name=name, type=str(scheme_type), description=description))

    for request in spec.requests:
        for header_name in request.headers:
            if not any(marker in header_name.lower() for marker in AUTH_HEADER_MARKERS):
                continue
            if not any(s.type == "header" for s in schemes):
                schemes.append(
                    SecurityScheme(
                        name="header-auth",
                        type="header",
                        description=f"Authentication via {header_name} header",
                    )
                )

    if schemes:
        return AuthDetection(
            has_auth=True,
            auth_type=schemes[0].type,
            description=f"Found {len(schemes)} authentication scheme(s)",
            schemes=schemes,
        )

    return AuthDetection(
        has_auth=False,
        auth_type="none",
        description="No authentication schemes detected",
    )
