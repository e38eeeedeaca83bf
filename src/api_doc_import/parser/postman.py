"""Postman Collection v2.x parser.

Parses Postman exported JSON into CanonicalRequest models. Folders are
flattened; a malformed request item is skipped instead of failing the
whole collection.
"""

import json
import uuid

from pydantic import ValidationError

from api_doc_import.errors import ParseError
from api_doc_import.log import get_logger
from .base import AuthDetection, CanonicalRequest, FormField, PostmanCollection, RequestBody

logger = get_logger(__name__)

AUTH_HEADER_MARKERS = ("authorization", "x-api-key", "x-auth-token", "bearer")


def parse_postman(content: str) -> PostmanCollection:
    """Parse a Postman collection JSON string into a PostmanCollection."""
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ParseError(f"Failed to parse Postman collection: {e}") from e

    info = data.get("info") if isinstance(data, dict) else None
    if not isinstance(info, dict) or not info.get("name"):
        raise ParseError("Failed to parse Postman collection: missing info.name")

    requests: list[CanonicalRequest] = []
    items = data.get("item") or []
    if isinstance(items, list):
        _parse_items(items, requests)

    return PostmanCollection(
        name=str(info["name"]),
        description=_description(info.get("description")),
        requests=requests,
        auth=data.get("auth") if isinstance(data.get("auth"), dict) else None,
    )


def _parse_items(items: list, requests: list[CanonicalRequest]) -> None:
    """Recursively parse items (supports folders)."""
    for item in items:
        if not isinstance(item, dict):
            continue
        if item.get("request"):
            request = _parse_request(item)
            if request is not None:
                requests.append(request)
        elif isinstance(item.get("item"), list):
            _parse_items(item["item"], requests)


def _parse_request(item: dict) -> CanonicalRequest | None:
    try:
        req = item["request"]
        # A bare string request is shorthand for a GET to that url
        if isinstance(req, str):
            req = {"url": req}

        url = _parse_url(req.get("url"))
        method = (req.get("method") or "GET").upper()

        return CanonicalRequest(
            id=item.get("id") or f"{method}_{uuid.uuid4().hex}",
            name=item.get("name") or f"{method} {url}",
            method=method,
            url=url,
            headers=_parse_headers(req.get("header")),
            body=_parse_body(req.get("body")),
            auth=req.get("auth") or None,
        )
    except (AttributeError, KeyError, TypeError, ValidationError) as e:
        logger.debug("Skipping malformed Postman item %r: %s", item.get("name"), e)
        return None


def _parse_url(url) -> str:
    """Accept a plain string, {raw}, or structured {protocol, host[], port, path[]}."""
    if isinstance(url, str):
        return url
    if not url:
        return ""
    if url.get("raw"):
        return url["raw"]
    if url.get("protocol") and url.get("host"):
        result = f"{url['protocol']}://{_join(url['host'], '.')}"
        if url.get("port"):
            result += f":{url['port']}"
        if url.get("path"):
            result += "/" + _join(url["path"], "/").lstrip("/")
        return result
    return ""


def _join(part, separator: str) -> str:
    # host and path may be a single string instead of a list of segments
    if isinstance(part, str):
        return part
    return separator.join(str(segment) for segment in part)


def _parse_headers(headers) -> dict[str, str]:
    result: dict[str, str] = {}
    if not isinstance(headers, list):
        return result
    for h in headers:
        if not isinstance(h, dict):
            continue
        if h.get("key") and h.get("value") and not h.get("disabled"):
            result[h["key"]] = str(h["value"])
    return result


def _parse_body(body: dict | None) -> RequestBody | None:
    if not body:
        return None
    result = RequestBody(mode=body.get("mode") or "raw")
    if body.get("raw"):
        result.raw = body["raw"]
    if isinstance(body.get("formdata"), list):
        result.formdata = [
            FormField(key=f["key"], value=str(f.get("value") or ""), type=f.get("type") or "text")
            for f in body["formdata"]
            if isinstance(f, dict) and f.get("key") and not f.get("disabled")
        ]
    return result


def _description(value) -> str | None:
    # Collection descriptions may be {content, type} objects
    if isinstance(value, dict):
        value = value.get("content")
    return value if isinstance(value, str) and value else None


def detect_postman_auth(collection: PostmanCollection) -> AuthDetection:
    """Detect the authentication a collection expects, without credentials."""
    if collection.auth:
        auth_type = collection.auth.get("type") or "unknown"
        return AuthDetection(
            has_auth=True,
            auth_type=auth_type,
            description=f"Collection uses {auth_type} authentication",
        )

    found_auth_header = False
    auth_type = "header"

    for request in collection.requests:
        for key, value in request.headers.items():
            key_lower = key.lower()
            if any(marker in key_lower for marker in AUTH_HEADER_MARKERS):
                found_auth_header = True
                if "bearer" in key_lower or value.lower().startswith("bearer"):
                    auth_type = "bearer"
                elif "api" in key_lower:
                    auth_type = "apikey"

        if request.auth:
            request_auth_type = request.auth.get("type") or "unknown"
            return AuthDetection(
                has_auth=True,
                auth_type=request_auth_type,
                description=f"Requests use {request_auth_type} authentication",
            )

    if found_auth_header:
        return AuthDetection(
            has_auth=True,
            auth_type=auth_type,
            description=f"Found {auth_type} authentication in request headers",
        )

    return AuthDetection(has_auth=False, auth_type="none", description="No authentication detected")
