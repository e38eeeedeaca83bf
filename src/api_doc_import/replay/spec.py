"""Request spec building and session naming.

A RequestSpec is the transport-ready decomposition of a CanonicalRequest
(host, port, path, query, headers, body, TLS) after the url has been
resolved against an optional hostname override.
"""

import re
from urllib.parse import quote

from pydantic import BaseModel

from api_doc_import.log import get_logger
from api_doc_import.parser.base import CanonicalRequest

logger = get_logger(__name__)

PLACEHOLDER_HOST = "example.com"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Matched as a prefix; anything the groups cannot consume is ignored
URL_PATTERN = re.compile(r"^(https?)://([^:/\s]+)(?::(\d+))?(/[^\s?]*)?(\?\S*)?")
TEMPLATE_PATTERN = re.compile(r"\{\{[^}]+\}\}")
SCHEME_HOST_PATTERN = re.compile(r"^https?://[^/]+")

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


class RequestSpec(BaseModel):
    method: str
    host: str
    port: int
    path: str
    query: str
    headers: dict[str, str]
    body: str
    tls: bool
    url: str


def _is_templated(url: str) -> bool:
    return "{{" in url and "}}" in url


def resolve_url(url: str, hostname: str | None = None) -> str:
    """Turn a raw request url into an absolute url, applying the hostname override."""
    hostname = hostname.strip() if hostname else ""

    if hostname:
        if _is_templated(url):
            url = TEMPLATE_PATTERN.sub(hostname, url)
        elif url.startswith("/"):
            url = f"https://{hostname}{url}"
        else:
            match = URL_PATTERN.match(url if url.startswith("http") else f"https://{url}")
            if match:
                protocol, _, _, path, query = match.groups()
                url = f"{protocol}://{hostname}{path or '/'}{query or ''}"
    elif _is_templated(url):
        if url.startswith("/"):
            url = f"https://{PLACEHOLDER_HOST}{url}"
        else:
            url = TEMPLATE_PATTERN.sub(PLACEHOLDER_HOST, url)
    elif url.startswith("/"):
        url = f"https://{PLACEHOLDER_HOST}{url}"

    if not url.startswith("http"):
        url = f"https://{url}"
    return url


def build_request_spec(request: CanonicalRequest, hostname: str | None = None) -> RequestSpec | None:
    """Resolve a request into a RequestSpec, or None when its url cannot be parsed."""
    target_url = resolve_url(request.url, hostname)
    match = URL_PATTERN.match(target_url)
    if not match:
        logger.warning("Dropping %s %s: unresolvable url %r", request.method, request.name, target_url)
        return None

    protocol, host, port, path, query = match.groups()
    headers = dict(request.headers)

    body = ""
    if request.body:
        if request.body.raw:
            body = request.body.raw
        elif request.body.formdata:
            body = "&".join(
                f"{quote(f.key, safe=_URI_COMPONENT_SAFE)}={quote(f.value or '', safe=_URI_COMPONENT_SAFE)}"
                for f in request.body.formdata
            )
            headers["Content-Type"] = FORM_CONTENT_TYPE

    return RequestSpec(
        method=request.method,
        host=host,
        port=int(port) if port else (443 if protocol == "https" else 80),
        path=path or "/",
        query=query or "",
        headers=headers,
        body=body,
        tls=protocol == "https",
        url=target_url,
    )


def generate_session_name(request: CanonicalRequest) -> str:
    """Derive "METHOD /path" from the raw request url. Never raises."""
    method = request.method.upper()
    try:
        return f"{method} {_session_path(request.url)}"
    except Exception:
        logger.debug("Falling back to raw url for session name of %r", request.url)
        return f"{method} {request.url}"


def _session_path(url: str) -> str:
    if "://" in url:
        after_protocol = url.split("://", 1)[1]
        slash = after_protocol.find("/")
        path = after_protocol[slash:] if slash != -1 else "/"
    elif "}}" in url:
        path = url[url.rfind("}}") + 2:]
        if not path.startswith("/"):
            path = "/" + path
    elif url.startswith("/"):
        path = url
    else:
        path = "/" + url

    path = _strip_query_and_fragment(path)
    path = re.sub(r"/+", "/", path)
    if not path.startswith("/"):
        path = "/" + path

    if path == "/" and url != "/":
        path = _strip_query_and_fragment(SCHEME_HOST_PATTERN.sub("", url)) or "/"
    return path


def _strip_query_and_fragment(path: str) -> str:
    return path.split("?", 1)[0].split("#", 1)[0]
