"""Authentication configuration and its application to parsed requests.

AuthConfig is a tagged union keyed on "type"; each variant carries only
the fields it needs plus an optional hostname override.
"""

import base64
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from api_doc_import.parser.base import CanonicalRequest

API_KEY_HEADERS = ("X-API-Key", "x-api-key", "X-Auth-Token", "x-auth-token")
AUTHORIZATION_HEADERS = ("Authorization", "authorization")


class _AuthBase(BaseModel):
    hostname: str | None = None


class NoAuth(_AuthBase):
    type: Literal["none"] = "none"


class ApiKeyAuth(_AuthBase):
    type: Literal["apikey"] = "apikey"
    key: str
    value: str


class BearerAuth(_AuthBase):
    type: Literal["bearer"] = "bearer"
    token: str


class BasicAuth(_AuthBase):
    type: Literal["basic"] = "basic"
    username: str
    password: str


class CustomHeaderAuth(_AuthBase):
    type: Literal["custom"] = "custom"
    header: str
    value: str


class DetectedAuth(_AuthBase):
    """A scheme found in the document; carries no credentials of its own."""

    type: Literal["detected"] = "detected"
    scheme: str


AuthConfig = Annotated[
    Union[NoAuth, ApiKeyAuth, BearerAuth, BasicAuth, CustomHeaderAuth, DetectedAuth],
    Field(discriminator="type"),
]

_auth_adapter = TypeAdapter(AuthConfig)


def parse_auth_config(data: dict) -> AuthConfig:
    """Validate a plain dict (e.g. {"type": "bearer", "token": "..."}) into an AuthConfig."""
    return _auth_adapter.validate_python(data)


def apply_authentication(request: CanonicalRequest, auth: AuthConfig) -> CanonicalRequest:
    """Return a copy of request with auth headers applied.

    Headers that would compete with the new credential are removed. The
    input request and its header map are left untouched. Empty credential
    fields leave the headers as they are.
    """
    headers = dict(request.headers)

    if isinstance(auth, ApiKeyAuth):
        if auth.key and auth.value:
            _drop(headers, AUTHORIZATION_HEADERS)
            headers[auth.key] = auth.value
    elif isinstance(auth, BearerAuth):
        if auth.token:
            _drop(headers, API_KEY_HEADERS)
            headers["Authorization"] = f"Bearer {auth.token}"
    elif isinstance(auth, BasicAuth):
        if auth.username and auth.password:
            _drop(headers, API_KEY_HEADERS)
            credentials = base64.b64encode(f"{auth.username}:{auth.password}".encode()).decode("ascii")
            headers["Authorization"] = f"Basic {credentials}"
    elif isinstance(auth, CustomHeaderAuth):
        if auth.header and auth.value:
            if auth.header.lower() == "authorization":
                _drop(headers, ("X-API-Key", "x-api-key"))
            headers[auth.header] = auth.value
    # NoAuth and DetectedAuth pass through

    return request.model_copy(update={"headers": headers})


def _drop(headers: dict[str, str], names: tuple[str, ...]) -> None:
    for name in names:
        headers.pop(name, None)
