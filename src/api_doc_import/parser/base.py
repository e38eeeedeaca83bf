"""Unified data models for imported API documentation.

All parsers (Postman, OpenAPI, environment) convert their input into
these standard models for downstream processing.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

FileType = Literal["postman", "openapi", "environment", "unknown"]


class FormField(BaseModel):
    """A single form-data pair from a request body."""

    key: str
    value: str = ""
    type: str = "text"


class RequestBody(BaseModel):
    """Request payload: raw text, form pairs, or an OpenAPI media entry."""

    mode: str = "raw"  # raw / formdata / urlencoded / file ...
    raw: str | None = None
    formdata: list[FormField] | None = None
    content_type: str | None = None
    body_schema: Any = None
    example: Any = None


class Parameter(BaseModel):
    """A declared OpenAPI parameter (query, path, header, or cookie)."""

    name: str
    location: str  # query / path / header / cookie
    required: bool = False
    param_schema: Any = "string"
    example: Any = None


class CanonicalRequest(BaseModel):
    """One HTTP operation extracted from a source document.

    The url is kept exactly as authored (templated, relative or absolute);
    it is only resolved when a RequestSpec is built.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    method: str
    url: str
    headers: dict[str, str] = {}
    body: RequestBody | None = None
    auth: dict | None = None  # Postman-native auth block
    parameters: list[Parameter] = []


class PostmanCollection(BaseModel):
    name: str
    description: str | None = None
    requests: list[CanonicalRequest]
    auth: dict | None = None


class OpenApiSpec(BaseModel):
    name: str
    description: str | None = None
    version: str
    base_url: str
    requests: list[CanonicalRequest]
    security_schemes: dict[str, Any] | None = None


class EnvironmentVariable(BaseModel):
    """A Postman environment variable. is_secret is advisory only."""

    key: str
    value: str
    enabled: bool = True
    type: str = "default"
    is_secret: bool = False


class PostmanEnvironment(BaseModel):
    name: str
    description: str | None = None
    variables: list[EnvironmentVariable]


class FileTypeResult(BaseModel):
    """Classifier verdict for one uploaded file."""

    type: FileType
    confidence: float
    details: str


class SupportResult(BaseModel):
    supported: bool
    message: str


class SecurityScheme(BaseModel):
    name: str
    type: str
    description: str


class AuthDetection(BaseModel):
    """Authentication metadata found in a document, before any credentials are given."""

    has_auth: bool
    auth_type: str
    description: str
    schemes: list[SecurityScheme] = []
