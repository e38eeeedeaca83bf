"""Import pipeline: classify, check support, parse, detect auth.

The result is handed back to the caller, who picks an AuthConfig and
then prepares replay sessions from the parsed requests.
"""

from pydantic import BaseModel

from api_doc_import.errors import ParseError, UnsupportedFormatError
from api_doc_import.log import get_logger
from api_doc_import.parser.base import (
    AuthDetection,
    CanonicalRequest,
    EnvironmentVariable,
    FileType,
    FileTypeResult,
)
from api_doc_import.parser.detect import detect_file_type, is_yaml_filename, validate_file_type_support
from api_doc_import.parser.environment import parse_environment
from api_doc_import.parser.postman import detect_postman_auth, parse_postman
from api_doc_import.parser.swagger import detect_openapi_auth, parse_openapi

logger = get_logger(__name__)


class ImportResult(BaseModel):
    """Summary of one imported file."""

    file_type: FileType
    detection: FileTypeResult
    message: str
    # Collections (Postman / OpenAPI)
    collection_name: str | None = None
    description: str | None = None
    version: str | None = None
    base_url: str | None = None
    requests: list[CanonicalRequest] = []
    authentication: AuthDetection | None = None
    # Environments
    environment_name: str | None = None
    variables: list[EnvironmentVariable] = []

    @property
    def session_count(self) -> int:
        return len(self.requests)


def process_import_file(content: str, file_name: str) -> ImportResult:
    """Run one uploaded file through the import pipeline.

    Raises:
        UnsupportedFormatError: The file is unrecognised or a YAML OpenAPI spec.
        ParseError: The file was recognised but is structurally invalid.
    """
    detection = detect_file_type(content, file_name)
    logger.info("Detected %s as %s (%.2f): %s", file_name, detection.type, detection.confidence, detection.details)

    support = validate_file_type_support(detection.type, file_name)
    if not support.supported:
        raise UnsupportedFormatError(f"Cannot process {file_name}: {support.message}", detection)

    if detection.type == "postman":
        collection = parse_postman(content)
        return ImportResult(
            file_type="postman",
            detection=detection,
            collection_name=collection.name,
            description=collection.description,
            requests=collection.requests,
            authentication=detect_postman_auth(collection),
            message=(
                f'Successfully parsed Postman collection "{collection.name}" '
                f"with {len(collection.requests)} requests"
            ),
        )

    if detection.type == "openapi":
        spec = parse_openapi(content, is_yaml=is_yaml_filename(file_name))
        return ImportResult(
            file_type="openapi",
            detection=detection,
            collection_name=spec.name,
            description=spec.description,
            version=spec.version,
            base_url=spec.base_url,
            requests=spec.requests,
            authentication=detect_openapi_auth(spec),
            message=(
                f'Successfully parsed OpenAPI specification "{spec.name}" '
                f"with {len(spec.requests)} requests"
            ),
        )

    if detection.type == "environment":
        environment = parse_environment(content)
        return ImportResult(
            file_type="environment",
            detection=detection,
            environment_name=environment.name,
            description=environment.description,
            variables=environment.variables,
            message=(
                f'Successfully parsed Postman environment "{environment.name}" '
                f"with {len(environment.variables)} variables"
            ),
        )

    raise ParseError(f"Unsupported file type: {detection.type}")
