"""Exception hierarchy for api-doc-import.

Classification, authentication and spec building never raise; only
whole-file parsing and unsupported formats surface as exceptions.
"""

from api_doc_import.parser.base import FileTypeResult


class DocImportError(Exception):
    """Base exception for all import errors."""


class ParseError(DocImportError):
    """A document failed structural parsing.

    Raised when JSON is malformed or a required top-level field is missing.
    The whole file is rejected; no partial collection is returned.
    """


class UnsupportedFormatError(DocImportError):
    """The file was classified but cannot be imported (YAML, unknown format)."""

    def __init__(self, message: str, detection: FileTypeResult):
        super().__init__(message)
        self.detection = detection
