"""Import API documentation (Postman, OpenAPI, environments) into replayable requests."""

__version__ = "0.1.0"
