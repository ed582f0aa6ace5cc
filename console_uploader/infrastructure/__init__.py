"""
Infrastructure layer containing external dependencies and I/O operations.

This layer handles configuration, logging, the REST client and the upload
services that talk to the console server.
"""

from .clients.rest import ConsoleRestClient, RestClientConfig
from .config import ApplicationConfig, ConfigLoader
from .logging import setup_logging
from .services.upload import ChunkedUploadService, ExtractionPoller

__all__ = [
    "ConsoleRestClient",
    "RestClientConfig",
    "ApplicationConfig",
    "ConfigLoader",
    "setup_logging",
    "ChunkedUploadService",
    "ExtractionPoller",
]
