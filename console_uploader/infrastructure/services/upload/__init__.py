"""
Upload services for the console uploader.

This module provides the chunk reader, the chunked upload service and
the extraction poller.
"""

from .chunks import ChunkReader
from .poller import ExtractionPoller, ExtractionResult, PollTicker
from .service import ChunkedUploadService

__all__ = [
    "ChunkReader",
    "ChunkedUploadService",
    "ExtractionPoller",
    "ExtractionResult",
    "PollTicker",
]
