"""
Core interfaces defining the contracts between the uploader layers.

These interfaces provide the foundation for dependency inversion and let the
upload services run against any transport implementation.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable
from .transport import IRestApiClient, MultipartPart
from .upload import (
    IChunkedUploadService, ChunkSizeConfig, UploadSettings, UploadRequest,
    TransferProgress, CancellationToken, MAX_CHUNK_SIZE, DEFAULT_CHUNK_SIZE
)

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IRestApiClient",
    "MultipartPart",
    "IChunkedUploadService",
    "ChunkSizeConfig",
    "UploadSettings",
    "UploadRequest",
    "TransferProgress",
    "CancellationToken",
    "MAX_CHUNK_SIZE",
    "DEFAULT_CHUNK_SIZE",
]
