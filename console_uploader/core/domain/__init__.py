"""
Domain models shared by the uploader layers.
"""

from .uploads import (
    ApiInfoDto,
    ChunkedUploadDto,
    ChunkedUploadMetadata,
    CreateUploadRequest,
    UploadLifecycleStatus,
    UploadSession,
)

__all__ = [
    "ApiInfoDto",
    "ChunkedUploadDto",
    "ChunkedUploadMetadata",
    "CreateUploadRequest",
    "UploadLifecycleStatus",
    "UploadSession",
]
