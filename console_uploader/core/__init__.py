"""
Core module containing domain models, errors, and service interfaces.

This module defines the core abstractions of the console uploader,
independent of the HTTP library and other infrastructure concerns.
"""

from .interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable
from .interfaces.transport import IRestApiClient, MultipartPart
from .interfaces.upload import IChunkedUploadService, UploadSettings, CancellationToken
from .domain.uploads import UploadLifecycleStatus, UploadSession
from .exceptions import ApiCallError, UploadError, UploadPhase

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IRestApiClient",
    "MultipartPart",
    "IChunkedUploadService",
    "UploadSettings",
    "CancellationToken",
    "UploadLifecycleStatus",
    "UploadSession",
    "ApiCallError",
    "UploadError",
    "UploadPhase",
]
