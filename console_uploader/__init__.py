"""
Console Uploader - chunked source archive upload to a console analysis server.

This package splits large source archives into bounded chunks, uploads them
in order over HTTP with offset verification, cleans up failed transfers, and
drives the server-side extraction to completion.
"""

__version__ = "0.1.0"

from .core.interfaces.upload import IChunkedUploadService, UploadSettings, CancellationToken
from .core.interfaces.transport import IRestApiClient
from .core.domain.uploads import UploadLifecycleStatus, UploadSession
from .core.exceptions import ApiCallError, UploadError, UploadPhase
from .application.startup import UploaderStartup

__all__ = [
    "IChunkedUploadService",
    "UploadSettings",
    "CancellationToken",
    "IRestApiClient",
    "UploadLifecycleStatus",
    "UploadSession",
    "ApiCallError",
    "UploadError",
    "UploadPhase",
    "UploaderStartup",
]
