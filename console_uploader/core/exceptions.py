"""
Error types raised by the uploader.

Transport failures are reported as ApiCallError by the REST client. Every
fatal condition of an upload is surfaced to callers as an UploadError
subclass that names the failing phase and, during the chunk loop, the chunk.
"""

from enum import Enum
from typing import Optional


class ApiCallError(Exception):
    """Raised by the REST client when a call to the server fails."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class UploadPhase(Enum):
    """Phase of the upload operation in which a failure happened."""
    VALIDATION = "validation"
    SERVER_INFO = "server_info"
    CREATION = "creation"
    UPLOAD = "upload"
    EXTRACTION = "extraction"


class UploadError(Exception):
    """Base failure for an upload operation."""

    phase = UploadPhase.UPLOAD

    def __init__(
        self,
        message: str,
        chunk_index: Optional[int] = None,
        total_chunks: Optional[int] = None,
        phase: Optional[UploadPhase] = None
    ):
        super().__init__(message)
        self.message = message
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        if phase is not None:
            self.phase = phase

    def __str__(self) -> str:
        text = self.message
        if self.chunk_index is not None:
            if self.total_chunks is not None:
                text = f"{text} [chunk {self.chunk_index} of {self.total_chunks}]"
            else:
                text = f"{text} [chunk {self.chunk_index}]"
        if self.__cause__ is not None:
            text = f"{text}: {self.__cause__}"
        return text


class UploadValidationError(UploadError):
    """Invalid input detected before any network activity."""
    phase = UploadPhase.VALIDATION


class SourceIntegrityError(UploadError):
    """The source ended before the declared size, or its size is unknown."""
    phase = UploadPhase.UPLOAD


class SessionCreationError(UploadError):
    """The server did not create a usable upload session."""
    phase = UploadPhase.CREATION


class ChunkUploadError(UploadError):
    """A chunk could not be transferred."""
    phase = UploadPhase.UPLOAD


class OffsetMismatchError(UploadError):
    """The server acknowledged a different offset than the client sent."""

    phase = UploadPhase.UPLOAD

    def __init__(
        self,
        expected_offset: int,
        actual_offset: Optional[int],
        chunk_index: Optional[int] = None,
        total_chunks: Optional[int] = None
    ):
        super().__init__(
            f"Server acknowledged offset {actual_offset} but {expected_offset} bytes were sent",
            chunk_index=chunk_index,
            total_chunks=total_chunks
        )
        self.expected_offset = expected_offset
        self.actual_offset = actual_offset


class ExtractionError(UploadError):
    """The server-side extraction could not be driven to completion."""
    phase = UploadPhase.EXTRACTION
