"""
Upload service interfaces for the console uploader.

This module defines the contract of the chunked upload service together with
the immutable settings and transient progress values it works with.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

# Largest chunk accepted by the console server
MAX_CHUNK_SIZE = 50 * 1024 * 1024
DEFAULT_CHUNK_SIZE = 10 * 1024 * 1024
DEFAULT_EXTRACT_POLL_INTERVAL = 10.0
DEFAULT_EXTRACT_NOTIFY_THRESHOLD = 5 * 60.0


@dataclass(frozen=True)
class ChunkSizeConfig:
    """Effective chunk size, bounded by [1, MAX_CHUNK_SIZE]."""
    size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not (1 <= self.size <= MAX_CHUNK_SIZE):
            raise ValueError(
                f"Chunk size must be between 1 and {MAX_CHUNK_SIZE}, got {self.size}")

    @classmethod
    def resolve(cls, requested: Optional[int] = None) -> "ChunkSizeConfig":
        """
        Resolve the chunk size from an optional requested value.

        Args:
            requested: Requested chunk size in bytes, or None for the default

        Returns:
            Chunk size config clamped to MAX_CHUNK_SIZE
        """
        if requested is None:
            return cls(DEFAULT_CHUNK_SIZE)
        if requested < 1:
            raise ValueError(f"Chunk size must be positive, got {requested}")
        return cls(min(requested, MAX_CHUNK_SIZE))

    def total_chunks(self, total_size: int) -> int:
        """Number of chunks needed for ``total_size`` bytes."""
        return (total_size + self.size - 1) // self.size


@dataclass(frozen=True)
class UploadSettings:
    """Settings fixed for the lifetime of an upload service."""
    chunk_size: ChunkSizeConfig = field(default_factory=ChunkSizeConfig)
    extract_poll_interval: float = DEFAULT_EXTRACT_POLL_INTERVAL
    extract_notify_threshold: float = DEFAULT_EXTRACT_NOTIFY_THRESHOLD

    def __post_init__(self) -> None:
        if self.extract_poll_interval < 0:
            raise ValueError(
                f"Extraction poll interval must not be negative, got {self.extract_poll_interval}")
        if self.extract_notify_threshold < 0:
            raise ValueError(
                f"Extraction notify threshold must not be negative, got {self.extract_notify_threshold}")


@dataclass(frozen=True)
class UploadRequest:
    """Archive to upload, known before the session is created."""
    app_guid: str
    file_name: str
    file_size: int

    def __post_init__(self) -> None:
        if self.file_size < 0:
            raise ValueError(f"File size must not be negative, got {self.file_size}")


@dataclass
class TransferProgress:
    """Progress of one chunk loop. Not persisted."""
    total_size: int
    chunk_size: int
    current_offset: int = 0
    current_chunk_index: int = 1
    total_chunks: int = 0

    def __post_init__(self) -> None:
        if not self.total_chunks:
            self.total_chunks = (self.total_size + self.chunk_size - 1) // self.chunk_size

    def advance(self, nb_bytes: int) -> None:
        self.current_offset += nb_bytes
        self.current_chunk_index += 1

    @property
    def is_done(self) -> bool:
        return self.current_offset >= self.total_size

    @property
    def percentage(self) -> float:
        if self.total_size == 0:
            return 100.0
        return (self.current_offset / self.total_size) * 100.0


class CancellationToken:
    """
    Interruption signal observed by the extraction poller.

    Cancelling the token ends the current pause between two polls early.
    The poller records the interruption and resets the token.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """
        Wait up to ``timeout`` seconds for a cancellation.

        Returns:
            True if the token was cancelled before the timeout elapsed
        """
        if self._event.is_set():
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False


class IChunkedUploadService(ABC):
    """
    Interface for the chunked upload service.

    Uploads a source archive to the console server in sequential chunks, then
    drives the server-side extraction when requested.
    """

    @abstractmethod
    async def upload_file(
        self,
        app_guid: str,
        archive_path: Union[str, Path],
        extract: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> bool:
        """
        Upload an archive file and extract it if the server requires it.

        Args:
            app_guid: Target application identifier
            archive_path: Path to the archive
            extract: Force extraction on or off; None asks the server
            cancel_token: Interrupts pauses between extraction polls

        Returns:
            True if the archive was uploaded (and extracted, when required)

        Raises:
            UploadError: If any phase of the upload fails
        """
        pass

    @abstractmethod
    async def upload_stream(
        self,
        app_guid: str,
        file_name: str,
        file_size: int,
        content: Any
    ) -> bool:
        """Upload ``file_size`` bytes read from ``content``."""
        pass

    @abstractmethod
    async def upload_and_extract_stream(
        self,
        app_guid: str,
        file_name: str,
        file_size: int,
        content: Any,
        extract: bool,
        cancel_token: Optional[CancellationToken] = None
    ) -> bool:
        """Upload from ``content`` and run extraction only if ``extract`` is set."""
        pass
