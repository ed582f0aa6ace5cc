"""
Chunk reading for sequential uploads.

ChunkReader pulls byte chunks from a source stream of a known total size.
The source may expose a regular ``read(n)`` (files, BytesIO, raw streams) or
an awaitable one (aiofiles handles).
"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterator

from ....core.exceptions import SourceIntegrityError
from ....core.interfaces.upload import ChunkSizeConfig

logger = logging.getLogger(__name__)


class ChunkReader:
    """
    Reads a source stream in chunks of at most ``chunk_size`` bytes.

    Chunks are produced in source order and their lengths sum to exactly
    ``total_size``. Each chunk is filled completely from as many reads as it
    takes, so only the last one is shorter than ``chunk_size``. A read
    returning None (no data available yet on a non-blocking stream) is
    retried. A read returning no bytes before ``total_size`` is reached
    means the source changed while being read; the bytes gathered so far
    form a last short chunk and the following read raises
    SourceIntegrityError.
    """

    def __init__(self, source: Any, total_size: int, chunk_size: ChunkSizeConfig):
        if total_size < 0:
            raise ValueError(f"Total size must not be negative, got {total_size}")
        self._source = source
        self._total_size = total_size
        self._chunk_size = chunk_size.size
        self._bytes_read = 0

    @property
    def total_size(self) -> int:
        return self._total_size

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def remaining(self) -> int:
        return self._total_size - self._bytes_read

    async def read_chunk(self) -> bytes:
        """
        Read the next chunk.

        Returns:
            Between 1 and ``chunk_size`` bytes, never more than what remains

        Raises:
            SourceIntegrityError: If the source is exhausted early
        """
        wanted = min(self._chunk_size, self.remaining)
        if wanted <= 0:
            raise SourceIntegrityError(
                f"All {self._total_size} bytes were already read")

        buffer = bytearray()
        while len(buffer) < wanted:
            data = self._source.read(wanted - len(buffer))
            if inspect.isawaitable(data):
                data = await data

            if data is None:
                logger.debug(
                    "No content could be read from the source, but end of source "
                    "was not reached. Trying again.")
                await asyncio.sleep(0)
                continue

            if not data:
                break
            buffer.extend(data)

        if not buffer:
            raise SourceIntegrityError(
                f"No more content to read after {self._bytes_read} of "
                f"{self._total_size} bytes. Is a process modifying the file being read?")

        self._bytes_read += len(buffer)
        logger.debug(f"Read {len(buffer)} bytes from source")
        return bytes(buffer)

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield chunks until ``total_size`` bytes have been read."""
        while self._bytes_read < self._total_size:
            yield await self.read_chunk()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.chunks()
