"""
Tests for the chunk reader.
"""

import io
from typing import List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from console_uploader.core.exceptions import SourceIntegrityError
from console_uploader.core.interfaces.upload import ChunkSizeConfig
from console_uploader.infrastructure.services.upload.chunks import ChunkReader


class ScriptedStream:
    """Stream returning scripted results from read()."""

    def __init__(self, results: List[Optional[bytes]]):
        self._results = list(results)
        self.calls: List[int] = []

    def read(self, size: int) -> Optional[bytes]:
        self.calls.append(size)
        return self._results.pop(0)


async def collect(reader: ChunkReader) -> List[bytes]:
    return [chunk async for chunk in reader]


class TestChunkReader:
    """Test cases for ChunkReader."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("total,chunk_size", [
        (0, 4),
        (1, 4),
        (4, 4),
        (5, 4),
        (4096, 1000),
        (10, 1),
    ])
    async def test_chunks_cover_source_exactly(self, total: int, chunk_size: int) -> None:
        data = bytes(i % 251 for i in range(total))
        reader = ChunkReader(io.BytesIO(data), total, ChunkSizeConfig(chunk_size))

        chunks = await collect(reader)

        assert b"".join(chunks) == data
        assert len(chunks) == ChunkSizeConfig(chunk_size).total_chunks(total)
        assert all(0 < len(chunk) <= chunk_size for chunk in chunks)
        assert all(len(chunk) == chunk_size for chunk in chunks[:-1])
        assert reader.bytes_read == total
        assert reader.remaining == 0

    @pytest.mark.asyncio
    async def test_never_reads_past_declared_size(self) -> None:
        reader = ChunkReader(io.BytesIO(b"abcdefghij-extra"), 10, ChunkSizeConfig(4))

        chunks = await collect(reader)

        assert chunks == [b"abcd", b"efgh", b"ij"]

    @pytest.mark.asyncio
    async def test_none_read_is_retried(self) -> None:
        stream = ScriptedStream([None, None, b"abcd", None, b"ef"])
        reader = ChunkReader(stream, 6, ChunkSizeConfig(4))

        chunks = await collect(reader)

        assert chunks == [b"abcd", b"ef"]
        assert stream.calls == [4, 4, 4, 2, 2]

    @pytest.mark.asyncio
    async def test_short_reads_fill_the_chunk(self) -> None:
        stream = ScriptedStream([b"ab", b"cd", b"efg", b"h", b"ij"])
        reader = ChunkReader(stream, 10, ChunkSizeConfig(4))

        chunks = await collect(reader)

        assert chunks == [b"abcd", b"efgh", b"ij"]
        assert stream.calls == [4, 2, 4, 1, 2]

    @pytest.mark.asyncio
    async def test_trickling_source_keeps_chunk_count(self) -> None:
        data = bytes(range(12))
        source = io.BytesIO(data)
        stream = Mock()
        stream.read.side_effect = lambda size: source.read(min(size, 3))
        reader = ChunkReader(stream, len(data), ChunkSizeConfig(6))

        chunks = await collect(reader)

        assert [len(chunk) for chunk in chunks] == [6, 6]
        assert len(chunks) == ChunkSizeConfig(6).total_chunks(len(data))
        assert b"".join(chunks) == data

    @pytest.mark.asyncio
    async def test_early_end_yields_partial_chunk_then_raises(self) -> None:
        stream = ScriptedStream([b"abcd", b"ef", b"", b""])
        reader = ChunkReader(stream, 10, ChunkSizeConfig(4))

        assert await reader.read_chunk() == b"abcd"
        assert await reader.read_chunk() == b"ef"
        with pytest.raises(SourceIntegrityError):
            await reader.read_chunk()

    @pytest.mark.asyncio
    async def test_exhausted_source_raises(self) -> None:
        reader = ChunkReader(io.BytesIO(b"abcdef"), 10, ChunkSizeConfig(4))

        assert await reader.read_chunk() == b"abcd"
        assert await reader.read_chunk() == b"ef"
        with pytest.raises(SourceIntegrityError) as exc_info:
            await reader.read_chunk()

        assert "6 of 10 bytes" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_awaitable_read(self) -> None:
        source = AsyncMock()
        source.read = AsyncMock(side_effect=[b"abcd", b"ef"])
        reader = ChunkReader(source, 6, ChunkSizeConfig(4))

        chunks = await collect(reader)

        assert chunks == [b"abcd", b"ef"]

    @pytest.mark.asyncio
    async def test_read_after_end_raises(self) -> None:
        reader = ChunkReader(io.BytesIO(b""), 0, ChunkSizeConfig(4))
        with pytest.raises(SourceIntegrityError):
            await reader.read_chunk()

    @pytest.mark.asyncio
    async def test_io_errors_propagate(self) -> None:
        source = Mock()
        source.read.side_effect = OSError("disk gone")
        reader = ChunkReader(source, 4, ChunkSizeConfig(4))

        with pytest.raises(OSError):
            await reader.read_chunk()

    def test_negative_total_rejected(self) -> None:
        with pytest.raises(ValueError):
            ChunkReader(io.BytesIO(b""), -1, ChunkSizeConfig(4))
