"""Pytest configuration and shared fixtures."""

from typing import List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from console_uploader.core.domain.uploads import ApiInfoDto, ChunkedUploadDto
from console_uploader.core.interfaces.transport import IRestApiClient, MultipartPart
from console_uploader.core.interfaces.upload import ChunkSizeConfig, UploadSettings


class ChunkAcknowledger:
    """Acknowledges chunks the way the console server does."""

    def __init__(self, total_size: int, guid: str = "upload-1", final_status: str = "UPLOADED"):
        self.total_size = total_size
        self.guid = guid
        self.final_status = final_status
        self.offset = 0
        self.received: List[bytes] = []
        self.metadata: List[dict] = []

    async def acknowledge(
        self,
        method: str,
        endpoint: str,
        parts: List[MultipartPart],
        model: type
    ) -> Optional[ChunkedUploadDto]:
        content = next(part.content for part in parts if part.name == "content")
        metadata = next(part.content for part in parts if part.name == "metadata")
        self.received.append(content)
        self.metadata.append(metadata)
        self.offset += len(content)
        status = self.final_status if self.offset >= self.total_size else "CREATED"
        return ChunkedUploadDto(guid=self.guid, status=status, current_offset=self.offset)


def extraction_responses(*statuses: str) -> List[ChunkedUploadDto]:
    return [ChunkedUploadDto(guid="upload-1", status=status) for status in statuses]


@pytest.fixture
def rest_client() -> Mock:
    """Create a mock REST client."""
    client = Mock(spec=IRestApiClient)
    client.start = AsyncMock()
    client.stop = AsyncMock()
    client.get_api_info = AsyncMock(return_value=ApiInfoDto(enable_package_path_check=True))
    client.post_for_entity = AsyncMock(
        return_value=ChunkedUploadDto(guid="upload-1", status="CREATED", current_offset=0))
    client.exchange_multipart = AsyncMock()
    client.delete_for_entity = AsyncMock()
    client.put_for_entity = AsyncMock()
    return client


@pytest.fixture
def fast_settings() -> UploadSettings:
    """Small chunks and no waiting between extraction polls."""
    return UploadSettings(
        chunk_size=ChunkSizeConfig(4),
        extract_poll_interval=0.0,
        extract_notify_threshold=0.0
    )


@pytest.fixture
def acknowledger():
    """Factory for server-side chunk acknowledgers."""
    return ChunkAcknowledger


@pytest.fixture
def responses():
    """Factory for extraction poll responses."""
    return extraction_responses
