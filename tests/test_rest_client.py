"""
Tests for the aiohttp console REST client.

A small aiohttp application stands in for the console server.
"""

import io
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import pytest
from aiohttp import web
from aiohttp import test_utils

from console_uploader.core.domain.uploads import ApiInfoDto, ChunkedUploadDto, CreateUploadRequest
from console_uploader.core.exceptions import ApiCallError, ChunkUploadError
from console_uploader.core.interfaces.transport import IRestApiClient, MultipartPart
from console_uploader.core.interfaces.upload import ChunkSizeConfig, UploadSettings
from console_uploader.infrastructure.clients.rest.client import (
    API_KEY_HEADER,
    ConsoleRestClient,
    RestClientConfig,
)
from console_uploader.infrastructure.services.upload.service import ChunkedUploadService


class FakeConsole:
    """In-memory console server."""

    def __init__(self, extraction_statuses: Optional[List[str]] = None):
        self.requests: List[Dict[str, Any]] = []
        self.created: List[Dict[str, Any]] = []
        self.received = bytearray()
        self.chunk_metadata: List[Dict[str, Any]] = []
        self.chunk_filenames: List[Optional[str]] = []
        self.deleted: List[str] = []
        self.declared_size = 0
        self.extraction_statuses = list(extraction_statuses or ["EXTRACTED"])
        self.fail_patch_status: Optional[int] = None
        self.garble_patch = False

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/", self.api_info)
        app.router.add_post("/api/applications/{app}/upload", self.create)
        app.router.add_patch("/api/applications/{app}/upload/{upload}", self.upload_chunk)
        app.router.add_delete("/api/applications/{app}/upload/{upload}", self.delete)
        app.router.add_put("/api/applications/{app}/upload/{upload}/extract", self.extract)
        app.router.add_route("*", "/api/broken", self.broken)
        app.router.add_route("*", "/api/garbled", self.garbled)
        return app

    def _record(self, request: web.Request) -> None:
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "headers": dict(request.headers),
        })

    async def api_info(self, request: web.Request) -> web.Response:
        self._record(request)
        return web.json_response({"apiVersion": "2.1.0", "enablePackagePathCheck": True})

    async def create(self, request: web.Request) -> web.Response:
        self._record(request)
        body = await request.json()
        self.created.append(body)
        self.declared_size = body["fileSize"]
        return web.json_response({"guid": "upload-1", "status": "CREATED", "currentOffset": 0})

    async def upload_chunk(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.fail_patch_status is not None:
            return web.Response(status=self.fail_patch_status, text="storage unavailable")
        if self.garble_patch:
            return await self.garbled(request)

        reader = await request.multipart()
        while True:
            part = await reader.next()
            if part is None:
                break
            if part.name == "metadata":
                self.chunk_metadata.append(await part.json())
            else:
                self.chunk_filenames.append(part.filename)
                self.received.extend(await part.read())

        status = "UPLOADED" if len(self.received) >= self.declared_size else "CREATED"
        return web.json_response({
            "guid": request.match_info["upload"],
            "status": status,
            "currentOffset": len(self.received),
        })

    async def delete(self, request: web.Request) -> web.Response:
        self._record(request)
        self.deleted.append(request.match_info["upload"])
        return web.Response(status=204)

    async def extract(self, request: web.Request) -> web.Response:
        self._record(request)
        status = self.extraction_statuses.pop(0)
        return web.json_response({"guid": request.match_info["upload"], "status": status})

    async def broken(self, request: web.Request) -> web.Response:
        return web.json_response({"apiVersion": ["not", "a", "string"]})

    async def garbled(self, request: web.Request) -> web.Response:
        return web.Response(body=b"\xff\xfe{", content_type="application/json")


@asynccontextmanager
async def console_client(
    console: FakeConsole,
    username: Optional[str] = None
) -> AsyncIterator[ConsoleRestClient]:
    server = test_utils.TestServer(console.build_app())
    await server.start_server()
    config = RestClientConfig(
        base_url=str(server.make_url("/")),
        timeout=10.0,
        api_key="secret-key",
        username=username
    )
    try:
        async with ConsoleRestClient(config) as client:
            yield client
    finally:
        await server.close()


class TestConsoleRestClient:
    """Test cases for ConsoleRestClient."""

    def test_implements_interface(self) -> None:
        client = ConsoleRestClient(RestClientConfig(base_url="http://localhost"))
        assert isinstance(client, IRestApiClient)

    @pytest.mark.asyncio
    async def test_api_info_with_api_key_header(self) -> None:
        console = FakeConsole()
        async with console_client(console) as client:
            info = await client.get_api_info()

        assert info == ApiInfoDto(api_version="2.1.0", enable_package_path_check=True)
        headers = console.requests[0]["headers"]
        assert headers[API_KEY_HEADER] == "secret-key"
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_basic_auth_when_username_configured(self) -> None:
        console = FakeConsole()
        async with console_client(console, username="admin") as client:
            await client.get_api_info()

        headers = console.requests[0]["headers"]
        assert headers["Authorization"].startswith("Basic ")
        assert API_KEY_HEADER not in headers

    @pytest.mark.asyncio
    async def test_post_dumps_camel_case_body(self) -> None:
        console = FakeConsole()
        async with console_client(console) as client:
            dto = await client.post_for_entity(
                "/api/applications/app-1/upload",
                CreateUploadRequest(file_name="sources.zip", file_size=3),
                ChunkedUploadDto
            )

        assert console.created == [{"fileName": "sources.zip", "fileSize": 3}]
        assert dto.guid == "upload-1"
        assert dto.current_offset == 0

    @pytest.mark.asyncio
    async def test_multipart_chunk(self) -> None:
        console = FakeConsole()
        console.declared_size = 3
        parts = [
            MultipartPart("metadata", {"chunkSize": 3}, "application/json"),
            MultipartPart("content", b"xyz", filename="filechunk"),
        ]
        async with console_client(console) as client:
            dto = await client.exchange_multipart(
                "PATCH", "/api/applications/app-1/upload/upload-1", parts, ChunkedUploadDto)
            metrics = client.get_metrics()

        assert dto.current_offset == 3
        assert dto.status == "UPLOADED"
        assert bytes(console.received) == b"xyz"
        assert console.chunk_metadata == [{"chunkSize": 3}]
        assert console.chunk_filenames == ["filechunk"]
        assert metrics.bytes_sent == 3
        assert metrics.successful_requests == 1

    @pytest.mark.asyncio
    async def test_put_without_body(self) -> None:
        console = FakeConsole(extraction_statuses=["EXTRACTING"])
        async with console_client(console) as client:
            dto = await client.put_for_entity(
                "/api/applications/app-1/upload/upload-1/extract", None, ChunkedUploadDto)

        assert dto.status == "EXTRACTING"

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        console = FakeConsole()
        async with console_client(console) as client:
            assert await client.delete_for_entity("/api/applications/app-1/upload/upload-1") is None

        assert console.deleted == ["upload-1"]

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        console = FakeConsole()
        console.fail_patch_status = 503
        parts = [MultipartPart("content", b"x")]
        async with console_client(console) as client:
            with pytest.raises(ApiCallError) as exc_info:
                await client.exchange_multipart(
                    "PATCH", "/api/applications/app-1/upload/upload-1", parts, ChunkedUploadDto)
            metrics = client.get_metrics()

        assert exc_info.value.status == 503
        assert exc_info.value.body == "storage unavailable"
        assert metrics.failed_requests == 1
        assert metrics.last_error is not None

    @pytest.mark.asyncio
    async def test_unknown_route_raises(self) -> None:
        async with console_client(FakeConsole()) as client:
            with pytest.raises(ApiCallError) as exc_info:
                await client.delete_for_entity("/api/nowhere")

        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_malformed_response_raises(self) -> None:
        async with console_client(FakeConsole()) as client:
            with pytest.raises(ApiCallError, match="Malformed"):
                await client.put_for_entity("/api/broken", None, ApiInfoDto)

    @pytest.mark.asyncio
    async def test_undecodable_response_raises(self) -> None:
        async with console_client(FakeConsole()) as client:
            with pytest.raises(ApiCallError, match="Malformed"):
                await client.put_for_entity("/api/garbled", None, ChunkedUploadDto)

    @pytest.mark.asyncio
    async def test_connection_failure_raises(self) -> None:
        config = RestClientConfig(base_url="http://127.0.0.1:1", timeout=2.0, api_key="k")
        async with ConsoleRestClient(config) as client:
            with pytest.raises(ApiCallError):
                await client.get_api_info()

    @pytest.mark.asyncio
    async def test_request_before_start_raises(self) -> None:
        client = ConsoleRestClient(RestClientConfig(base_url="http://localhost"))
        with pytest.raises(ApiCallError, match="not started"):
            await client.get_api_info()

    @pytest.mark.asyncio
    async def test_lifecycle_and_health(self) -> None:
        client = ConsoleRestClient(RestClientConfig(base_url="http://localhost", api_key="k"))
        assert not client.is_running

        async with client:
            health = await client.health_check()
            assert health["healthy"] is True
            assert health["details"]["base_url"] == "http://localhost"

        assert not client.is_running
        assert (await client.health_check())["status"] == "stopped"


class TestUploadOverHttp:
    """End-to-end upload against the fake console server."""

    @pytest.mark.asyncio
    async def test_upload_and_extract(self) -> None:
        console = FakeConsole(extraction_statuses=["EXTRACTING", "EXTRACTED"])
        data = bytes(range(256)) * 4
        settings = UploadSettings(ChunkSizeConfig(300), extract_poll_interval=0.0)

        async with console_client(console) as client:
            service = ChunkedUploadService(client, settings)
            result = await service.upload_stream("app-1", "sources.zip", len(data), io.BytesIO(data))

        assert result is True
        assert bytes(console.received) == data
        assert [m["chunkSize"] for m in console.chunk_metadata] == [300, 300, 300, 124]
        methods = [r["method"] for r in console.requests]
        assert methods == ["GET", "POST", "PATCH", "PATCH", "PATCH", "PATCH", "PUT", "PUT"]
        assert console.deleted == []

    @pytest.mark.asyncio
    async def test_failed_chunk_removes_upload(self) -> None:
        console = FakeConsole()
        console.fail_patch_status = 500
        settings = UploadSettings(ChunkSizeConfig(4))

        async with console_client(console) as client:
            service = ChunkedUploadService(client, settings)
            with pytest.raises(ChunkUploadError) as exc_info:
                await service.upload_and_extract_stream(
                    "app-1", "sources.zip", 8, io.BytesIO(b"abcdefgh"), extract=False)

        assert exc_info.value.chunk_index == 1
        assert console.deleted == ["upload-1"]

    @pytest.mark.asyncio
    async def test_undecodable_chunk_response_removes_upload(self) -> None:
        console = FakeConsole()
        console.garble_patch = True
        settings = UploadSettings(ChunkSizeConfig(4))

        async with console_client(console) as client:
            service = ChunkedUploadService(client, settings)
            with pytest.raises(ChunkUploadError) as exc_info:
                await service.upload_and_extract_stream(
                    "app-1", "sources.zip", 8, io.BytesIO(b"abcdefgh"), extract=False)

        assert isinstance(exc_info.value.__cause__, ApiCallError)
        assert console.deleted == ["upload-1"]
