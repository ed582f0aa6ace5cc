"""
Chunked upload service implementation for the console uploader.

This module uploads a source archive to the console server in sequential
chunks, verifies the offset acknowledged after every chunk, removes the
server-side upload when the transfer fails, and hands completed uploads to
the extraction poller.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import aiofiles

from ....core.domain.uploads import (
    ApiInfoDto, ChunkedUploadDto, ChunkedUploadMetadata, CreateUploadRequest, UploadSession
)
from ....core.exceptions import (
    ApiCallError, ChunkUploadError, OffsetMismatchError, SessionCreationError,
    SourceIntegrityError, UploadError, UploadPhase, UploadValidationError
)
from ....core.interfaces.transport import IRestApiClient, MultipartPart
from ....core.interfaces.upload import (
    CancellationToken, IChunkedUploadService, TransferProgress, UploadRequest, UploadSettings
)
from ...clients.rest.endpoints import ApiEndpointHelper
from .chunks import ChunkReader
from .poller import ExtractionPoller, ProgressHook

logger = logging.getLogger(__name__)


class ChunkedUploadService(IChunkedUploadService):
    """
    Chunked upload service.

    Settings are fixed at construction and handed explicitly to each upload,
    so a single service can run several uploads without them interfering.
    Each call owns its UploadSession; nothing else reads or writes it.
    """

    def __init__(
        self,
        client: IRestApiClient,
        settings: Optional[UploadSettings] = None,
        on_extraction_progress: Optional[ProgressHook] = None
    ):
        """
        Initialize the upload service.

        Args:
            client: REST client used for every server call
            settings: Chunk size and extraction polling settings
            on_extraction_progress: Called periodically while extraction runs
        """
        self._client = client
        self._settings = settings or UploadSettings()
        self._on_extraction_progress = on_extraction_progress

    @property
    def settings(self) -> UploadSettings:
        return self._settings

    async def upload_file(
        self,
        app_guid: str,
        archive_path: Union[str, Path],
        extract: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> bool:
        """
        Upload an archive file.

        When ``extract`` is None, extraction follows the server's package
        path check flag; otherwise it is forced on or off.
        """
        self._check_app_guid(app_guid)
        if archive_path is None or not Path(archive_path).is_file():
            raise UploadValidationError(f"No file provided for upload: {archive_path}")

        path = Path(archive_path)
        try:
            file_size = path.stat().st_size
        except OSError as e:
            raise SourceIntegrityError(f"Unable to get archive size for given file {path}") from e

        if extract is None:
            api_info = await self.fetch_api_info()
            extract = api_info.enable_package_path_check

        try:
            async with aiofiles.open(path, "rb") as content:
                return await self.upload_and_extract_stream(
                    app_guid, path.name, file_size, content, extract, cancel_token
                )
        except OSError as e:
            raise SourceIntegrityError(f"Unable to read file {path}") from e

    async def upload_stream(
        self,
        app_guid: str,
        file_name: str,
        file_size: int,
        content: Any
    ) -> bool:
        """Upload from a stream and extract it if the server requires it."""
        self._build_request(app_guid, file_name, file_size, content)
        api_info = await self.fetch_api_info()
        return await self.upload_and_extract_stream(
            app_guid, file_name, file_size, content, api_info.enable_package_path_check
        )

    async def upload_and_extract_stream(
        self,
        app_guid: str,
        file_name: str,
        file_size: int,
        content: Any,
        extract: bool,
        cancel_token: Optional[CancellationToken] = None
    ) -> bool:
        """
        Upload ``file_size`` bytes from ``content``, then extract if requested.

        Args:
            app_guid: Target application identifier
            file_name: Archive name reported to the server
            file_size: Exact number of bytes to read from ``content``
            content: Source stream, read sequentially
            extract: Whether to drive server-side extraction afterwards
            cancel_token: Interrupts pauses between extraction polls

        Returns:
            Whether the upload completed, or whether extraction succeeded
            when ``extract`` is set

        Raises:
            UploadError: If validation, creation, a chunk, or extraction fails
        """
        request = self._build_request(app_guid, file_name, file_size, content)
        settings = self._settings

        session = await self.create_session(request)
        reader = ChunkReader(content, request.file_size, settings.chunk_size)
        await self.upload_chunks(session, reader, settings)

        logger.info(f"Should extract content ? {extract}")
        upload_complete = session.status.is_upload_complete
        if not upload_complete:
            logger.warning(f"Upload ended with status {session.status_label}")
        if not upload_complete or not extract:
            return upload_complete

        poller = ExtractionPoller(self._client, settings, self._on_extraction_progress)
        result = await poller.poll(session, cancel_token)
        if result.interruptions:
            logger.warning(f"Extraction polling was interrupted {result.interruptions} time(s)")
        return result.extracted

    async def fetch_api_info(self) -> ApiInfoDto:
        """Fetch the server capability flags once per operation."""
        try:
            return await self._client.get_api_info()
        except ApiCallError as e:
            logger.error(f"Unable to retrieve server information: {e}")
            raise UploadError("Unable to retrieve server information",
                              phase=UploadPhase.SERVER_INFO) from e

    async def create_session(self, request: UploadRequest) -> UploadSession:
        """
        Create the server-side upload session.

        Raises:
            SessionCreationError: If the call fails or returns no identifier
        """
        endpoint = ApiEndpointHelper.create_upload_path(request.app_guid)
        body = CreateUploadRequest(file_name=request.file_name, file_size=request.file_size)

        try:
            logger.info("Creating a new upload for application")
            logger.debug(f"Params : {endpoint} {body.model_dump(by_alias=True)}")
            dto = await self._client.post_for_entity(endpoint, body, ChunkedUploadDto)
        except ApiCallError as e:
            logger.error(f"Error while trying to create upload: {e}")
            raise SessionCreationError("Unable to create upload") from e

        if dto is None or not dto.guid or not dto.guid.strip():
            raise SessionCreationError("Upload was not created on the server")

        session = UploadSession.from_dto(request.app_guid, dto)
        logger.debug(f"Created upload {session.guid} with status {session.status_label}")
        return session

    async def upload_chunks(
        self,
        session: UploadSession,
        reader: ChunkReader,
        settings: UploadSettings
    ) -> TransferProgress:
        """
        Upload every chunk of ``reader`` in order against ``session``.

        After each chunk the offset acknowledged by the server must equal the
        bytes sent so far. On a transport error or an offset mismatch the
        server-side upload is deleted once before the error is raised.

        Raises:
            ChunkUploadError: If a chunk could not be read or sent
            OffsetMismatchError: If the server acknowledged a wrong offset
            SourceIntegrityError: If the source ended early
        """
        endpoint = ApiEndpointHelper.upload_path(session.app_guid, session.guid)
        progress = TransferProgress(total_size=reader.total_size,
                                    chunk_size=settings.chunk_size.size)
        logger.info(f"Starting chunks uploads. Expected number of chunks is {progress.total_chunks}")

        try:
            while not progress.is_done:
                chunk = await reader.read_chunk()
                await self._send_chunk(session, endpoint, chunk, progress)
                progress.advance(len(chunk))
        except SourceIntegrityError as e:
            e.chunk_index = progress.current_chunk_index
            e.total_chunks = progress.total_chunks
            raise
        except OffsetMismatchError:
            logger.info("Server and client disagree on the upload offset. Trying to delete before failing.")
            await self._discard_session(session, endpoint)
            raise
        except (ApiCallError, OSError) as e:
            logger.info("Error occurred during upload. Trying to delete before failing.")
            await self._discard_session(session, endpoint)
            raise ChunkUploadError(
                f"Error occurred while uploading chunk number {progress.current_chunk_index}",
                chunk_index=progress.current_chunk_index,
                total_chunks=progress.total_chunks
            ) from e

        return progress

    async def _send_chunk(
        self,
        session: UploadSession,
        endpoint: str,
        chunk: bytes,
        progress: TransferProgress
    ) -> None:
        metadata = ChunkedUploadMetadata(chunk_size=len(chunk))
        parts: List[MultipartPart] = [
            MultipartPart(
                name="metadata",
                content=metadata.model_dump(by_alias=True),
                content_type="application/json"
            ),
            MultipartPart(
                name="content",
                content=chunk,
                content_type="application/octet-stream",
                filename="filechunk"
            ),
        ]

        logger.info(f"Uploading chunk {progress.current_chunk_index} of {progress.total_chunks}")
        logger.debug(f"Uploading a chunk of {len(chunk)} bytes")
        dto = await self._client.exchange_multipart("PATCH", endpoint, parts, ChunkedUploadDto)

        expected_offset = progress.current_offset + len(chunk)
        actual_offset = dto.current_offset if dto is not None else None
        if actual_offset != expected_offset:
            raise OffsetMismatchError(
                expected_offset,
                actual_offset,
                chunk_index=progress.current_chunk_index,
                total_chunks=progress.total_chunks
            )
        session.apply(dto)

    async def _discard_session(self, session: UploadSession, endpoint: str) -> None:
        """Best-effort removal of a failed upload. Never raises."""
        try:
            await self._client.delete_for_entity(endpoint)
        except Exception as e:
            logger.warning(f"Unable to remove failed upload with GUID '{session.guid}': {e}")

    def _build_request(
        self,
        app_guid: str,
        file_name: str,
        file_size: int,
        content: Any
    ) -> UploadRequest:
        self._check_app_guid(app_guid)
        if not file_name or not file_name.strip():
            raise UploadValidationError("No file name provided for upload")
        if content is None:
            raise UploadValidationError("No content provided for upload")
        if file_size is None or file_size < 0:
            raise SourceIntegrityError(f"Invalid archive size {file_size}")
        return UploadRequest(app_guid=app_guid, file_name=file_name, file_size=file_size)

    @staticmethod
    def _check_app_guid(app_guid: Optional[str]) -> None:
        if not app_guid or not app_guid.strip():
            raise UploadValidationError("No Application GUID provided.")
