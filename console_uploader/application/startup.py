"""
Application startup and wiring.

This module builds the REST client and the chunked upload service from the
application configuration and manages their lifecycle.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from ..core.interfaces.transport import IRestApiClient
from ..core.interfaces.upload import CancellationToken
from ..core.domain.uploads import ApiInfoDto
from ..infrastructure.clients.rest.client import ConsoleRestClient, RestClientConfig
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.services.upload.poller import ProgressHook
from ..infrastructure.services.upload.service import ChunkedUploadService

logger = logging.getLogger(__name__)


class UploaderStartup:
    """
    Manages the uploader components for one configuration.

    The REST client is created from the server configuration unless one is
    given, and the upload service shares that client.
    """

    def __init__(
        self,
        config: ApplicationConfig,
        client: Optional[IRestApiClient] = None,
        on_extraction_progress: Optional[ProgressHook] = None
    ) -> None:
        self._config = config
        self._client = client
        self._on_extraction_progress = on_extraction_progress
        self._service: Optional[ChunkedUploadService] = None
        self._started = False

    @property
    def client(self) -> Optional[IRestApiClient]:
        return self._client

    @property
    def service(self) -> ChunkedUploadService:
        if self._service is None:
            raise RuntimeError("Uploader is not started")
        return self._service

    async def start(self) -> None:
        """Create and start the REST client and the upload service."""
        if self._started:
            return

        if self._client is None:
            self._config.server.check()
            self._client = ConsoleRestClient(self._build_client_config())

        logger.info("Starting uploader components...")
        await self._client.start()
        self._service = ChunkedUploadService(
            self._client,
            self._config.upload.to_settings(),
            self._on_extraction_progress
        )
        self._started = True
        logger.info(f"Uploader ready (chunk size {self._service.settings.chunk_size.size} bytes)")

    async def stop(self) -> None:
        """Stop the REST client."""
        if not self._started:
            return

        self._started = False
        self._service = None
        if self._client is not None:
            try:
                await self._client.stop()
            except Exception as e:
                logger.error(f"Error stopping REST client: {e}")
        logger.info("Uploader stopped")

    async def __aenter__(self) -> "UploaderStartup":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def server_info(self) -> ApiInfoDto:
        """Fetch server information through the started client."""
        return await self.service.fetch_api_info()

    async def upload(
        self,
        app_guid: str,
        archive_path: Union[str, Path],
        extract: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> bool:
        """
        Upload an archive.

        Args:
            app_guid: Target application identifier
            archive_path: Archive to upload
            extract: None follows the server flag, unless extraction is
                disabled in the configuration; a bool forces it
            cancel_token: Interrupts pauses between extraction polls
        """
        if extract is None and not self._config.upload.extract:
            extract = False
        return await self.service.upload_file(app_guid, archive_path, extract, cancel_token)

    def _build_client_config(self) -> RestClientConfig:
        server = self._config.server
        return RestClientConfig(
            base_url=server.url,
            timeout=server.timeout,
            verify_ssl=server.verify_ssl,
            api_key=server.api_key,
            username=server.username
        )
