"""
Extraction polling for uploaded archives.

After the last chunk is acknowledged, the server extracts the archive
asynchronously. ExtractionPoller keeps asking the server to continue the
extraction until it reports a terminal status.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ....core.domain.uploads import ChunkedUploadDto, UploadLifecycleStatus, UploadSession
from ....core.exceptions import ApiCallError, ExtractionError
from ....core.interfaces.transport import IRestApiClient
from ....core.interfaces.upload import CancellationToken, UploadSettings
from ...clients.rest.endpoints import ApiEndpointHelper

logger = logging.getLogger(__name__)

ProgressHook = Callable[[UploadSession, float], Any]


@dataclass
class ExtractionResult:
    """Outcome of one extraction polling run."""
    extracted: bool
    status: UploadLifecycleStatus
    polls: int = 0
    interruptions: int = 0


class PollTicker:
    """
    Cancellable interval timer used between two extraction polls.

    Wait time accumulates across pauses; ``should_notify`` reports when more
    than ``notify_threshold`` seconds were spent since the last notification.
    """

    def __init__(self, interval: float, notify_threshold: float):
        self._interval = interval
        self._notify_threshold = notify_threshold
        self._waited_since_notify = 0.0
        self.total_waited = 0.0
        self.pauses = 0

    async def pause(self, cancel_token: Optional[CancellationToken] = None) -> bool:
        """
        Wait for one interval.

        Returns:
            True if the pause was cut short by ``cancel_token``
        """
        self.pauses += 1
        if cancel_token is None:
            await asyncio.sleep(self._interval)
            self._record(self._interval)
            return False

        loop = asyncio.get_running_loop()
        started = loop.time()
        interrupted = await cancel_token.wait(self._interval)
        self._record(loop.time() - started if interrupted else self._interval)
        return interrupted

    def should_notify(self) -> bool:
        if self._waited_since_notify > self._notify_threshold:
            self._waited_since_notify = 0.0
            return True
        return False

    def _record(self, waited: float) -> None:
        self._waited_since_notify += waited
        self.total_waited += waited


def log_extraction_progress(session: UploadSession, waited: float) -> None:
    """Default progress hook."""
    logger.info(
        f"Waiting for the server to finish extraction. "
        f"Current status is {session.status_label} ({waited:.0f}s elapsed)")


class ExtractionPoller:
    """Drives server-side extraction of an uploaded archive to a terminal state."""

    def __init__(
        self,
        client: IRestApiClient,
        settings: UploadSettings,
        on_progress: Optional[ProgressHook] = None
    ):
        self._client = client
        self._settings = settings
        self._on_progress = on_progress or log_extraction_progress

    def create_ticker(self) -> PollTicker:
        return PollTicker(
            self._settings.extract_poll_interval,
            self._settings.extract_notify_threshold
        )

    async def poll(
        self,
        session: UploadSession,
        cancel_token: Optional[CancellationToken] = None,
        ticker: Optional[PollTicker] = None
    ) -> ExtractionResult:
        """
        Poll extraction until the session leaves UPLOADED/EXTRACTING.

        Args:
            session: Session whose upload completed; updated in place
            cancel_token: Interrupts the current pause; polling then continues
            ticker: Timer used between polls

        Returns:
            Extraction result; ``extracted`` is True only for EXTRACTED

        Raises:
            ExtractionError: If a poll call fails
        """
        ticker = ticker or self.create_ticker()
        endpoint = ApiEndpointHelper.extract_upload_path(session.app_guid, session.guid)
        result = ExtractionResult(extracted=False, status=session.status)

        logger.info("Extracting archive on the server")
        while session.status.is_extraction_pending:
            try:
                dto = await self._client.put_for_entity(endpoint, None, ChunkedUploadDto)
            except ApiCallError as e:
                logger.error(f"Unable to extract source code archive on the server: {e}")
                raise ExtractionError("Failed to extract source code on the server") from e

            result.polls += 1
            if dto is None:
                raise ExtractionError("Server returned no upload status while extracting")
            session.apply(dto)
            logger.debug(f"Extraction status is now {session.status_label}")

            if not session.status.is_extraction_pending:
                break

            if await ticker.pause(cancel_token):
                result.interruptions += 1
                logger.warning(
                    "Pause between extraction polls was interrupted. "
                    "Trying to continue polling the server")
                if cancel_token is not None:
                    cancel_token.reset()

            if ticker.should_notify():
                self._on_progress(session, ticker.total_waited)

        result.status = session.status
        result.extracted = session.status is UploadLifecycleStatus.EXTRACTED
        if not result.extracted:
            logger.warning(f"Extraction ended with status {session.status_label}")
        return result
