"""
Base client implementation for the console uploader.

This module provides the base class HTTP clients inherit from: lifecycle
management, request metrics and health reporting.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from ...core.interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ClientMetrics:
    """Client request metrics."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_response_time: float = 0.0
    min_response_time: float = float('inf')
    max_response_time: float = 0.0
    last_request_time: Optional[float] = None
    bytes_sent: int = 0
    error_count: int = 0
    last_error: Optional[str] = None

    @property
    def average_response_time(self) -> float:
        """Calculate average response time."""
        if self.total_requests == 0:
            return 0.0
        return self.total_response_time / self.total_requests

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        if self.total_requests == 0:
            return 100.0
        return (self.successful_requests / self.total_requests) * 100.0

    def record_request(self, success: bool, response_time: float) -> None:
        """Record a request result."""
        self.total_requests += 1
        self.total_response_time += response_time
        self.last_request_time = time.time()

        if success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1

        if response_time < self.min_response_time:
            self.min_response_time = response_time
        if response_time > self.max_response_time:
            self.max_response_time = response_time

    def record_error(self, error: str) -> None:
        """Record an error."""
        self.error_count += 1
        self.last_error = error


@dataclass
class ClientConfig:
    """Base HTTP client configuration."""
    base_url: str
    timeout: float = 90.0
    verify_ssl: bool = True
    headers: Dict[str, str] = field(default_factory=dict)


class BaseClient(IStartable, IStoppable, IHealthCheckable, ABC):
    """
    Base client implementation.

    Subclasses open and close their transport in ``_open``/``_close`` and
    route every call through ``_execute`` so that metrics stay accurate.
    """

    def __init__(self, config: ClientConfig, name: Optional[str] = None):
        """
        Initialize base client.

        Args:
            config: Client configuration
            name: Client name for identification
        """
        self._config = config
        self._name = name or self.__class__.__name__
        self._metrics = ClientMetrics()
        self._running = False
        self._last_activity = time.time()

    async def start(self) -> None:
        """Start the client service."""
        if self._running:
            return

        await self._open()
        self._running = True
        logger.info(f"Client {self._name} started for {self._config.base_url}")

    async def stop(self) -> None:
        """Stop the client service."""
        if not self._running:
            return

        self._running = False
        await self._close()
        logger.info(f"Client {self._name} stopped")

    async def health_check(self) -> Dict[str, Any]:
        """Perform health check."""
        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "metrics": {
                "total_requests": self._metrics.total_requests,
                "success_rate": self._metrics.success_rate,
                "average_response_time": self._metrics.average_response_time,
                "bytes_sent": self._metrics.bytes_sent,
                "error_count": self._metrics.error_count
            },
            "details": {
                "running": self._running,
                "base_url": self._config.base_url,
                "last_activity": self._last_activity,
                "last_error": self._metrics.last_error
            }
        }

    @property
    def is_running(self) -> bool:
        return self._running

    def get_metrics(self) -> ClientMetrics:
        """Get client metrics."""
        return self._metrics

    async def __aenter__(self) -> "BaseClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def _execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run one request, recording its outcome in the metrics."""
        start_time = time.time()
        try:
            result = await operation()
        except Exception as e:
            self._metrics.record_request(False, time.time() - start_time)
            self._metrics.record_error(str(e))
            raise

        self._metrics.record_request(True, time.time() - start_time)
        self._last_activity = time.time()
        return result

    @abstractmethod
    async def _open(self) -> None:
        """Open the underlying transport."""
        pass

    @abstractmethod
    async def _close(self) -> None:
        """Close the underlying transport."""
        pass
