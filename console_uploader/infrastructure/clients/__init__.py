"""
Client implementations.

This module provides the base client and the console REST client.
"""

from .base import BaseClient, ClientConfig, ClientMetrics
from .rest import ConsoleRestClient, RestClientConfig

__all__ = [
    "BaseClient",
    "ClientConfig",
    "ClientMetrics",
    "ConsoleRestClient",
    "RestClientConfig",
]
