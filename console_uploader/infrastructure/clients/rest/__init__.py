"""
REST client for the console server.
"""

from .client import ConsoleRestClient, RestClientConfig, API_KEY_HEADER
from .endpoints import ApiEndpointHelper

__all__ = [
    "ConsoleRestClient",
    "RestClientConfig",
    "API_KEY_HEADER",
    "ApiEndpointHelper",
]
