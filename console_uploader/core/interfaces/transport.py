"""
REST transport interface.

The transport performs authentication, JSON (de)serialization and the raw HTTP
exchange with the console server. Upload services only depend on this
contract, which keeps them testable with a mock transport.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel

from .lifecycle import IStartable, IStoppable, IHealthCheckable
from ..domain.uploads import ApiInfoDto

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class MultipartPart:
    """One part of a multipart request body."""
    name: str
    content: Any
    content_type: str = "application/octet-stream"
    filename: Optional[str] = None


class IRestApiClient(IStartable, IStoppable, IHealthCheckable):
    """
    Interface for the console REST client.

    Every call raises ApiCallError on network failure, on a non-2xx response
    or when the response body does not validate against the expected model.
    """

    @abstractmethod
    async def get_api_info(self) -> ApiInfoDto:
        """Fetch server information and capability flags."""
        pass

    @abstractmethod
    async def post_for_entity(
        self,
        endpoint: str,
        body: Optional[BaseModel],
        model: Type[ModelT]
    ) -> Optional[ModelT]:
        """POST a JSON body and parse the response as ``model``."""
        pass

    @abstractmethod
    async def put_for_entity(
        self,
        endpoint: str,
        body: Optional[BaseModel],
        model: Type[ModelT]
    ) -> Optional[ModelT]:
        """PUT a JSON body (or nothing) and parse the response as ``model``."""
        pass

    @abstractmethod
    async def delete_for_entity(self, endpoint: str) -> None:
        """DELETE a resource, ignoring the response body."""
        pass

    @abstractmethod
    async def exchange_multipart(
        self,
        method: str,
        endpoint: str,
        parts: List[MultipartPart],
        model: Type[ModelT]
    ) -> Optional[ModelT]:
        """Send a multipart body with ``method`` and parse the response as ``model``."""
        pass
