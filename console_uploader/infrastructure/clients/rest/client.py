"""
aiohttp REST client for the console server.

This module implements IRestApiClient: authentication, JSON bodies built
from pydantic models, multipart bodies, and translation of every failure
into ApiCallError.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

import aiohttp
from pydantic import BaseModel, ValidationError

from ....core.domain.uploads import ApiInfoDto
from ....core.exceptions import ApiCallError
from ....core.interfaces.transport import IRestApiClient, ModelT, MultipartPart
from ..base import BaseClient, ClientConfig
from .endpoints import ApiEndpointHelper

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-KEY"


@dataclass
class RestClientConfig(ClientConfig):
    """Console REST client configuration."""
    api_key: str = ""
    username: Optional[str] = None


class ConsoleRestClient(BaseClient, IRestApiClient):
    """
    REST client for the console server.

    Authenticates with HTTP Basic (username and API key) when a username is
    configured, and with the X-API-KEY header otherwise.
    """

    def __init__(
        self,
        config: RestClientConfig,
        session: Optional[aiohttp.ClientSession] = None,
        name: Optional[str] = None
    ):
        super().__init__(config, name)
        self._rest_config = config
        self._session = session
        self._owns_session = session is None

    async def _open(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._rest_config.timeout),
                headers=self._default_headers(),
                auth=self._auth()
            )
            self._owns_session = True

    async def _close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def get_api_info(self) -> ApiInfoDto:
        info = await self._request("GET", ApiEndpointHelper.api_info_path(), ApiInfoDto)
        if info is None:
            raise ApiCallError("Server returned no API information")
        return info

    async def post_for_entity(
        self,
        endpoint: str,
        body: Optional[BaseModel],
        model: Type[ModelT]
    ) -> Optional[ModelT]:
        return await self._request("POST", endpoint, model, json_body=self._dump(body))

    async def put_for_entity(
        self,
        endpoint: str,
        body: Optional[BaseModel],
        model: Type[ModelT]
    ) -> Optional[ModelT]:
        return await self._request("PUT", endpoint, model, json_body=self._dump(body))

    async def delete_for_entity(self, endpoint: str) -> None:
        await self._request("DELETE", endpoint, None)

    async def exchange_multipart(
        self,
        method: str,
        endpoint: str,
        parts: List[MultipartPart],
        model: Type[ModelT]
    ) -> Optional[ModelT]:
        form = aiohttp.FormData()
        for part in parts:
            content = part.content
            filename = part.filename
            if isinstance(content, (bytes, bytearray)):
                self._metrics.bytes_sent += len(content)
                if filename is None:
                    filename = part.name
            elif not isinstance(content, str):
                content = json.dumps(content)
            form.add_field(part.name, content, content_type=part.content_type, filename=filename)

        return await self._request(method.upper(), endpoint, model, data=form)

    async def _request(
        self,
        method: str,
        endpoint: str,
        model: Optional[Type[ModelT]],
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[aiohttp.FormData] = None
    ) -> Optional[ModelT]:
        session = self._require_session()
        url = self._url(endpoint)

        async def call() -> bytes:
            try:
                async with session.request(
                    method, url, json=json_body, data=data, ssl=self._rest_config.verify_ssl
                ) as response:
                    payload = await response.read()
                    if not 200 <= response.status < 300:
                        raise ApiCallError(
                            f"{method} {endpoint} was rejected by the server",
                            status=response.status,
                            body=payload.decode("utf-8", errors="replace")
                        )
                    return payload
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise ApiCallError(f"{method} {endpoint} failed: {e!r}") from e

        logger.debug(f"{method} {url}")
        payload = await self._execute(call)
        return self._parse(method, endpoint, payload, model)

    @staticmethod
    def _parse(
        method: str,
        endpoint: str,
        payload: bytes,
        model: Optional[Type[ModelT]]
    ) -> Optional[ModelT]:
        if model is None or not payload.strip():
            return None
        try:
            return model.model_validate_json(payload)
        except ValidationError as e:
            raise ApiCallError(f"Malformed response to {method} {endpoint}: {e}") from e

    @staticmethod
    def _dump(body: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
        if body is None:
            return None
        return body.model_dump(by_alias=True, exclude_none=True)

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            raise ApiCallError(f"Client {self._name} is not started")
        return self._session

    def _url(self, endpoint: str) -> str:
        return self._rest_config.base_url.rstrip("/") + "/" + endpoint.lstrip("/")

    def _default_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        headers.update(self._rest_config.headers)
        if not self._rest_config.username:
            headers[API_KEY_HEADER] = self._rest_config.api_key
        return headers

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        if self._rest_config.username:
            return aiohttp.BasicAuth(self._rest_config.username, self._rest_config.api_key)
        return None
