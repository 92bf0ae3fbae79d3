from __future__ import annotations

from typing import Any, Dict, Optional, Type
from types import TracebackType

import httpx

from ...domain.errors import ApiError

TRANSPORT_FAILURE_STATUS = 500
SERVER_MESSAGE_FIELD = "errorMessage"


def _response_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _server_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get(SERVER_MESSAGE_FIELD)
        if message:
            return str(message)
    return None


class AsyncHttpClient:
    """Thin asynchronous HTTP client wrapper around httpx.AsyncClient.

    - Normalizes base URLs and paths.
    - Sends bearer auth and JSON headers on every request.
    - Converts non-2xx responses and transport failures into ``ApiError``.
    """

    def __init__(
        self,
        base_url: str,
        secret_key: str,
        *,
        verify: bool = True,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {secret_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            verify=verify,
            timeout=timeout,
            transport=transport,
        )

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        try:
            resp = await self._client.request(method, self._url(path), json=json)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = _response_body(e.response)
            raise ApiError(
                _server_message(body)
                or f"An error occurred while calling the Ercaspay API on path: {path}",
                status_code=e.response.status_code,
                response_body=body,
            ) from e
        except httpx.RequestError as e:
            raise ApiError(
                str(e)
                or "An unexpected error occurred while making the API request "
                f"on path: {path}",
                status_code=TRANSPORT_FAILURE_STATUS,
            ) from e
        return _response_body(resp)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
