"""HTTP transport built on httpx."""

import httpx

from klime.core.config import SDK_VERSION
from klime.core.logging import TRANSPORT_LOGGER_NAME, get_logger
from klime.transports.base import TransportError, TransportResponse

DEFAULT_TIMEOUT = 10.0


class HttpxTransport:
    """Async HTTP transport using ``httpx.AsyncClient``.

    Args:
        client: Optional preconfigured client (proxies, TLS, mounts). It is
            left open on ``aclose()``; the caller manages its lifecycle.
        timeout: Request timeout in seconds for the client created here.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._log = get_logger(TRANSPORT_LOGGER_NAME)

    async def send(self, url: str, body: bytes, write_key: str) -> TransportResponse:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {write_key}",
            "User-Agent": f"klime-python/{SDK_VERSION}",
        }
        try:
            resp = await self._client.post(url, content=body, headers=headers)
        except httpx.TransportError as e:
            self._log.debug(f"Request to {url} failed: {e!r}")
            raise TransportError(f"{type(e).__name__}: {e}") from e

        return TransportResponse(
            status_code=resp.status_code,
            body=resp.text,
            headers={k.lower(): v for k, v in resp.headers.items()},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
