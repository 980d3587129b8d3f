"""HTTP transport for the record service."""
import logging
from typing import Any, Mapping, Optional, Protocol, Union

import httpx

from pbgen.core.config import settings
from pbgen.core.errors import NotFoundError, RequestCancelledError, TransportError

log = logging.getLogger(__name__)

Body = Union[bytes, Mapping[str, Any], None]


class CancelSignal(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool:
        ...


class Transport(Protocol):
    def send(
        self,
        method: str,
        path: str,
        body: Body = None,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> Any:
        """Send one request and return the decoded JSON response (None when empty).

        ``body`` is sent verbatim when bytes, JSON-encoded when a mapping and
        omitted when None.
        """
        ...


def _error_from_response(response: httpx.Response, path: str) -> TransportError:
    message = response.reason_phrase or f"HTTP {response.status_code}"
    data = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or message
        if isinstance(payload.get("data"), dict):
            data = payload["data"]

    if response.status_code == 404:
        return NotFoundError(message, data=data, url=path)
    return TransportError(response.status_code, message, data=data, url=path)


class HttpTransport:
    """Transport over an ``httpx.Client``.

    The auth token goes out verbatim in the ``Authorization`` header, which
    is what the store expects for both superuser and record tokens.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        token = token if token is not None else settings.auth_token
        if token:
            headers["Authorization"] = token
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.request_timeout,
            transport=transport,
        )

    def send(
        self,
        method: str,
        path: str,
        body: Body = None,
        *,
        cancel: Optional[CancelSignal] = None,
    ) -> Any:
        if cancel is not None and cancel.is_set():
            raise RequestCancelledError(url=path)

        kwargs = {}
        if isinstance(body, (bytes, bytearray)):
            kwargs["content"] = bytes(body)
        elif body is not None:
            kwargs["json"] = dict(body)

        log.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(0, str(e) or e.__class__.__name__, url=path) from e

        if response.is_error:
            raise _error_from_response(response, path)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(response.status_code, "response is not valid JSON", url=path) from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
