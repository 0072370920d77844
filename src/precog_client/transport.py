# Precog Client
# File: transport.py
# Version: v2

"""Thin httpx wrapper shared by every Precog call.

The transport owns one ``httpx.Client`` rooted at the configured
endpoint. Request bodies and response streams are scoped to a single
call; nothing else is kept between calls.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Iterator, Mapping, Optional, Sequence, Tuple

import httpx
from httpx import RequestError

from .errors import RemoteError, TransportError

logger = logging.getLogger(__name__)

Params = Sequence[Tuple[str, Any]]


def check_status(response: httpx.Response, expected: int, action: str) -> httpx.Response:
    """Raise RemoteError unless ``response`` carries the ``expected`` status."""
    if response.status_code != expected:
        raise RemoteError(
            f"Failed to {action}",
            status_code=response.status_code,
            body=response.text,
        )
    return response


class HttpTransport:
    """Issue requests against one Precog endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        verify_tls: bool = True,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._client = httpx.Client(
            base_url=self.endpoint,
            verify=verify_tls,
            timeout=timeout,
            transport=transport,
        )

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Params] = None,
        content: Any = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Send a request and return the fully-read response.

        Non-2xx statuses are returned, not raised; callers decide which
        status counts as success.
        """
        try:
            response = self._client.request(
                method,
                path,
                params=list(params) if params else None,
                content=content,
                json=json,
                headers=dict(headers) if headers else None,
            )
        except RequestError as exc:
            raise TransportError(
                f"Error calling Precog API ({method} {path}): {exc}"
            ) from exc

        # The query string carries the API key, so only the path is logged.
        logger.debug("%s %s -> HTTP %s", method, response.url.path, response.status_code)
        return response

    @contextmanager
    def stream(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Params] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Iterator[httpx.Response]:
        """Open a streamed response; the body is released on exit."""
        try:
            with self._client.stream(
                method,
                path,
                params=list(params) if params else None,
                headers=dict(headers) if headers else None,
            ) as response:
                logger.debug(
                    "%s %s -> HTTP %s (streamed)",
                    method,
                    response.url.path,
                    response.status_code,
                )
                yield response
        except RequestError as exc:
            raise TransportError(
                f"Error streaming from Precog API ({method} {path}): {exc}"
            ) from exc

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
