# Precog Client
# File: errors.py
# Version: v2

"""Exception hierarchy raised by the Precog client."""

from __future__ import annotations

from typing import Optional


class PrecogError(Exception):
    """Base exception for all Precog client failures."""


class InvalidArgumentError(PrecogError, ValueError):
    """A caller-supplied path, content or record was missing or malformed."""


class InsecureEndpointError(PrecogError):
    """Account operations were attempted against a non-HTTPS endpoint."""


class TransportError(PrecogError):
    """The HTTP request could not be completed (connection, TLS, timeout)."""


class MalformedResponseError(PrecogError):
    """A response body was missing required fields or had the wrong shape."""


class RemoteError(PrecogError):
    """The service answered with an unexpected HTTP status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body or ""
        snippet = self.body[:500]
        super().__init__(f"{message} (HTTP {status_code}). Response snippet: {snippet}")


class AuthenticationFailedError(RemoteError):
    """Basic-auth credentials were rejected by the accounts service."""
