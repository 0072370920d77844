# Precog Client
# File: auth.py
# Version: v3

"""Credentials for the accounts service.

Account calls authenticate with HTTP Basic (email, password) and are only
ever sent over HTTPS. Data calls use the API key query parameter instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlparse
import base64

from .errors import InsecureEndpointError


def require_https(endpoint: str) -> str:
    """Return ``endpoint`` unchanged, or fail if it is not an https URL."""
    scheme = urlparse(endpoint or "").scheme.lower()
    if scheme != "https":
        raise InsecureEndpointError(
            "HTTPS is required for all account-related operations. "
            f"Invalid endpoint: {endpoint}"
        )
    return endpoint


@dataclass(frozen=True)
class BasicCredentials:
    """Email/password pair for the accounts service."""

    email: str
    password: str = field(repr=False)

    def header(self) -> dict[str, str]:
        # base64(email:password)
        raw_credentials = f"{self.email}:{self.password}"
        basic_token = base64.b64encode(raw_credentials.encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {basic_token}"}
