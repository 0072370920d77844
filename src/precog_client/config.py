# Precog Client
# File: config.py
# Version: v2

"""Configuration for the Precog client."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Optional

from .errors import InvalidArgumentError
from .paths import canonical_base_path

DEFAULT_ENDPOINT = "https://beta.precog.com"


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


@dataclass(frozen=True)
class ClientConfig:
    """Endpoint, API key and base path shared by every client call.

    ``base_path`` is canonicalized on construction: ``"/"`` becomes
    ``""`` and ``"0000001/"`` becomes ``"/0000001"``, so operation paths
    can be appended directly.
    """

    endpoint: str
    api_key: str = field(repr=False)
    base_path: str = "/"

    verify_tls: bool = True
    # None blocks indefinitely, as the service protocol has no deadline.
    timeout_seconds: Optional[float] = None
    mock_mode: bool = False

    def __post_init__(self) -> None:
        if self.api_key is None:
            raise InvalidArgumentError("apiKey must not be None")
        if self.api_key == "":
            raise InvalidArgumentError("apiKey must not be empty")
        if not self.endpoint:
            raise InvalidArgumentError("endpoint must not be empty")

        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))
        object.__setattr__(self, "base_path", canonical_base_path(self.base_path))

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create configuration from environment variables."""
        endpoint = os.getenv("PRECOG_ENDPOINT") or DEFAULT_ENDPOINT
        api_key = os.getenv("PRECOG_API_KEY") or ""
        base_path = os.getenv("PRECOG_BASE_PATH") or "/"

        mock_mode = _parse_bool_env("PRECOG_MOCK_MODE", default=False)
        verify_tls = _parse_bool_env("PRECOG_VERIFY_TLS", default=True)

        timeout = _parse_int_env(
            "PRECOG_TIMEOUT_SECONDS", default=0, min_value=0, max_value=3600
        )

        # Mock mode never talks to a real service, so a placeholder key is fine.
        if mock_mode and not api_key:
            api_key = "mock-api-key"

        return cls(
            endpoint=endpoint,
            api_key=api_key,
            base_path=base_path,
            verify_tls=verify_tls,
            timeout_seconds=float(timeout) if timeout else None,
            mock_mode=mock_mode,
        )
