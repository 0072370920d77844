# Precog Client
# File: __init__.py
# Version: v3

"""Python client for the Precog ingest, analytics and accounts APIs."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from . import formats
from .accounts import account_details, create_account
from .client import PrecogClient
from .config import DEFAULT_ENDPOINT, ClientConfig
from .errors import (
    AuthenticationFailedError,
    InsecureEndpointError,
    InvalidArgumentError,
    MalformedResponseError,
    PrecogError,
    RemoteError,
    TransportError,
)
from .formats import AppendFormat, delimited_format
from .models import (
    AccountInfo,
    AppendError,
    AppendResult,
    AsyncQueryHandle,
    IngestResult,
    MessagePosition,
    MessageReport,
    QueryOptions,
    QueryResult,
    SortOrder,
)

__all__ = [
    "__version__",
    "DEFAULT_ENDPOINT",
    "AccountInfo",
    "AppendError",
    "AppendFormat",
    "AppendResult",
    "AsyncQueryHandle",
    "AuthenticationFailedError",
    "ClientConfig",
    "IngestResult",
    "InsecureEndpointError",
    "InvalidArgumentError",
    "MalformedResponseError",
    "MessagePosition",
    "MessageReport",
    "PrecogClient",
    "PrecogError",
    "QueryOptions",
    "QueryResult",
    "RemoteError",
    "SortOrder",
    "TransportError",
    "account_details",
    "create_account",
    "delimited_format",
    "formats",
]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to a reasonable default when running from source without an
    installed distribution.
    """
    try:
        return version("precog-client")
    except PackageNotFoundError:
        # Running from source tree without installed package metadata.
        return "0.4.0"


__version__ = _resolve_version()
