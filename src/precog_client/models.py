# Precog Client
# File: models.py
# Version: v3

"""Domain models returned by (and passed to) the Precog client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, Optional, Sequence, Tuple, TypeVar

from .errors import InvalidArgumentError

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Append / ingest
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppendError:
    """A single record the service refused to ingest."""

    line: int
    reason: str


@dataclass(frozen=True)
class AppendResult:
    """Server-reported counts for one append call.

    ``failed`` and ``errors`` describe per-record rejections; a transport
    failure never produces an AppendResult.
    """

    total: int
    ingested: int
    failed: int
    ingest_id: str = ""
    errors: Tuple[AppendError, ...] = ()


# Older revisions of the service called this an ingest result.
IngestResult = AppendResult


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


class SortOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class QueryOptions:
    """Paging and sorting options for a sync query.

    ``limit=0`` means unlimited. Limit and skip can be combined to page::

        opts = QueryOptions(limit=page_size, skip=page_size * (page - 1))
    """

    def __init__(
        self,
        limit: int = 0,
        skip: int = 0,
        sort_on: Optional[Sequence[str]] = None,
        sort_order: SortOrder = SortOrder.ASCENDING,
    ) -> None:
        self.limit = limit
        self.skip = skip
        self.sort_on = sort_on
        self.sort_order = sort_order

    @property
    def limit(self) -> int:
        return self._limit

    @limit.setter
    def limit(self, value: int) -> None:
        if value < 0:
            raise InvalidArgumentError(f"Limit must be non-negative: {value}")
        self._limit = int(value)

    @property
    def skip(self) -> int:
        return self._skip

    @skip.setter
    def skip(self, value: int) -> None:
        if value < 0:
            raise InvalidArgumentError(f"Skip must be non-negative: {value}")
        self._skip = int(value)

    @property
    def sort_on(self) -> Optional[List[str]]:
        """Dotted field names, highest sort precedence first."""
        return self._sort_on

    @sort_on.setter
    def sort_on(self, fields: Optional[Sequence[str]]) -> None:
        self._sort_on = list(fields) if fields is not None else None

    @property
    def sort_order(self) -> SortOrder:
        return self._sort_order

    @sort_order.setter
    def sort_order(self, order: SortOrder) -> None:
        self._sort_order = SortOrder(order)

    def __repr__(self) -> str:
        return (
            f"QueryOptions(limit={self.limit}, skip={self.skip}, "
            f"sort_on={self.sort_on!r}, sort_order={self.sort_order.name})"
        )


@dataclass(frozen=True)
class MessagePosition:
    line: int
    column: int
    text: str = ""


@dataclass(frozen=True)
class MessageReport:
    """A compile error or warning reported for the query text."""

    message: str
    position: Optional[MessagePosition] = None


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Decoded result of a query.

    Every query returns a list, even a scalar one: ``count(...)`` yields
    its count as ``data[0]``.
    """

    data: Tuple[T, ...]
    data_raw: str
    server_errors: Tuple[str, ...] = ()
    errors: Tuple[MessageReport, ...] = ()
    warnings: Tuple[MessageReport, ...] = ()


@dataclass(frozen=True)
class AsyncQueryHandle:
    """Opaque job id returned by an async query submission."""

    job_id: str


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountInfo:
    account_id: str
    email: str
    api_key: str = field(repr=False)
    root_path: str
    account_creation_date: str
    plan: str = "Free"
    profile: str = ""
    last_password_change_time: Optional[str] = None

    # Raw JSON payload from the API, for debugging / advanced use.
    raw: Optional[dict] = field(default=None, compare=False, repr=False)


def as_job_id(handle: Any) -> str:
    """Accept either an AsyncQueryHandle or a bare job id string."""
    job_id = handle.job_id if isinstance(handle, AsyncQueryHandle) else handle
    if not isinstance(job_id, str) or not job_id:
        raise InvalidArgumentError(f"Invalid async query handle: {handle!r}")
    return job_id
