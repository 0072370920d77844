# Precog Client
# File: client.py
# Version: v6
"""High-level client for the Precog ingest and analytics REST APIs.

Implements:

- append_raw() / append_stream() / append_from_file() via the ingest API
- upload_file() (delete, then append) and delete()
- append_object() / append_all() for JSON-serialisable records
- query() / query_raw() via the sync analytics API
- query_async() / query_results() / download_query_results() via the
  async analytics API

Account creation and lookup do not use an API key and live in
``accounts``; they are re-exposed here as static methods for
convenience.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import io
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, Union

import httpx

from . import accounts
from .config import ClientConfig
from .decoders import (
    ElementDecoder,
    decode_append_result,
    decode_async_handle,
    decode_query_result,
)
from .errors import InvalidArgumentError, RemoteError
from .formats import JSON, AppendFormat
from .models import (
    AppendResult,
    AsyncQueryHandle,
    QueryOptions,
    QueryResult,
    as_job_id,
)
from .paths import canonical_query_path, canonicalize, validate_path
from .transport import HttpTransport, check_status

logger = logging.getLogger(__name__)

INGEST_PATH = "/ingest/v1/fs"
ANALYTICS_PATH = "/analytics/v1/fs"
ASYNC_QUERIES_PATH = "/analytics/v1/queries"

_CHUNK_SIZE = 64 * 1024

Content = Union[str, bytes]
Handle = Union[AsyncQueryHandle, str]


def _iter_body(content: Any) -> Iterator[bytes]:
    """Yield request body chunks from a binary file object or byte iterable.

    Text chunks are rejected: their encoded length would not match a
    declared Content-Length.
    """
    read = getattr(content, "read", None)
    if read is None:
        chunks: Iterable[Any] = content
    else:
        chunks = iter(lambda: read(_CHUNK_SIZE), b"")

    for chunk in chunks:
        if isinstance(chunk, str):
            if not chunk:
                break
            raise InvalidArgumentError("append_stream expects bytes; open files in binary mode")
        yield chunk


@dataclass
class PrecogClient:
    """Wrapper around the Precog ingest and analytics APIs.

    Holds only the immutable configuration and one HTTP connection pool,
    so one instance may be shared between threads. Use it as a context
    manager, or call ``close()``, to release the pool.
    """

    config: ClientConfig
    transport: Optional[httpx.BaseTransport] = None
    encode: Callable[[Any], str] = json.dumps

    _http: HttpTransport = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._http = HttpTransport(
            self.config.endpoint,
            verify_tls=self.config.verify_tls,
            timeout=self.config.timeout_seconds,
            transport=self.transport,
        )

    @classmethod
    def from_env(cls, transport: Optional[httpx.BaseTransport] = None) -> "PrecogClient":
        return cls(config=ClientConfig.from_env(), transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PrecogClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    create_account = staticmethod(accounts.create_account)
    account_details = staticmethod(accounts.account_details)

    # ------------------------------------------------------------------
    # Ingest: append / delete
    # ------------------------------------------------------------------

    def _ingest_url(self, path: str) -> str:
        return f"{INGEST_PATH}{self.config.base_path}{canonicalize(path)}"

    def _append_params(
        self,
        fmt: AppendFormat,
        owner_account_id: Optional[str],
    ) -> List[Tuple[str, str]]:
        # Always a synchronous batch append with a receipt, so the response
        # carries the ingest counts.
        params = [
            ("apiKey", self.config.api_key),
            ("mode", "batch"),
            ("receipt", "true"),
        ]
        if owner_account_id is not None:
            params.append(("ownerAccountId", owner_account_id))
        params.extend(fmt.parameters)
        return params

    def _post_append(
        self,
        path: str,
        fmt: AppendFormat,
        body: Any,
        owner_account_id: Optional[str],
        content_length: Optional[int] = None,
    ) -> AppendResult:
        headers = {"Content-Type": fmt.content_type, "Accept": "application/json"}
        if content_length:
            headers["Content-Length"] = str(content_length)
        logger.debug("Appending to %s as %s%s", path, fmt.content_type, fmt.query_parameters())

        response = self._http.request(
            "POST",
            self._ingest_url(path),
            params=self._append_params(fmt, owner_account_id),
            content=body,
            headers=headers,
        )
        check_status(response, 200, f"append data to '{path}'")

        result = decode_append_result(response.text)
        logger.info(
            "Appended to %s: total=%d ingested=%d failed=%d",
            path,
            result.total,
            result.ingested,
            result.failed,
        )
        return result

    def append_raw(
        self,
        path: str,
        content: Content,
        fmt: AppendFormat = JSON,
        *,
        owner_account_id: Optional[str] = None,
    ) -> AppendResult:
        """Append ``content`` verbatim to ``path``.

        No processing is performed on the content; it must already be in
        ``fmt``. For example, to append CSV::

            client.append_raw("/some/path", "a,b\\n1,2", formats.CSV)

        ``owner_account_id`` is only needed when the API key alone does not
        identify the account that should own the data.
        """
        if content is None or len(content) == 0:
            raise InvalidArgumentError(
                "argument 'content' must contain a non-empty value formatted as described by the format"
            )
        validate_path(path)

        body = content.encode("utf-8") if isinstance(content, str) else content
        return self._post_append(path, fmt, body, owner_account_id)

    def append_stream(
        self,
        path: str,
        content: Union[Any, Iterable[bytes]],
        content_length: int = 0,
        fmt: AppendFormat = JSON,
        *,
        owner_account_id: Optional[str] = None,
    ) -> AppendResult:
        """Append data read from a binary stream.

        ``content`` must yield bytes: a file opened with ``"rb"`` or an
        iterable of ``bytes`` chunks. With ``content_length`` of 0 the body
        is sent with chunked transfer encoding; otherwise the exact length
        is declared upfront.
        """
        validate_path(path)
        if content is None:
            raise InvalidArgumentError("argument 'content' must not be None")
        if isinstance(content, (str, io.TextIOBase)):
            raise InvalidArgumentError("append_stream expects bytes; open files in binary mode")
        if content_length < 0:
            raise InvalidArgumentError(f"content_length must be non-negative: {content_length}")

        return self._post_append(
            path,
            fmt,
            _iter_body(content),
            owner_account_id,
            content_length=content_length,
        )

    def append_from_file(
        self,
        path: str,
        file_path: Union[str, "os.PathLike[str]"],
        fmt: AppendFormat = JSON,
        *,
        owner_account_id: Optional[str] = None,
    ) -> AppendResult:
        """Append the contents of a local file.

        Files should be UTF-8 without a byte-order mark.
        """
        validate_path(path)
        size = self._file_size(file_path)

        with open(file_path, "rb") as handle:
            return self.append_stream(
                path,
                handle,
                size,
                fmt,
                owner_account_id=owner_account_id,
            )

    def upload_file(
        self,
        path: str,
        file_path: Union[str, "os.PathLike[str]"],
        fmt: AppendFormat = JSON,
        *,
        owner_account_id: Optional[str] = None,
    ) -> AppendResult:
        """Replace the data at ``path`` with the contents of a file.

        This deletes first and appends second. It is not atomic: if the
        append fails the path is left empty.
        """
        validate_path(path)
        self._file_size(file_path)

        self.delete(path)
        return self.append_from_file(path, file_path, fmt, owner_account_id=owner_account_id)

    def append_object(
        self,
        path: str,
        record: Any,
        *,
        owner_account_id: Optional[str] = None,
        encode: Optional[Callable[[Any], str]] = None,
    ) -> AppendResult:
        """Serialize one record to JSON and append it."""
        if record is None:
            raise InvalidArgumentError("argument 'record' must not be None")
        encode = encode or self.encode
        return self.append_raw(path, encode(record), JSON, owner_account_id=owner_account_id)

    def append_all(
        self,
        path: str,
        records: Iterable[Any],
        *,
        owner_account_id: Optional[str] = None,
        encode: Optional[Callable[[Any], str]] = None,
    ) -> AppendResult:
        """Serialize each record to JSON and append them newline-joined."""
        if records is None:
            raise InvalidArgumentError("argument 'records' must not be None")
        encode = encode or self.encode
        content = "\n".join(encode(record) for record in records)
        return self.append_raw(path, content, JSON, owner_account_id=owner_account_id)

    def delete(self, path: str) -> None:
        """Delete all data stored at ``path``.

        The service may acknowledge before the deletion is visible to
        queries; callers that need to observe it must poll.
        """
        validate_path(path)
        response = self._http.request(
            "DELETE",
            self._ingest_url(path),
            params=[("apiKey", self.config.api_key)],
        )
        check_status(response, 200, f"delete data at '{path}'")
        logger.info("Deleted %s", path)

    @staticmethod
    def _file_size(file_path: Union[str, "os.PathLike[str]"]) -> int:
        size = Path(file_path).stat().st_size
        if size == 0:
            raise InvalidArgumentError(f"File to append is empty: {file_path}")
        return size

    # ------------------------------------------------------------------
    # Analytics: sync queries
    # ------------------------------------------------------------------

    def _query_params(self, query: str, options: Optional[QueryOptions]) -> List[Tuple[str, Any]]:
        if query is None:
            raise InvalidArgumentError("argument 'query' must not be None")

        options = options or QueryOptions()
        params: List[Tuple[str, Any]] = [
            ("apiKey", self.config.api_key),
            ("q", query),
            ("format", "detailed"),
        ]
        if options.limit > 0:
            params.append(("limit", options.limit))
        if options.skip != 0:
            params.append(("skip", options.skip))
        if options.sort_on:
            params.append(("sortOn", "[" + ",".join(options.sort_on) + "]"))
            params.append(("sortOrder", options.sort_order.value))
        return params

    def query_raw(
        self,
        path: str,
        query: str,
        options: Optional[QueryOptions] = None,
    ) -> str:
        """Run a sync query and return the undecoded JSON body.

        ``path`` is the base path for relative paths inside the query.
        With ``"/"`` every path in the query must be fully specified, so
        these two are equivalent::

            client.query_raw("/test", 'count(//foo)')
            client.query_raw("/", 'count(//test/foo)')
        """
        url = f"{ANALYTICS_PATH}{self.config.base_path}{canonical_query_path(path)}"
        response = self._http.request(
            "GET",
            url,
            params=self._query_params(query, options),
            headers={"Accept": "application/json"},
        )
        check_status(response, 200, f"run query against '{path}'")
        return response.text

    def query(
        self,
        path: str,
        query: str,
        options: Optional[QueryOptions] = None,
        *,
        decode: Optional[ElementDecoder] = None,
    ) -> QueryResult:
        """Run a sync query and decode its result.

        ``decode`` is applied to each element of ``data`` (e.g. ``int``);
        by default elements are left as parsed JSON.
        """
        return decode_query_result(self.query_raw(path, query, options), decode)

    # ------------------------------------------------------------------
    # Analytics: async queries
    # ------------------------------------------------------------------

    def _prefix_path(self, path: str) -> str:
        canonical = canonicalize(path)
        if canonical == "/":
            return self.config.base_path or "/"
        return self.config.base_path + canonical

    def query_async(self, path: str, query: str) -> AsyncQueryHandle:
        """Submit a query for background execution.

        The service answers 202 with a job id. No completion tracking is
        done here: fetch with ``query_results*`` and retry as needed.
        """
        if query is None:
            raise InvalidArgumentError("argument 'query' must not be None")

        response = self._http.request(
            "POST",
            ASYNC_QUERIES_PATH,
            params=[
                ("apiKey", self.config.api_key),
                ("prefixPath", self._prefix_path(path)),
                ("q", query),
            ],
            headers={"Accept": "application/json"},
        )
        check_status(response, 202, f"submit async query against '{path}'")

        handle = decode_async_handle(response.text)
        logger.debug("Submitted async query job %s", handle.job_id)
        return handle

    def _job_url(self, handle: Handle) -> str:
        return f"{ASYNC_QUERIES_PATH}/{as_job_id(handle)}"

    def query_results_raw(self, handle: Handle) -> str:
        """Fetch whatever the service currently holds for an async job."""
        response = self._http.request(
            "GET",
            self._job_url(handle),
            params=[("apiKey", self.config.api_key)],
            headers={"Accept": "application/json"},
        )
        check_status(response, 200, f"fetch results for job '{as_job_id(handle)}'")
        return response.text

    def query_results(
        self,
        handle: Handle,
        *,
        decode: Optional[ElementDecoder] = None,
    ) -> QueryResult:
        return decode_query_result(self.query_results_raw(handle), decode)

    def download_query_results(
        self,
        handle: Handle,
        file_path: Union[str, "os.PathLike[str]"],
    ) -> None:
        """Stream an async job's results, in simple format, into a new file.

        Never overwrites: fails with FileExistsError if ``file_path``
        already exists.
        """
        target = Path(file_path)
        if target.exists():
            raise FileExistsError(f"Refusing to overwrite existing file: {target}")

        job_id = as_job_id(handle)
        with self._http.stream(
            "GET",
            self._job_url(job_id),
            params=[("apiKey", self.config.api_key), ("format", "simple")],
        ) as response:
            if response.status_code != 200:
                response.read()
                raise RemoteError(
                    f"Failed to download results for job '{job_id}'",
                    status_code=response.status_code,
                    body=response.text,
                )

            try:
                with open(target, "xb") as output:
                    for chunk in response.iter_bytes():
                        output.write(chunk)
            except BaseException:
                # A dropped connection must not leave a partial file behind.
                target.unlink(missing_ok=True)
                raise

        logger.info("Downloaded results for job %s to %s", job_id, target)
