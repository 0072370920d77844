# Precog Client
# File: decoders.py
# Version: v3

"""Turn raw JSON response bodies into result objects.

Decoding is all-or-nothing: a single malformed error entry or data
element fails the whole body with MalformedResponseError.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from .errors import MalformedResponseError
from .models import (
    AccountInfo,
    AppendError,
    AppendResult,
    AsyncQueryHandle,
    MessagePosition,
    MessageReport,
    QueryResult,
)

T = TypeVar("T")

ElementDecoder = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


def _load_object(body: str, what: str) -> Dict[str, Any]:
    try:
        data = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"{what} response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Unexpected {what} response: expected JSON object, got {type(data).__name__}."
        )
    return data


def _require(data: Dict[str, Any], key: str, kind: type, what: str) -> Any:
    if key not in data:
        raise MalformedResponseError(f"{what} response did not contain '{key}'")
    value = data[key]
    # bool is an int subclass; a boolean count is still malformed
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedResponseError(
            f"{what} response field '{key}' must be {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


# ---------------------------------------------------------------------------
# Append / ingest
# ---------------------------------------------------------------------------


def decode_append_result(body: str) -> AppendResult:
    data = _load_object(body, "append")

    total = _require(data, "total", int, "append")
    ingested = _require(data, "ingested", int, "append")
    failed = _require(data, "failed", int, "append")
    raw_errors = _require(data, "errors", list, "append")

    errors: List[AppendError] = []
    for index, item in enumerate(raw_errors):
        if not isinstance(item, dict):
            raise MalformedResponseError(
                f"append error entry {index} must be an object, got {type(item).__name__}"
            )
        line = _require(item, "line", int, f"append error entry {index}")
        reason = _require(item, "reason", str, f"append error entry {index}")
        errors.append(AppendError(line=line, reason=reason))

    ingest_id = data.get("ingestId")
    if ingest_id is None:
        ingest_id = ""
    elif not isinstance(ingest_id, str):
        raise MalformedResponseError("append response field 'ingestId' must be str")

    return AppendResult(
        total=total,
        ingested=ingested,
        failed=failed,
        ingest_id=ingest_id,
        errors=tuple(errors),
    )


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


def _decode_reports(raw: List[Any], what: str) -> Tuple[MessageReport, ...]:
    reports: List[MessageReport] = []
    for index, item in enumerate(raw):
        label = f"query {what} entry {index}"
        if not isinstance(item, dict):
            raise MalformedResponseError(f"{label} must be an object")
        message = _require(item, "message", str, label)

        position: Optional[MessagePosition] = None
        raw_position = item.get("position")
        if raw_position is not None:
            if not isinstance(raw_position, dict):
                raise MalformedResponseError(f"{label} position must be an object")
            text = raw_position.get("text") or ""
            position = MessagePosition(
                line=_require(raw_position, "line", int, f"{label} position"),
                column=_require(raw_position, "column", int, f"{label} position"),
                text=str(text),
            )

        reports.append(MessageReport(message=message, position=position))
    return tuple(reports)


def decode_query_result(
    body: str,
    decode: Optional[ElementDecoder] = None,
) -> QueryResult:
    """Decode a ``format=detailed`` query response.

    ``decode`` is applied to every parsed element of ``data``; any
    exception it raises fails the whole result.
    """
    decode = decode or _identity
    data = _load_object(body, "query")

    raw_data = _require(data, "data", list, "query")
    raw_errors = _require(data, "errors", list, "query")
    raw_warnings = _require(data, "warnings", list, "query")

    raw_server_errors = data.get("serverErrors")
    if raw_server_errors is None:
        raw_server_errors = []
    elif not isinstance(raw_server_errors, list):
        raise MalformedResponseError("query response field 'serverErrors' must be list")

    items = []
    for index, element in enumerate(raw_data):
        try:
            items.append(decode(element))
        except Exception as exc:
            raise MalformedResponseError(
                f"Could not decode query data element {index}: {exc}"
            ) from exc

    return QueryResult(
        data=tuple(items),
        data_raw=json.dumps(raw_data),
        server_errors=tuple(str(e) for e in raw_server_errors),
        errors=_decode_reports(raw_errors, "error"),
        warnings=_decode_reports(raw_warnings, "warning"),
    )


def decode_async_handle(body: str) -> AsyncQueryHandle:
    data = _load_object(body, "async query")
    job_id = _require(data, "jobId", str, "async query")
    if not job_id:
        raise MalformedResponseError("async query response contained an empty 'jobId'")
    return AsyncQueryHandle(job_id=job_id)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def decode_account_id(body: str) -> str:
    data = _load_object(body, "account creation")
    return _require(data, "accountId", str, "account creation")


def _resolve_plan(raw: Any) -> str:
    """Reduce the plan field to its type name.

    The service sends ``{"type": "..."}``; older deployments sent the
    same object serialized into a string.
    """
    if raw is None:
        return "Free"
    if isinstance(raw, dict):
        plan_type = raw.get("type")
        if not isinstance(plan_type, str):
            raise MalformedResponseError("account plan object has no string 'type'")
        return plan_type
    if isinstance(raw, str):
        if raw.lstrip().startswith("{") and "type" in raw.lower():
            try:
                parsed = json.loads(raw)
            except ValueError as exc:
                raise MalformedResponseError(f"account plan is not valid JSON: {exc}") from exc
            return _resolve_plan(parsed)
        return raw
    raise MalformedResponseError(f"account plan has unexpected type {type(raw).__name__}")


def decode_account_info(body: str) -> AccountInfo:
    data = _load_object(body, "account details")

    profile = data.get("profile")
    if profile is None:
        profile_text = ""
    elif isinstance(profile, str):
        profile_text = profile
    else:
        profile_text = json.dumps(profile)

    return AccountInfo(
        account_id=_require(data, "accountId", str, "account details"),
        email=_require(data, "email", str, "account details"),
        api_key=_require(data, "apiKey", str, "account details"),
        root_path=_require(data, "rootPath", str, "account details"),
        account_creation_date=str(data.get("accountCreationDate") or ""),
        plan=_resolve_plan(data.get("plan")),
        profile=profile_text,
        last_password_change_time=data.get("lastPasswordChangeTime"),
        raw=data,
    )
