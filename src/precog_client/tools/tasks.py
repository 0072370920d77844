# Precog Client
# File: tools/tasks.py
# Version: v3
#
# NOTE: This module is the single place where client operations are shaped
# into MCP tools. The stdio transport simply calls `register_tools(server)`
# to wire these up.

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..client import PrecogClient
from ..config import DEFAULT_ENDPOINT, ClientConfig, _parse_bool_env, _parse_int_env
from ..errors import PrecogError
from ..formats import format_by_name
from ..mock import MockPrecogService
from ..models import QueryOptions, QueryResult, SortOrder
from ..paths import canonical_base_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


_MOCK_SERVICE: MockPrecogService | None = None


def _mock_service(api_key: str) -> MockPrecogService:
    """Process-wide mock deployment, so data survives between tool calls."""
    global _MOCK_SERVICE

    if _MOCK_SERVICE is None or _MOCK_SERVICE.api_key != api_key:
        _MOCK_SERVICE = MockPrecogService(api_key=api_key)
    return _MOCK_SERVICE


def _make_client(cfg: Optional[ClientConfig] = None) -> PrecogClient:
    """Create a PrecogClient from environment variables.

    If PRECOG_MOCK_MODE is truthy the client talks to an in-process
    MockPrecogService instead of the network.

    Note: Callers should prefer invoking this with *no arguments* so tests
    can replace _make_client with a no-arg lambda.
    """
    cfg = cfg or ClientConfig.from_env()

    if cfg.mock_mode:
        return PrecogClient(config=cfg, transport=_mock_service(cfg.api_key).transport())
    return PrecogClient(config=cfg)


def _make_error(code: str, message: str) -> Dict[str, Any]:
    return {"code": code, "message": message}


def _reports(reports) -> List[Dict[str, Any]]:
    out = []
    for r in reports:
        item: Dict[str, Any] = {"message": r.message}
        if r.position is not None:
            item["line"] = r.position.line
            item["column"] = r.position.column
        out.append(item)
    return out


def _query_payload(result: QueryResult, meta: Dict[str, Any]) -> Dict[str, Any]:
    rows = list(result.data)
    return {
        "summary": f"Query returned {len(rows)} result(s).",
        "data": rows,
        "meta": {
            **meta,
            "row_count": len(rows),
            "errors": _reports(result.errors),
            "warnings": _reports(result.warnings),
            "server_errors": list(result.server_errors),
        },
    }


# ---------------------------------------------------------------------------
# Core tasks (library-style)
# ---------------------------------------------------------------------------


def ping() -> Dict[str, Any]:
    try:
        cfg = ClientConfig.from_env()
    except PrecogError:
        return {"ok": False}
    return {"ok": bool(cfg.endpoint and cfg.api_key)}


def get_client_info() -> Dict[str, Any]:
    """Redacted snapshot of the client configuration from env.

    Reads the environment directly so it still works when the
    configuration is incomplete.
    """
    endpoint = os.getenv("PRECOG_ENDPOINT") or DEFAULT_ENDPOINT
    parsed = urlparse(endpoint)
    timeout = _parse_int_env("PRECOG_TIMEOUT_SECONDS", default=0, min_value=0, max_value=3600)
    return {
        "endpoint": endpoint,
        "host": parsed.hostname,
        "https": parsed.scheme == "https",
        "base_path": canonical_base_path(os.getenv("PRECOG_BASE_PATH") or "/") or "/",
        "api_key_configured": bool(os.getenv("PRECOG_API_KEY")),
        "mock_mode": _parse_bool_env("PRECOG_MOCK_MODE", default=False),
        "verify_tls": _parse_bool_env("PRECOG_VERIFY_TLS", default=True),
        "timeout_seconds": timeout or None,
    }


def query(
    path: str,
    query: str,
    limit: int = 0,
    skip: int = 0,
    sort_on: Optional[List[str]] = None,
    sort_order: str = "asc",
) -> Dict[str, Any]:
    options = QueryOptions(
        limit=limit,
        skip=skip,
        sort_on=sort_on,
        sort_order=SortOrder(sort_order),
    )
    with _make_client() as client:
        result = client.query(path, query, options)

    return _query_payload(
        result,
        {"path": path, "limit": limit, "skip": skip, "sort_on": sort_on, "sort_order": sort_order},
    )


def submit_async_query(path: str, query: str) -> Dict[str, Any]:
    with _make_client() as client:
        handle = client.query_async(path, query)

    return {
        "summary": f"Submitted async query job {handle.job_id}.",
        "data": {"job_id": handle.job_id},
        "meta": {"path": path},
    }


def fetch_async_query_results(job_id: str) -> Dict[str, Any]:
    # Pending and completed jobs look alike; an empty result may simply
    # mean the job has not finished yet.
    with _make_client() as client:
        result = client.query_results(job_id)

    return _query_payload(result, {"job_id": job_id})


def append(path: str, content: str, format: str = "json") -> Dict[str, Any]:
    fmt = format_by_name(format)
    with _make_client() as client:
        result = client.append_raw(path, content, fmt)

    return {
        "summary": f"Ingested {result.ingested} of {result.total} record(s) into {path}.",
        "data": {
            "total": result.total,
            "ingested": result.ingested,
            "failed": result.failed,
            "ingest_id": result.ingest_id,
            "errors": [{"line": e.line, "reason": e.reason} for e in result.errors],
        },
        "meta": {"path": path, "format": fmt.name, "content_type": fmt.content_type},
    }


def delete_path(path: str) -> Dict[str, Any]:
    with _make_client() as client:
        client.delete(path)

    return {"summary": f"Deleted data at {path}.", "data": {"path": path}, "meta": {}}


def diagnostics() -> Dict[str, Any]:
    started = time.time()
    info = get_client_info()
    checks: List[Dict[str, Any]] = []
    overall_ok = True

    t0 = time.time()
    try:
        client = _make_client()
        checks.append(
            {"name": "client_init", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)}
        )
    except PrecogError as exc:
        return {
            "ok": False,
            "config": info,
            "checks": [
                {
                    "name": "client_init",
                    "ok": False,
                    "error": _make_error("CONFIG_ERROR", str(exc)),
                    "elapsed_ms": int((time.time() - t0) * 1000),
                }
            ],
            "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
        }

    t0 = time.time()
    try:
        with client:
            client.query_raw("/", "count(load(\"/\"))")
        checks.append({"name": "query", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)})
    except PrecogError as exc:
        overall_ok = False
        logger.warning("Diagnostics query failed: %s", exc)
        checks.append(
            {
                "name": "query",
                "ok": False,
                "error": _make_error("BACKEND_ERROR", str(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )

    return {
        "ok": overall_ok,
        "config": info,
        "checks": checks,
        "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="precog_ping", description="Check that a Precog endpoint and API key are configured.")
    def mcp_ping() -> Dict[str, Any]:
        return ping()

    @server.tool(name="precog_client_info", description="Show the (redacted) Precog client configuration.")
    def mcp_client_info() -> Dict[str, Any]:
        return get_client_info()

    @server.tool(name="precog_diagnostics", description="Run a trivial query to verify connectivity.")
    def mcp_diagnostics() -> Dict[str, Any]:
        return diagnostics()

    @server.tool(
        name="precog_query",
        description="Run a synchronous query with optional paging (limit/skip) and sorting.",
    )
    def mcp_query(
        path: str,
        query_text: str,
        limit: int = 0,
        skip: int = 0,
        sort_on: Optional[List[str]] = None,
        sort_order: str = "asc",
    ) -> Dict[str, Any]:
        return query(
            path=path,
            query=query_text,
            limit=limit,
            skip=skip,
            sort_on=sort_on,
            sort_order=sort_order,
        )

    @server.tool(name="precog_query_async", description="Submit a query for background execution.")
    def mcp_query_async(path: str, query_text: str) -> Dict[str, Any]:
        return submit_async_query(path=path, query=query_text)

    @server.tool(
        name="precog_query_results",
        description="Fetch the current results of an async query job (empty while pending).",
    )
    def mcp_query_results(job_id: str) -> Dict[str, Any]:
        return fetch_async_query_results(job_id=job_id)

    @server.tool(
        name="precog_append",
        description="Append raw data (json, json_stream, csv, tsv or ssv) to a storage path.",
    )
    def mcp_append(path: str, content: str, format: str = "json") -> Dict[str, Any]:
        return append(path=path, content=content, format=format)

    @server.tool(name="precog_delete", description="Delete all data stored at a path.")
    def mcp_delete(path: str) -> Dict[str, Any]:
        return delete_path(path=path)
