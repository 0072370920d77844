# Precog Client
# File: mock.py
# Version: v2

"""In-memory stand-in for the Precog REST services.

Activated by PRECOG_MOCK_MODE and used throughout the test-suite. It
speaks the same wire contract as the real ingest, analytics and accounts
services, behind an ``httpx.MockTransport``, so PrecogClient runs
unmodified against it.

Only two query shapes are understood::

    load("/path")
    count(load("/path"))

Anything else is answered with a compile error, the way the analytics
service reports a query it cannot parse.
"""

from __future__ import annotations

import base64
import csv
import io
import itertools
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

INGEST_PREFIX = "/ingest/v1/fs"
ANALYTICS_PREFIX = "/analytics/v1/fs"
QUERIES_PREFIX = "/analytics/v1/queries"
ACCOUNTS_PREFIX = "/accounts/v1/accounts"

_LOAD_RE = re.compile(r'^\s*load\(\s*"([^"]*)"\s*\)\s*$')
_COUNT_RE = re.compile(r'^\s*count\(\s*load\(\s*"([^"]*)"\s*\)\s*\)\s*$')


def _norm(path: str) -> str:
    return "/" + "/".join(part for part in path.split("/") if part)


def _lookup(record: Any, dotted: str) -> Any:
    value = record
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


@dataclass
class RecordedCall:
    method: str
    path: str
    params: Dict[str, str]
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class _Job:
    prefix: str
    query: str


class MockPrecogService:
    """Small in-memory Precog deployment.

    ``complete_jobs=False`` keeps every async job pending forever, so
    fetching it returns an empty ``data`` list.
    """

    def __init__(self, api_key: str = "mock-api-key", *, complete_jobs: bool = True) -> None:
        self.api_key = api_key
        self.complete_jobs = complete_jobs

        self.calls: List[RecordedCall] = []
        self._store: Dict[str, List[Any]] = {}
        self._jobs: Dict[str, _Job] = {}
        self._accounts: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def records(self, path: str) -> List[Any]:
        """Everything stored at ``path`` and below, in append order."""
        root = _norm(path)
        out: List[Any] = []
        for stored_path, items in self._store.items():
            if stored_path == root or root == "/" or stored_path.startswith(root + "/"):
                out.extend(items)
        return out

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = dict(request.url.params)
        self.calls.append(
            RecordedCall(
                method=request.method,
                path=path,
                params=params,
                headers={k.lower(): v for k, v in request.headers.items()},
            )
        )

        if path.startswith(ACCOUNTS_PREFIX):
            return self._accounts_api(request, path[len(ACCOUNTS_PREFIX):])

        if not self._key_ok(params.get("apiKey")):
            return httpx.Response(403, text="Invalid API key")

        if path.startswith(INGEST_PREFIX):
            target = _norm(path[len(INGEST_PREFIX):])
            if request.method == "POST":
                return self._ingest(request, target, params)
            if request.method == "DELETE":
                return self._delete(target)
        elif path.startswith(QUERIES_PREFIX):
            job_id = path[len(QUERIES_PREFIX):].strip("/")
            if request.method == "POST" and not job_id:
                return self._submit(params)
            if request.method == "GET" and job_id:
                return self._fetch(job_id, params)
        elif path.startswith(ANALYTICS_PREFIX) and request.method == "GET":
            base = _norm(path[len(ANALYTICS_PREFIX):])
            return httpx.Response(200, json=self._evaluate(base, params))

        return httpx.Response(404, text=f"No route for {request.method} {path}")

    def _key_ok(self, key: Optional[str]) -> bool:
        if key == self.api_key:
            return True
        return any(acc["apiKey"] == key for acc in self._accounts.values())

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def _ingest(self, request: httpx.Request, target: str, params: Dict[str, str]) -> httpx.Response:
        body = request.read().decode("utf-8")
        content_type = request.headers.get("content-type", "").split(";")[0].strip()

        if content_type == "text/csv":
            records, errors, total = self._parse_delimited(body, params)
        elif content_type == "application/x-json-stream":
            records, errors, total = self._parse_json_stream(body)
        elif content_type == "application/json":
            records, errors, total = self._parse_json(body)
        else:
            return httpx.Response(415, text=f"Unsupported content type: {content_type}")

        self._store.setdefault(target, []).extend(records)
        return httpx.Response(
            200,
            json={
                "total": total,
                "ingested": len(records),
                "failed": len(errors),
                "ingestId": f"ingest-{next(self._ids)}",
                "errors": errors,
            },
        )

    @staticmethod
    def _parse_json(body: str) -> Tuple[List[Any], List[Dict[str, Any]], int]:
        try:
            value = json.loads(body)
        except ValueError:
            value = None
        else:
            items = value if isinstance(value, list) else [value]
            return items, [], len(items)

        # Newline-delimited JSON, one event per non-blank line.
        records: List[Any] = []
        errors: List[Dict[str, Any]] = []
        total = 0
        for number, line in enumerate(body.splitlines()):
            if not line.strip():
                continue
            total += 1
            try:
                records.append(json.loads(line))
            except ValueError as exc:
                errors.append({"line": number, "reason": str(exc)})
        return records, errors, total

    @staticmethod
    def _parse_json_stream(body: str) -> Tuple[List[Any], List[Dict[str, Any]], int]:
        decoder = json.JSONDecoder()
        records: List[Any] = []
        errors: List[Dict[str, Any]] = []
        index = 0
        while index < len(body):
            while index < len(body) and body[index].isspace():
                index += 1
            if index >= len(body):
                break
            try:
                value, index = decoder.raw_decode(body, index)
            except ValueError as exc:
                errors.append({"line": body.count("\n", 0, index), "reason": str(exc)})
                break
            records.append(value)
        return records, errors, len(records) + len(errors)

    @staticmethod
    def _parse_delimited(body: str, params: Dict[str, str]) -> Tuple[List[Any], List[Dict[str, Any]], int]:
        delimiter = params.get("delimiter", ",")
        quote = params.get("quote", '"')
        escape = params.get("escape", '"')

        options: Dict[str, Any] = {"delimiter": delimiter, "quotechar": quote}
        if escape != quote:
            options.update(escapechar=escape, doublequote=False)

        rows = list(csv.reader(io.StringIO(body), **options))
        if not rows:
            return [], [], 0

        header, data_rows = rows[0], [r for r in rows[1:] if r]
        records: List[Any] = []
        errors: List[Dict[str, Any]] = []
        for number, row in enumerate(data_rows, start=1):
            if len(row) != len(header):
                errors.append(
                    {"line": number, "reason": f"expected {len(header)} fields, got {len(row)}"}
                )
                continue
            records.append(dict(zip(header, row)))
        return records, errors, len(data_rows)

    def _delete(self, target: str) -> httpx.Response:
        for stored_path in list(self._store):
            if target == "/" or stored_path == target or stored_path.startswith(target + "/"):
                del self._store[stored_path]
        return httpx.Response(200, json={})

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    def _evaluate(self, base: str, params: Dict[str, str]) -> Dict[str, Any]:
        query = params.get("q", "")
        result: Dict[str, Any] = {"data": [], "errors": [], "warnings": [], "serverErrors": []}

        match = _COUNT_RE.match(query)
        if match:
            result["data"] = [len(self.records(base + _norm(match.group(1))))]
            return result

        match = _LOAD_RE.match(query)
        if match:
            data = list(self.records(base + _norm(match.group(1))))
            result["data"] = self._page(data, params)
            return result

        result["errors"] = [
            {
                "message": "The mock service only understands load(...) and count(load(...)).",
                "position": {"line": 1, "column": 1, "text": query},
            }
        ]
        return result

    @staticmethod
    def _page(data: List[Any], params: Dict[str, str]) -> List[Any]:
        sort_on = params.get("sortOn")
        if sort_on:
            fields = [f for f in sort_on.strip("[]").split(",") if f]
            data.sort(
                key=lambda r: [(_lookup(r, f) is None, _lookup(r, f)) for f in fields],
                reverse=params.get("sortOrder") == "desc",
            )
        skip = int(params.get("skip", 0))
        limit = int(params.get("limit", 0))
        data = data[skip:]
        return data[:limit] if limit > 0 else data

    def _submit(self, params: Dict[str, str]) -> httpx.Response:
        job_id = f"job-{next(self._ids)}"
        self._jobs[job_id] = _Job(prefix=_norm(params.get("prefixPath", "/")), query=params.get("q", ""))
        return httpx.Response(202, json={"jobId": job_id})

    def _fetch(self, job_id: str, params: Dict[str, str]) -> httpx.Response:
        job = self._jobs.get(job_id)
        if job is None:
            return httpx.Response(404, text=f"Unknown job: {job_id}")

        if self.complete_jobs:
            result = self._evaluate(job.prefix, {"q": job.query})
        else:
            result = {"data": [], "errors": [], "warnings": [], "serverErrors": []}

        if params.get("format") == "simple":
            return httpx.Response(200, content=json.dumps(result["data"]).encode("utf-8"))
        return httpx.Response(200, json=result)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def _accounts_api(self, request: httpx.Request, rest: str) -> httpx.Response:
        account_id = rest.strip("/")

        if request.method == "POST" and not account_id:
            payload = json.loads(request.read() or b"{}")
            email = payload.get("email")
            if any(acc["email"] == email for acc in self._accounts.values()):
                return httpx.Response(400, text=f"An account already exists for {email}")

            new_id = f"{next(self._ids):010d}"
            record = {
                "accountId": new_id,
                "email": email,
                "password": payload.get("password"),
                "apiKey": f"key-{new_id}",
                "rootPath": f"/{new_id}/",
                "accountCreationDate": "2013-01-01T00:00:00.000Z",
                "lastPasswordChangeTime": "2013-01-01T00:00:00.000Z",
                "plan": {"type": "Free"},
            }
            if payload.get("profile"):
                record["profile"] = payload["profile"]
            self._accounts[new_id] = record
            return httpx.Response(200, json={"accountId": new_id})

        if request.method == "GET" and account_id:
            record = self._accounts.get(account_id)
            if record is None or not self._basic_ok(request, record):
                return httpx.Response(401, text="Invalid credentials")
            public = {k: v for k, v in record.items() if k != "password"}
            return httpx.Response(200, json=public)

        return httpx.Response(404, text=f"No route for {request.method} {request.url.path}")

    @staticmethod
    def _basic_ok(request: httpx.Request, record: Dict[str, Any]) -> bool:
        header = request.headers.get("authorization", "")
        if not header.startswith("Basic "):
            return False
        decoded = base64.b64decode(header[len("Basic "):]).decode("utf-8")
        email, _, password = decoded.partition(":")
        return email == record["email"] and password == record["password"]
