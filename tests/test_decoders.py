# Precog Client
# File: tests/test_decoders.py
# Version: v1

"""Tests for response decoding (append, query, async, accounts)."""

from __future__ import annotations

import json

import pytest

from precog_client.decoders import (
    decode_account_info,
    decode_append_result,
    decode_async_handle,
    decode_query_result,
)
from precog_client.errors import MalformedResponseError
from precog_client.models import AppendError, MessagePosition


# ---------------------------------------------------------------------------
# Append results
# ---------------------------------------------------------------------------


def test_append_result_reproduces_server_fields() -> None:
    body = json.dumps(
        {
            "total": 5,
            "ingested": 4,
            "failed": 1,
            "ingestId": "x",
            "errors": [{"line": 2, "reason": "bad"}],
        }
    )

    result = decode_append_result(body)

    assert result.total == 5
    assert result.ingested == 4
    assert result.failed == 1
    assert result.ingest_id == "x"
    assert result.errors == (AppendError(line=2, reason="bad"),)


def test_append_result_missing_ingest_id_is_empty() -> None:
    body = json.dumps({"total": 0, "ingested": 0, "failed": 0, "errors": []})
    assert decode_append_result(body).ingest_id == ""


@pytest.mark.parametrize("missing", ["total", "ingested", "failed", "errors"])
def test_append_result_requires_fields(missing) -> None:
    payload = {"total": 1, "ingested": 1, "failed": 0, "ingestId": "", "errors": []}
    payload.pop(missing)

    with pytest.raises(MalformedResponseError):
        decode_append_result(json.dumps(payload))


def test_append_result_one_bad_error_entry_fails_everything() -> None:
    body = json.dumps(
        {
            "total": 3,
            "ingested": 1,
            "failed": 2,
            "errors": [{"line": 1, "reason": "ok"}, {"line": "two", "reason": "bad"}],
        }
    )
    with pytest.raises(MalformedResponseError):
        decode_append_result(body)


def test_append_result_rejects_boolean_counts() -> None:
    body = json.dumps({"total": True, "ingested": 1, "failed": 0, "errors": []})
    with pytest.raises(MalformedResponseError):
        decode_append_result(body)


def test_append_result_rejects_non_json() -> None:
    with pytest.raises(MalformedResponseError):
        decode_append_result("<html>oops</html>")


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


def test_query_result_without_server_errors() -> None:
    result = decode_query_result('{"data":[1,2,3],"errors":[],"warnings":[]}', int)

    assert result.data == (1, 2, 3)
    assert result.server_errors == ()
    assert json.loads(result.data_raw) == [1, 2, 3]


def test_query_result_reports_and_server_errors() -> None:
    body = json.dumps(
        {
            "data": [{"a": 1}],
            "errors": [
                {"message": "unknown function", "position": {"line": 1, "column": 4, "text": "foo(x)"}}
            ],
            "warnings": [{"message": "unused binding"}],
            "serverErrors": ["timeout on shard 2"],
        }
    )

    result = decode_query_result(body)

    assert result.data == ({"a": 1},)
    assert result.errors[0].message == "unknown function"
    assert result.errors[0].position == MessagePosition(line=1, column=4, text="foo(x)")
    assert result.warnings[0].position is None
    assert result.server_errors == ("timeout on shard 2",)


@pytest.mark.parametrize("missing", ["data", "errors", "warnings"])
def test_query_result_requires_fields(missing) -> None:
    payload = {"data": [], "errors": [], "warnings": []}
    payload.pop(missing)

    with pytest.raises(MalformedResponseError):
        decode_query_result(json.dumps(payload))


def test_query_result_one_undecodable_element_fails_everything() -> None:
    with pytest.raises(MalformedResponseError):
        decode_query_result('{"data":[1,"two",3],"errors":[],"warnings":[]}', int)


def test_query_result_decoder_attribute_error_is_malformed() -> None:
    body = '{"data":[{"x":1},5],"errors":[],"warnings":[]}'

    with pytest.raises(MalformedResponseError):
        decode_query_result(body, lambda d: d.get("x"))


def test_query_result_custom_decoder_per_element() -> None:
    def to_pair(obj):
        return (obj["name"], obj["count"])

    body = '{"data":[{"name":"a","count":1},{"name":"b","count":2}],"errors":[],"warnings":[]}'
    result = decode_query_result(body, to_pair)
    assert result.data == (("a", 1), ("b", 2))


# ---------------------------------------------------------------------------
# Async handles & accounts
# ---------------------------------------------------------------------------


def test_async_handle() -> None:
    assert decode_async_handle('{"jobId":"job-9"}').job_id == "job-9"

    with pytest.raises(MalformedResponseError):
        decode_async_handle("{}")


def _account(**overrides):
    payload = {
        "accountId": "0000000001",
        "email": "someone@example.com",
        "apiKey": "KEY",
        "rootPath": "/0000000001/",
        "accountCreationDate": "2013-01-01T00:00:00.000Z",
        "lastPasswordChangeTime": "2013-02-01T00:00:00.000Z",
        "plan": {"type": "Bronze"},
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_account_info_plan_object_keeps_type() -> None:
    info = decode_account_info(_account())
    assert info.plan == "Bronze"
    assert info.api_key == "KEY"
    assert info.profile == ""
    assert info.last_password_change_time == "2013-02-01T00:00:00.000Z"


def test_account_info_plan_as_json_string() -> None:
    info = decode_account_info(_account(plan='{"type":"Silver"}'))
    assert info.plan == "Silver"


def test_account_info_plan_plain_string_and_default() -> None:
    assert decode_account_info(_account(plan="Gold")).plan == "Gold"
    assert decode_account_info(_account(plan=None)).plan == "Free"


def test_account_info_profile_object_kept_as_json() -> None:
    info = decode_account_info(_account(profile={"name": "Someone"}))
    assert json.loads(info.profile) == {"name": "Someone"}


def test_account_info_requires_api_key() -> None:
    payload = json.loads(_account())
    payload.pop("apiKey")
    with pytest.raises(MalformedResponseError):
        decode_account_info(json.dumps(payload))
