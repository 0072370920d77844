# Precog Client
# File: tests/test_paths.py
# Version: v1

import pytest

from precog_client.errors import InvalidArgumentError
from precog_client.paths import (
    canonical_base_path,
    canonical_query_path,
    canonicalize,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("/a//b/", "/a/b"),
        ("/a", "/a"),
        ("/a/", "/a"),
        ("///a///b///c", "/a/b/c"),
        ("/", "/"),
    ],
)
def test_canonicalize_collapses_slashes(raw, expected) -> None:
    assert canonicalize(raw) == expected


@pytest.mark.parametrize("bad", [None, "", "a/b", "relative"])
def test_canonicalize_rejects_relative_or_missing(bad) -> None:
    with pytest.raises(InvalidArgumentError):
        canonicalize(bad)


def test_root_as_base_path_is_empty() -> None:
    assert canonical_base_path("/") == ""
    assert canonical_base_path("//") == ""


def test_root_as_query_path_is_escaped() -> None:
    assert canonical_query_path("/") == "//"
    assert canonical_query_path("/foo/") == "/foo"


def test_base_path_accepts_bare_account_id() -> None:
    # Base paths are commonly just the account id.
    assert canonical_base_path("0000000042") == "/0000000042"
    assert canonical_base_path("/0000000042/data/") == "/0000000042/data"


def test_base_path_none_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        canonical_base_path(None)
