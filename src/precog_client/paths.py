# Precog Client
# File: paths.py
# Version: v1

"""Canonical forms for storage and query paths.

Every path the client puts on the wire is canonical: one leading slash,
no empty segments and no trailing slash. Two spellings of the root path
need special handling:

- as a *base* path the root becomes ``""`` so that ``base + path`` still
  yields a single leading slash;
- as a sync *query* path the root is sent as ``//`` because a bare ``/``
  after ``/analytics/v1/fs`` gets folded away by URL normalisation.
"""

from __future__ import annotations

from typing import List, Optional

from .errors import InvalidArgumentError

ROOT = "/"


def _segments(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def validate_path(path: Optional[str]) -> str:
    """Reject missing paths and paths that do not start with ``/``."""
    if path is None or not isinstance(path, str) or not path.startswith("/"):
        raise InvalidArgumentError(
            f"Invalid path provided. Paths must start with '/': {path!r}"
        )
    return path


def canonicalize(path: Optional[str]) -> str:
    """Return ``path`` with duplicate and trailing slashes removed.

    >>> canonicalize("/a//b/")
    '/a/b'
    >>> canonicalize("/")
    '/'
    """
    validate_path(path)
    return "/" + "/".join(_segments(path))


def canonical_base_path(path: Optional[str]) -> str:
    """Canonicalize a client base path.

    Unlike operation paths, a base path may omit the leading slash (a
    bare account id is the usual case). The root collapses to ``""``.
    """
    if path is None:
        raise InvalidArgumentError("basePath must not be None")
    segments = _segments(path)
    if not segments:
        return ""
    return "/" + "/".join(segments)


def canonical_query_path(path: Optional[str]) -> str:
    """Canonicalize a sync query path, escaping the root as ``//``."""
    canonical = canonicalize(path)
    if canonical == ROOT:
        return "//"
    return canonical
