# Precog Client
# File: formats.py
# Version: v3

"""Content formats accepted by the ingest service.

A format is an immutable pair of MIME type and extra request parameters.
New formats are plain new instances; the client never switches on which
format it was given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .errors import InvalidArgumentError


@dataclass(frozen=True)
class AppendFormat:
    """MIME type plus ordered wire parameters for an append payload.

    ``parameters`` is what the client sends: the pairs are added to the
    request's query string and URL-encoded there (a tab delimiter goes out
    as ``%09``).
    """

    name: str
    content_type: str
    parameters: Tuple[Tuple[str, str], ...] = ()

    def query_parameters(self) -> str:
        """Render the extra parameters as unencoded ``&key=value`` pairs.

        Empty for JSON and JSON-stream. Meant for display and logging;
        requests are built from ``parameters``.
        """
        return "".join(f"&{key}={value}" for key, value in self.parameters)


def _single_char(label: str, value: str) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise InvalidArgumentError(
            f"{label} must be a single character, got {value!r}"
        )
    return value


def delimited_format(
    delimiter: str,
    quote: str = '"',
    escape: str = '"',
    name: str | None = None,
) -> AppendFormat:
    """Build an RFC 4180 style delimited format.

    The MIME type is always ``text/csv``; the service tells variants apart
    from the ``delimiter``/``quote``/``escape`` parameters. The escape
    character represents the quote character inside quoted values, e.g.
    an Informix dump would use ``delimited_format("|", escape="\\\\")``.
    """
    delimiter = _single_char("delimiter", delimiter)
    quote = _single_char("quote", quote)
    escape = _single_char("escape", escape)
    return AppendFormat(
        name=name or f"delimited({delimiter!r})",
        content_type="text/csv",
        parameters=(
            ("delimiter", delimiter),
            ("quote", quote),
            ("escape", escape),
        ),
    )


# A root-level JSON value, or an array whose elements are appended as
# separate events.
JSON = AppendFormat(name="json", content_type="application/json")

# Concatenated JSON values with no separators, e.g. {"a":1}{"a":2}.
JSON_STREAM = AppendFormat(name="json_stream", content_type="application/x-json-stream")

CSV = delimited_format(",", name="csv")
TSV = delimited_format("\t", name="tsv")
SSV = delimited_format(";", name="ssv")

_BY_NAME: Dict[str, AppendFormat] = {
    fmt.name: fmt for fmt in (JSON, JSON_STREAM, CSV, TSV, SSV)
}


def format_by_name(name: str) -> AppendFormat:
    """Look up one of the predefined formats (case-insensitive)."""
    key = (name or "").strip().lower().replace("-", "_")
    try:
        return _BY_NAME[key]
    except KeyError:
        known = ", ".join(sorted(_BY_NAME))
        raise InvalidArgumentError(
            f"Unknown append format {name!r}. Expected one of: {known}"
        ) from None
