"""COMPACT-DECODED response codec.

A search response looks like::

    <RETS ReplyCode="0" ReplyText="Operation Success.">
    <COUNT Records="2" />
    <DELIMITER value="09"/>
    <COLUMNS>\tL_ListingID\tL_City\t</COLUMNS>
    <DATA>\t201\tSea Isle City\t</DATA>
    <DATA>\t202\tAvalon\t</DATA>
    </RETS>

``DELIMITER`` carries the hex code of the separator (tab when absent).
Everything here is pure string handling; no network access.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

DEFAULT_DELIMITER = "\t"
NO_RECORDS_FOUND = "20201"

_DELIMITER_RE = re.compile(r'<DELIMITER\s+value\s*=\s*"([^"]+)"', re.IGNORECASE)
_COLUMNS_RE = re.compile(r"<COLUMNS>(.*?)</COLUMNS>", re.IGNORECASE | re.DOTALL)
_DATA_RE = re.compile(r"<DATA>(.*?)</DATA>", re.IGNORECASE | re.DOTALL)
_REPLY_CODE_RE = re.compile(r'ReplyCode\s*=\s*"(\d+)"', re.IGNORECASE)
_REPLY_TEXT_RE = re.compile(r'ReplyText\s*=\s*"([^"]+)"', re.IGNORECASE)
_COUNT_RE = re.compile(r'<COUNT\s+Records\s*=\s*"(\d+)"', re.IGNORECASE)

Row = Dict[str, str]


def parse_delimiter(body: str) -> str:
    match = _DELIMITER_RE.search(body)
    if not match:
        return DEFAULT_DELIMITER
    try:
        code = int(match.group(1), 16)
    except ValueError:
        return DEFAULT_DELIMITER
    return chr(code) if 0 < code < 0x110000 else DEFAULT_DELIMITER


def parse_reply(body: str) -> Tuple[Optional[str], str]:
    """Return ``(reply_code, reply_text)``; the code is ``None`` when absent."""

    code = _REPLY_CODE_RE.search(body)
    text = _REPLY_TEXT_RE.search(body)
    return (code.group(1) if code else None, text.group(1) if text else "Unknown")


def record_count(body: str) -> Optional[int]:
    match = _COUNT_RE.search(body)
    return int(match.group(1)) if match else None


def has_columns(body: str) -> bool:
    return _COLUMNS_RE.search(body) is not None


def decode_compact(body: str) -> List[Row]:
    """Decode a COMPACT-DECODED body into ordered rows of column -> value.

    A body without a ``<COLUMNS>`` block decodes to no rows. Rows shorter than
    the column list are padded with empty strings since producers drop
    trailing empty fields.
    """

    delimiter = parse_delimiter(body)
    columns_match = _COLUMNS_RE.search(body)
    if not columns_match:
        return []
    columns = [name for name in columns_match.group(1).split(delimiter) if name]

    rows: List[Row] = []
    for data in _DATA_RE.finditer(body):
        values = data.group(1).split(delimiter)
        if values and values[0] == "":
            values.pop(0)
        if values and values[-1] == "":
            values.pop()
        rows.append({column: (values[i] if i < len(values) else "") for i, column in enumerate(columns)})
    return rows


def encode_compact(columns: Sequence[str], rows: Iterable[Row], delimiter: str = DEFAULT_DELIMITER, reply_code: str = "0") -> str:
    """Serialize rows back into a COMPACT-DECODED body (fixtures, replay)."""

    def _line(values: Sequence[str]) -> str:
        return delimiter + delimiter.join(values) + delimiter

    rows = list(rows)
    lines = [
        f'<RETS ReplyCode="{reply_code}" ReplyText="Operation Success.">',
        f'<COUNT Records="{len(rows)}" />',
        f'<DELIMITER value="{ord(delimiter):02X}"/>',
        f"<COLUMNS>{_line(columns)}</COLUMNS>",
    ]
    for row in rows:
        lines.append(f"<DATA>{_line([row.get(column, '') for column in columns])}</DATA>")
    lines.append("</RETS>")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_DELIMITER",
    "NO_RECORDS_FOUND",
    "Row",
    "decode_compact",
    "encode_compact",
    "has_columns",
    "parse_delimiter",
    "parse_reply",
    "record_count",
]
