"""Generic helpers for splitting git stdout.

Like every parser in this package these are best-effort: malformed input
yields fewer items, never an exception (``parse_json`` excepted, since
invalid JSON from git means the caller asked for the wrong command).
"""

from __future__ import annotations

import json
from typing import Any

from typegit.constants import FIELD_SEPARATOR

__all__ = [
    "parse_json",
    "parse_key_value",
    "parse_lines",
    "parse_records",
    "unquote_path",
]

_C_ESCAPES: dict[str, int] = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}
_OCTAL_DIGITS = frozenset("01234567")


def parse_lines(stdout: str, *, keep_empty: bool = False, trim: bool = True) -> list[str]:
    """Split newline-separated output into lines.

    Args:
        stdout: Raw stdout.
        keep_empty: Keep blank lines.
        trim: Strip surrounding whitespace from each line.

    Returns:
        The lines, blank ones dropped unless *keep_empty*.
    """
    lines = stdout.split("\n")
    if trim:
        lines = [line.strip() for line in lines]
    if keep_empty:
        return lines
    return [line for line in lines if line]


def parse_records(stdout: str, delimiter: str = FIELD_SEPARATOR) -> list[str]:
    """Split delimiter-terminated records (``-z`` output, ``%x00`` formats).

    A single trailing delimiter is removed first, so ``"a\\0b\\0"`` gives
    ``["a", "b"]``.
    """
    if not stdout:
        return []
    if stdout.endswith(delimiter):
        stdout = stdout[: -len(delimiter)]
    if not stdout:
        return []
    return stdout.split(delimiter)


def parse_key_value(
    stdout: str,
    *,
    separator: str = "=",
    delimiter: str = "\n",
) -> dict[str, str]:
    """Parse ``key<separator>value`` records, e.g. ``git config --list``.

    Values may contain the separator; only the first occurrence splits.
    Records without a key are skipped. Later duplicates win.
    """
    records = parse_lines(stdout) if delimiter == "\n" else parse_records(stdout, delimiter)

    result: dict[str, str] = {}
    for record in records:
        key, sep, value = record.partition(separator)
        if sep and key:
            result[key] = value
    return result


def parse_json(stdout: str, *, ndjson: bool = False) -> Any:
    """Parse JSON output, or newline-delimited JSON when *ndjson* is set.

    Returns:
        The decoded value; None (or ``[]`` for NDJSON) for blank output.

    Raises:
        json.JSONDecodeError: If the output is not valid JSON.
    """
    text = stdout.strip()
    if not text:
        return [] if ndjson else None
    if ndjson:
        return [json.loads(line) for line in text.split("\n") if line.strip()]
    return json.loads(text)


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of unusual paths (``core.quotePath``).

    ``"caf\\303\\251.txt"`` becomes ``café.txt``. Unquoted paths are
    returned unchanged.
    """
    if len(path) < 2 or path[0] != '"' or path[-1] != '"':
        return path

    body = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            octal = body[i + 1 : i + 4]
            if len(octal) == 3 and set(octal) <= _OCTAL_DIGITS:
                out.append(int(octal, 8) & 0xFF)
                i += 4
                continue
            escaped = _C_ESCAPES.get(body[i + 1])
            if escaped is not None:
                out.append(escaped)
                i += 2
                continue
        out.extend(char.encode("utf-8"))
        i += 1
    return out.decode("utf-8", errors="replace")
