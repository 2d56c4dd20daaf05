"""AXON JSON adapter.

Two jobs: strict loading of JSON input for the command line, and writing
the one-value-per-line bodies of the ``@json`` array layout.

Strict loading differs from a plain ``json.loads`` in three ways: object
key order is kept exactly as written, duplicate keys are rejected instead
of silently keeping the last one, and the non-standard constants NaN and
Infinity are rejected because the format cannot carry them.
"""

from __future__ import annotations

import json
from typing import Any, List, Tuple

from ._errors import AxonParseError, AxonTypeError

_BOM = b"\xef\xbb\xbf"


def _reject_constant(token: str) -> Any:
    raise AxonTypeError("$", "finite number", token,
                        "JSON constant {} not allowed".format(token))


def _pairs_hook(pairs: List[Tuple[str, Any]]) -> dict:
    result: dict = {}
    for key, value in pairs:
        if key in result:
            raise AxonParseError("duplicate key in JSON input", token=key)
        result[key] = value
    return result


def json_strict_load(raw: bytes) -> Any:
    """Parse UTF-8 JSON bytes into a host value."""
    if raw.lstrip(b" \t\r\n").startswith(_BOM):
        raise AxonParseError("UTF-8 BOM not allowed in JSON input")
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise AxonParseError("invalid UTF-8 in JSON input: {}".format(e.reason))
    try:
        return json.loads(
            text,
            object_pairs_hook=_pairs_hook,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise AxonParseError("JSON parse error: {}".format(e.msg), e.lineno, e.colno)


def dump_json_line(value: Any) -> str:
    """One ``@json`` row: compact single-line JSON, non-ASCII kept as is."""
    return json.dumps(value, ensure_ascii=False)


def dump_json_document(value: Any, indent: int = 2) -> str:
    return json.dumps(value, ensure_ascii=False, indent=indent)
