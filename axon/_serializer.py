"""AXON serializer.

Encoding runs in two passes.  ``validate_value`` walks the whole value
once, rejecting cycles, nesting deeper than MAX_DEPTH and values the format
cannot represent; only then is any text produced, so a failed encode never
yields partial output.  The render pass consults the mode selector for
every array and, with compression on, the compression analyzer for every
compact table.

Layouts written after an array header ``name::[n]``:

    compact   f:t[@algo]|...   directive lines, then rows ("~" = compressed)
    columnar  @columnar        one "field: v, v, ..." line per field
    stream    @stream[:key]    rows; key column as base then +d/-d steps
    sparse    @sparse          rows with empty cells for null, "?" on types
    json      @json            one JSON value per line

Arrays that fit none of these are written inline as ``[n]: v, v``.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from ._analyzer import (
    has_consistent_order,
    infer_type_for_field,
    is_integer,
    is_uniform,
)
from ._codecs import (
    columns_equal,
    compress_delta,
    compress_dictionary,
    compress_rle,
    decompress_delta,
    decompress_dictionary,
    decompress_rle,
)
from ._compression import analyze_compression
from ._constants import (
    ALGO_DELTA,
    ALGO_DICTIONARY,
    ALGO_RLE,
    DEFAULT_INDENT,
    DELIMITERS,
    INT_MAX,
    INT_MIN,
    MAX_DEPTH,
    MODE_AUTO,
    MODE_COLUMNAR,
    MODE_COMPACT,
    MODE_JSON,
    MODE_NESTED,
    MODE_SPARSE,
    MODE_STREAM,
    ROW_INDENT,
    WIRE_TAGS,
)
from ._errors import AxonOptionError, AxonStructureError, AxonTypeError
from ._json_adapter import dump_json_line
from ._modes import check_mode, is_temporal_name, select_mode

logger = logging.getLogger(__name__)

LAYOUT_INLINE = "inline"
_TABULAR = (MODE_COMPACT, MODE_COLUMNAR, MODE_STREAM, MODE_SPARSE)

_BARE = re.compile(r"[A-Za-z_][A-Za-z0-9_\-./@]*\Z")
_KEYWORDS = frozenset({"true", "false", "null"})
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


# ── Scalar formatting ─────────────────────────────────────────

def quote(text: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in text) + '"'


def format_string(text: str) -> str:
    """Bare when the text lexes back as exactly one identifier."""
    if _BARE.match(text) and text not in _KEYWORDS:
        return text
    return quote(text)


format_key = format_string


def format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    # bool before int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    return format_string(value)


def format_signed(delta: Any) -> str:
    text = format_scalar(delta)
    return text if text.startswith("-") else "+" + text


# ── Validation pass ───────────────────────────────────────────

def _child_path(path: str, key: Any) -> str:
    if isinstance(key, int):
        return "{}[{}]".format(path, key)
    return "{}.{}".format(path, key)


def validate_value(value: Any, depth: int = 1, path: str = "$",
                   visiting: Optional[Set[int]] = None) -> None:
    """Raise if ``value`` cannot be encoded.

    ``depth`` is the nesting level a container at this position would have
    (the root container is level 1).  ``visiting`` holds the ids of the
    containers on the current path and is created fresh per call.
    """
    if visiting is None:
        visiting = set()

    if isinstance(value, (dict, list)):
        oid = id(value)
        if oid in visiting:
            raise AxonStructureError("cycle detected: value contains itself", path)
        if depth > MAX_DEPTH:
            raise AxonStructureError(
                "nesting depth exceeds maximum of {}".format(MAX_DEPTH), path)
        visiting.add(oid)
        try:
            if isinstance(value, dict):
                for k, v in value.items():
                    if not isinstance(k, str):
                        raise AxonTypeError(path, "str key", type(k).__name__)
                    validate_value(v, depth + 1, _child_path(path, k), visiting)
            else:
                for i, item in enumerate(value):
                    validate_value(item, depth + 1, _child_path(path, i), visiting)
        finally:
            visiting.discard(oid)
        return

    if value is None or isinstance(value, (bool, str)):
        return
    if isinstance(value, int):
        if value < INT_MIN or value > INT_MAX:
            raise AxonTypeError(path, "integer in [-2**63, 2**64-1]", value)
        return
    if isinstance(value, float):
        if not math.isfinite(value):
            raise AxonTypeError(path, "finite number", value)
        return
    raise AxonTypeError(path, "null, bool, number, str, list or dict",
                        type(value).__name__)


# ── Option handling ───────────────────────────────────────────

def resolve_delimiter(delimiter: str) -> str:
    if delimiter in DELIMITERS:
        return DELIMITERS[delimiter]
    if delimiter in DELIMITERS.values():
        return delimiter
    raise AxonOptionError(
        "unknown delimiter {!r} (expected one of {})".format(
            delimiter, ", ".join(DELIMITERS)))


class Serializer:
    """Renders one value; create a new instance per ``encode`` call."""

    def __init__(self, mode: str = MODE_AUTO, delimiter: str = "pipe",
                 compression: bool = False,
                 indent: int = DEFAULT_INDENT) -> None:
        self.mode = check_mode(mode)
        self.delimiter = resolve_delimiter(delimiter)
        if not isinstance(compression, bool):
            raise AxonOptionError("compression must be a bool")
        if isinstance(indent, bool) or not isinstance(indent, int) or indent < 0:
            raise AxonOptionError("indent must be a non-negative int")
        self.compression = compression
        self.indent = " " * indent

    def serialize(self, value: Any) -> str:
        validate_value(value)
        lines: List[str] = []
        if isinstance(value, list):
            self._array(None, value, self.mode, "", lines)
        elif isinstance(value, dict):
            self._root_object(value, lines)
        else:
            if self.mode not in (MODE_AUTO, MODE_NESTED):
                logger.debug("%s layout does not apply to a scalar", self.mode)
            lines.append(format_scalar(value))
        return "\n".join(lines)

    # ── objects ──

    def _root_object(self, obj: Dict[str, Any], lines: List[str]) -> None:
        if not obj:
            lines.append("{}")
            return
        forced = self.mode not in (MODE_AUTO, MODE_NESTED)
        single_array = len(obj) == 1 and isinstance(next(iter(obj.values())), list)
        if forced and not single_array:
            logger.debug("%s layout does not apply to an object; using nested",
                         self.mode)
        self._fields(obj, "", lines, apply_mode=forced and single_array)

    def _fields(self, obj: Dict[str, Any], pad: str, lines: List[str],
                apply_mode: bool = False) -> None:
        for key, value in obj.items():
            name = format_key(key)
            if isinstance(value, dict):
                if not value:
                    lines.append("{}{}: {{}}".format(pad, name))
                    continue
                lines.append("{}{}: {{".format(pad, name))
                self._fields(value, pad + self.indent, lines)
                lines.append(pad + "}")
            elif isinstance(value, list):
                mode = self.mode if apply_mode else MODE_AUTO
                self._array(name, value, mode, pad, lines)
            else:
                lines.append("{}{}: {}".format(pad, name, format_scalar(value)))

    # ── arrays ──

    def _layout(self, items: List[Any], mode: str) -> str:
        selected = select_mode(items, mode)
        tabular = (is_uniform(items) and has_consistent_order(items)
                   and len(items[0]) > 0)
        if selected in _TABULAR and tabular:
            return selected
        if selected == MODE_JSON and items:
            return MODE_JSON
        if mode == MODE_AUTO:
            if items and is_uniform(items) and items[0] and not tabular:
                # Same keys in a different order per row.
                return MODE_JSON
            return LAYOUT_INLINE
        logger.debug("%s layout cannot represent this array; writing it inline",
                      selected)
        return LAYOUT_INLINE

    def _array(self, name: Optional[str], items: List[Any], mode: str,
               pad: str, lines: List[str]) -> None:
        layout = self._layout(items, mode)
        if layout == LAYOUT_INLINE:
            prefix = pad if name is None else "{}{}: ".format(pad, name)
            lines.append(prefix + inline_array(items))
            return

        head = "{}{}::[{}]".format(pad, name or "", len(items))
        row_pad = pad + ROW_INDENT
        if layout == MODE_JSON:
            lines.append(head + "@json")
            lines.extend(row_pad + dump_json_line(item) for item in items)
            return

        fields = list(items[0])
        types = {f: infer_type_for_field(items, f) for f in fields}
        if layout == MODE_COMPACT:
            self._compact(head, row_pad, items, fields, types, lines)
        elif layout == MODE_COLUMNAR:
            self._columnar(head, row_pad, items, fields, types, lines)
        elif layout == MODE_STREAM:
            self._stream(head, row_pad, items, fields, types, lines)
        else:
            self._sparse(head, row_pad, items, fields, types, lines)

    def _compact(self, head: str, row_pad: str, items: List[Dict[str, Any]],
                 fields: List[str], types: Dict[str, str],
                 lines: List[str]) -> None:
        compressed = self._compress(items) if self.compression else {}
        defs = []
        for f in fields:
            d = "{}:{}".format(format_key(f), types[f])
            if f in compressed:
                d += "@" + WIRE_TAGS[compressed[f][0]]
            defs.append(d)
        lines.append("{} {}".format(head, self.delimiter.join(defs)))

        for f in fields:
            if f in compressed:
                lines.extend(row_pad + line for line in compressed[f][1])
        if len(compressed) == len(fields):
            return
        for item in items:
            cells = ["~" if f in compressed else inline_value(item[f]) for f in fields]
            lines.append(row_pad + self.delimiter.join(cells))

    def _columnar(self, head: str, row_pad: str, items: List[Dict[str, Any]],
                  fields: List[str], types: Dict[str, str],
                  lines: List[str]) -> None:
        defs = ["{}:{}".format(format_key(f), types[f]) for f in fields]
        lines.append("{}@columnar {}".format(head, "|".join(defs)))
        for f in fields:
            values = ", ".join(inline_value(item[f]) for item in items)
            lines.append("{}{}: {}".format(row_pad, format_key(f), values))

    def _stream(self, head: str, row_pad: str, items: List[Dict[str, Any]],
                fields: List[str], types: Dict[str, str],
                lines: List[str]) -> None:
        key = stream_key(items, fields)
        marker = "@stream" if key is None else "@stream:" + format_key(key)
        defs = ["{}:{}".format(format_key(f), types[f]) for f in fields]
        lines.append("{}{} {}".format(head, marker, "|".join(defs)))
        prev = None
        for i, item in enumerate(items):
            cells = []
            for f in fields:
                if f == key:
                    value = item[f]
                    cells.append(str(value) if i == 0 else format_signed(value - prev))
                    prev = value
                else:
                    cells.append(inline_value(item[f]))
            lines.append(row_pad + "|".join(cells))

    def _sparse(self, head: str, row_pad: str, items: List[Dict[str, Any]],
                fields: List[str], types: Dict[str, str],
                lines: List[str]) -> None:
        defs = []
        for f in fields:
            nullable = any(item[f] is None for item in items)
            defs.append("{}:{}{}".format(format_key(f), types[f], "?" if nullable else ""))
        lines.append("{}@sparse {}".format(head, "|".join(defs)))
        for item in items:
            cells = ["" if item[f] is None else inline_value(item[f]) for f in fields]
            lines.append(row_pad + "|".join(cells))

    # ── compression ──

    def _compress(self, items: List[Dict[str, Any]]) -> Dict[str, Tuple[str, List[str]]]:
        out: Dict[str, Tuple[str, List[str]]] = {}
        for rec in analyze_compression(items):
            if rec.algorithm not in WIRE_TAGS:
                continue
            column = [item[rec.field] for item in items]
            directive = build_directive(rec.field, rec.algorithm, column)
            if directive is None:
                logger.debug("field %r: %s does not reproduce the column; "
                             "writing it uncompressed", rec.field, rec.algorithm)
                continue
            out[rec.field] = (rec.algorithm, directive)
        return out


def stream_key(items: List[Dict[str, Any]], fields: List[str]) -> Optional[str]:
    """First temporal field holding only integers, if any."""
    for f in fields:
        if is_temporal_name(f) and all(is_integer(item[f]) for item in items):
            return f
    return None


def build_directive(field: str, algorithm: str, column: List[Any]) -> Optional[List[str]]:
    """Directive lines for one column, or None if decoding would differ."""
    name = format_key(field)
    if algorithm == ALGO_RLE:
        runs = compress_rle(column)
        if not columns_equal(decompress_rle(runs), column):
            return None
        parts = [
            format_scalar(v) if n == 1 else "{}*{}".format(format_scalar(v), n)
            for v, n in runs
        ]
        return ["@rle:{} {}".format(name, "|".join(parts))]

    if algorithm == ALGO_DICTIONARY:
        dictionary, indices = compress_dictionary(column)
        if not columns_equal(decompress_dictionary(dictionary, indices), column):
            return None
        return [
            "@dict:{} [{}]".format(name, ", ".join(format_scalar(v) for v in dictionary)),
            "@idx:{} {}".format(name, ",".join(str(i) for i in indices)),
        ]

    if algorithm == ALGO_DELTA:
        deltas = compress_delta(column)
        if not columns_equal(decompress_delta(deltas), column):
            return None
        parts = [format_scalar(deltas[0])] + [format_signed(d) for d in deltas[1:]]
        return ["@delta:{} {}".format(name, "|".join(parts))]

    return None


# ── Inline values ─────────────────────────────────────────────

def inline_array(items: List[Any]) -> str:
    if not items:
        return "[0]:"
    return "[{}]: {}".format(len(items), ", ".join(inline_value(v) for v in items))


def inline_object(obj: Dict[str, Any]) -> str:
    entries = ("{}: {}".format(format_key(k), inline_value(v)) for k, v in obj.items())
    return "{" + ", ".join(entries) + "}"


def inline_value(value: Any) -> str:
    if isinstance(value, dict):
        return inline_object(value)
    if isinstance(value, list):
        return inline_array(value)
    return format_scalar(value)
