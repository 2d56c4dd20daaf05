"""AXON constants: modes, delimiters, type tables, and normative limits.

Thresholds for the mode selector and the compression analyzer live here
so that tests and tools can refer to the same numbers the codec uses.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

__format_version__ = "1.0"

# ── Encoding modes ────────────────────────────────────────────
MODE_AUTO = "auto"
MODE_COMPACT = "compact"
MODE_NESTED = "nested"
MODE_COLUMNAR = "columnar"
MODE_STREAM = "stream"
MODE_SPARSE = "sparse"
MODE_JSON = "json"

MODES: Tuple[str, ...] = (
    MODE_AUTO,
    MODE_COMPACT,
    MODE_NESTED,
    MODE_COLUMNAR,
    MODE_STREAM,
    MODE_SPARSE,
    MODE_JSON,
)

# Layout markers written after "[n]" in a tabular header.  Compact has no
# marker; nested is not an array layout.
LAYOUT_MARKERS: FrozenSet[str] = frozenset(
    {MODE_COLUMNAR, MODE_STREAM, MODE_SPARSE, MODE_JSON}
)

# ── Delimiters (compact layout only) ──────────────────────────
DELIMITERS: Dict[str, str] = {
    "pipe": "|",
    "comma": ",",
    "tab": "\t",
}

# ── Compression algorithms ────────────────────────────────────
# Analyzer names on the left, wire tags (header "@tag" and directive
# "@tag:field") on the right.  Bit-packing has no wire form.
ALGO_RLE = "rle"
ALGO_DICTIONARY = "dictionary"
ALGO_DELTA = "delta"
ALGO_BITPACK = "bitpack"
ALGO_NONE = "none"

WIRE_TAGS: Dict[str, str] = {
    ALGO_RLE: "rle",
    ALGO_DICTIONARY: "dict",
    ALGO_DELTA: "delta",
}

DIRECTIVE_DICT = "dict"
DIRECTIVE_IDX = "idx"
DIRECTIVE_RLE = "rle"
DIRECTIVE_DELTA = "delta"

# ── Primitive types ──────────────────────────────────────
UNSIGNED_TYPES: Tuple[str, ...] = ("u8", "u16", "u32", "u64")
SIGNED_TYPES: Tuple[str, ...] = ("i8", "i16", "i32", "i64")
FLOAT_TYPES: Tuple[str, ...] = ("f32", "f64")

TYPE_BITS: Dict[str, int] = {
    "u8": 8, "u16": 16, "u32": 32, "u64": 64,
    "i8": 8, "i16": 16, "i32": 32, "i64": 64,
    "f32": 32, "f64": 64,
}

UNSIGNED_MAX: Dict[str, int] = {
    "u8": 2**8 - 1,
    "u16": 2**16 - 1,
    "u32": 2**32 - 1,
    "u64": 2**64 - 1,
}

SIGNED_RANGE: Dict[str, Tuple[int, int]] = {
    "i8": (-(2**7), 2**7 - 1),
    "i16": (-(2**15), 2**15 - 1),
    "i32": (-(2**31), 2**31 - 1),
    "i64": (-(2**63), 2**63 - 1),
}

# Python ints are arbitrary-precision; the format stops at 64 bits.
INT_MIN: int = -(2**63)
INT_MAX: int = 2**64 - 1

# ── Normative limits ──────────────────────────────────────────
MAX_DEPTH: int = 100

# ── Mode selector thresholds ───────────────────────────
SPARSE_MIN_ROWS: int = 20
SPARSE_NULL_RATIO: float = 0.5
STREAM_MIN_ROWS: int = 50
COLUMNAR_MIN_ROWS: int = 100
COLUMNAR_NUMERIC_RATIO: float = 0.5

TEMPORAL_NAMES: FrozenSet[str] = frozenset(
    {"timestamp", "time", "date", "ts", "created", "updated"}
)
TEMPORAL_FRAGMENTS: Tuple[str, ...] = ("time", "date")

# ── Compression thresholds ─────────────────────────────
COMPRESSION_MIN_ROWS: int = 10
RLE_MIN_RATIO: float = 0.3
DICT_MAX_CARDINALITY: float = 0.2
DICT_MIN_RATIO: float = 0.2
DELTA_MIN_MONOTONIC: float = 0.8
DELTA_MIN_RATIO: float = 0.2
BITPACK_MAX_VALUE: int = 65_535
BITPACK_BASELINE_BITS: int = 32
BITPACK_MIN_RATIO: float = 0.2

# ── Output defaults ───────────────────────────────────────────
DEFAULT_INDENT: int = 2
ROW_INDENT: str = "  "
