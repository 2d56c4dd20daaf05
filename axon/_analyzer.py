"""AXON data-shape analysis and primitive type inference.

Numeric widening rules:

    equal types           -> unchanged
    either side is float  -> f64
    signedness differs    -> smallest signed type strictly wider than both
                             (u8+i8 -> i16, u32+i32 -> i64, u64+i* -> f64)
    same signedness       -> the wider of the two by bit width
    numeric + non-numeric -> str

Unsigned and signed types are only ever ranked within their own class.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ._constants import (
    FLOAT_TYPES,
    SIGNED_RANGE,
    SIGNED_TYPES,
    TYPE_BITS,
    UNSIGNED_MAX,
    UNSIGNED_TYPES,
)
from ._types import DataShape


def is_integer(value: Any) -> bool:
    """True for ints that are not bools (bool is an int subclass)."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_numeric_type(type_name: str) -> bool:
    return type_name in TYPE_BITS


def _int_type(lo: int, hi: int) -> str:
    """Narrowest integer type covering [lo, hi]; f64 when none does."""
    if lo >= 0:
        for name in UNSIGNED_TYPES:
            if hi <= UNSIGNED_MAX[name]:
                return name
        return "f64"
    for name in SIGNED_TYPES:
        smin, smax = SIGNED_RANGE[name]
        if smin <= lo and hi <= smax:
            return name
    return "f64"


# ── Scalar inference ──────────────────────────────────────────

def infer_type(value: Any) -> str:
    if value is None:
        return "null"
    # bool before int
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return _int_type(value, value)
    if isinstance(value, float):
        return "f32"
    return "str"


def widen_type(a: str, b: str) -> str:
    """Smallest type both ``a`` and ``b`` can be represented in."""
    if a == b:
        return a
    if a == "null":
        return b
    if b == "null":
        return a
    if not (is_numeric_type(a) and is_numeric_type(b)):
        return "str"

    if a in FLOAT_TYPES or b in FLOAT_TYPES:
        return "f64"

    a_signed = a in SIGNED_TYPES
    b_signed = b in SIGNED_TYPES
    if a_signed != b_signed:
        bits = max(TYPE_BITS[a], TYPE_BITS[b])
        for name in SIGNED_TYPES:
            if TYPE_BITS[name] > bits:
                return name
        return "f64"

    return a if TYPE_BITS[a] >= TYPE_BITS[b] else b


def infer_type_for_field(rows: List[Dict[str, Any]], field: str) -> str:
    """Type of ``field`` across every row.

    Missing and null values are skipped.  Integers are typed by the range
    they span, everything else is folded through ``widen_type``.
    """
    lo: Optional[int] = None
    hi: Optional[int] = None
    other = "null"
    for row in rows:
        value = row.get(field)
        if value is None:
            continue
        if is_integer(value):
            lo = value if lo is None else min(lo, value)
            hi = value if hi is None else max(hi, value)
        else:
            other = widen_type(other, infer_type(value))

    if lo is None or hi is None:
        return other
    return widen_type(other, _int_type(lo, hi))


# ── Shape analysis ────────────────────────────────────────────

def _same_key_set(first: Dict[str, Any], items: Iterable[Any]) -> bool:
    keys = set(first)
    for item in items:
        if not isinstance(item, dict):
            return False
        if len(item) != len(keys) or set(item) != keys:
            return False
    return True


def is_uniform(items: List[Any]) -> bool:
    """Every element is a dict and all share the first one's key set."""
    if not items or not isinstance(items[0], dict):
        return False
    return _same_key_set(items[0], items[1:])


def has_consistent_order(items: List[Dict[str, Any]]) -> bool:
    """All rows list their keys in the same order as the first row."""
    if not items:
        return True
    order = list(items[0])
    return all(list(item) == order for item in items[1:])


def analyze(value: Any) -> DataShape:
    if not isinstance(value, list):
        return DataShape()
    if not value or not isinstance(value[0], dict):
        return DataShape(is_array=True)

    if not is_uniform(value):
        return DataShape(is_array=True, is_array_of_objects=True)

    fields = list(value[0])
    types = {f: infer_type_for_field(value, f) for f in fields}
    return DataShape(
        is_array=True,
        is_array_of_objects=True,
        is_uniform=True,
        fields=fields,
        types=types,
    )
