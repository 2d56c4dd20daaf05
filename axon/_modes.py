"""AXON layout selection.

Automatic selection tests uniform arrays in a fixed priority order:
sparse, then stream, then columnar, then compact.  A time series that is
also sparse is sparse; a large numeric table with a temporal field is a
stream.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ._analyzer import analyze, is_number
from ._constants import (
    COLUMNAR_MIN_ROWS,
    COLUMNAR_NUMERIC_RATIO,
    MODE_AUTO,
    MODE_COLUMNAR,
    MODE_COMPACT,
    MODE_JSON,
    MODE_NESTED,
    MODE_SPARSE,
    MODE_STREAM,
    MODES,
    SPARSE_MIN_ROWS,
    SPARSE_NULL_RATIO,
    STREAM_MIN_ROWS,
    TEMPORAL_FRAGMENTS,
    TEMPORAL_NAMES,
)
from ._errors import AxonOptionError
from ._types import ModeRecommendation

logger = logging.getLogger(__name__)


def is_temporal_name(name: str) -> bool:
    lowered = name.lower()
    if lowered in TEMPORAL_NAMES:
        return True
    return any(frag in lowered for frag in TEMPORAL_FRAGMENTS)


def temporal_fields(rows: List[Dict[str, Any]]) -> List[str]:
    if not rows:
        return []
    return [f for f in rows[0] if is_temporal_name(f)]


def null_ratio(rows: List[Dict[str, Any]]) -> float:
    total = 0
    nulls = 0
    for row in rows:
        for value in row.values():
            total += 1
            if value is None:
                nulls += 1
    if total == 0:
        return 0.0
    return nulls / total


def numeric_field_count(rows: List[Dict[str, Any]]) -> int:
    if not rows:
        return 0
    return sum(
        1 for f in rows[0]
        if all(is_number(row.get(f)) for row in rows)
    )


# ── Layout predicates ─────────────────────────────────────────

def should_use_sparse(rows: List[Dict[str, Any]]) -> bool:
    if len(rows) < SPARSE_MIN_ROWS:
        return False
    return null_ratio(rows) > SPARSE_NULL_RATIO


def should_use_stream(rows: List[Dict[str, Any]]) -> bool:
    if len(rows) < STREAM_MIN_ROWS:
        return False
    return bool(temporal_fields(rows))


def should_use_columnar(rows: List[Dict[str, Any]]) -> bool:
    if len(rows) < COLUMNAR_MIN_ROWS:
        return False
    shape = analyze(rows)
    if not shape.is_uniform or not shape.fields:
        return False
    return numeric_field_count(rows) / len(shape.fields) > COLUMNAR_NUMERIC_RATIO


# ── Selection ─────────────────────────────────────────────────

def check_mode(mode: Optional[str]) -> str:
    if mode is None:
        return MODE_AUTO
    if mode not in MODES:
        raise AxonOptionError(
            "unknown mode {!r} (expected one of {})".format(mode, ", ".join(MODES))
        )
    return mode


def select_mode(value: Any, mode: Optional[str] = None) -> str:
    """Layout for ``value``.  An explicit, non-auto mode is returned as is."""
    mode = check_mode(mode)
    if mode != MODE_AUTO:
        return mode

    if not isinstance(value, list):
        return MODE_NESTED
    if not value:
        return MODE_COMPACT

    shape = analyze(value)
    if not shape.is_array_of_objects:
        return MODE_COMPACT
    if not shape.is_uniform:
        return MODE_JSON

    if should_use_sparse(value):
        selected = MODE_SPARSE
    elif should_use_stream(value):
        selected = MODE_STREAM
    elif should_use_columnar(value):
        selected = MODE_COLUMNAR
    else:
        selected = MODE_COMPACT
    logger.debug("selected %s layout for %d rows", selected, len(value))
    return selected


def recommend_mode(value: Any) -> ModeRecommendation:
    """Automatic selection plus the measurements that drove it."""
    selected = select_mode(value)
    rows: List[Dict[str, Any]] = []
    is_array = isinstance(value, list)
    shape = analyze(value)
    if shape.is_array_of_objects:
        rows = [item for item in value if isinstance(item, dict)]

    numeric_heavy = False
    has_time = False
    sparsity = 0.0
    if rows:
        field_count = len(rows[0])
        if field_count:
            numeric_heavy = numeric_field_count(rows) / field_count > COLUMNAR_NUMERIC_RATIO
        has_time = bool(temporal_fields(rows))
        sparsity = null_ratio(rows)

    length = len(value) if is_array else 0
    if selected == MODE_COLUMNAR:
        reason = ("Large numeric dataset ({} rows, >50% numeric fields); "
                  "columnar layout suits analytics".format(length))
    elif selected == MODE_STREAM:
        reason = ("Time-series data ({} rows with a temporal field); "
                  "stream layout for sequential data".format(length))
    elif selected == MODE_SPARSE:
        reason = "High sparsity ({:.0f}% null values); sparse layout omits nulls".format(
            sparsity * 100)
    elif selected == MODE_COMPACT:
        reason = "Tabular or scalar array ({} items); compact row layout".format(length)
    elif selected == MODE_NESTED:
        reason = "Not an array; nested layout preserves structure"
    else:
        reason = "Non-uniform array of objects; one JSON value per line"

    return ModeRecommendation(
        mode=selected,
        reason=reason,
        characteristics={
            "is_array": is_array,
            "length": length,
            "is_uniform": shape.is_uniform,
            "is_numeric_heavy": numeric_heavy,
            "has_time_field": has_time,
            "sparsity_ratio": sparsity,
        },
    )
