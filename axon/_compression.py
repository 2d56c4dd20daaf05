"""AXON compression analysis.

For each field of a uniform array with at least COMPRESSION_MIN_ROWS rows,
recommend at most one algorithm.  Candidates are tried in a fixed order and
the first one that qualifies wins:

    rle         1 - runs/rows >= 0.3
    dictionary  text or null only, cardinality < 0.2, size saving >= 0.2
    delta       finite numbers only, >= 80% of steps in one direction,
                digit saving >= 0.2
    bitpack     integers in [0, 65535], saving vs 32 bits >= 0.2

Only scalar columns are considered.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List

from ._analyzer import is_integer
from ._codecs import compress_delta, compress_dictionary, count_runs
from ._constants import (
    ALGO_BITPACK,
    ALGO_DELTA,
    ALGO_DICTIONARY,
    ALGO_NONE,
    ALGO_RLE,
    BITPACK_BASELINE_BITS,
    BITPACK_MAX_VALUE,
    BITPACK_MIN_RATIO,
    COMPRESSION_MIN_ROWS,
    DELTA_MIN_MONOTONIC,
    DELTA_MIN_RATIO,
    DICT_MAX_CARDINALITY,
    DICT_MIN_RATIO,
    RLE_MIN_RATIO,
)
from ._types import CompressionRecommendation

logger = logging.getLogger(__name__)


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float, str))


def _text_len(value: Any) -> int:
    if value is None:
        return 4
    return len(str(value))


# ── Ratio estimators ──────────────────────────────────────────

def rle_ratio(values: List[Any]) -> float:
    if not values:
        return 0.0
    return 1.0 - count_runs(values) / len(values)


def dictionary_ratio(values: List[Any]) -> float:
    """Saving of (distinct texts + one index per row) over the raw texts."""
    if not values:
        return 0.0
    original = sum(_text_len(v) for v in values)
    if original == 0:
        return 0.0
    dictionary, indices = compress_dictionary(values)
    dict_size = sum(_text_len(v) for v in dictionary)
    compressed = dict_size + sum(len(str(i)) + 1 for i in indices)
    return 1.0 - compressed / original


def monotonic_ratio(values: List[Any]) -> float:
    """Larger of the non-decreasing and non-increasing step fractions."""
    steps = len(values) - 1
    if steps <= 0:
        return 0.0
    up = sum(1 for a, b in zip(values, values[1:]) if b >= a)
    down = sum(1 for a, b in zip(values, values[1:]) if b <= a)
    return max(up, down) / steps


def delta_ratio(values: List[Any]) -> float:
    if len(values) < 2:
        return 0.0
    original = sum(len(repr(v)) for v in values)
    if original == 0:
        return 0.0
    deltas = compress_delta(values)
    encoded = len(repr(deltas[0])) + sum(len(repr(d)) + 1 for d in deltas[1:])
    return 1.0 - encoded / original


def bitpack_ratio(values: List[Any]) -> float:
    if not values:
        return 0.0
    bits = max(1, max(values).bit_length())
    return 1.0 - bits / BITPACK_BASELINE_BITS


# ── Applicability ─────────────────────────────────────────────

def can_use_dictionary(values: List[Any]) -> bool:
    if len(values) < COMPRESSION_MIN_ROWS:
        return False
    if not all(v is None or isinstance(v, str) for v in values):
        return False
    return len(set(values)) / len(values) < DICT_MAX_CARDINALITY


def can_use_delta(values: List[Any]) -> bool:
    if len(values) < COMPRESSION_MIN_ROWS:
        return False
    all_ints = all(is_integer(v) for v in values)
    all_floats = all(isinstance(v, float) and math.isfinite(v) for v in values)
    if not (all_ints or all_floats):
        return False
    return monotonic_ratio(values) >= DELTA_MIN_MONOTONIC


def can_use_bitpack(values: List[Any]) -> bool:
    if len(values) < COMPRESSION_MIN_ROWS:
        return False
    return all(is_integer(v) and 0 <= v <= BITPACK_MAX_VALUE for v in values)


# ── Recommendation ────────────────────────────────────────────

def recommend_compression(field: str, values: List[Any]) -> CompressionRecommendation:
    none = CompressionRecommendation(field, ALGO_NONE, 0.0)
    if len(values) < COMPRESSION_MIN_ROWS:
        return none
    if not all(_is_scalar(v) for v in values):
        return none

    ratio = rle_ratio(values)
    if ratio >= RLE_MIN_RATIO:
        return CompressionRecommendation(field, ALGO_RLE, ratio)

    if can_use_dictionary(values):
        ratio = dictionary_ratio(values)
        if ratio >= DICT_MIN_RATIO:
            return CompressionRecommendation(field, ALGO_DICTIONARY, ratio)

    if can_use_delta(values):
        ratio = delta_ratio(values)
        if ratio >= DELTA_MIN_RATIO:
            return CompressionRecommendation(field, ALGO_DELTA, ratio)

    if can_use_bitpack(values):
        ratio = bitpack_ratio(values)
        if ratio >= BITPACK_MIN_RATIO:
            return CompressionRecommendation(field, ALGO_BITPACK, ratio)

    return none


def analyze_compression(rows: List[Dict[str, Any]]) -> List[CompressionRecommendation]:
    """Recommendations for every field that qualifies, in header order."""
    if len(rows) < COMPRESSION_MIN_ROWS or not isinstance(rows[0], dict):
        return []
    out: List[CompressionRecommendation] = []
    for field in rows[0]:
        rec = recommend_compression(field, [row.get(field) for row in rows])
        if rec.algorithm != ALGO_NONE:
            logger.debug("field %r: %s (ratio %.2f)", field, rec.algorithm, rec.ratio)
            out.append(rec)
    return out
