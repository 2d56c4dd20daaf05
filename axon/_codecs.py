"""AXON column codecs: run-length, dictionary and delta.

These work on Python lists of scalars.  The serializer uses them to build
directive payloads (and decompresses its own output before trusting it);
the parser uses the decompress side to materialize columns.  Text framing
of the payloads lives in the serializer and parser.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple

from ._errors import AxonStructureError


def same_value(a: Any, b: Any) -> bool:
    """Type-strict equality: 1, 1.0 and True are three different values.

    Floats also compare their sign, so 0.0 and -0.0 differ.
    """
    if type(a) is not type(b) or a != b:
        return False
    if isinstance(a, float):
        return math.copysign(1.0, a) == math.copysign(1.0, b)
    return True


def _dictionary_key(value: Any) -> Tuple[Any, ...]:
    if isinstance(value, float):
        return (float, value, math.copysign(1.0, value))
    return (type(value), value)


def columns_equal(a: List[Any], b: List[Any]) -> bool:
    return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))


# ── Run-length ────────────────────────────────────────────────

def compress_rle(values: List[Any]) -> List[Tuple[Any, int]]:
    runs: List[Tuple[Any, int]] = []
    for value in values:
        if runs and same_value(runs[-1][0], value):
            runs[-1] = (runs[-1][0], runs[-1][1] + 1)
        else:
            runs.append((value, 1))
    return runs


def decompress_rle(runs: List[Tuple[Any, int]]) -> List[Any]:
    out: List[Any] = []
    for value, count in runs:
        if count < 1:
            raise AxonStructureError("run length must be at least 1, got {}".format(count))
        out.extend([value] * count)
    return out


def count_runs(values: List[Any]) -> int:
    return len(compress_rle(values))


# ── Dictionary ────────────────────────────────────────────────

def compress_dictionary(values: List[Any]) -> Tuple[List[Any], List[int]]:
    """Distinct values in first-seen order, and one index per value."""
    dictionary: List[Any] = []
    positions: Dict[Tuple[Any, ...], int] = {}
    indices: List[int] = []
    for value in values:
        key = _dictionary_key(value)
        idx = positions.get(key)
        if idx is None:
            idx = len(dictionary)
            dictionary.append(value)
            positions[key] = idx
        indices.append(idx)
    return dictionary, indices


def decompress_dictionary(dictionary: List[Any], indices: List[int]) -> List[Any]:
    out: List[Any] = []
    for idx in indices:
        if idx < 0 or idx >= len(dictionary):
            raise AxonStructureError(
                "dictionary index {} out of range (size {})".format(idx, len(dictionary))
            )
        out.append(dictionary[idx])
    return out


# ── Delta ─────────────────────────────────────────────────────

def compress_delta(values: List[Any]) -> List[Any]:
    """Base value followed by differences from each previous value."""
    if not values:
        return []
    out = [values[0]]
    for prev, cur in zip(values, values[1:]):
        out.append(cur - prev)
    return out


def decompress_delta(deltas: List[Any]) -> List[Any]:
    if not deltas:
        return []
    out = [deltas[0]]
    for d in deltas[1:]:
        out.append(out[-1] + d)
    return out
