"""decode(encode(v)) == v and encode idempotence across every option."""

from __future__ import annotations

import itertools
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from axon import MODES, decode, encode

AWKWARD_STRINGS = [
    "", " ", "true", "false", "null", "123", "-5", "1.5", "a b", "with|pipe",
    "with,comma", "line\nbreak", "tab\there", "cr\rhere", 'quote"s',
    "back\\slash", "~", "@at", "#hash", "// slashes", "/* block */",
    "café", "☃", "\U0001F600", "a:b", "::", "[1]", "{x}", "_ok-1.2/x@y",
]

TABLE = [
    {
        "id": i,
        "name": "user{}".format(i),
        "score": i * 1.5,
        "active": i % 2 == 0,
        "note": None if i % 3 else AWKWARD_STRINGS[i % len(AWKWARD_STRINGS)],
    }
    for i in range(30)
]

VALUES = {
    "scalar_int": 42,
    "scalar_neg": -7,
    "scalar_float": 0.1,
    "scalar_exp": 1e-7,
    "scalar_big": 1e20,
    "scalar_neg_zero": -0.0,
    "u64_max": 2**64 - 1,
    "i64_min": -(2**63),
    "awkward_strings": AWKWARD_STRINGS,
    "awkward_keys": {s: i for i, s in enumerate(AWKWARD_STRINGS)},
    "nested": {"a": {"b": {"c": [1, {"d": None}, []]}, "e": {}}, "f": [[], [[]]]},
    "mixed_list": [1, "two", 3.0, None, True, {"k": [1]}, [2, 3]],
    "users": {"users": [{"id": 1, "name": "Alice", "role": "admin"},
                        {"id": 2, "name": "Bob", "role": "user"}]},
    "table": TABLE,
    "table_in_object": {"meta": {"count": 30}, "rows": TABLE},
    "non_uniform": [{"a": 1}, {"b": [1, 2]}, {"a": "x", "c": {}}],
    "reordered": [{"a": 1, "b": 2}, {"b": 3, "a": 4}],
    "nested_cells": [{"id": i, "tags": ["t"] * (i % 3), "geo": {"x": i, "y": -i}}
                     for i in range(12)],
    "sparse": [{"a": i, "b": None, "c": None if i % 4 else "v"} for i in range(25)],
    "timeseries": [{"timestamp": 1700000000 + 15 * i - (30 if i % 7 == 0 else 0),
                    "cpu": round(0.5 + (i % 10) * 0.01, 2), "host": "web-1"}
                   for i in range(60)],
    "numeric": [{"x": i, "y": i * i, "z": -i, "label": "p"} for i in range(120)],
    "repetitive": [{"status": "active" if i < 40 else "idle", "region": ["eu", "us"][i % 2],
                    "seq": 100 + 2 * i, "level": (i * 37) % 100}
                   for i in range(60)],
    "float_column": [{"v": i * 0.1} for i in range(15)],
    "signed_zero_column": [{"a": v} for v in [0.0] * 6 + [-0.0] * 6],
}

DELIMITERS = ("pipe", "comma", "tab")


def _same(a, b):
    """Equality that also distinguishes bool, int and float."""
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return list(a) == list(b) and all(_same(a[k], b[k]) for k in a)
    if isinstance(a, list):
        return len(a) == len(b) and all(_same(x, y) for x, y in zip(a, b))
    if isinstance(a, float):
        return repr(a) == repr(b)
    return a == b


class TestRoundTrip(unittest.TestCase):
    def test_default_options(self):
        for name, value in VALUES.items():
            with self.subTest(value=name):
                self.assertTrue(_same(decode(encode(value)), value))

    def test_every_option(self):
        for name, value in VALUES.items():
            for mode, delimiter, compression in itertools.product(
                    MODES, DELIMITERS, (False, True)):
                with self.subTest(value=name, mode=mode, delimiter=delimiter,
                                  compression=compression):
                    text = encode(value, mode=mode, delimiter=delimiter,
                                  compression=compression)
                    self.assertTrue(_same(decode(text), value), text[:400])

    def test_idempotent(self):
        for name, value in VALUES.items():
            for mode, compression in itertools.product(MODES, (False, True)):
                with self.subTest(value=name, mode=mode, compression=compression):
                    first = encode(value, mode=mode, compression=compression)
                    again = encode(decode(first), mode=mode, compression=compression)
                    self.assertEqual(first, again)

    def test_non_strict_decode_agrees(self):
        for name, value in VALUES.items():
            with self.subTest(value=name):
                text = encode(value, compression=True)
                self.assertTrue(_same(decode(text, strict=False), value))

    def test_signed_zero_survives_compression(self):
        rows = VALUES["signed_zero_column"]
        for mode in MODES:
            with self.subTest(mode=mode):
                back = decode(encode(rows, mode=mode, compression=True))
                self.assertEqual([repr(r["a"]) for r in back],
                                 [repr(r["a"]) for r in rows])

    def test_stats_do_not_change_value(self):
        for name, value in VALUES.items():
            with self.subTest(value=name):
                self.assertTrue(_same(decode(encode(value, stats=True)), value))


if __name__ == "__main__":
    unittest.main()
