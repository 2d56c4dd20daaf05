"""Type inference, widening, shape analysis and mode selection."""

from __future__ import annotations

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from axon import (
    AxonOptionError,
    analyze,
    infer_type,
    infer_type_for_field,
    recommend_mode,
    select_mode,
    widen_type,
)
from axon._modes import is_temporal_name


# ── Scalar inference ──────────────────────────────────────────

class TestInferType(unittest.TestCase):
    def test_bool_before_int(self):
        self.assertEqual(infer_type(True), "bool")
        self.assertEqual(infer_type(False), "bool")

    def test_unsigned_boundaries(self):
        self.assertEqual(infer_type(0), "u8")
        self.assertEqual(infer_type(255), "u8")
        self.assertEqual(infer_type(256), "u16")
        self.assertEqual(infer_type(65536), "u32")
        self.assertEqual(infer_type(2**32), "u64")
        self.assertEqual(infer_type(2**64 - 1), "u64")

    def test_signed_boundaries(self):
        self.assertEqual(infer_type(-1), "i8")
        self.assertEqual(infer_type(-128), "i8")
        self.assertEqual(infer_type(-129), "i16")
        self.assertEqual(infer_type(-(2**31)), "i32")
        self.assertEqual(infer_type(-(2**63)), "i64")

    def test_other_kinds(self):
        self.assertEqual(infer_type(1.5), "f32")
        self.assertEqual(infer_type("x"), "str")
        self.assertEqual(infer_type(None), "null")


# ── Widening ──────────────────────────────────────────────────

class TestWidenType(unittest.TestCase):
    def test_identity(self):
        self.assertEqual(widen_type("u8", "u8"), "u8")

    def test_null_is_absorbed(self):
        self.assertEqual(widen_type("null", "bool"), "bool")
        self.assertEqual(widen_type("i32", "null"), "i32")

    def test_same_signedness(self):
        self.assertEqual(widen_type("u8", "u16"), "u16")
        self.assertEqual(widen_type("i64", "i8"), "i64")

    def test_mixed_signedness(self):
        self.assertEqual(widen_type("u8", "i8"), "i16")
        self.assertEqual(widen_type("u16", "i8"), "i32")
        self.assertEqual(widen_type("u32", "i32"), "i64")
        self.assertEqual(widen_type("u64", "i8"), "f64")

    def test_float_wins(self):
        self.assertEqual(widen_type("i8", "f32"), "f64")
        self.assertEqual(widen_type("f32", "f32"), "f32")

    def test_non_numeric_mix(self):
        self.assertEqual(widen_type("u8", "str"), "str")
        self.assertEqual(widen_type("bool", "u8"), "str")

    def test_commutative(self):
        names = ["u8", "u16", "u32", "u64", "i8", "i16", "i32", "i64",
                 "f32", "f64", "bool", "str", "null"]
        for a in names:
            for b in names:
                with self.subTest(a=a, b=b):
                    self.assertEqual(widen_type(a, b), widen_type(b, a))


# ── Field inference ───────────────────────────────────────────

class TestInferTypeForField(unittest.TestCase):
    def rows(self, *values):
        return [{"n": v} for v in values]

    def test_range_based(self):
        self.assertEqual(infer_type_for_field(self.rows(5, 300, -1), "n"), "i16")
        self.assertEqual(infer_type_for_field(self.rows(5, 300), "n"), "u16")

    def test_nulls_skipped(self):
        self.assertEqual(infer_type_for_field(self.rows(None, 3), "n"), "u8")
        self.assertEqual(infer_type_for_field(self.rows(None, None), "n"), "null")

    def test_missing_field(self):
        self.assertEqual(infer_type_for_field([{"n": 1}, {}], "n"), "u8")

    def test_int_and_float(self):
        self.assertEqual(infer_type_for_field(self.rows(1, 2.5), "n"), "f64")

    def test_mixed_kinds(self):
        self.assertEqual(infer_type_for_field(self.rows(1, "a"), "n"), "str")
        self.assertEqual(infer_type_for_field(self.rows(True, False), "n"), "bool")

    def test_span_too_wide_for_any_integer(self):
        self.assertEqual(infer_type_for_field(self.rows(-1, 2**64 - 1), "n"), "f64")


# ── Shape ─────────────────────────────────────────────────────

class TestAnalyze(unittest.TestCase):
    def test_not_an_array(self):
        shape = analyze({"a": 1})
        self.assertFalse(shape.is_array)
        self.assertFalse(shape.is_uniform)

    def test_scalar_array(self):
        shape = analyze([1, 2])
        self.assertTrue(shape.is_array)
        self.assertFalse(shape.is_array_of_objects)

    def test_uniform(self):
        shape = analyze([{"a": 1, "b": "x"}, {"b": "y", "a": 2}])
        self.assertTrue(shape.is_uniform)
        self.assertEqual(shape.fields, ["a", "b"])
        self.assertEqual(shape.types, {"a": "u8", "b": "str"})

    def test_non_uniform(self):
        shape = analyze([{"a": 1}, {"a": 1, "b": 2}])
        self.assertTrue(shape.is_array_of_objects)
        self.assertFalse(shape.is_uniform)


# ── Mode selection ────────────────────────────────────────────

def _table(n, **columns):
    return [{name: fn(i) for name, fn in columns.items()} for i in range(n)]


class TestSelectMode(unittest.TestCase):
    def test_explicit_mode_verbatim(self):
        self.assertEqual(select_mode({"a": 1}, "columnar"), "columnar")
        self.assertEqual(select_mode([1], "sparse"), "sparse")

    def test_unknown_mode(self):
        with self.assertRaises(AxonOptionError):
            select_mode([], "grid")

    def test_basic_choices(self):
        self.assertEqual(select_mode({"a": 1}), "nested")
        self.assertEqual(select_mode(5), "nested")
        self.assertEqual(select_mode([]), "compact")
        self.assertEqual(select_mode([1, 2]), "compact")
        self.assertEqual(select_mode([{"a": 1}, {"b": 1}]), "json")
        self.assertEqual(select_mode([{"a": 1}]), "compact")

    def test_timeseries_beats_columnar(self):
        rows = _table(200, timestamp=lambda i: 1700000000 + i,
                      cpu=lambda i: i * 0.25, mem=lambda i: i % 7)
        self.assertEqual(select_mode(rows), "stream")

    def test_sparse_beats_stream(self):
        rows = _table(60, timestamp=lambda i: i, a=lambda i: None,
                      b=lambda i: None)
        self.assertEqual(select_mode(rows), "sparse")

    def test_sparse_needs_twenty_rows(self):
        rows = _table(19, a=lambda i: i, b=lambda i: None, c=lambda i: None)
        self.assertEqual(select_mode(rows), "compact")
        rows = _table(20, a=lambda i: i, b=lambda i: None, c=lambda i: None)
        self.assertEqual(select_mode(rows), "sparse")

    def test_stream_needs_fifty_rows(self):
        self.assertEqual(select_mode(_table(49, ts=lambda i: i)), "compact")
        self.assertEqual(select_mode(_table(50, ts=lambda i: i)), "stream")

    def test_columnar_threshold(self):
        cols = dict(x=lambda i: i, y=lambda i: i * 2, label=lambda i: "p")
        self.assertEqual(select_mode(_table(99, **cols)), "compact")
        self.assertEqual(select_mode(_table(100, **cols)), "columnar")

    def test_half_numeric_is_not_columnar(self):
        rows = _table(100, x=lambda i: i, label=lambda i: "p")
        self.assertEqual(select_mode(rows), "compact")

    def test_temporal_names(self):
        for name in ("timestamp", "ts", "created", "updated", "date",
                     "time", "start_time", "birthDate", "UPDATED_DATE"):
            with self.subTest(name=name):
                self.assertTrue(is_temporal_name(name))
        for name in ("id", "status", "created_by", "tss"):
            with self.subTest(name=name):
                self.assertFalse(is_temporal_name(name))


class TestRecommendMode(unittest.TestCase):
    def test_stream_characteristics(self):
        rows = _table(200, timestamp=lambda i: i, cpu=lambda i: i * 0.5)
        rec = recommend_mode(rows)
        self.assertEqual(rec.mode, "stream")
        self.assertIn("Time-series", rec.reason)
        c = rec.characteristics
        self.assertTrue(c["is_array"])
        self.assertEqual(c["length"], 200)
        self.assertTrue(c["is_uniform"])
        self.assertTrue(c["is_numeric_heavy"])
        self.assertTrue(c["has_time_field"])
        self.assertEqual(c["sparsity_ratio"], 0.0)

    def test_not_an_array(self):
        rec = recommend_mode({"a": 1})
        self.assertEqual(rec.mode, "nested")
        self.assertFalse(rec.characteristics["is_array"])
        self.assertEqual(rec.characteristics["length"], 0)

    def test_sparse_reason(self):
        rows = _table(20, a=lambda i: None, b=lambda i: i)
        self.assertEqual(select_mode(rows), "compact")
        rows = _table(20, a=lambda i: None, b=lambda i: None, c=lambda i: i)
        rec = recommend_mode(rows)
        self.assertEqual(rec.mode, "sparse")
        self.assertIn("67% null", rec.reason)


if __name__ == "__main__":
    unittest.main()
