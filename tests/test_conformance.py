"""AXON conformance test suite.

Runs all vectors from axon_vectors.json against axon_expected.json.

Usage:
    python tests/test_conformance.py [--vectors-dir DIR]
    python -m pytest tests/test_conformance.py -v
    AXON_VECTORS_DIR=./conformance python tests/test_conformance.py
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import unittest
from typing import Any, Dict, List, Optional, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from axon import AxonError, decode, encode
from axon._constants import __format_version__
from axon._errors import ERROR_CODES

# ── Locate conformance data ───────────────────────────────────

_VECTORS_DIR: Optional[str] = os.environ.get("AXON_VECTORS_DIR", None)

VECTORS_FILE = "axon_vectors.json"
EXPECTED_FILE = "axon_expected.json"


def _find_vectors_dir() -> str:
    if _VECTORS_DIR:
        return _VECTORS_DIR
    candidates = [
        os.path.join(os.path.dirname(__file__), "..", "conformance"),
        os.path.join(os.path.dirname(__file__), "conformance"),
    ]
    for d in candidates:
        if os.path.isfile(os.path.join(d, VECTORS_FILE)):
            return d
    raise FileNotFoundError(
        "Cannot find conformance vectors. Set AXON_VECTORS_DIR or --vectors-dir."
    )


def _load_data() -> Tuple[List[dict], Dict[str, dict], str]:
    """Load vectors and expected results.  Returns (vectors, expected, version)."""
    d = _find_vectors_dir()
    with open(os.path.join(d, VECTORS_FILE), "r", encoding="utf-8") as f:
        data = json.load(f)
    with open(os.path.join(d, EXPECTED_FILE), "r", encoding="utf-8") as f:
        expected = json.load(f)["expected"]
    return data["vectors"], expected, data.get("format_version", "?")


def _run_vector(vec: dict) -> Dict[str, Any]:
    """Execute one vector.  Returns {"text": ...}, {"value": ...} or {"err": ...}."""
    mode = vec["mode"]
    options = vec.get("options", {})

    try:
        if mode == "encode":
            return {"text": encode(vec["input"], **options)}
        elif mode == "decode":
            return {"value": decode(vec["input"], **options)}
        else:
            return {"err": "UNKNOWN_MODE"}
    except AxonError as e:
        return {"err": e.code}


# ── unittest integration ──────────────────────────────────────

class ConformanceTests(unittest.TestCase):
    """Dynamically generated: one test method per vector."""

    def test_format_version(self):
        _, _, version = _load_data()
        self.assertEqual(version, __format_version__)


def _make_test(vec: dict, exp: dict):
    def test_fn(self: unittest.TestCase) -> None:
        got = _run_vector(vec)
        if "err" in exp:
            self.assertIn(exp["err"], ERROR_CODES)
        self.assertEqual(got, exp,
                         "{}: got {} expected {}".format(vec["test_id"], got, exp))
    return test_fn


# Attach test methods at import time.
try:
    _vectors, _expected, _version = _load_data()
    for _vec in _vectors:
        _tid = _vec["test_id"].replace("-", "_")
        _fn = _make_test(_vec, _expected[_vec["test_id"]])
        _fn.__name__ = "test_{}".format(_tid)
        _fn.__qualname__ = "ConformanceTests.test_{}".format(_tid)
        setattr(ConformanceTests, "test_{}".format(_tid), _fn)
except FileNotFoundError:
    pass


# ── Standalone CLI runner ─────────────────────────────────────

def main() -> None:
    global _VECTORS_DIR

    parser = argparse.ArgumentParser(description="AXON conformance runner")
    parser.add_argument("--vectors-dir", default=None,
                        help="Directory with conformance vector files")
    args, _remaining = parser.parse_known_args()

    if args.vectors_dir:
        _VECTORS_DIR = args.vectors_dir
        os.environ["AXON_VECTORS_DIR"] = args.vectors_dir

    vectors, expected, version = _load_data()

    passed = 0
    failed = 0
    failures: List[Tuple[str, dict, dict]] = []

    for vec in vectors:
        tid = vec["test_id"]
        got = _run_vector(vec)
        exp = expected[tid]
        if got == exp:
            passed += 1
        else:
            failed += 1
            failures.append((tid, got, exp))

    total = passed + failed
    print("CONFORMANCE (v{}): {}/{} PASS".format(version, passed, total))
    for tid, got, exp in failures:
        print("  FAIL {}: got={} expected={}".format(tid, got, exp))

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
