"""Command-line interface tests (in-process, via ``main(argv)``)."""

from __future__ import annotations

import contextlib
import io
import json
import logging
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from axon import __version__, encode
from axon._cli import main
from axon._logging import setup_logging


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    code = 0
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
        try:
            main(argv)
        except SystemExit as e:
            code = e.code
    return code, out.getvalue(), err.getvalue()


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def test_encode(self):
        path = self.write("in.json", b'{"users": [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]}')
        code, out, _ = _run(["encode", "--input", path])
        self.assertEqual(code, 0)
        self.assertEqual(out, "users::[2] id:u8|name:str\n  1|Alice\n  2|Bob\n")

    def test_encode_options(self):
        path = self.write("in.json", json.dumps([{"s": "a"}] * 10).encode())
        code, out, _ = _run(["encode", "-i", path, "--compression", "--delimiter", "comma"])
        self.assertEqual(code, 0)
        self.assertIn("@rle:s a*10", out)

    def test_decode(self):
        path = self.write("in.axon", b"users::[1] id:u8|name:str\n  1|Alice\n")
        code, out, _ = _run(["decode", "--input", path, "--indent", "0"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"users": [{"id": 1, "name": "Alice"}]})

    def test_decode_no_strict(self):
        path = self.write("in.axon", b"::[1] id:u8\n  300\n")
        code, _, err = _run(["decode", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("error [ERR_TYPE]", err)
        code, out, _ = _run(["decode", "-i", path, "--no-strict"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), [{"id": 300}])

    def test_parse_error_exit_code(self):
        path = self.write("bad.axon", b"a: @\n")
        code, out, err = _run(["decode", "-i", path])
        self.assertEqual(code, 2)
        self.assertEqual(out, "")
        self.assertTrue(err.startswith("axon: error [ERR_PARSE]: "))

    def test_duplicate_json_key(self):
        path = self.write("dup.json", b'{"a": 1, "a": 2}')
        code, _, err = _run(["encode", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_PARSE]", err)

    def test_nan_json_rejected(self):
        path = self.write("nan.json", b'{"a": NaN}')
        code, _, err = _run(["encode", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("[ERR_TYPE]", err)

    def test_bom_rejected(self):
        path = self.write("bom.json", b'\xef\xbb\xbf{"a": 1}')
        code, _, err = _run(["encode", "-i", path])
        self.assertEqual(code, 2)
        self.assertIn("BOM", err)

    def test_missing_file(self):
        code, _, err = _run(["decode", "-i", os.path.join(self.tmp.name, "nope")])
        self.assertEqual(code, 2)
        self.assertTrue(err.startswith("axon: "))

    def test_version(self):
        code, out, _ = _run(["version"])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "axon {}".format(__version__))

    def test_no_command(self):
        code, out, _ = _run([])
        self.assertEqual(code, 1)
        self.assertIn("usage:", out)

    def test_stats_flag(self):
        path = self.write("in.json", b'{"a": [1, 2, 3]}')
        code, out, _ = _run(["encode", "-i", path, "--stats"])
        self.assertEqual(code, 0)
        self.assertIn("# Token Statistics:", out)


class TestLogging(unittest.TestCase):
    def test_mode_decision_logged(self):
        buf = io.StringIO()
        logger = setup_logging(logging.DEBUG, stream=buf)
        handlers = list(logger.handlers)
        self.addCleanup(logger.setLevel, logging.NOTSET)
        for h in handlers:
            if getattr(h, "stream", None) is buf:
                self.addCleanup(logger.removeHandler, h)
        self.assertIs(setup_logging(logging.DEBUG, stream=buf), logger)
        self.assertEqual(len(logger.handlers), len(handlers))

        encode([{"ts": i} for i in range(50)])
        self.assertIn("selected stream layout for 50 rows", buf.getvalue())
        self.assertIn("| DEBUG    | axon._modes:select_mode:", buf.getvalue())


if __name__ == "__main__":
    unittest.main()
