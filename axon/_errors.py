"""AXON error codes and exception hierarchy.

Every exception raised by the codec is an ``AxonError`` and carries a
``.code`` string that tests and the CLI compare against.  Decoding never
recovers from a malformed document: the first defect found aborts the call.
"""

from __future__ import annotations

from typing import Any, Optional

# ── Error codes ───────────────────────────────────────────────
# Grep-friendly, shared with the conformance vectors.

ERR_PARSE: str = "ERR_PARSE"            # lexical or grammatical failure
ERR_TYPE: str = "ERR_TYPE"              # value cannot satisfy a type
ERR_STRUCTURE: str = "ERR_STRUCTURE"    # cycle, depth, dictionary range
ERR_SCHEMA: str = "ERR_SCHEMA"          # schema collaborator failures
ERR_OPTION: str = "ERR_OPTION"          # bad encode/decode option

ERROR_CODES = (ERR_PARSE, ERR_TYPE, ERR_STRUCTURE, ERR_SCHEMA, ERR_OPTION)


class AxonError(Exception):
    """Base exception for AXON processing errors.

    The `.code` attribute is one of the ERR_* strings above.
    """

    code: str = ERR_PARSE

    def __init__(self, msg: str = "", code: Optional[str] = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(msg or self.code)


class AxonParseError(AxonError):
    """Lexical or grammatical failure, with the offending position."""

    code = ERR_PARSE

    def __init__(self, msg: str, line: int = 0, column: int = 0,
                 token: Optional[str] = None) -> None:
        self.message = msg
        self.line = line
        self.column = column
        self.token = token
        if line:
            msg = "{} at line {}, column {}".format(msg, line, column)
        if token is not None:
            msg = "{} (near {!r})".format(msg, token)
        super().__init__(msg)


class AxonTypeError(AxonError):
    """A value does not fit the type the format expects at `path`."""

    code = ERR_TYPE

    def __init__(self, path: str, expected: str, actual: Any,
                 msg: str = "") -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            msg or "{}: expected {}, got {}".format(path or "$", expected, actual)
        )


class AxonStructureError(AxonError):
    """Cycles, nesting deeper than MAX_DEPTH, and dictionary range faults."""

    code = ERR_STRUCTURE

    def __init__(self, msg: str, path: str = "") -> None:
        self.path = path
        super().__init__("{}: {}".format(path, msg) if path else msg)


class AxonSchemaError(AxonError):
    """Raised by schema collaborators; the codec itself never raises it."""

    code = ERR_SCHEMA

    def __init__(self, schema_name: str, msg: str) -> None:
        self.schema_name = schema_name
        super().__init__("schema {!r}: {}".format(schema_name, msg))


class AxonOptionError(AxonError):
    """An encode/decode option has an unsupported value."""

    code = ERR_OPTION
