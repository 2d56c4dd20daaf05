"""axon: a compact, typed text serialization format.

Tables of uniform objects are written once as a typed header and then as
delimited rows; everything else keeps a readable nested layout.

Quick start:
    >>> from axon import encode, decode
    >>> text = encode({"users": [{"id": 1, "name": "Alice", "role": "admin"},
    ...                          {"id": 2, "name": "Bob", "role": "user"}]})
    >>> print(text)
    users::[2] id:u8|name:str|role:str
      1|Alice|admin
      2|Bob|user
    >>> decode(text)["users"][1]
    {'id': 2, 'name': 'Bob', 'role': 'user'}

With ``compression=True`` repetitive columns of tables with 10 or more rows
move into run-length, dictionary or delta directive lines.
"""

from __future__ import annotations

import logging
from typing import Any

from ._analyzer import analyze, infer_type, infer_type_for_field, widen_type
from ._builder import build, build_document
from ._codecs import (
    compress_delta,
    compress_dictionary,
    compress_rle,
    decompress_delta,
    decompress_dictionary,
    decompress_rle,
)
from ._compression import (
    analyze_compression,
    bitpack_ratio,
    delta_ratio,
    dictionary_ratio,
    rle_ratio,
)
from ._constants import DEFAULT_INDENT, MAX_DEPTH, MODE_AUTO, MODES
from ._errors import (
    ERR_OPTION,
    ERR_PARSE,
    ERR_SCHEMA,
    ERR_STRUCTURE,
    ERR_TYPE,
    AxonError,
    AxonOptionError,
    AxonParseError,
    AxonSchemaError,
    AxonStructureError,
    AxonTypeError,
)
from ._lexer import tokenize
from ._modes import recommend_mode, select_mode
from ._parser import Parser
from ._serializer import Serializer
from ._stats import stats_comment, token_stats
from ._types import (
    CompressionRecommendation,
    DataShape,
    Document,
    ModeRecommendation,
    SchemaValidator,
    Token,
    TokenKind,
    ValidationIssue,
    ValueConsumer,
)

__version__ = "1.0.0"

__all__ = [
    # Codec
    "encode",
    "decode",
    "parse",
    "tokenize",
    "build",
    # Analysis
    "analyze",
    "infer_type",
    "infer_type_for_field",
    "widen_type",
    "select_mode",
    "recommend_mode",
    "analyze_compression",
    # Compression primitives
    "compress_rle",
    "decompress_rle",
    "compress_dictionary",
    "decompress_dictionary",
    "compress_delta",
    "decompress_delta",
    "rle_ratio",
    "dictionary_ratio",
    "delta_ratio",
    "bitpack_ratio",
    # Types
    "Token",
    "TokenKind",
    "Document",
    "DataShape",
    "CompressionRecommendation",
    "ModeRecommendation",
    "SchemaValidator",
    "ValueConsumer",
    "ValidationIssue",
    "MODES",
    "MAX_DEPTH",
    # Exceptions
    "AxonError",
    "AxonParseError",
    "AxonTypeError",
    "AxonStructureError",
    "AxonSchemaError",
    "AxonOptionError",
    # Error codes
    "ERR_PARSE",
    "ERR_TYPE",
    "ERR_STRUCTURE",
    "ERR_SCHEMA",
    "ERR_OPTION",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
logger = logging.getLogger(__name__)


# ── Core API ──────────────────────────────────────────────────

def encode(value: Any, *,
           mode: str = MODE_AUTO,
           delimiter: str = "pipe",
           compression: bool = False,
           indent: int = DEFAULT_INDENT,
           stats: bool = False) -> str:
    """Serialize a host value to AXON text.

    ``mode`` forces a layout for the root array (or the only array field of
    a one-field root object); layouts that cannot represent the value fall
    back to one that can.  ``delimiter`` (pipe, comma or tab) applies to
    compact tables.  ``compression`` enables directive lines for tables of
    10 rows or more.  ``stats`` appends token statistics as comments.

    Raises AxonStructureError for cycles and nesting beyond MAX_DEPTH, and
    AxonTypeError for values the format cannot carry.
    """
    if not isinstance(stats, bool):
        raise AxonOptionError("stats must be a bool")
    text = Serializer(mode, delimiter, compression, indent).serialize(value)
    if stats:
        text = "\n".join([text] + stats_comment(token_stats(value, text)))
    return text


def parse(text: str, *, strict: bool = True) -> Document:
    """Tokenize and parse ``text`` into a Document (AST root plus declarations)."""
    if not isinstance(text, str):
        raise AxonOptionError("decode expects str, got {}".format(type(text).__name__))
    if not isinstance(strict, bool):
        raise AxonOptionError("strict must be a bool")
    return Parser(tokenize(text), strict).parse_document()


def decode(text: str, *, strict: bool = True) -> Any:
    """Parse AXON text back into host values.

    With ``strict`` (the default) table cells must fit the type declared in
    their header.  Any defect raises; nothing is returned for a partially
    valid document.
    """
    value = build_document(parse(text, strict=strict))
    logger.debug("decoded %d characters into %s", len(text), type(value).__name__)
    return value
