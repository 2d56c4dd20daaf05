"""AXON data model: tokens, AST nodes, and collaborator interfaces.

The decoded host value is plain Python (``None``, ``bool``, ``int``,
``float``, ``str``, ``list``, ``dict``); dicts keep insertion order, which is
the field order written in array headers.  The AST is what the parser
produces and the builder projects back into host values.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, TypedDict, Union


# ── Tokens ────────────────────────────────────────────────────

class TokenKind(enum.Enum):
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    NULL = "NULL"
    IDENTIFIER = "IDENTIFIER"
    COLON = "COLON"
    DOUBLE_COLON = "DOUBLE_COLON"
    PIPE = "PIPE"
    COMMA = "COMMA"
    DOT = "DOT"
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    LBRACKET = "LBRACKET"
    RBRACKET = "RBRACKET"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    AT = "AT"
    BANG = "BANG"
    QUESTION = "QUESTION"
    PLUS = "PLUS"
    MINUS = "MINUS"
    EQUALS = "EQUALS"
    ASTERISK = "ASTERISK"
    TILDE = "TILDE"
    TAB = "TAB"
    NEWLINE = "NEWLINE"
    COMMENT = "COMMENT"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """One lexeme.  ``text`` is the decoded value for STRING tokens."""

    kind: TokenKind
    text: str
    line: int
    column: int


# ── AST ───────────────────────────────────────────────────────

@dataclass
class PrimitiveNode:
    value_type: str
    value: Any


@dataclass
class ObjectNode:
    fields: Dict[str, "Node"] = field(default_factory=dict)


@dataclass
class ArrayNode:
    """An array and the header it was declared with.

    ``compressed`` maps a field name to its fully decompressed column; the
    parser fills it from directive lines before reading rows, so ``items``
    always holds materialized values.
    """

    count: int
    items: List["Node"] = field(default_factory=list)
    name: Optional[str] = None
    layout: str = "inline"
    field_types: Dict[str, str] = field(default_factory=dict)
    compressed: Dict[str, List[Any]] = field(default_factory=dict)


@dataclass
class SchemaBlockNode:
    name: str
    fields: Dict[str, str] = field(default_factory=dict)
    parent: Optional[str] = None


@dataclass
class EnumBlockNode:
    name: str
    values: List[str] = field(default_factory=list)


@dataclass
class DictBlockNode:
    name: str
    values: List[str] = field(default_factory=list)


Node = Union[
    PrimitiveNode, ObjectNode, ArrayNode,
    SchemaBlockNode, EnumBlockNode, DictBlockNode,
]


@dataclass
class Document:
    """A parsed document: the root value and any leading declaration blocks."""

    root: Node
    declarations: List[Node] = field(default_factory=list)


# ── Analyzer results ──────────────────────────────────────────

@dataclass
class DataShape:
    is_array: bool = False
    is_array_of_objects: bool = False
    is_uniform: bool = False
    fields: List[str] = field(default_factory=list)
    types: Dict[str, str] = field(default_factory=dict)


@dataclass
class CompressionRecommendation:
    field: str
    algorithm: str
    ratio: float


@dataclass
class ModeRecommendation:
    mode: str
    reason: str
    characteristics: Dict[str, Any] = field(default_factory=dict)


# ── Collaborator interfaces ───────────────────────────────────
# Implemented outside the codec.  They only ever see decoded values.

class ValidationIssue(TypedDict):
    path: str
    message: str
    expected: str
    actual: str


class SchemaValidator(Protocol):
    def validate(self, value: Any,
                 field_types: Dict[str, str]) -> List[ValidationIssue]:
        ...


class ValueConsumer(Protocol):
    def __call__(self, value: Any) -> Any:
        ...
