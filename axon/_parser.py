"""AXON recursive-descent parser.

Works over the token list with a small cursor (``peek``, ``advance``,
``check``, ``consume``).  Comments are dropped up front; tab tokens are
skipped except while reading a tab-delimited compact table.

Compression directives are decompressed as soon as they are read, before
any row, so every AST node holds materialized values.  Rows are bounded by
the count in the array header: a short table, a surplus row or an unknown
dictionary is a parse error, never a partial result.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from ._analyzer import infer_type, is_integer, is_number
from ._codecs import decompress_delta, decompress_dictionary, decompress_rle
from ._constants import (
    DIRECTIVE_DELTA,
    DIRECTIVE_DICT,
    DIRECTIVE_IDX,
    DIRECTIVE_RLE,
    FLOAT_TYPES,
    LAYOUT_MARKERS,
    MAX_DEPTH,
    MODE_COLUMNAR,
    MODE_COMPACT,
    MODE_JSON,
    MODE_STREAM,
    SIGNED_RANGE,
    UNSIGNED_MAX,
    WIRE_TAGS,
)
from ._errors import AxonParseError, AxonStructureError, AxonTypeError
from ._types import (
    ArrayNode,
    DictBlockNode,
    Document,
    EnumBlockNode,
    Node,
    ObjectNode,
    PrimitiveNode,
    SchemaBlockNode,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)

K = TokenKind

_SCALAR_KINDS = (K.STRING, K.NUMBER, K.BOOLEAN, K.NULL, K.IDENTIFIER)
_KEY_KINDS = (K.IDENTIFIER, K.STRING)
_DELIMITER_KINDS = {K.PIPE: "|", K.COMMA: ",", K.TAB: "\t"}
_DELIMITER_TOKENS = {v: k for k, v in _DELIMITER_KINDS.items()}
_COMPRESSION_TAGS = frozenset(WIRE_TAGS.values())
_DIRECTIVES = frozenset({DIRECTIVE_DICT, DIRECTIVE_IDX, DIRECTIVE_RLE, DIRECTIVE_DELTA})
_DECLARATIONS = frozenset({"schema", "enum", "dict"})

Header = Tuple[str, List[str], Dict[str, str], Dict[str, str], Set[str]]


def number_value(text: str) -> Any:
    """NUMBER token text to int or float; ints never carry '.' or an exponent."""
    if "." in text or "e" in text or "E" in text:
        return float(text)
    return int(text)


def _type_accepts(type_name: str, value: Any) -> bool:
    if value is None:
        return True
    if type_name in UNSIGNED_MAX:
        return is_integer(value) and 0 <= value <= UNSIGNED_MAX[type_name]
    if type_name in SIGNED_RANGE:
        lo, hi = SIGNED_RANGE[type_name]
        return is_integer(value) and lo <= value <= hi
    if type_name in FLOAT_TYPES:
        return is_number(value)
    if type_name == "bool":
        return isinstance(value, bool)
    if type_name == "null":
        return False
    # str and the parametrized types are not checked here.
    return True


class Parser:
    """Builds a ``Document`` from tokens.  One instance per decode call."""

    def __init__(self, tokens: List[Token], strict: bool = True) -> None:
        self.tokens = [t for t in tokens if t.kind is not K.COMMENT]
        if not self.tokens or self.tokens[-1].kind is not K.EOF:
            last = self.tokens[-1] if self.tokens else None
            self.tokens.append(Token(K.EOF, "", last.line if last else 1,
                                     last.column if last else 1))
        self.strict = strict
        self.pos = 0
        self.depth = 0
        self.tabs = False

    # ── cursor ──

    def _index(self, offset: int) -> int:
        i = self.pos
        remaining = offset
        while True:
            tok = self.tokens[i]
            if tok.kind is K.TAB and not self.tabs:
                i += 1
                continue
            if remaining == 0 or tok.kind is K.EOF:
                return i
            remaining -= 1
            i += 1

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[self._index(offset)]

    def advance(self) -> Token:
        i = self._index(0)
        tok = self.tokens[i]
        if tok.kind is not K.EOF:
            self.pos = i + 1
        return tok

    def check(self, *kinds: TokenKind) -> bool:
        return self.peek().kind in kinds

    def consume(self, kind: TokenKind, what: str) -> Token:
        tok = self.peek()
        if tok.kind is not kind:
            raise self.error("expected " + what, tok)
        return self.advance()

    def error(self, msg: str, tok: Optional[Token] = None) -> AxonParseError:
        tok = tok or self.peek()
        text = "<end of input>" if tok.kind is K.EOF else tok.text
        return AxonParseError(msg, tok.line, tok.column, text)

    def _skip_newlines(self) -> None:
        while self.check(K.NEWLINE):
            self.advance()

    def _expect_line_end(self, what: str) -> None:
        if not self.check(K.NEWLINE, K.EOF):
            raise self.error("expected end of line after " + what)

    def _enter(self, tok: Token) -> None:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise AxonStructureError(
                "nesting depth exceeds maximum of {}".format(MAX_DEPTH),
                "line {}".format(tok.line),
            )

    def _leave(self) -> None:
        self.depth -= 1

    # ── document ──

    def parse_document(self) -> Document:
        self._skip_newlines()
        declarations: List[Node] = []
        while self._at_declaration():
            declarations.append(self._declaration())
            self._skip_newlines()

        tok = self.peek()
        if tok.kind is K.EOF:
            raise self.error("empty document", tok)
        if tok.kind is K.DOUBLE_COLON:
            root = self._named_array(None)
        elif tok.kind in _KEY_KINDS and self.peek(1).kind in (K.COLON, K.DOUBLE_COLON):
            root = self._root_fields()
        else:
            root = self._value()

        self._skip_newlines()
        if not self.check(K.EOF):
            raise self.error("unexpected content after document")
        return Document(root, declarations)

    def _root_fields(self) -> ObjectNode:
        self._enter(self.peek())
        node = ObjectNode()
        while True:
            self._entry(node)
            if self.check(K.EOF):
                break
            if not self.check(K.NEWLINE):
                raise self.error("expected newline between fields")
            self._skip_newlines()
            if self.check(K.EOF):
                break
        self._leave()
        return node

    # ── declaration blocks ──

    def _at_declaration(self) -> bool:
        nxt = self.peek(1)
        return (self.check(K.AT) and nxt.kind is K.IDENTIFIER
                and nxt.text in _DECLARATIONS and self.peek(2).kind is not K.COLON)

    def _declaration(self) -> Node:
        self.advance()
        kind = self.advance().text
        name = self._key().text
        if kind == "schema":
            parent = None
            if self.check(K.IDENTIFIER) and self.peek().text == "extends":
                self.advance()
                parent = self._key().text
            open_tok = self.consume(K.LBRACE, "'{' to open schema")
            fields: Dict[str, str] = {}
            self._skip_newlines()
            while not self.check(K.RBRACE):
                if self.check(K.EOF):
                    raise self.error("unterminated schema block", open_tok)
                key = self._key()
                self.consume(K.COLON, "':' after schema field")
                type_name = self._type_name()
                if self.check(K.QUESTION):
                    self.advance()
                    type_name += "?"
                fields[key.text] = type_name
                if self.check(K.COMMA):
                    self.advance()
                self._skip_newlines()
            self.advance()
            node: Node = SchemaBlockNode(name, fields, parent)
        else:
            values = [str(v) for v in self._bracket_list()]
            if kind == "enum":
                node = EnumBlockNode(name, values)
            else:
                node = DictBlockNode(name, values)
        self._expect_line_end("{} declaration".format(kind))
        return node

    # ── objects and values ──

    def _key(self) -> Token:
        tok = self.peek()
        if tok.kind not in _KEY_KINDS:
            raise self.error("expected field name", tok)
        return self.advance()

    def _entry(self, node: ObjectNode) -> None:
        key = self._key()
        if key.text in node.fields:
            raise self.error("duplicate key {!r}".format(key.text), key)
        if self.check(K.DOUBLE_COLON):
            node.fields[key.text] = self._named_array(key.text)
            return
        self.consume(K.COLON, "':' after field name")
        value_type = None
        if self.check(K.IDENTIFIER) and self.peek(1).kind is K.COLON:
            value_type = self.advance().text
            self.advance()
        node.fields[key.text] = self._value(value_type)

    def _object(self) -> ObjectNode:
        open_tok = self.consume(K.LBRACE, "'{'")
        self._enter(open_tok)
        node = ObjectNode()
        self._skip_newlines()
        while not self.check(K.RBRACE):
            if self.check(K.EOF):
                raise self.error("unterminated object", open_tok)
            self._entry(node)
            if self.check(K.COMMA):
                self.advance()
                self._skip_newlines()
            elif self.check(K.NEWLINE):
                self._skip_newlines()
            elif not self.check(K.RBRACE):
                raise self.error("expected ',' or newline between fields")
        self.advance()
        self._leave()
        return node

    def _scalar(self, tok: Token) -> Any:
        if tok.kind is K.NUMBER:
            return number_value(tok.text)
        if tok.kind is K.BOOLEAN:
            return tok.text == "true"
        if tok.kind is K.NULL:
            return None
        return tok.text

    def _scalar_value(self, what: str) -> Any:
        tok = self.peek()
        if tok.kind not in _SCALAR_KINDS:
            raise self.error("expected " + what, tok)
        self.advance()
        return self._scalar(tok)

    def _value(self, value_type: Optional[str] = None) -> Node:
        tok = self.peek()
        if tok.kind is K.LBRACE:
            return self._object()
        if tok.kind is K.LBRACKET:
            return self._inline_array()
        if tok.kind in _SCALAR_KINDS:
            self.advance()
            value = self._scalar(tok)
            return PrimitiveNode(value_type or infer_type(value), value)
        raise self.error("expected a value", tok)

    def _count(self) -> int:
        tok = self.consume(K.NUMBER, "array count")
        if not tok.text.isdigit():
            raise self.error("array count must be a non-negative integer", tok)
        return int(tok.text)

    def _inline_array(self) -> ArrayNode:
        open_tok = self.consume(K.LBRACKET, "'['")
        count = self._count()
        self.consume(K.RBRACKET, "']'")
        self.consume(K.COLON, "':' after array count")
        return self._inline_items(open_tok, count, None)

    def _inline_items(self, open_tok: Token, count: int,
                      name: Optional[str]) -> ArrayNode:
        self._enter(open_tok)
        node = ArrayNode(count=count, name=name, layout="inline")
        for i in range(count):
            if i:
                self.consume(K.COMMA, "',' between array items")
            node.items.append(self._value())
        self._leave()
        return node

    def _bracket_list(self) -> List[Any]:
        self.consume(K.LBRACKET, "'['")
        values: List[Any] = []
        while not self.check(K.RBRACKET):
            if values:
                self.consume(K.COMMA, "',' between list items")
            values.append(self._scalar_value("a list item"))
        self.advance()
        return values

    # ── array headers ──

    def _named_array(self, name: Optional[str]) -> ArrayNode:
        self.consume(K.DOUBLE_COLON, "'::'")
        open_tok = self.consume(K.LBRACKET, "'[' after '::'")
        count = self._count()
        self.consume(K.RBRACKET, "']'")
        if self.check(K.COLON):
            self.advance()
            return self._inline_items(open_tok, count, name)

        self._enter(open_tok)
        layout = MODE_COMPACT
        stream_key: Optional[str] = None
        if self.check(K.AT):
            self.advance()
            marker = self.consume(K.IDENTIFIER, "layout name after '@'")
            if marker.text not in LAYOUT_MARKERS:
                raise self.error("unknown layout @{}".format(marker.text), marker)
            layout = marker.text
            if layout == MODE_STREAM and self.check(K.COLON):
                self.advance()
                stream_key = self._key().text

        node = ArrayNode(count=count, name=name, layout=layout)
        if layout == MODE_JSON:
            self._expect_line_end("@json header")
            self._json_rows(node)
        else:
            delimiter, fields, types, tags, nullable = self._header(layout)
            node.field_types = dict(types)
            if layout == MODE_COMPACT:
                self._compact_rows(node, fields, types, tags, delimiter)
            elif layout == MODE_COLUMNAR:
                self._columnar_rows(node, fields, types)
            elif layout == MODE_STREAM:
                if stream_key is not None and stream_key not in types:
                    raise self.error("stream key {!r} is not a declared field".format(stream_key))
                self._stream_rows(node, fields, types, stream_key)
            else:
                self._sparse_rows(node, fields, types, nullable)
        self._leave()
        logger.debug("parsed %s array %r with %d rows", layout, name, count)
        return node

    def _type_name(self) -> str:
        tok = self.peek()
        if tok.kind not in (K.IDENTIFIER, K.NULL):
            raise self.error("expected type name", tok)
        self.advance()
        type_name = tok.text
        if self.check(K.LPAREN):
            open_tok = self.advance()
            parts: List[str] = []
            while not self.check(K.RPAREN):
                if self.check(K.NEWLINE, K.EOF):
                    raise self.error("unterminated type parameters", open_tok)
                parts.append(self.advance().text)
            self.advance()
            type_name += "(" + "".join(parts) + ")"
        return type_name

    def _field_def(self, layout: str) -> Tuple[Token, str, Optional[str], bool]:
        name = self._key()
        type_name = "any"
        tag: Optional[str] = None
        if self.check(K.COLON):
            self.advance()
            type_name = self._type_name()
            if "@" in type_name:
                type_name, tag = type_name.split("@", 1)
            if self.check(K.AT):
                self.advance()
                tag = self.consume(K.IDENTIFIER, "compression tag").text
        nullable = False
        if self.check(K.QUESTION):
            self.advance()
            nullable = True
        if tag is not None:
            if tag not in _COMPRESSION_TAGS:
                raise self.error("unknown compression tag @{}".format(tag), name)
            if layout != MODE_COMPACT:
                raise self.error("compression tags only apply to compact tables", name)
        return name, type_name, tag, nullable

    def _header(self, layout: str) -> Header:
        if layout == MODE_COMPACT:
            self.tabs = True
            while self.check(K.TAB):
                self.advance()
        if self.check(K.NEWLINE, K.EOF):
            raise self.error("array header declares no fields")

        delimiter: Optional[str] = None
        fields: List[str] = []
        types: Dict[str, str] = {}
        tags: Dict[str, str] = {}
        nullable: Set[str] = set()
        while True:
            name, type_name, tag, optional = self._field_def(layout)
            if name.text in types:
                raise self.error("duplicate field {!r}".format(name.text), name)
            fields.append(name.text)
            types[name.text] = type_name
            if tag is not None:
                tags[name.text] = tag
            if optional:
                nullable.add(name.text)

            tok = self.peek()
            if tok.kind in (K.NEWLINE, K.EOF):
                break
            found = _DELIMITER_KINDS.get(tok.kind)
            if found is None:
                raise self.error("expected delimiter or end of header", tok)
            if layout != MODE_COMPACT and found != "|":
                raise self.error("@{} headers separate fields with '|'".format(layout), tok)
            if delimiter is None:
                delimiter = found
            elif found != delimiter:
                raise self.error("mixed delimiters in array header", tok)
            self.advance()

        delimiter = delimiter or "|"
        self.tabs = delimiter == "\t"
        return delimiter, fields, types, tags, nullable

    # ── row helpers ──

    def _next_line(self, what: str, skip_blank: bool = True) -> None:
        if not self.check(K.NEWLINE):
            raise self.error("expected " + what)
        self.advance()
        if skip_blank:
            self._skip_newlines()
            if self.check(K.EOF):
                raise self.error("missing " + what)

    def _delimiter(self, delimiter: str) -> None:
        tok = self.peek()
        if tok.kind is not _DELIMITER_TOKENS[delimiter]:
            raise self.error("expected delimiter {!r}".format(delimiter), tok)
        self.advance()

    def _end_row(self) -> None:
        if not self.check(K.NEWLINE, K.EOF):
            raise self.error("expected end of row")

    def _check_type(self, node: ArrayNode, field: str, type_name: str,
                    value: Any, tok: Token) -> None:
        if self.strict and not _type_accepts(type_name, value):
            path = "{}.{}".format(node.name or "$", field)
            raise AxonTypeError(
                path, type_name, repr(value),
                "{}: expected {}, got {!r} at line {}".format(path, type_name, value, tok.line),
            )

    def _cell(self, node: ArrayNode, field: str, type_name: str) -> Node:
        tok = self.peek()
        cell = self._value(type_name)
        if isinstance(cell, PrimitiveNode):
            self._check_type(node, field, type_name, cell.value, tok)
        return cell

    def _row_label(self, i: int, count: int) -> str:
        return "row {} of {}".format(i + 1, count)

    # ── compact ──

    def _compact_rows(self, node: ArrayNode, fields: List[str],
                      types: Dict[str, str], tags: Dict[str, str],
                      delimiter: str) -> None:
        columns = self._directives(node, types, tags)
        node.compressed = columns
        for f, column in columns.items():
            for value in column:
                self._check_type(node, f, types[f], value, self.peek())

        if columns and len(columns) == len(fields):
            for i in range(node.count):
                node.items.append(ObjectNode(
                    {f: PrimitiveNode(types[f], columns[f][i]) for f in fields}))
            self.tabs = False
            return

        for i in range(node.count):
            self._next_line(self._row_label(i, node.count))
            self._enter(self.peek())
            row = ObjectNode()
            for j, f in enumerate(fields):
                if j:
                    self._delimiter(delimiter)
                if f in columns:
                    if self.check(K.TILDE):
                        self.advance()
                    elif not self.check(_DELIMITER_TOKENS[delimiter], K.NEWLINE, K.EOF):
                        raise self.error("expected '~' for compressed field {!r}".format(f))
                    row.fields[f] = PrimitiveNode(types[f], columns[f][i])
                else:
                    if self.check(K.TILDE):
                        raise self.error("'~' placeholder for uncompressed field {!r}".format(f))
                    row.fields[f] = self._cell(node, f, types[f])
            self._end_row()
            self._leave()
            node.items.append(row)
        self.tabs = False

    def _directive_ahead(self) -> int:
        """Blank-line offset of a directive on an upcoming line, or 0."""
        k = 0
        while self.peek(k).kind is K.NEWLINE:
            k += 1
        if k == 0:
            return 0
        word = self.peek(k + 1)
        if (self.peek(k).kind is K.AT and word.kind is K.IDENTIFIER
                and self.peek(k + 2).kind is K.COLON):
            return k
        return 0

    def _directives(self, node: ArrayNode, types: Dict[str, str],
                    tags: Dict[str, str]) -> Dict[str, List[Any]]:
        columns: Dict[str, List[Any]] = {}
        dictionaries: Dict[str, List[Any]] = {}
        tabs, self.tabs = self.tabs, False

        while True:
            k = self._directive_ahead()
            if not k:
                break
            for _ in range(k):
                self.advance()
            at = self.advance()
            kind = self.advance()
            self.advance()
            field_tok = self._key()
            f = field_tok.text
            if kind.text not in _DIRECTIVES:
                raise self.error("unknown directive @{}".format(kind.text), kind)
            if f not in types:
                raise self.error("directive for undeclared field {!r}".format(f), field_tok)
            if f in columns or (kind.text == DIRECTIVE_DICT and f in dictionaries):
                raise self.error("duplicate directive for field {!r}".format(f), at)
            wire = DIRECTIVE_DICT if kind.text == DIRECTIVE_IDX else kind.text
            if f in tags and tags[f] != wire:
                raise self.error("field {!r} is tagged @{} but has an @{} directive".format(
                    f, tags[f], kind.text), at)

            if kind.text == DIRECTIVE_DICT:
                dictionaries[f] = self._bracket_list()
            elif kind.text == DIRECTIVE_IDX:
                if f not in dictionaries:
                    raise self.error("@idx:{0} appears before @dict:{0}".format(f), at)
                columns[f] = self._index_payload(dictionaries.pop(f))
            elif kind.text == DIRECTIVE_RLE:
                columns[f] = self._rle_payload()
            else:
                columns[f] = self._delta_payload()
            self._expect_line_end("@{} directive".format(kind.text))

        if dictionaries:
            f = next(iter(dictionaries))
            raise self.error("@dict:{0} has no matching @idx:{0} line".format(f))
        for f, tag in tags.items():
            if f not in columns:
                raise self.error("field {!r} is tagged @{} but has no directive".format(f, tag))
        for f, column in columns.items():
            if len(column) != node.count:
                raise AxonTypeError(
                    "{}.{}".format(node.name or "$", f),
                    "{} values".format(node.count),
                    "{} values".format(len(column)),
                )
        self.tabs = tabs
        return columns

    def _index_payload(self, dictionary: List[Any]) -> List[Any]:
        indices: List[int] = []
        while True:
            tok = self.consume(K.NUMBER, "dictionary index")
            if not tok.text.isdigit():
                raise self.error("dictionary index must be a non-negative integer", tok)
            idx = int(tok.text)
            if idx >= len(dictionary):
                raise AxonStructureError(
                    "dictionary index {} out of range (size {})".format(idx, len(dictionary)),
                    "line {}, column {}".format(tok.line, tok.column),
                )
            indices.append(idx)
            if not self.check(K.COMMA):
                break
            self.advance()
        return decompress_dictionary(dictionary, indices)

    def _rle_payload(self) -> List[Any]:
        runs: List[Tuple[Any, int]] = []
        while True:
            value = self._scalar_value("run value")
            length = 1
            if self.check(K.ASTERISK):
                self.advance()
                tok = self.consume(K.NUMBER, "run length")
                if not tok.text.isdigit() or int(tok.text) < 1:
                    raise self.error("run length must be a positive integer", tok)
                length = int(tok.text)
            runs.append((value, length))
            if not self.check(K.PIPE):
                break
            self.advance()
        return decompress_rle(runs)

    def _signed_delta(self) -> Any:
        tok = self.peek()
        if tok.kind is K.PLUS:
            self.advance()
            num = self.consume(K.NUMBER, "number after '+'")
            if num.text.startswith("-"):
                raise self.error("malformed delta", num)
            return number_value(num.text)
        if tok.kind is K.NUMBER and tok.text.startswith("-"):
            self.advance()
            return number_value(tok.text)
        raise self.error("expected +delta or -delta", tok)

    def _delta_payload(self) -> List[Any]:
        base = self.consume(K.NUMBER, "delta base value")
        deltas = [number_value(base.text)]
        while self.check(K.PIPE):
            self.advance()
            deltas.append(self._signed_delta())
        return decompress_delta(deltas)

    # ── columnar ──

    def _columnar_rows(self, node: ArrayNode, fields: List[str],
                       types: Dict[str, str]) -> None:
        columns: Dict[str, List[Node]] = {}
        for f in fields:
            self._next_line("column line for {!r}".format(f))
            key = self._key()
            if key.text != f:
                raise self.error("expected column line for {!r}".format(f), key)
            self.consume(K.COLON, "':' after column name")
            self._enter(key)
            cells: List[Node] = []
            for i in range(node.count):
                if i:
                    self.consume(K.COMMA, "',' between column values")
                cells.append(self._cell(node, f, types[f]))
            self._leave()
            self._end_row()
            columns[f] = cells
        for i in range(node.count):
            node.items.append(ObjectNode({f: columns[f][i] for f in fields}))

    # ── stream ──

    def _int_token(self, tok: Token) -> int:
        text = tok.text[1:] if tok.text.startswith("-") else tok.text
        if tok.kind is not K.NUMBER or not text.isdigit():
            raise self.error("expected an integer", tok)
        return int(tok.text)

    def _stream_rows(self, node: ArrayNode, fields: List[str],
                     types: Dict[str, str], key: Optional[str]) -> None:
        prev = 0
        for i in range(node.count):
            self._next_line(self._row_label(i, node.count))
            self._enter(self.peek())
            row = ObjectNode()
            for j, f in enumerate(fields):
                if j:
                    self._delimiter("|")
                if f != key:
                    row.fields[f] = self._cell(node, f, types[f])
                    continue
                tok = self.peek()
                if i == 0:
                    prev = self._int_token(self.advance())
                else:
                    step = self._signed_delta()
                    if not is_integer(step):
                        raise self.error("stream deltas must be integers", tok)
                    prev += step
                self._check_type(node, f, types[f], prev, tok)
                row.fields[f] = PrimitiveNode(types[f], prev)
            self._end_row()
            self._leave()
            node.items.append(row)

    # ── sparse ──

    def _sparse_rows(self, node: ArrayNode, fields: List[str],
                     types: Dict[str, str], nullable: Set[str]) -> None:
        for i in range(node.count):
            self._next_line(self._row_label(i, node.count), skip_blank=False)
            self._enter(self.peek())
            row = ObjectNode()
            for j, f in enumerate(fields):
                if j:
                    self._delimiter("|")
                if self.check(K.PIPE, K.NEWLINE, K.EOF):
                    if f not in nullable:
                        raise self.error("empty cell for non-nullable field {!r}".format(f))
                    row.fields[f] = PrimitiveNode(types[f], None)
                else:
                    row.fields[f] = self._cell(node, f, types[f])
            self._end_row()
            self._leave()
            node.items.append(row)

    # ── json ──

    def _json_rows(self, node: ArrayNode) -> None:
        for i in range(node.count):
            self._next_line(self._row_label(i, node.count))
            node.items.append(self._json_value())
            self._end_row()

    def _json_value(self) -> Node:
        tok = self.peek()
        if tok.kind is K.LBRACE:
            self.advance()
            self._enter(tok)
            obj = ObjectNode()
            while not self.check(K.RBRACE):
                if obj.fields:
                    self.consume(K.COMMA, "',' between JSON members")
                key = self.consume(K.STRING, "JSON object key")
                if key.text in obj.fields:
                    raise self.error("duplicate key {!r}".format(key.text), key)
                self.consume(K.COLON, "':' after JSON key")
                obj.fields[key.text] = self._json_value()
            self.advance()
            self._leave()
            return obj
        if tok.kind is K.LBRACKET:
            self.advance()
            self._enter(tok)
            arr = ArrayNode(count=0, layout=MODE_JSON)
            while not self.check(K.RBRACKET):
                if arr.items:
                    self.consume(K.COMMA, "',' between JSON items")
                arr.items.append(self._json_value())
            self.advance()
            arr.count = len(arr.items)
            self._leave()
            return arr
        if tok.kind in (K.STRING, K.NUMBER, K.BOOLEAN, K.NULL):
            self.advance()
            value = self._scalar(tok)
            return PrimitiveNode(infer_type(value), value)
        raise self.error("expected a JSON value", tok)
