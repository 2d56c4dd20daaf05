"""AXON tokenizer.

Single left-to-right scan with no backtracking.  Spaces and carriage
returns are dropped; tabs, newlines and comments are kept as tokens because
the grammar is line-sensitive (rows end at NEWLINE, and a tab can be the
row delimiter).
"""

from __future__ import annotations

from typing import List

from ._errors import AxonParseError
from ._types import Token, TokenKind

_PUNCT = {
    "|": TokenKind.PIPE,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "@": TokenKind.AT,
    "!": TokenKind.BANG,
    "?": TokenKind.QUESTION,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "=": TokenKind.EQUALS,
    "*": TokenKind.ASTERISK,
    "~": TokenKind.TILDE,
}

_KEYWORDS = {
    "true": TokenKind.BOOLEAN,
    "false": TokenKind.BOOLEAN,
    "null": TokenKind.NULL,
}

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_HEX = frozenset("0123456789abcdefABCDEF")


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _is_ident_char(ch: str) -> bool:
    # '-', '.', '@' and '/' let type names (uuid-short, u8@rle) and dotted
    # paths scan as one identifier.
    return _is_ident_start(ch) or _is_digit(ch) or (ch != "" and ch in "-./@")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class Lexer:
    """Turns AXON text into a list of tokens ending with exactly one EOF."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    # ── cursor helpers ──

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.text):
            return self.text[idx]
        return ""

    def _advance(self) -> str:
        ch = self.text[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _error(self, msg: str, line: int, column: int, token: str) -> AxonParseError:
        return AxonParseError(msg, line, column, token)

    def _emit(self, kind: TokenKind, text: str, line: int, column: int) -> None:
        self.tokens.append(Token(kind, text, line, column))

    # ── main loop ──

    def tokenize(self) -> List[Token]:
        while self.pos < len(self.text):
            ch = self._peek()
            line, col = self.line, self.column

            if ch in " \r":
                self._advance()
            elif ch == "\t":
                self._advance()
                self._emit(TokenKind.TAB, "\t", line, col)
            elif ch == "\n":
                self._advance()
                self._emit(TokenKind.NEWLINE, "\n", line, col)
            elif ch == "#" or (ch == "/" and self._peek(1) == "/"):
                self._line_comment(line, col)
            elif ch == "/" and self._peek(1) == "*":
                self._block_comment(line, col)
            elif ch == '"':
                self._string(line, col)
            elif _is_digit(ch) or (ch == "-" and _is_digit(self._peek(1))):
                self._number(line, col)
            elif _is_ident_start(ch):
                self._identifier(line, col)
            elif ch == ":":
                self._advance()
                if self._peek() == ":":
                    self._advance()
                    self._emit(TokenKind.DOUBLE_COLON, "::", line, col)
                else:
                    self._emit(TokenKind.COLON, ":", line, col)
            elif ch in _PUNCT:
                self._advance()
                self._emit(_PUNCT[ch], ch, line, col)
            else:
                raise self._error("unexpected character", line, col, ch)

        self._emit(TokenKind.EOF, "", self.line, self.column)
        return self.tokens

    # ── scanners ──

    def _line_comment(self, line: int, col: int) -> None:
        start = self.pos
        while self.pos < len(self.text) and self._peek() != "\n":
            self._advance()
        self._emit(TokenKind.COMMENT, self.text[start:self.pos], line, col)

    def _block_comment(self, line: int, col: int) -> None:
        start = self.pos
        self._advance()
        self._advance()
        while True:
            if self.pos >= len(self.text):
                raise self._error("unterminated block comment", line, col, "/*")
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                break
            self._advance()
        self._emit(TokenKind.COMMENT, self.text[start:self.pos], line, col)

    def _number(self, line: int, col: int) -> None:
        start = self.pos
        if self._peek() == "-":
            self._advance()
        while _is_digit(self._peek()):
            self._advance()
        # A fraction or exponent is only consumed when a digit follows, so
        # "1.x" scans as NUMBER DOT IDENTIFIER.
        if self._peek() == "." and _is_digit(self._peek(1)):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
        if self._peek() in ("e", "E"):
            nxt = self._peek(1)
            if _is_digit(nxt) or (nxt != "" and nxt in "+-" and _is_digit(self._peek(2))):
                self._advance()
                if self._peek() in "+-":
                    self._advance()
                while _is_digit(self._peek()):
                    self._advance()
        self._emit(TokenKind.NUMBER, self.text[start:self.pos], line, col)

    def _identifier(self, line: int, col: int) -> None:
        start = self.pos
        while self.pos < len(self.text) and _is_ident_char(self._peek()):
            self._advance()
        word = self.text[start:self.pos]
        self._emit(_KEYWORDS.get(word, TokenKind.IDENTIFIER), word, line, col)

    def _string(self, line: int, col: int) -> None:
        self._advance()  # opening quote
        out: List[str] = []
        while True:
            if self.pos >= len(self.text) or self._peek() == "\n":
                raise self._error("unterminated string", line, col, '"')
            ch = self._advance()
            if ch == '"':
                break
            if ch != "\\":
                out.append(ch)
                continue
            esc_line, esc_col = self.line, self.column - 1
            if self.pos >= len(self.text):
                raise self._error("unterminated string", line, col, '"')
            esc = self._advance()
            if esc in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[esc])
            elif esc == "u":
                code = self._hex4(esc_line, esc_col)
                # Join a UTF-16 surrogate pair written as two escapes.
                if (0xD800 <= code <= 0xDBFF and self._peek() == "\\"
                        and self._peek(1) == "u"):
                    save = (self.pos, self.line, self.column)
                    self._advance()
                    self._advance()
                    low = self._hex4(esc_line, esc_col)
                    if 0xDC00 <= low <= 0xDFFF:
                        code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                    else:
                        self.pos, self.line, self.column = save
                out.append(chr(code))
            else:
                raise self._error("invalid escape sequence", esc_line, esc_col,
                                  "\\" + esc)
        self._emit(TokenKind.STRING, "".join(out), line, col)

    def _hex4(self, line: int, col: int) -> int:
        digits = self.text[self.pos:self.pos + 4]
        if len(digits) != 4 or any(d not in _HEX for d in digits):
            raise self._error("\\u escape needs exactly 4 hex digits",
                              line, col, "\\u" + digits)
        for _ in range(4):
            self._advance()
        return int(digits, 16)


def tokenize(text: str) -> List[Token]:
    """Tokenize ``text``; empty input yields just ``[EOF]``."""
    return Lexer(text).tokenize()
