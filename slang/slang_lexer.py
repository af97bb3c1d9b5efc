"""
The slang lexer.

Turns source text into a lazy stream of Token objects. A Lexer can be
iterated any number of times; every iteration starts again from the first
character and always ends with a single EOF token.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional

from slang.slang_errors import LexError


class TokenKind(str, Enum):
    IDENTIFIER = "identifier"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    EOF = "eof"


KEYWORDS = frozenset({"let", "fu", "if", "else", "while", "return", "print", "true", "false", "null"})
KEYWORD_VALUES = {"true": True, "false": False, "null": None}

# Longest match wins, so two-character operators are tried first.
TWO_CHAR_OPERATORS = frozenset({"==", "!=", "<=", ">=", "&&", "||"})
ONE_CHAR_OPERATORS = frozenset("=<>&|+-*/!?")
PUNCTUATION = frozenset(":,;{}().")

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def _is_digit(ch: Optional[str]) -> bool:
    return ch is not None and "0" <= ch <= "9"


@dataclass(frozen=True)
class Token:
    """A single lexeme. Position is informational and ignored by equality."""
    kind: TokenKind
    text: str
    value: Any = None
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    def is_(self, kind: TokenKind, text: Optional[str] = None) -> bool:
        return self.kind == kind and (text is None or self.text == text)

    def describe(self) -> str:
        """Human-readable name used in parse error messages."""
        if self.kind == TokenKind.EOF:
            return "end of input"
        return f"{self.kind.value} '{self.text}'"

    def __repr__(self) -> str:
        return f"Token({self.kind.value}, {self.text!r}, {self.line}:{self.col})"


class _Cursor:
    """Character cursor over the source text, tracking 1-based line/col."""

    def __init__(self, text: str):
        self.text = text
        self.index = 0
        self.line = 1
        self.col = 1

    def peek(self, offset: int = 0) -> Optional[str]:
        i = self.index + offset
        if i < len(self.text):
            return self.text[i]
        return None

    def advance(self) -> Optional[str]:
        ch = self.peek()
        if ch is None:
            return None
        self.index += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def at_end(self) -> bool:
        return self.index >= len(self.text)


class Lexer:
    """Lexical analyser for one source string."""

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    def tokens(self) -> Iterator[Token]:
        cur = _Cursor(self.source)
        while True:
            self._skip_trivia(cur)
            if cur.at_end():
                yield Token(TokenKind.EOF, "", None, cur.line, cur.col)
                return
            yield self._next_token(cur)

    def _skip_trivia(self, cur: _Cursor) -> None:
        """Skip whitespace, // line comments and /* block */ comments."""
        while not cur.at_end():
            ch = cur.peek()
            if ch in " \t\r\n":
                cur.advance()
            elif ch == "/" and cur.peek(1) == "/":
                while not cur.at_end() and cur.peek() != "\n":
                    cur.advance()
            elif ch == "/" and cur.peek(1) == "*":
                line, col = cur.line, cur.col
                cur.advance()
                cur.advance()
                while not (cur.peek() == "*" and cur.peek(1) == "/"):
                    if cur.at_end():
                        raise LexError("unterminated block comment", line, col)
                    cur.advance()
                cur.advance()
                cur.advance()
            else:
                return

    def _next_token(self, cur: _Cursor) -> Token:
        line, col = cur.line, cur.col
        ch = cur.peek()

        if ch == '"':
            return self._string(cur, line, col)
        if _is_digit(ch):
            return self._number(cur, line, col)
        if ch.isalpha() or ch == "_":
            return self._word(cur, line, col)

        pair = ch + (cur.peek(1) or "")
        if pair in TWO_CHAR_OPERATORS:
            cur.advance()
            cur.advance()
            return Token(TokenKind.OPERATOR, pair, pair, line, col)
        if ch in ONE_CHAR_OPERATORS:
            cur.advance()
            return Token(TokenKind.OPERATOR, ch, ch, line, col)
        if ch in PUNCTUATION:
            cur.advance()
            return Token(TokenKind.PUNCTUATION, ch, ch, line, col)

        raise LexError(f"unexpected character '{ch}'", line, col, character=ch)

    def _string(self, cur: _Cursor, line: int, col: int) -> Token:
        start = cur.index
        cur.advance()  # opening quote
        chars: List[str] = []
        while True:
            ch = cur.advance()
            if ch is None:
                raise LexError("unterminated string", line, col)
            if ch == '"':
                break
            if ch == "\\":
                esc_line, esc_col = cur.line, cur.col - 1
                nxt = cur.advance()
                if nxt is None:
                    raise LexError("unterminated string", line, col)
                if nxt not in ESCAPES:
                    raise LexError(f"unknown escape '\\{nxt}'", esc_line, esc_col, character=nxt)
                chars.append(ESCAPES[nxt])
            else:
                chars.append(ch)
        return Token(TokenKind.STRING, self.source[start:cur.index], "".join(chars), line, col)

    def _number(self, cur: _Cursor, line: int, col: int) -> Token:
        start = cur.index
        while _is_digit(cur.peek()):
            cur.advance()
        # A float needs a digit after the point; `1.` stays an integer followed by `.`
        if cur.peek() == "." and _is_digit(cur.peek(1)):
            cur.advance()
            while _is_digit(cur.peek()):
                cur.advance()
            text = self.source[start:cur.index]
            return Token(TokenKind.FLOAT, text, float(text), line, col)
        text = self.source[start:cur.index]
        value = int(text)
        if value > INT_MAX:
            raise LexError(f"integer literal {text} does not fit in 64 bits", line, col)
        return Token(TokenKind.INTEGER, text, value, line, col)

    def _word(self, cur: _Cursor, line: int, col: int) -> Token:
        start = cur.index
        while cur.peek() is not None and (cur.peek().isalnum() or cur.peek() == "_"):
            cur.advance()
        text = self.source[start:cur.index]
        if text in KEYWORDS:
            return Token(TokenKind.KEYWORD, text, KEYWORD_VALUES.get(text, text), line, col)
        return Token(TokenKind.IDENTIFIER, text, text, line, col)


def tokenize(source: str) -> List[Token]:
    """Eagerly lex `source` into a list ending with the EOF token."""
    return list(Lexer(source))
