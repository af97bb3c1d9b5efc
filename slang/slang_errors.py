"""
Error types raised by the slang pipeline.

Each phase raises exactly one kind: the lexer raises LexError, the parser
ParseError, and the evaluator SlangRuntimeError. All of them carry a message
and the 1-based source position of the offending token or node.
"""
from typing import Optional


class SlangError(Exception):
    """Base class for all errors surfaced by the slang core."""
    phase = "Error"

    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None,
                 kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.col = col
        self.kind = kind

    @property
    def loc(self) -> Optional[dict]:
        if self.line is None:
            return None
        return {'line': self.line, 'col': self.col}

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.phase}: {self.message} (line {self.line}, col {self.col})"
        return f"{self.phase}: {self.message}"


class LexError(SlangError):
    """Malformed token: unterminated string or comment, unknown character."""
    phase = "LexError"

    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None,
                 character: Optional[str] = None):
        super().__init__(message, line, col, kind="lex")
        self.character = character


class ParseError(SlangError):
    """The token stream does not match the grammar."""
    phase = "ParseError"

    def __init__(self, message: str, line: Optional[int] = None, col: Optional[int] = None,
                 expected: Optional[str] = None, found: Optional[str] = None):
        super().__init__(message, line, col, kind="parse")
        self.expected = expected
        self.found = found


class SlangRuntimeError(SlangError):
    """A well-formed program did something invalid while running.

    `kind` is one of: 'undefined variable', 'undefined field', 'type mismatch',
    'arity mismatch', 'return outside function', 'division by zero',
    'not callable', 'stack overflow'.
    """
    phase = "RuntimeError"

    def __init__(self, kind: str, message: str, line: Optional[int] = None, col: Optional[int] = None):
        super().__init__(message, line, col, kind=kind)
