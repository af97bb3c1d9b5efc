"""slang: a small block-scoped scripting language with a tree-walking interpreter."""
from slang.slang_errors import SlangError, LexError, ParseError, SlangRuntimeError
from slang.slang_lexer import Lexer, Token, TokenKind, tokenize
from slang.slang_parser import Parser, parse
from slang.slang_interpreter import Evaluator
from slang.slang_runtime import ScriptRunner, ExecutionResult, run

__all__ = [
    "SlangError", "LexError", "ParseError", "SlangRuntimeError",
    "Lexer", "Token", "TokenKind", "tokenize",
    "Parser", "parse",
    "Evaluator",
    "ScriptRunner", "ExecutionResult", "run",
]
