"""
A printer for slang values, syntax trees and token streams.
"""
import math
from decimal import Decimal
from typing import Any, Iterable

from slang.slang_ast import (
    Assignment, Binary, Block, Call, ExprStmt, FunctionDecl, GetField, Grouping,
    Identifier, If, Literal, Logical, ObjectLiteral, Print, Program, Return,
    SetField, Ternary, Unary, VarDecl, While,
)
from slang.slang_datatypes import SlangObject, SlangFunction
from slang.slang_lexer import KEYWORDS, Token, TokenKind

_UNESCAPES = {"\n": "\\n", "\t": "\\t", "\r": "\\r", '"': '\\"', "\\": "\\\\"}


def format_float(value: float) -> str:
    """Positional decimal text that always has a fractional part, e.g. 2.0 or 0.1."""
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." not in text:
        text += ".0"
    return text


def quote_string(value: str) -> str:
    return '"' + "".join(_UNESCAPES.get(ch, ch) for ch in value) + '"'


def _is_bare_key(key: str) -> bool:
    return key.isidentifier() and key not in KEYWORDS


class Printer:
    """Formats slang runtime values and AST nodes.

    `render` gives the text that `print` writes. `pformat` gives slang source:
    for AST nodes the canonical program text, for values a literal-like form
    with quoted strings (what the REPL echoes).
    """

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    # -----------------------------------------------------------------
    # print rendering
    # -----------------------------------------------------------------

    def render(self, value: Any) -> str:
        return self._render(value, set(), quote=False)

    def _render(self, value: Any, seen: set, quote: bool) -> str:
        # Explicit work stack so deeply nested objects cannot exhaust the host stack.
        # Items: ('value', v), ('text', s) or ('leave', object id).
        out = []
        work = [('value', value)]
        while work:
            tag, item = work.pop()
            if tag == 'text':
                out.append(item)
            elif tag == 'leave':
                seen.discard(item)
            elif isinstance(item, SlangObject):
                if id(item) in seen:
                    out.append("{...}")
                    continue
                seen.add(id(item))
                steps = [('text', "{")]
                for i, (k, v) in enumerate(item.items()):
                    steps.append(('text', f"{', ' if i else ''}{k}: "))
                    steps.append(('value', v))
                steps.append(('text', "}"))
                steps.append(('leave', id(item)))
                work.extend(reversed(steps))
            else:
                out.append(self._render_scalar(item, quote))
        return "".join(out)

    def _render_scalar(self, value: Any, quote: bool) -> str:
        match value:
            case None:
                return "null"
            case bool():
                return "true" if value else "false"
            case int():
                return str(value)
            case float():
                return format_float(value)
            case str():
                return quote_string(value) if quote else value
            case SlangFunction():
                return f"<fu {value.name}>"
        return repr(value)

    # -----------------------------------------------------------------
    # source formatting
    # -----------------------------------------------------------------

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            return self._render(obj, set(), quote=True)
        return handler(obj, level)

    def render_tokens(self, tokens: Iterable[Token]) -> str:
        """Source text for a token sequence, one space between lexemes."""
        return " ".join(t.text for t in tokens if t.kind != TokenKind.EOF)

    def _create_handlers(self):
        return {
            Program: self._pformat_program,
            Block: self._pformat_block,
            VarDecl: self._pformat_var_decl,
            FunctionDecl: self._pformat_function_decl,
            Return: self._pformat_return,
            If: self._pformat_if,
            While: self._pformat_while,
            ExprStmt: self._pformat_expr_stmt,
            Print: self._pformat_print,
            Literal: self._pformat_literal,
            Identifier: lambda n, l: n.name,
            Grouping: lambda n, l: f"({self.pformat(n.expr, l)})",
            Assignment: lambda n, l: f"{n.name} = {self.pformat(n.value, l)}",
            Ternary: self._pformat_ternary,
            Logical: self._pformat_binary,
            Binary: self._pformat_binary,
            Unary: lambda n, l: f"{n.op}{self.pformat(n.operand, l)}",
            Call: self._pformat_call,
            GetField: lambda n, l: f"{self.pformat(n.obj, l)}.{n.name}",
            SetField: lambda n, l: f"{self.pformat(n.obj, l)}.{n.name} = {self.pformat(n.value, l)}",
            ObjectLiteral: self._pformat_object,
        }

    def _pformat_program(self, node, level):
        return "\n".join(self.pformat(s, level) for s in node.statements)

    def _pformat_block(self, node, level):
        if not node.statements:
            return "{}"
        indent = self._indent_char * (level + 1)
        body = "\n".join(indent + self.pformat(s, level + 1) for s in node.statements)
        return "{\n" + body + "\n" + self._indent_char * level + "}"

    def _pformat_var_decl(self, node, level):
        if node.initializer is None:
            return f"let {node.name};"
        return f"let {node.name} = {self.pformat(node.initializer, level)};"

    def _pformat_function_decl(self, node, level):
        return f"fu {node.name}({', '.join(node.params)}) {self.pformat(node.body, level)}"

    def _pformat_return(self, node, level):
        if node.value is None:
            return "return;"
        return f"return {self.pformat(node.value, level)};"

    def _pformat_if(self, node, level):
        out = f"if {self.pformat(node.condition, level)} {self.pformat(node.then_branch, level)}"
        if node.else_branch is not None:
            out += f" else {self.pformat(node.else_branch, level)}"
        return out

    def _pformat_while(self, node, level):
        return f"while {self.pformat(node.condition, level)} {self.pformat(node.body, level)}"

    def _pformat_expr_stmt(self, node, level):
        return f"{self.pformat(node.expr, level)};"

    def _pformat_print(self, node, level):
        return f"print {self.pformat(node.expr, level)};"

    def _pformat_literal(self, node, level):
        value = node.value
        if isinstance(value, str):
            return quote_string(value)
        return self._render(value, set(), quote=True)

    def _pformat_ternary(self, node, level):
        return (f"{self.pformat(node.condition, level)} ? {self.pformat(node.then_expr, level)}"
                f" : {self.pformat(node.else_expr, level)}")

    def _pformat_binary(self, node, level):
        return f"{self.pformat(node.left, level)} {node.op} {self.pformat(node.right, level)}"

    def _pformat_call(self, node, level):
        args = ", ".join(self.pformat(a, level) for a in node.args)
        return f"{self.pformat(node.callee, level)}({args})"

    def _pformat_object(self, node, level):
        if not node.entries:
            return "{}"
        parts = []
        for key, value in node.entries:
            key_text = key if _is_bare_key(key) else quote_string(key)
            parts.append(f"{key_text}: {self.pformat(value, level)}")
        return "{" + ", ".join(parts) + "}"
