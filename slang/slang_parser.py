"""
Recursive-descent parser for slang.

One method per grammar level, lowest binding power first:

    program     := statement* EOF
    statement   := varDecl | funDecl | ifStmt | whileStmt | returnStmt
                 | printStmt | block | exprStmt
    expression  := assignment
    assignment  := ternary ( "=" assignment )?
    ternary     := logical ( "?" ternary ":" ternary )?
    logical     := equality ( ( "&&" | "||" ) equality )*
    equality    := relational ( ( "==" | "!=" ) relational )*
    relational  := bitwise ( ( "<" | "<=" | ">" | ">=" ) bitwise )*
    bitwise     := additive ( ( "&" | "|" ) additive )*
    additive    := multiplicative ( ( "+" | "-" ) multiplicative )*
    multiplicative := unary ( ( "*" | "/" ) unary )*
    unary       := ( "!" | "-" ) unary | call
    call        := primary ( "(" arguments? ")" | "." IDENT )*
    primary     := literal | IDENT | "(" expression ")" | "{" entries? "}"

Tokens are pulled lazily from the lexer with a single token of lookahead.
"""
from typing import Iterable, Iterator, List, Optional, Tuple

from slang.slang_errors import ParseError
from slang.slang_lexer import Lexer, Token, TokenKind
from slang.slang_ast import (
    Assignment, Binary, Block, Call, Expr, ExprStmt, FunctionDecl, GetField, Grouping,
    Identifier, If, Literal, Loc, Logical, ObjectLiteral, Print, Program, Return,
    SetField, Stmt, Ternary, Unary, VarDecl, While,
)

OP = TokenKind.OPERATOR
PUNCT = TokenKind.PUNCTUATION
KW = TokenKind.KEYWORD


def _loc(token: Token) -> Loc:
    return Loc(token.line, token.col)


class TokenStream:
    """A one-token lookahead window over any token iterable."""

    def __init__(self, tokens: Iterable[Token]):
        self._it: Iterator[Token] = iter(tokens)
        self._current: Optional[Token] = None
        self._fill()

    def _fill(self) -> None:
        try:
            self._current = next(self._it)
        except StopIteration:
            # An exhausted iterator without an explicit EOF still ends cleanly.
            if self._current is None or self._current.kind != TokenKind.EOF:
                last = self._current
                self._current = Token(TokenKind.EOF, "", None,
                                      last.line if last else 1, last.col if last else 1)

    def peek(self) -> Token:
        return self._current

    def advance(self) -> Token:
        token = self._current
        if token.kind != TokenKind.EOF:
            self._fill()
        return token

    def check(self, kind: TokenKind, *texts: str) -> bool:
        token = self._current
        if token.kind != kind:
            return False
        return not texts or token.text in texts

    def match(self, kind: TokenKind, *texts: str) -> Optional[Token]:
        """Consume and return the next token if it matches, else None."""
        if self.check(kind, *texts):
            return self.advance()
        return None

    def expect(self, kind: TokenKind, text: Optional[str] = None, what: Optional[str] = None) -> Token:
        """Consume the next token or raise ParseError naming what was expected."""
        if self.check(kind, *((text,) if text else ())):
            return self.advance()
        raise self.error(what or (f"'{text}'" if text else kind.value))

    def error(self, expected: str) -> ParseError:
        found = self._current
        return ParseError(f"expected {expected}, found {found.describe()}",
                          found.line, found.col, expected=expected, found=found.text)


class Parser:
    """Builds a Program from a token sequence. Not reusable across inputs."""

    def __init__(self, tokens: Iterable[Token]):
        self.tokens = TokenStream(tokens)

    def parse(self) -> Program:
        statements: List[Stmt] = []
        start = self.tokens.peek()
        try:
            while not self.tokens.check(TokenKind.EOF):
                statements.append(self.statement())
        except RecursionError:
            at = self.tokens.peek()
            raise ParseError("program is nested too deeply", at.line, at.col,
                             expected="shallower nesting", found=at.text) from None
        return Program(tuple(statements), _loc(start))

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def statement(self) -> Stmt:
        t = self.tokens
        if t.check(PUNCT, "{"):
            return self.block()
        if t.check(KW, "let"):
            return self.var_decl()
        if t.check(KW, "fu"):
            return self.function_decl()
        if t.check(KW, "if"):
            return self.if_statement()
        if t.check(KW, "while"):
            return self.while_statement()
        if t.check(KW, "return"):
            return self.return_statement()
        if t.check(KW, "print"):
            return self.print_statement()
        return self.expression_statement()

    def block(self) -> Block:
        start = self.tokens.expect(PUNCT, "{", "'{'")
        statements: List[Stmt] = []
        while not self.tokens.check(PUNCT, "}"):
            if self.tokens.check(TokenKind.EOF):
                raise self.tokens.error("'}'")
            statements.append(self.statement())
        self.tokens.advance()
        return Block(tuple(statements), _loc(start))

    def var_decl(self) -> VarDecl:
        start = self.tokens.advance()
        name = self.tokens.expect(TokenKind.IDENTIFIER, what="variable name").text
        initializer = None
        if self.tokens.match(OP, "="):
            initializer = self.expression()
        self.tokens.expect(PUNCT, ";", "';' after variable declaration")
        return VarDecl(name, initializer, _loc(start))

    def function_decl(self) -> FunctionDecl:
        start = self.tokens.advance()
        name = self.tokens.expect(TokenKind.IDENTIFIER, what="function name").text
        self.tokens.expect(PUNCT, "(", "'(' after function name")
        params: List[str] = []
        if not self.tokens.check(PUNCT, ")"):
            params.append(self.tokens.expect(TokenKind.IDENTIFIER, what="parameter name").text)
            while self.tokens.match(PUNCT, ","):
                params.append(self.tokens.expect(TokenKind.IDENTIFIER, what="parameter name").text)
        self.tokens.expect(PUNCT, ")", "')' after parameters")
        body = self.block()
        return FunctionDecl(name, tuple(params), body, _loc(start))

    def if_statement(self) -> If:
        start = self.tokens.advance()
        condition = self.expression()
        then_branch = self.block()
        else_branch = None
        if self.tokens.match(KW, "else"):
            if self.tokens.check(KW, "if"):
                else_branch = self.if_statement()
            elif self.tokens.check(PUNCT, "{"):
                else_branch = self.block()
            else:
                raise self.tokens.error("'if' or '{' after 'else'")
        return If(condition, then_branch, else_branch, _loc(start))

    def while_statement(self) -> While:
        start = self.tokens.advance()
        condition = self.expression()
        body = self.block()
        return While(condition, body, _loc(start))

    def return_statement(self) -> Return:
        start = self.tokens.advance()
        value = None
        if not self.tokens.check(PUNCT, ";"):
            value = self.expression()
        self.tokens.expect(PUNCT, ";", "';' after return value")
        return Return(value, _loc(start))

    def print_statement(self) -> Print:
        start = self.tokens.advance()
        expr = self.expression()
        self.tokens.expect(PUNCT, ";", "';' after print value")
        return Print(expr, _loc(start))

    def expression_statement(self) -> ExprStmt:
        start = self.tokens.peek()
        expr = self.expression()
        self.tokens.expect(PUNCT, ";", "';' after expression")
        return ExprStmt(expr, _loc(start))

    # -----------------------------------------------------------------
    # Expressions
    # -----------------------------------------------------------------

    def expression(self) -> Expr:
        return self.assignment()

    def assignment(self) -> Expr:
        target = self.ternary()
        equals = self.tokens.match(OP, "=")
        if equals is None:
            return target
        value = self.assignment()
        if isinstance(target, Identifier):
            return Assignment(target.name, value, target.loc)
        if isinstance(target, GetField):
            return SetField(target.obj, target.name, value, target.loc)
        raise ParseError("invalid assignment target", equals.line, equals.col,
                         expected="assignable expression", found="=")

    def ternary(self) -> Expr:
        condition = self.logical()
        question = self.tokens.match(OP, "?")
        if question is None:
            return condition
        then_expr = self.ternary()
        self.tokens.expect(PUNCT, ":", "':' in conditional expression")
        else_expr = self.ternary()
        return Ternary(condition, then_expr, else_expr, _loc(question))

    def logical(self) -> Expr:
        expr = self.equality()
        while (op := self.tokens.match(OP, "&&", "||")) is not None:
            expr = Logical(op.text, expr, self.equality(), _loc(op))
        return expr

    def _binary_level(self, next_level, *ops: str) -> Expr:
        expr = next_level()
        while (op := self.tokens.match(OP, *ops)) is not None:
            expr = Binary(op.text, expr, next_level(), _loc(op))
        return expr

    def equality(self) -> Expr:
        return self._binary_level(self.relational, "==", "!=")

    def relational(self) -> Expr:
        return self._binary_level(self.bitwise, "<", "<=", ">", ">=")

    def bitwise(self) -> Expr:
        return self._binary_level(self.additive, "&", "|")

    def additive(self) -> Expr:
        return self._binary_level(self.multiplicative, "+", "-")

    def multiplicative(self) -> Expr:
        return self._binary_level(self.unary, "*", "/")

    def unary(self) -> Expr:
        op = self.tokens.match(OP, "!", "-")
        if op is not None:
            return Unary(op.text, self.unary(), _loc(op))
        return self.call()

    def call(self) -> Expr:
        expr = self.primary()
        while True:
            paren = self.tokens.match(PUNCT, "(")
            if paren is not None:
                expr = Call(expr, self.arguments(), _loc(paren))
                continue
            dot = self.tokens.match(PUNCT, ".")
            if dot is not None:
                name = self.tokens.expect(TokenKind.IDENTIFIER, what="field name after '.'")
                expr = GetField(expr, name.text, _loc(name))
                continue
            return expr

    def arguments(self) -> Tuple[Expr, ...]:
        args: List[Expr] = []
        if not self.tokens.check(PUNCT, ")"):
            args.append(self.expression())
            while self.tokens.match(PUNCT, ","):
                args.append(self.expression())
        self.tokens.expect(PUNCT, ")", "')' after arguments")
        return tuple(args)

    def primary(self) -> Expr:
        t = self.tokens
        token = t.peek()
        match token.kind:
            case TokenKind.INTEGER | TokenKind.FLOAT | TokenKind.STRING:
                t.advance()
                return Literal(token.value, _loc(token))
            case TokenKind.KEYWORD if token.text in ("true", "false", "null"):
                t.advance()
                return Literal(token.value, _loc(token))
            case TokenKind.IDENTIFIER:
                t.advance()
                return Identifier(token.text, _loc(token))
            case TokenKind.PUNCTUATION if token.text == "(":
                t.advance()
                expr = self.expression()
                t.expect(PUNCT, ")", "')' after expression")
                return Grouping(expr, _loc(token))
            case TokenKind.PUNCTUATION if token.text == "{":
                t.advance()
                return self.object_literal(token)
        raise t.error("expression")

    def object_literal(self, brace: Token) -> ObjectLiteral:
        entries: List[Tuple[str, Expr]] = []
        if not self.tokens.check(PUNCT, "}"):
            entries.append(self.object_entry())
            while self.tokens.match(PUNCT, ","):
                entries.append(self.object_entry())
        self.tokens.expect(PUNCT, "}", "'}' after object entries")
        return ObjectLiteral(tuple(entries), _loc(brace))

    def object_entry(self) -> Tuple[str, Expr]:
        key = self.tokens.match(TokenKind.IDENTIFIER) or self.tokens.match(TokenKind.STRING)
        if key is None:
            raise self.tokens.error("object key")
        self.tokens.expect(PUNCT, ":", "':' after object key")
        return key.value, self.expression()


def parse(source: str) -> Program:
    """Lex and parse `source` into a Program."""
    return Parser(Lexer(source)).parse()
