import pytest

from slang.slang_parser import Parser, TokenStream, parse
from slang.slang_lexer import Lexer, Token, TokenKind, tokenize
from slang.slang_errors import ParseError
from slang.slang_ast import (
    Assignment, Binary, Block, Call, ExprStmt, FunctionDecl, GetField, Grouping,
    Identifier, If, Literal, Logical, ObjectLiteral, Print, Program, Return,
    SetField, Ternary, Unary, VarDecl, While,
)


def expr(source):
    """Parse a single expression statement and return its expression."""
    program = parse(source + ";")
    assert len(program.statements) == 1
    stmt = program.statements[0]
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


def I(name):
    return Identifier(name)


def L(value):
    return Literal(value)


# --- Statements ---

def test_var_decl_with_and_without_initializer():
    program = parse("let x = 1; let y;")
    assert program.statements == (VarDecl("x", L(1)), VarDecl("y", None))


def test_function_decl():
    program = parse("fu add(a, b) { return a + b; }")
    assert program.statements == (
        FunctionDecl("add", ("a", "b"), Block((Return(Binary("+", I("a"), I("b"))),))),
    )


def test_function_without_params_and_bare_return():
    program = parse("fu f() { return; }")
    assert program.statements[0] == FunctionDecl("f", (), Block((Return(None),)))


def test_if_else_if_else_chain():
    program = parse("if a { print 1; } else if b { print 2; } else { print 3; }")
    stmt = program.statements[0]
    assert isinstance(stmt, If)
    assert stmt.condition == I("a")
    assert isinstance(stmt.else_branch, If)
    assert stmt.else_branch.condition == I("b")
    assert stmt.else_branch.else_branch == Block((Print(L(3)),))


def test_else_must_be_followed_by_if_or_block():
    with pytest.raises(ParseError) as ei:
        parse("if a { } else print 1;")
    assert "'if' or '{'" in ei.value.message


def test_while():
    program = parse("while i < 3 { i = i + 1; }")
    assert program.statements[0] == While(
        Binary("<", I("i"), L(3)),
        Block((ExprStmt(Assignment("i", Binary("+", I("i"), L(1)))),)),
    )


def test_leading_brace_is_a_block():
    program = parse("{ let x = 1; { print x; } }")
    outer = program.statements[0]
    assert isinstance(outer, Block)
    assert isinstance(outer.statements[1], Block)


def test_print_statement():
    assert parse('print "hi";').statements == (Print(L("hi")),)


def test_expression_statement_needs_semicolon():
    with pytest.raises(ParseError) as ei:
        parse("x = 1")
    assert "';'" in ei.value.message
    assert "end of input" in ei.value.message


def test_unclosed_block():
    with pytest.raises(ParseError):
        parse("{ let x = 1;")


# --- Precedence and associativity ---

def test_multiplicative_binds_tighter_than_additive():
    assert expr("1 + 2 * 3") == Binary("+", L(1), Binary("*", L(2), L(3)))


def test_left_associative_levels():
    assert expr("1 - 2 - 3") == Binary("-", Binary("-", L(1), L(2)), L(3))
    assert expr("8 / 4 / 2") == Binary("/", Binary("/", L(8), L(4)), L(2))


def test_full_ladder():
    # a = b ? c : d || e == f < g & h + i * -j(k)
    e = expr("a = b ? c : d || e == f < g & h + i * -j(k)")
    assert isinstance(e, Assignment)
    t = e.value
    assert isinstance(t, Ternary)
    lg = t.else_expr
    assert isinstance(lg, Logical) and lg.op == "||"
    eq = lg.right
    assert isinstance(eq, Binary) and eq.op == "=="
    rel = eq.right
    assert isinstance(rel, Binary) and rel.op == "<"
    bit = rel.right
    assert isinstance(bit, Binary) and bit.op == "&"
    add = bit.right
    assert isinstance(add, Binary) and add.op == "+"
    mul = add.right
    assert isinstance(mul, Binary) and mul.op == "*"
    neg = mul.right
    assert neg == Unary("-", Call(I("j"), (I("k"),)))


def test_bitwise_binds_tighter_than_relational():
    assert expr("a < b | c") == Binary("<", I("a"), Binary("|", I("b"), I("c")))


def test_logical_operators_share_a_level():
    assert expr("a || b && c") == Logical("&&", Logical("||", I("a"), I("b")), I("c"))


def test_assignment_is_right_associative():
    assert expr("a = b = 1") == Assignment("a", Assignment("b", L(1)))


def test_ternary_is_right_associative():
    assert expr("a ? b : c ? d : e") == Ternary(I("a"), I("b"), Ternary(I("c"), I("d"), I("e")))


def test_unary_nests():
    assert expr("!-x") == Unary("!", Unary("-", I("x")))


def test_grouping_overrides_precedence():
    assert expr("(1 + 2) * 3") == Binary("*", Grouping(Binary("+", L(1), L(2))), L(3))


# --- Calls, fields, objects ---

def test_chained_calls():
    assert expr("f()()") == Call(Call(I("f"), ()), ())
    assert expr("f(1, 2)(3)") == Call(Call(I("f"), (L(1), L(2))), (L(3),))


def test_field_access_and_set():
    assert expr("a.b.c") == GetField(GetField(I("a"), "b"), "c")
    assert expr("a.b = 1") == SetField(I("a"), "b", L(1))
    assert expr("f().x") == GetField(Call(I("f"), ()), "x")


def test_invalid_assignment_target():
    with pytest.raises(ParseError) as ei:
        parse("1 = 2;")
    assert "invalid assignment target" in ei.value.message
    with pytest.raises(ParseError):
        parse("f() = 2;")


def test_object_literal():
    e = expr('x = {a: 1, "b c": "two", a: 3}')
    assert e.value == ObjectLiteral((("a", L(1)), ("b c", L("two")), ("a", L(3))))
    assert expr("x = {}").value == ObjectLiteral(())


def test_object_literal_rejects_trailing_comma():
    with pytest.raises(ParseError):
        parse("let o = {a: 1,};")


def test_call_rejects_trailing_comma():
    with pytest.raises(ParseError):
        parse("f(1,);")


def test_literals():
    assert expr("true") == L(True)
    assert expr("null") == L(None)
    assert expr("2.5") == L(2.5)


# --- Errors and determinism ---

def test_parse_error_names_expected_and_found_with_position():
    with pytest.raises(ParseError) as ei:
        parse("let = 5;")
    err = ei.value
    assert err.expected == "variable name"
    assert err.found == "="
    assert (err.line, err.col) == (1, 5)
    assert "expected variable name, found operator '='" in err.message


def test_missing_expression():
    with pytest.raises(ParseError) as ei:
        parse("print ;")
    assert "expected expression" in ei.value.message


def test_keyword_cannot_start_expression():
    with pytest.raises(ParseError):
        parse("let x = else;")


def test_parsing_is_deterministic():
    source = """
        fu fib(n) { if n < 2 { return n; } return fib(n - 1) + fib(n - 2); }
        let o = {n: 10, f: fib};
        print o.f(o.n);
    """
    tokens = tokenize(source)
    first = Parser(tokens).parse()
    second = Parser(tokens).parse()
    assert first == second
    assert first == parse(source)


def test_nodes_carry_locations():
    program = parse("let x = 1;\nprint x + y;")
    stmt = program.statements[1]
    assert (stmt.loc.line, stmt.loc.col) == (2, 1)
    plus = stmt.expr
    assert (plus.loc.line, plus.loc.col) == (2, 9)
    assert (plus.right.loc.line, plus.right.loc.col) == (2, 11)


def test_nodes_are_immutable():
    node = expr("a + b")
    with pytest.raises(Exception):
        node.op = "-"


def test_token_stream_supplies_eof_when_missing():
    stream = TokenStream([Token(TokenKind.IDENTIFIER, "x", "x", 1, 1)])
    assert stream.advance().text == "x"
    assert stream.peek().kind == TokenKind.EOF
    assert stream.advance().kind == TokenKind.EOF


def test_parser_pulls_from_lazy_lexer():
    program = Parser(Lexer("print 1;")).parse()
    assert program.statements == (Print(L(1)),)


@pytest.mark.parametrize("left, right", [
    ("print 1;", "print true;"),
    ("print 1;", "print 1.0;"),
    ("print 0;", "print false;"),
    ('print "1";', "print 1;"),
], ids=["int_vs_bool", "int_vs_float", "zero_vs_false", "string_vs_int"])
def test_literals_of_different_kinds_are_not_equal(left, right):
    assert parse(left) != parse(right)
    assert parse(left) == parse(left)


def test_literal_hash_is_consistent_with_equality():
    assert hash(L(1)) == hash(Literal(1))
    assert len({L(1), L(True), L(1.0)}) == 3


def test_excessive_nesting_is_a_parse_error():
    with pytest.raises(ParseError) as ei:
        parse("print " + "(" * 50000 + "1" + ")" * 50000 + ";")
    assert "nested too deeply" in ei.value.message
    assert ei.value.line == 1
