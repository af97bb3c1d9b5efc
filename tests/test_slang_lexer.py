import pytest

from slang.slang_lexer import Lexer, Token, TokenKind, tokenize
from slang.slang_errors import LexError
from slang.slang_printer import Printer


def kinds_and_texts(source):
    return [(t.kind, t.text) for t in tokenize(source)]


def test_simple_statement():
    assert kinds_and_texts("let x = 1;") == [
        (TokenKind.KEYWORD, "let"),
        (TokenKind.IDENTIFIER, "x"),
        (TokenKind.OPERATOR, "="),
        (TokenKind.INTEGER, "1"),
        (TokenKind.PUNCTUATION, ";"),
        (TokenKind.EOF, ""),
    ]


def test_empty_source_is_just_eof():
    toks = tokenize("   \n\t ")
    assert len(toks) == 1
    assert toks[0].kind == TokenKind.EOF


def test_every_operator_and_punctuation():
    src = "= == != < <= > >= & | && || + - * / ! ? : , ; { } ( ) ."
    toks = tokenize(src)
    assert [t.text for t in toks[:-1]] == src.split()
    ops = {t.text for t in toks if t.kind == TokenKind.OPERATOR}
    assert ops == {"=", "==", "!=", "<", "<=", ">", ">=", "&", "|", "&&", "||", "+", "-", "*", "/", "!", "?"}


def test_longest_match_without_spaces():
    assert [t.text for t in tokenize("a<=b&&c||!d")][:-1] == ["a", "<=", "b", "&&", "c", "||", "!", "d"]


def test_keywords_and_literal_keywords():
    toks = tokenize("let fu if else while return print true false null lettuce")
    assert all(t.kind == TokenKind.KEYWORD for t in toks[:10])
    assert toks[7].value is True
    assert toks[8].value is False
    assert toks[9].value is None
    assert toks[10].kind == TokenKind.IDENTIFIER
    assert toks[10].text == "lettuce"


def test_numbers():
    toks = tokenize("42 3.14 0 10.0")
    assert [(t.kind, t.value) for t in toks[:-1]] == [
        (TokenKind.INTEGER, 42),
        (TokenKind.FLOAT, 3.14),
        (TokenKind.INTEGER, 0),
        (TokenKind.FLOAT, 10.0),
    ]


def test_trailing_dot_is_not_part_of_number():
    toks = tokenize("1.x")
    assert [(t.kind, t.text) for t in toks[:-1]] == [
        (TokenKind.INTEGER, "1"),
        (TokenKind.PUNCTUATION, "."),
        (TokenKind.IDENTIFIER, "x"),
    ]


def test_integer_out_of_range():
    tokenize("9223372036854775807")
    with pytest.raises(LexError):
        tokenize("9223372036854775808")


def test_strings_and_escapes():
    toks = tokenize(r'"hello" "a\"b\n" ""')
    assert toks[0].kind == TokenKind.STRING
    assert toks[0].value == "hello"
    assert toks[0].text == '"hello"'
    assert toks[1].value == 'a"b\n'
    assert toks[2].value == ""


def test_unterminated_string():
    with pytest.raises(LexError) as ei:
        tokenize('let s = "abc;')
    assert "unterminated string" in ei.value.message
    assert (ei.value.line, ei.value.col) == (1, 9)


def test_unknown_escape():
    with pytest.raises(LexError):
        tokenize(r'"\q"')


def test_unexpected_character_reports_position():
    with pytest.raises(LexError) as ei:
        tokenize("let x = 1;\nlet y = @;")
    err = ei.value
    assert err.character == "@"
    assert (err.line, err.col) == (2, 9)


def test_comments_are_discarded():
    src = """
        // a line comment
        let x = 1; /* block
        comment */ print x; // trailing
    """
    assert [t.text for t in tokenize(src)][:-1] == ["let", "x", "=", "1", ";", "print", "x", ";"]


def test_unterminated_block_comment():
    with pytest.raises(LexError) as ei:
        tokenize("let x = 1; /* never closed")
    assert "block comment" in ei.value.message


def test_positions_are_one_based():
    toks = tokenize("let x\n  = 5;")
    assert (toks[0].line, toks[0].col) == (1, 1)
    assert (toks[1].line, toks[1].col) == (1, 5)
    assert (toks[2].line, toks[2].col) == (2, 3)
    assert (toks[3].line, toks[3].col) == (2, 5)


def test_lexer_is_lazy():
    # The error sits after the first token, so pulling one token must succeed.
    it = iter(Lexer("let @"))
    first = next(it)
    assert first.text == "let"
    with pytest.raises(LexError):
        next(it)


def test_lexer_is_restartable():
    lexer = Lexer("print 1 + 2;")
    first = list(lexer)
    second = list(lexer)
    assert first == second
    assert first[-1].kind == TokenKind.EOF


def test_token_equality_ignores_position():
    a = Token(TokenKind.IDENTIFIER, "x", "x", 1, 1)
    b = Token(TokenKind.IDENTIFIER, "x", "x", 7, 3)
    assert a == b


@pytest.mark.parametrize("source", [
    "let x = 1; x = x + 1; print x;",
    'fu f(a, b) { return a <= b ? "yes" : "no\\n"; } print f(1, 2.5);',
    "let o = {a: 1, b: {c: null}}; print o.b.c;",
    "while i<10&&!done{i=i+1;}",
])
def test_rendered_tokens_relex_to_same_sequence(source):
    tokens = tokenize(source)
    rendered = Printer().render_tokens(tokens)
    assert tokenize(rendered) == tokens
