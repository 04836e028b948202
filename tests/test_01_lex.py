"""Tokenizer tests."""

import pytest

from parenvm.diagnostics import Loc
from parenvm.tokens import (
    TK_DEF,
    TK_EOF,
    TK_ID,
    TK_INT,
    TK_LPAR,
    TK_RPAR,
    TK_SEMICOL,
    TK_STR,
    LexError,
    Token,
    tokenize,
)

EOF = Token(TK_EOF, "")


def test_nested_binary_ops():
    expected = [
        Token(TK_LPAR, "("),
        Token(TK_ID, "add"),
        Token(TK_INT, "2"),
        Token(TK_LPAR, "("),
        Token(TK_ID, "sub"),
        Token(TK_INT, "4"),
        Token(TK_INT, "2"),
        Token(TK_RPAR, ")"),
        Token(TK_RPAR, ")"),
        Token(TK_SEMICOL, ";"),
        EOF,
    ]
    assert tokenize("(add 2 (sub 4 2));") == expected


def test_def_statements():
    expected = [
        Token(TK_DEF, "def"),
        Token(TK_ID, "x"),
        Token(TK_INT, "2"),
        Token(TK_SEMICOL, ";"),
        Token(TK_LPAR, "("),
        Token(TK_ID, "add"),
        Token(TK_ID, "x"),
        Token(TK_INT, "5"),
        Token(TK_RPAR, ")"),
        Token(TK_SEMICOL, ";"),
        EOF,
    ]
    assert tokenize("def x 2; (add x 5);") == expected


def test_empty_source():
    assert tokenize("") == [EOF]
    assert tokenize("  \n\t ") == [EOF]


def test_string_taken_verbatim():
    toks = tokenize('"a \\n (b);"')
    assert toks == [Token(TK_STR, "a \\n (b);"), EOF]


def test_maximal_munch():
    toks = tokenize("123abc define")
    assert toks == [
        Token(TK_INT, "123"),
        Token(TK_ID, "abc"),
        Token(TK_ID, "define"),
        EOF,
    ]


def test_keyword_is_exact():
    assert tokenize("def")[0].kind == TK_DEF
    assert tokenize("Def")[0].kind == TK_ID


def test_equality_ignores_location():
    assert Token(TK_INT, "1", Loc(3, 4)) == Token(TK_INT, "1")
    assert Token(TK_INT, "1") != Token(TK_ID, "1")
    assert Token(TK_INT, "1") != Token(TK_INT, "2")


def test_locations():
    toks = tokenize('(add 12\n  "hi" x);')
    locs = [(t.loc.row, t.loc.col) for t in toks]
    assert locs == [(0, 0), (0, 1), (0, 5), (1, 2), (1, 7), (1, 8), (1, 9), (1, 10)]


def test_newline_resets_column():
    toks = tokenize("1\n2\n\n  3")
    assert [(t.loc.row, t.loc.col) for t in toks[:3]] == [(0, 0), (1, 0), (3, 2)]


def test_multiline_string_location():
    toks = tokenize('"a\nbc" 1')
    assert toks[0].text == "a\nbc"
    assert (toks[1].loc.row, toks[1].loc.col) == (1, 4)


@pytest.mark.parametrize(
    "source,char,row,col",
    [
        ("(add 1 2)#", "#", 0, 9),
        ("x_y", "_", 0, 1),
        ("1\n  -2", "-", 1, 2),
        ("(add 1.5 2)", ".", 0, 6),
        ('(add "abc', '"', 0, 5),
    ],
)
def test_bad_character(source: str, char: str, row: int, col: int):
    with pytest.raises(LexError) as exc_info:
        tokenize(source)
    err = exc_info.value
    assert err.char == char
    assert err.loc == Loc(row, col)
    assert f"at row {row} col {col}" in str(err)
