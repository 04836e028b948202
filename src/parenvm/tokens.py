"""Tokenizer: lexes source into a flat token list."""

from __future__ import annotations

from .diagnostics import LangError, Loc, NO_LOC


# Token kind constants
TK_LPAR = "LPAR"
TK_RPAR = "RPAR"
TK_INT = "INT"
TK_STR = "STR"
TK_ID = "ID"
TK_DEF = "DEF"
TK_SEMICOL = "SEMICOL"
TK_EOF = "EOF"

KEYWORDS: dict[str, str] = {
    "def": TK_DEF,
}

PUNCTUATION: dict[str, str] = {
    "(": TK_LPAR,
    ")": TK_RPAR,
    ";": TK_SEMICOL,
}

WHITESPACE: str = " \t\r\n\v\f"


class LexError(LangError):
    """Unexpected character in the source."""

    def __init__(self, char: str, loc: Loc):
        super().__init__("unexpected character " + repr(char), loc)
        self.char: str = char


class Token:
    """A token with kind, literal text and location.

    Equality ignores the location so expected token lists can be written
    without positions.
    """

    def __init__(self, kind: str, text: str, loc: Loc = NO_LOC):
        self.kind: str = kind
        self.text: str = text
        self.loc: Loc = loc

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Token)
            and self.kind == other.kind
            and self.text == other.text
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.text))

    def __repr__(self) -> str:
        return (
            "Token("
            + self.kind
            + ", "
            + repr(self.text)
            + ", "
            + str(self.loc.row)
            + ", "
            + str(self.loc.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z")


def tokenize(source: str) -> list[Token]:
    """Tokenize source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    row = 0
    col = 0
    length = len(source)

    while pos < length:
        c = source[pos]
        loc = Loc(row, col)

        if c in PUNCTUATION:
            tokens.append(Token(PUNCTUATION[c], c, loc))
            pos += 1
            col += 1
            continue

        # String literal: contents are taken verbatim, no escapes
        if c == '"':
            end = source.find('"', pos + 1)
            if end == -1:
                raise LexError(c, loc)
            text = source[pos + 1 : end]
            tokens.append(Token(TK_STR, text, loc))
            # Strings may span lines
            newlines = text.count("\n")
            if newlines:
                row += newlines
                col = len(text) - text.rfind("\n")
            else:
                col += len(text) + 2
            pos = end + 1
            continue

        if c == "\n":
            pos += 1
            row += 1
            col = 0
            continue

        if c in WHITESPACE:
            pos += 1
            col += 1
            continue

        if _is_digit(c):
            start = pos
            while pos < length and _is_digit(source[pos]):
                pos += 1
            text = source[start:pos]
            tokens.append(Token(TK_INT, text, loc))
            col += len(text)
            continue

        if _is_alpha(c):
            start = pos
            while pos < length and _is_alpha(source[pos]):
                pos += 1
            word = source[start:pos]
            tokens.append(Token(KEYWORDS.get(word, TK_ID), word, loc))
            col += len(word)
            continue

        raise LexError(c, loc)

    tokens.append(Token(TK_EOF, "", Loc(row, col)))
    return tokens
