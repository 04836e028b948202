"""Parser: recursive descent, one method per grammar production.

    module    := statement*
    statement := expr ';'
    expr      := INT | STR | ID | '(' form ')' | def_stmt
    form      := ('add' | 'sub') expr expr
               | def_stmt
               | expr expr*
    def_stmt  := 'def' ID expr
"""

from __future__ import annotations

from .ast import (
    BINARY_OPS,
    Assign,
    BinaryOp,
    Call,
    Expr,
    Ident,
    IntLit,
    Module,
    Stmt,
    StrLit,
)
from .diagnostics import LangError
from .tokens import (
    TK_DEF,
    TK_EOF,
    TK_ID,
    TK_INT,
    TK_LPAR,
    TK_RPAR,
    TK_SEMICOL,
    TK_STR,
    Token,
)
from .values import INT32_MAX, INT32_MIN

# Failure kinds
PARSE_FAIL = "generic"
PARSE_FAIL_NO_LPAR = "unmatched-rpar"
PARSE_FAIL_NO_RPAR = "unmatched-lpar"
PARSE_FAIL_BINOP_ARITY = "binop-arity"
PARSE_FAIL_NO_SEMICOL = "missing-semicolon"


class ParseError(LangError):
    """Parse error with a failure kind and the offending token."""

    def __init__(self, kind: str, msg: str, tok: Token):
        super().__init__(msg, tok.loc)
        self.kind: str = kind
        self.tok: Token = tok


class Parser:
    """Recursive descent parser over a token list ending in TK_EOF."""

    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].kind != TK_EOF:
            raise ValueError("token list must end with an EOF token")
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        # Stack of '(' tokens not yet closed
        self.open_parens: list[Token] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != TK_EOF:
            self.pos += 1
        return tok

    def at_kind(self, kind: str) -> bool:
        return self.current().kind == kind

    def at_end_of_form(self) -> bool:
        """True where a ')' was still owed: end of statement or input."""
        return self.at_kind(TK_SEMICOL) or self.at_kind(TK_EOF)

    def error(self, kind: str, msg: str) -> ParseError:
        return ParseError(kind, msg, self.current())

    def unclosed_error(self) -> ParseError:
        tok = self.open_parens[-1]
        return ParseError(PARSE_FAIL_NO_RPAR, "unmatched '('", tok)

    # ── Top Level ────────────────────────────────────────────

    def parse_module(self) -> Module:
        loc = self.current().loc
        stmts: list[Stmt] = []
        while not self.at_kind(TK_EOF):
            stmts.append(self.parse_statement())
        return Module(stmts, loc)

    def parse_statement(self) -> Stmt:
        loc = self.current().loc
        expr = self.parse_expr()
        if self.at_kind(TK_SEMICOL):
            self.advance()
            return Stmt(expr, loc)
        if self.at_kind(TK_RPAR):
            raise self.error(PARSE_FAIL_NO_LPAR, "unmatched ')'")
        raise self.error(
            PARSE_FAIL_NO_SEMICOL,
            "expected ';' after statement, got '" + self.current().text + "'",
        )

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        tok = self.current()
        if tok.kind == TK_INT:
            return self.parse_int()
        if tok.kind == TK_STR:
            self.advance()
            return StrLit(tok.text, tok.loc)
        if tok.kind == TK_ID:
            self.advance()
            return Ident(tok.text, tok.loc)
        if tok.kind == TK_LPAR:
            return self.parse_form()
        if tok.kind == TK_DEF:
            return self.parse_def()
        if tok.kind == TK_RPAR:
            raise self.error(PARSE_FAIL_NO_LPAR, "unmatched ')'")
        if self.open_parens:
            raise self.unclosed_error()
        if tok.kind == TK_EOF:
            raise self.error(PARSE_FAIL, "unexpected end of input")
        raise self.error(PARSE_FAIL, "expected expression, got '" + tok.text + "'")

    def parse_int(self) -> IntLit:
        tok = self.current()
        value = int(tok.text)
        if value < INT32_MIN or value > INT32_MAX:
            raise self.error(PARSE_FAIL, "integer literal out of range: " + tok.text)
        self.advance()
        return IntLit(value, tok.loc)

    def parse_def(self) -> Assign:
        loc = self.advance().loc  # skip 'def'
        tok = self.current()
        if tok.kind != TK_ID:
            if self.at_end_of_form() and self.open_parens:
                raise self.unclosed_error()
            raise self.error(
                PARSE_FAIL, "expected identifier after 'def', got '" + tok.text + "'"
            )
        self.advance()
        src = self.parse_expr()
        return Assign(Ident(tok.text, tok.loc), src, loc)

    def parse_form(self) -> Expr:
        lpar = self.advance()
        self.open_parens.append(lpar)
        if self.at_kind(TK_RPAR):
            raise self.error(PARSE_FAIL, "empty form '()'")
        head = self.current()
        if head.kind == TK_ID and head.text in BINARY_OPS:
            node: Expr = self.parse_binary_op(lpar)
        elif head.kind == TK_DEF:
            node = self.parse_def_form()
        else:
            node = self.parse_call(lpar)
        self.open_parens.pop()
        self.advance()  # skip ')'
        return node

    def parse_binary_op(self, lpar: Token) -> BinaryOp:
        op = self.advance().text
        operands: list[Expr] = []
        while len(operands) < 2:
            if self.at_kind(TK_RPAR):
                raise self.error(
                    PARSE_FAIL,
                    "'" + op + "' expects 2 operands, got " + str(len(operands)),
                )
            operands.append(self.parse_expr())
        if self.at_kind(TK_RPAR):
            return BinaryOp(op, operands[0], operands[1], lpar.loc)
        if self.at_end_of_form():
            raise self.unclosed_error()
        # Consume the surplus so an unclosed form still reports as unclosed
        extra = self.current()
        while not self.at_kind(TK_RPAR):
            if self.at_end_of_form():
                raise self.unclosed_error()
            self.parse_expr()
        raise ParseError(
            PARSE_FAIL_BINOP_ARITY,
            "too many operands for '" + op + "', expected 2",
            extra,
        )

    def parse_def_form(self) -> Assign:
        """`(def ID expr)`: the parens group the assignment, not a call."""
        node = self.parse_def()
        if self.at_kind(TK_RPAR):
            return node
        if self.at_end_of_form():
            raise self.unclosed_error()
        extra = self.current()
        while not self.at_kind(TK_RPAR):
            if self.at_end_of_form():
                raise self.unclosed_error()
            self.parse_expr()
        raise ParseError(PARSE_FAIL, "expected ')' after 'def' value", extra)

    def parse_call(self, lpar: Token) -> Call:
        func = self.parse_expr()
        args: list[Expr] = []
        while not self.at_kind(TK_RPAR):
            if self.at_end_of_form():
                raise self.unclosed_error()
            args.append(self.parse_expr())
        return Call(func, args, lpar.loc)


def parse_tokens(tokens: list[Token]) -> Module:
    """Parse a token list into a Module AST."""
    return Parser(tokens).parse_module()
