"""AST: parse-time node definitions.

Every node carries an optional source location that does not take part in
equality, so `==` compares trees structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .diagnostics import Loc, NO_LOC


# ============================================================
# OPERATORS
# ============================================================


OP_ADD = "add"
OP_SUB = "sub"

BINARY_OPS: set[str] = {OP_ADD, OP_SUB}


# ============================================================
# NODES
# ============================================================


class Node:
    """Base for all AST nodes."""

    loc: Loc


@dataclass
class Module(Node):
    """Top-level module: statements in source order."""

    stmts: list[Stmt]
    loc: Loc = field(default=NO_LOC, compare=False)


@dataclass
class Stmt(Node):
    """expr ';'."""

    expr: Expr
    loc: Loc = field(default=NO_LOC, compare=False)


class Expr(Node):
    """Base for all expressions."""


@dataclass
class IntLit(Expr):
    value: int
    loc: Loc = field(default=NO_LOC, compare=False)


@dataclass
class StrLit(Expr):
    value: str
    loc: Loc = field(default=NO_LOC, compare=False)


@dataclass
class Ident(Expr):
    name: str
    loc: Loc = field(default=NO_LOC, compare=False)


@dataclass
class Assign(Expr):
    """def dst src."""

    dst: Ident
    src: Expr
    loc: Loc = field(default=NO_LOC, compare=False)


@dataclass
class BinaryOp(Expr):
    """(add left right) or (sub left right)."""

    op: str
    left: Expr
    right: Expr
    loc: Loc = field(default=NO_LOC, compare=False)


@dataclass
class Call(Expr):
    """(func args...), captured but not executable."""

    func: Expr
    args: list[Expr]
    loc: Loc = field(default=NO_LOC, compare=False)


# ============================================================
# SERIALIZATION
# ============================================================


def _loc_to_dict(loc: Loc) -> dict[str, int] | None:
    if not loc.is_valid():
        return None
    return {"row": loc.row, "col": loc.col}


def to_dict(node: Node) -> dict[str, object]:
    """Convert a node tree to JSON-compatible dicts."""
    d: dict[str, object] = {"kind": type(node).__name__}
    if isinstance(node, Module):
        d["stmts"] = [to_dict(s) for s in node.stmts]
    elif isinstance(node, Stmt):
        d["expr"] = to_dict(node.expr)
    elif isinstance(node, IntLit):
        d["value"] = node.value
    elif isinstance(node, StrLit):
        d["value"] = node.value
    elif isinstance(node, Ident):
        d["name"] = node.name
    elif isinstance(node, Assign):
        d["dst"] = to_dict(node.dst)
        d["src"] = to_dict(node.src)
    elif isinstance(node, BinaryOp):
        d["op"] = node.op
        d["left"] = to_dict(node.left)
        d["right"] = to_dict(node.right)
    elif isinstance(node, Call):
        d["func"] = to_dict(node.func)
        d["args"] = [to_dict(a) for a in node.args]
    else:
        raise TypeError("unhandled node type: " + type(node).__name__)
    d["loc"] = _loc_to_dict(node.loc)
    return d
