"""Bytecode emitter: lowers an AST into a flat instruction stream.

Emission appends to three outputs that always move together: the code, the
constant pool and the symbol table. Symbols are only ever created by the
destination of a `def`.
"""

from __future__ import annotations

from .ast import (
    OP_ADD as AST_OP_ADD,
    OP_SUB as AST_OP_SUB,
    Assign,
    BinaryOp,
    Call,
    Ident,
    IntLit,
    Module,
    Node,
    Stmt,
    StrLit,
)
from .bytecode import (
    OP_ADD,
    OP_CALL,
    OP_LOAD,
    OP_PUSH,
    OP_STORE,
    OP_SUB,
    OPCODE_NAMES,
    OPERAND_COUNT,
    fits_int64,
)
from .diagnostics import LangError, Loc, NO_LOC
from .values import Evaluatable

BINARY_OPCODES: dict[str, int] = {
    AST_OP_ADD: OP_ADD,
    AST_OP_SUB: OP_SUB,
}


class EmitError(LangError):
    """Error while lowering the AST (undefined symbol, unknown node)."""


class BytecodeEmitter:
    def __init__(self) -> None:
        self.code: list[int] = []
        self.constants: list[Evaluatable] = []
        self.symbols: dict[str, int] = {}

    # ── Public ──────────────────────────────────────────────

    def convert(self, node: Node) -> None:
        """Append the lowering of `node` to the current outputs."""
        self._lower(node)

    def reset(self) -> None:
        """Clear code, constants and symbols together."""
        self.code = []
        self.constants = []
        self.symbols = {}

    def symbol_id(self, name: str) -> int:
        return self.symbols[name]

    # ── Outputs ─────────────────────────────────────────────

    def _emit(self, opcode: int, *operands: int, loc: Loc = NO_LOC) -> None:
        if len(operands) != OPERAND_COUNT[opcode]:
            raise EmitError(
                f"{OPCODE_NAMES[opcode]} takes {OPERAND_COUNT[opcode]} operands, "
                f"got {len(operands)}",
                loc,
            )
        self.code.append(opcode)
        for value in operands:
            if not fits_int64(value):
                raise EmitError(f"immediate out of 64-bit range: {value}", loc)
            self.code.append(value)

    def _add_constant(self, value: Evaluatable) -> int:
        index = len(self.constants)
        self.constants.append(value)
        return index

    def _register_symbol(self, name: str) -> int:
        if name not in self.symbols:
            self.symbols[name] = len(self.symbols)
        return self.symbols[name]

    def _resolve_symbol(self, node: Ident) -> int:
        if node.name not in self.symbols:
            raise EmitError("undefined symbol '" + node.name + "'", node.loc)
        return self.symbols[node.name]

    # ── Lowering ────────────────────────────────────────────

    def _lower(self, node: Node) -> None:
        if isinstance(node, Module):
            for stmt in node.stmts:
                self._lower(stmt)
            return
        if isinstance(node, Stmt):
            self._lower(node.expr)
            return
        if isinstance(node, IntLit):
            self._emit(OP_PUSH, node.value, loc=node.loc)
            return
        if isinstance(node, StrLit):
            index = self._add_constant(Evaluatable.from_str(node.value))
            self._emit(OP_PUSH, index, loc=node.loc)
            return
        if isinstance(node, Ident):
            self._emit(OP_LOAD, self._resolve_symbol(node), loc=node.loc)
            return
        if isinstance(node, Assign):
            self._lower_assign(node)
            return
        if isinstance(node, BinaryOp):
            self._lower_binary_op(node)
            return
        if isinstance(node, Call):
            self._lower_call(node)
            return
        raise EmitError("unhandled node type: " + type(node).__name__, node.loc)

    def _lower_assign(self, node: Assign) -> None:
        self._register_symbol(node.dst.name)
        self._lower_destination(node.dst)
        self._lower(node.src)
        self._emit(OP_STORE, loc=node.loc)

    def _lower_destination(self, node: Ident) -> None:
        self._emit(OP_PUSH, self._resolve_symbol(node), loc=node.loc)

    def _lower_binary_op(self, node: BinaryOp) -> None:
        if node.op not in BINARY_OPCODES:
            raise EmitError("unknown binary operator '" + node.op + "'", node.loc)
        self._lower(node.left)
        self._lower(node.right)
        self._emit(BINARY_OPCODES[node.op], loc=node.loc)

    def _lower_call(self, node: Call) -> None:
        # Arguments first so they sit below the callee on the stack
        for arg in node.args:
            self._lower(arg)
        self._lower(node.func)
        self._emit(OP_CALL, len(node.args), loc=node.loc)


def emit(module: Module) -> BytecodeEmitter:
    """Lower a module with a fresh emitter and return it."""
    emitter = BytecodeEmitter()
    emitter.convert(module)
    return emitter
