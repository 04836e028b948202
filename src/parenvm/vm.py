"""Bytecode evaluator: a straight-line stack machine.

The evaluator walks the instruction stream once from the first slot to the
last. There are no jumps; execution halts when the instruction pointer moves
past the end of the stream.
"""

from __future__ import annotations

from typing import TextIO

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
from .diagnostics import LangError
from .values import Evaluatable

# Failure kinds
VM_STACK_UNDERFLOW = "stack-underflow"
VM_UNDEFINED_SYMBOL = "undefined-symbol"
VM_UNIMPLEMENTED_CALL = "unimplemented-call"
VM_TRUNCATED_OPERAND = "truncated-operand"
VM_BAD_OPCODE = "bad-opcode"
VM_OVERFLOW = "overflow"
VM_NO_RESULT = "no-result"
VM_EXTRA_VALUES = "extra-values"


class VMError(LangError):
    """Runtime failure while interpreting bytecode."""

    def __init__(self, kind: str, msg: str, ip: int = -1):
        if ip >= 0:
            msg = f"{msg} (at slot {ip})"
        super().__init__(msg)
        self.kind: str = kind
        self.ip: int = ip


class BytecodeEvaluator:
    def __init__(
        self,
        constants: list[Evaluatable] | None = None,
        symbols: dict[str, int] | None = None,
        trace: TextIO | None = None,
    ):
        self.stack: list[int] = []
        self.constants: list[Evaluatable] = []
        self.symbol_store: dict[int, int] = {}
        self.trace: TextIO | None = trace
        if constants is not None:
            self.load_constants(constants)
        if symbols is not None:
            self.load_symbols(symbols)

    def load_constants(self, constants: list[Evaluatable]) -> None:
        self.constants = [c.copy() for c in constants]

    def load_symbols(self, symbols: dict[str, int]) -> None:
        """Seed the store with zero for every known symbol id."""
        for symbol_id in symbols.values():
            self.symbol_store[symbol_id] = 0

    def reset(self) -> None:
        self.stack = []
        self.constants = []
        self.symbol_store = {}

    @property
    def result(self) -> int:
        """The single value the program leaves on the stack."""
        if not self.stack:
            raise VMError(VM_NO_RESULT, "program produced no value")
        if len(self.stack) > 1:
            raise VMError(
                VM_EXTRA_VALUES,
                f"program left {len(self.stack)} values on the stack, expected 1",
            )
        return self.stack[-1]

    # ── Interpretation ──────────────────────────────────────

    def interpret(self, code: list[int]) -> None:
        ip = 0
        while ip < len(code):
            opcode = code[ip]
            if opcode not in OPCODE_NAMES:
                raise VMError(VM_BAD_OPCODE, f"unknown opcode {opcode}", ip)
            count = OPERAND_COUNT[opcode]
            if count > 0 and ip + count >= len(code):
                raise VMError(
                    VM_TRUNCATED_OPERAND,
                    f"{OPCODE_NAMES[opcode]} expects {count} operand(s)",
                    ip,
                )
            operands = code[ip + 1 : ip + 1 + count]
            self._execute(opcode, operands, ip)
            self._trace(opcode, operands, ip)
            ip += 1 + count

    def _execute(self, opcode: int, operands: list[int], ip: int) -> None:
        if opcode == OP_PUSH:
            self.stack.append(operands[0])
        elif opcode == OP_ADD:
            lhs, rhs = self._pop_pair(opcode, ip)
            self._push_checked(lhs + rhs, ip)
        elif opcode == OP_SUB:
            lhs, rhs = self._pop_pair(opcode, ip)
            self._push_checked(lhs - rhs, ip)
        elif opcode == OP_STORE:
            symbol_id, value = self._pop_pair(opcode, ip)
            self._check_symbol(symbol_id, ip)
            self.symbol_store[symbol_id] = value
        elif opcode == OP_LOAD:
            self._check_symbol(operands[0], ip)
            self.stack.append(self.symbol_store[operands[0]])
        elif opcode == OP_CALL:
            raise VMError(VM_UNIMPLEMENTED_CALL, "calls are not supported", ip)
        else:
            raise VMError(VM_BAD_OPCODE, f"unhandled opcode {opcode}", ip)

    def _pop_pair(self, opcode: int, ip: int) -> tuple[int, int]:
        """Pop the top two values, returning (second-from-top, top)."""
        if len(self.stack) < 2:
            raise VMError(
                VM_STACK_UNDERFLOW,
                f"{OPCODE_NAMES[opcode]} needs 2 values, stack has {len(self.stack)}",
                ip,
            )
        top = self.stack.pop()
        below = self.stack.pop()
        return below, top

    def _push_checked(self, value: int, ip: int) -> None:
        if not fits_int64(value):
            raise VMError(VM_OVERFLOW, f"integer overflow: {value}", ip)
        self.stack.append(value)

    def _check_symbol(self, symbol_id: int, ip: int) -> None:
        if symbol_id not in self.symbol_store:
            raise VMError(VM_UNDEFINED_SYMBOL, f"unknown symbol id {symbol_id}", ip)

    def _trace(self, opcode: int, operands: list[int], ip: int) -> None:
        out = self.trace
        if out is None:
            return
        text = f"{ip:4d}  {OPCODE_NAMES[opcode]}"
        if operands:
            text += " " + " ".join(str(v) for v in operands)
        out.write(f"{text:<24} stack={self.stack}\n")
