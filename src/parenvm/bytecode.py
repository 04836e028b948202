"""Bytecode format: opcodes, operand counts and a disassembler.

A program is a flat list of int slots. Each instruction is one opcode slot
followed by exactly `OPERAND_COUNT[opcode]` immediate slots.
"""

from __future__ import annotations

# Opcodes
OP_PUSH = 0
OP_ADD = 1
OP_SUB = 2
OP_CALL = 3
OP_STORE = 4
OP_LOAD = 5

OPCODE_NAMES: dict[int, str] = {
    OP_PUSH: "PUSH",
    OP_ADD: "ADD",
    OP_SUB: "SUB",
    OP_CALL: "CALL",
    OP_STORE: "STORE",
    OP_LOAD: "LOAD",
}

# Immediate slots following each opcode. CALL carries its argument count.
OPERAND_COUNT: dict[int, int] = {
    OP_PUSH: 1,
    OP_ADD: 0,
    OP_SUB: 0,
    OP_CALL: 1,
    OP_STORE: 0,
    OP_LOAD: 1,
}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def fits_int64(value: int) -> bool:
    return value >= INT64_MIN and value <= INT64_MAX


def instruction_width(opcode: int) -> int:
    """Number of slots taken by an instruction, opcode included."""
    return 1 + OPERAND_COUNT[opcode]


def disassemble(code: list[int]) -> list[str]:
    """Render a program one instruction per line, prefixed by its slot index.

    Unknown opcodes and truncated operands are rendered rather than rejected
    so that broken programs can still be inspected.
    """
    lines: list[str] = []
    ip = 0
    while ip < len(code):
        opcode = code[ip]
        if opcode not in OPCODE_NAMES:
            lines.append(f"{ip:4d}  ??? {opcode}")
            ip += 1
            continue
        width = instruction_width(opcode)
        operands = code[ip + 1 : ip + width]
        text = f"{ip:4d}  {OPCODE_NAMES[opcode]}"
        if operands:
            text += " " + " ".join(str(v) for v in operands)
        if len(operands) < width - 1:
            text += " <truncated>"
        lines.append(text)
        ip += width
    return lines
