"""Compiler driver: one instance of every stage, run in order.

Each stage can be driven on its own (`lex`, `parse`, `generate_bytecode`,
`evaluate_bytecode`) for inspection; `compile` resets everything first so
that reusing an instance never mixes stale and fresh state.
"""

from __future__ import annotations

from typing import TextIO

from .ast import Module
from .emit import BytecodeEmitter
from .parse import Parser
from .tokens import Token, tokenize
from .vm import BytecodeEvaluator


class Compiler:
    def __init__(self, trace: TextIO | None = None):
        self.tokens: list[Token] = []
        self.module: Module | None = None
        self.emitter: BytecodeEmitter = BytecodeEmitter()
        self.evaluator: BytecodeEvaluator = BytecodeEvaluator(trace=trace)

    def lex(self, source: str) -> list[Token]:
        """Tokenize `source`, replacing any previous tokens."""
        self.tokens = tokenize(source)
        return self.tokens

    def parse(self) -> Module:
        """Parse the current tokens, replacing any previous module."""
        self.module = Parser(self.tokens).parse_module()
        return self.module

    def generate_bytecode(self) -> list[int]:
        if self.module is None:
            raise RuntimeError("generate_bytecode() called before parse()")
        self.emitter.convert(self.module)
        return self.emitter.code

    def evaluate_bytecode(self) -> None:
        self.evaluator.load_constants(self.emitter.constants)
        self.evaluator.load_symbols(self.emitter.symbols)
        self.evaluator.interpret(self.emitter.code)

    def reset(self) -> None:
        """Clear the state of every stage at once."""
        self.tokens = []
        self.module = None
        self.emitter.reset()
        self.evaluator.reset()

    def compile(self, source: str) -> int:
        """Reset, then run `source` through every stage; returns the result."""
        self.reset()
        self.lex(source)
        self.parse()
        self.generate_bytecode()
        self.evaluate_bytecode()
        return self.evaluator.result
