"""parenvm: a parenthesized expression language compiled to stack bytecode."""

from __future__ import annotations

from .ast import Module
from .compiler import Compiler
from .diagnostics import LangError as LangError
from .emit import BytecodeEmitter, EmitError as EmitError, emit as emit_module
from .parse import ParseError as ParseError, parse_tokens
from .tokens import LexError as LexError, tokenize as tokenize
from .values import ArgumentError as ArgumentError
from .vm import VMError as VMError


def parse(source: str) -> Module:
    """Parse source code into a Module AST."""
    return parse_tokens(tokenize(source))


def emit(source: str) -> BytecodeEmitter:
    """Parse and lower source code. Returns the emitter holding the outputs."""
    return emit_module(parse(source))


def run(source: str) -> int:
    """Compile and execute source code, returning the final stack value."""
    return Compiler().compile(source)
