"""parenvm CLI: compile and run a program, or stop after a phase."""

from __future__ import annotations

import json
import sys

from .ast import to_dict as module_to_dict
from .bytecode import disassemble
from .compiler import Compiler
from .emit import EmitError
from .parse import ParseError
from .tokens import LexError
from .vm import VMError


PHASES: list[str] = [
    "lex",
    "parse",
    "emit",
]

USAGE: str = """\
parenvm [OPTIONS] [SOURCE]

Compile SOURCE to bytecode, run it, and print the resulting integer.
Without SOURCE the program is read from --file, or from stdin.

Options:
  -f, --file FILE    Read the program from FILE
  --stop-at PHASE    Stop after phase: lex, parse, emit
  --trace            Write each executed instruction to stderr
  --help             Show this help message
"""


def read_source(source: str | None, filepath: str | None) -> tuple[str, int]:
    """Resolve program text. Returns (source, exit_code) where 0 means OK."""
    if source is not None:
        return (source, 0)
    if filepath is not None:
        try:
            with open(filepath, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            print("parenvm: " + filepath + ": No such file or directory", file=sys.stderr)
            return ("", 1)
        except OSError as e:
            print("parenvm: " + filepath + ": " + str(e), file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        return (raw.decode("utf-8"), 0)
    except ValueError:
        print("parenvm: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)


def format_emitter(compiler: Compiler) -> str:
    lines: list[str] = ["code:"]
    lines.extend(disassemble(compiler.emitter.code))
    lines.append("constants:")
    for i, const in enumerate(compiler.emitter.constants):
        lines.append(f"{i:4d}  {const!r}")
    lines.append("symbols:")
    for name, symbol_id in compiler.emitter.symbols.items():
        lines.append(f"{symbol_id:4d}  {name}")
    return "\n".join(lines)


def run_pipeline(compiler: Compiler, source: str, stop_at: str | None) -> tuple[int, str]:
    """Run phases up to `stop_at`. Returns (exit_code, output)."""
    compiler.reset()
    try:
        tokens = compiler.lex(source)
    except LexError as e:
        print("parenvm: lex error: " + str(e), file=sys.stderr)
        return (1, "")
    if stop_at == "lex":
        return (0, "\n".join(repr(t) for t in tokens))
    try:
        module = compiler.parse()
    except ParseError as e:
        print("parenvm: parse error [" + e.kind + "]: " + str(e), file=sys.stderr)
        return (1, "")
    if stop_at == "parse":
        return (0, json.dumps(module_to_dict(module), indent=2))
    try:
        compiler.generate_bytecode()
    except EmitError as e:
        print("parenvm: emit error: " + str(e), file=sys.stderr)
        return (1, "")
    if stop_at == "emit":
        return (0, format_emitter(compiler))
    try:
        compiler.evaluate_bytecode()
        result = compiler.evaluator.result
    except VMError as e:
        print("parenvm: runtime error [" + e.kind + "]: " + str(e), file=sys.stderr)
        return (1, "")
    return (0, str(result))


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    source: str | None = None
    filepath: str | None = None
    stop_at: str | None = None
    trace = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "-f" or arg == "--file":
            if i + 1 >= len(args):
                print("parenvm: " + arg + " requires an argument", file=sys.stderr)
                return 2
            filepath = args[i + 1]
            i += 2
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("parenvm: --stop-at requires an argument", file=sys.stderr)
                return 2
            stop_at = args[i + 1]
            i += 2
        elif arg == "--trace":
            trace = True
            i += 1
        elif arg.startswith("-"):
            print("parenvm: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif source is None:
            source = arg
            i += 1
        else:
            print("parenvm: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if stop_at is not None and stop_at not in PHASES:
        print("parenvm: unknown phase '" + stop_at + "'", file=sys.stderr)
        return 2
    if source is not None and filepath is not None:
        print("parenvm: give either SOURCE or --file, not both", file=sys.stderr)
        return 2

    text, err = read_source(source, filepath)
    if err != 0:
        return err
    compiler = Compiler(trace=sys.stderr if trace else None)
    exit_code, output = run_pipeline(compiler, text, stop_at)
    if exit_code == 0:
        print(output)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
