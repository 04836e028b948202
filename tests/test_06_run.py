"""End-to-end tests: source text through every stage to a result."""

import random
from pathlib import Path

import pytest

from conftest import discover_tests
from parenvm import run
from parenvm.compiler import Compiler
from parenvm.emit import EmitError
from parenvm.parse import ParseError
from parenvm.tokens import LexError
from parenvm.vm import VM_EXTRA_VALUES, VMError

RUN_DIR = Path(__file__).parent / "06_run"


def test_readme_example(compiler: Compiler):
    assert compiler.compile("(add (sub 4 3) 2);") == 3


def test_nested(compiler: Compiler):
    assert compiler.compile("(add 2 (sub 4 2));") == 4


def test_def_then_use(compiler: Compiler):
    assert compiler.compile("def x 2; (add x 5);") == 7
    assert len(compiler.emitter.symbols) == 1
    assert compiler.evaluator.symbol_store == {compiler.emitter.symbol_id("x"): 2}


def test_def_only_leaves_no_result(compiler: Compiler):
    with pytest.raises(VMError):
        compiler.compile("def x 2;")
    assert compiler.evaluator.stack == []


def test_values_below_result_rejected(compiler: Compiler):
    with pytest.raises(VMError) as exc_info:
        compiler.compile("1; (add 2 3); 99;")
    assert exc_info.value.kind == VM_EXTRA_VALUES
    assert compiler.evaluator.stack == [1, 5, 99]


def test_parenthesized_def_runs(compiler: Compiler):
    assert compiler.compile("(def x 5); (add x 1);") == 6


def test_stages_individually(compiler: Compiler):
    compiler.lex("def x 2;")
    assert len(compiler.tokens) == 5
    module = compiler.parse()
    assert len(module.stmts) == 1
    code = compiler.generate_bytecode()
    assert code == compiler.emitter.code
    compiler.evaluate_bytecode()
    assert compiler.evaluator.stack == []


def test_generate_before_parse(compiler: Compiler):
    with pytest.raises(RuntimeError):
        compiler.generate_bytecode()


def test_lex_replaces_previous_tokens(compiler: Compiler):
    compiler.lex("1; 2; 3;")
    compiler.lex("1;")
    assert len(compiler.tokens) == 3


def test_recompile_is_idempotent(compiler: Compiler):
    source = 'def a 10; def s "str"; def b (sub a 3); (add a b);'
    first = compiler.compile(source)
    code = list(compiler.emitter.code)
    constants = list(compiler.emitter.constants)
    symbols = dict(compiler.emitter.symbols)

    second = compiler.compile(source)
    assert second == first == 17
    assert compiler.emitter.code == code
    assert compiler.emitter.constants == constants
    assert compiler.emitter.symbols == symbols


def test_reset_after_failure(compiler: Compiler):
    with pytest.raises(EmitError):
        compiler.compile("def x 1; (add x y);")
    assert compiler.compile("def y 4; y;") == 4
    assert compiler.emitter.symbols == {"y": 0}


def test_compile_does_not_leak_symbols(compiler: Compiler):
    compiler.compile("def x 1; x;")
    with pytest.raises(EmitError):
        compiler.compile("x;")


def test_without_reset_state_accumulates(compiler: Compiler):
    compiler.lex("def x 1;")
    compiler.parse()
    compiler.generate_bytecode()
    compiler.lex("(add x 1);")
    compiler.parse()
    compiler.generate_bytecode()
    compiler.evaluate_bytecode()
    assert compiler.evaluator.result == 2


@pytest.mark.parametrize("seed", range(5))
def test_binary_ops_match_integer_arithmetic(seed: int):
    rng = random.Random(seed)
    for _ in range(50):
        a = rng.randint(0, 2**31 - 1)
        b = rng.randint(0, 2**31 - 1)
        assert run(f"(add {a} {b});") == a + b
        assert run(f"(sub {a} {b});") == a - b


def test_errors_propagate_by_stage():
    with pytest.raises(LexError):
        run("(add 1 2) $")
    with pytest.raises(ParseError):
        run("(add 1 2 3);")
    with pytest.raises(EmitError):
        run("(add z 1);")
    with pytest.raises(VMError):
        run("def f 1; (f 2);")


# ---------------------------------------------------------------------------
# Data-driven cases
# ---------------------------------------------------------------------------

ERRORS = {
    "lex": LexError,
    "parse": ParseError,
    "emit": EmitError,
    "runtime": VMError,
}


def pytest_generate_tests(metafunc):
    if "run_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_tests(RUN_DIR)
        ]
        metafunc.parametrize("run_input,run_expected", params)


def test_run(run_input: str, run_expected: str):
    """Expected is 'result: N' or 'error: <stage> [kind]'."""
    if run_expected.startswith("result:"):
        assert run(run_input) == int(run_expected[7:].strip())
        return
    if not run_expected.startswith("error:"):
        pytest.fail(f"Unknown expected format: {run_expected}")
    parts = run_expected[6:].split()
    with pytest.raises(ERRORS[parts[0]]) as exc_info:
        run(run_input)
    if len(parts) > 1:
        assert exc_info.value.kind == parts[1]
