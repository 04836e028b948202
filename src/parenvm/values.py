"""Runtime types and values.

A `Type` is one of int, str or func. An `Evaluatable` pairs a type with
exactly one payload matching it, and copying one always copies the payload.

`BUILTINS` holds the typed form of the `add` and `sub` operators. The ADD
and SUB opcodes compute the same results on raw stack integers, which may
grow past 32 bits; the builtins check argument types and stay in int range.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .diagnostics import LangError


# Type kind constants
TYPE_INT = "int"
TYPE_STR = "str"
TYPE_FUNC = "func"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class ArgumentError(LangError):
    """Arguments do not match a function's declared arity or types."""


# ============================================================
# Types
# ============================================================


class Type:
    """Base type. Subclasses set `kind`."""

    kind: str = ""

    def copy(self) -> Type:
        raise NotImplementedError

    def display(self) -> str:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Type) and other.kind == self.kind

    def __hash__(self) -> int:
        return hash(self.kind)

    def __repr__(self) -> str:
        return self.display()


class IntType(Type):
    kind = TYPE_INT

    def copy(self) -> Type:
        return IntType()

    def display(self) -> str:
        return "int"


class StrType(Type):
    kind = TYPE_STR

    def copy(self) -> Type:
        return StrType()

    def display(self) -> str:
        return "str"


@dataclass(eq=False, repr=False)
class FuncType(Type):
    """fn(args...) -> ret. Equality compares arity and argument types."""

    ret: Type
    args: list[Type] = field(default_factory=list)

    kind = TYPE_FUNC

    @property
    def arity(self) -> int:
        return len(self.args)

    def copy(self) -> Type:
        return FuncType(self.ret.copy(), [a.copy() for a in self.args])

    def display(self) -> str:
        inner = ", ".join(a.display() for a in self.args)
        return f"fn({inner}) -> {self.ret.display()}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FuncType):
            return False
        if self.arity != other.arity:
            return False
        for mine, theirs in zip(self.args, other.args):
            if mine != theirs:
                return False
        return True

    def __hash__(self) -> int:
        return hash((self.kind, tuple(self.args)))


# ============================================================
# Values
# ============================================================


class Evaluatable:
    """A dynamically typed value: a type tag plus one matching payload."""

    def __init__(self, typ: Type, payload: int | bytes | FunctionValue):
        if isinstance(typ, IntType):
            if not isinstance(payload, int) or isinstance(payload, bool):
                raise TypeError("int value requires an int payload")
            if payload < INT32_MIN or payload > INT32_MAX:
                raise OverflowError(f"int value out of 32-bit range: {payload}")
        elif isinstance(typ, StrType):
            if not isinstance(payload, bytes):
                raise TypeError("str value requires a bytes payload")
        elif isinstance(typ, FuncType):
            if not isinstance(payload, FunctionValue):
                raise TypeError("func value requires a FunctionValue payload")
        else:
            raise TypeError("unknown type: " + repr(typ))
        self._type: Type = typ
        self._payload: int | bytes | FunctionValue = payload

    @classmethod
    def from_int(cls, value: int) -> Evaluatable:
        return cls(IntType(), value)

    @classmethod
    def from_str(cls, value: str | bytes) -> Evaluatable:
        if isinstance(value, str):
            value = value.encode("utf-8")
        return cls(StrType(), bytes(value))

    @classmethod
    def from_func(cls, typ: FuncType, func: FunctionValue) -> Evaluatable:
        return cls(typ, func)

    @property
    def type(self) -> Type:
        return self._type

    def is_int(self) -> bool:
        return self._type.kind == TYPE_INT

    def is_str(self) -> bool:
        return self._type.kind == TYPE_STR

    def is_func(self) -> bool:
        return self._type.kind == TYPE_FUNC

    @property
    def int_val(self) -> int:
        if not self.is_int():
            raise TypeError("cannot get an int from a " + self._type.display())
        return self._payload  # type: ignore[return-value]

    @property
    def str_val(self) -> bytes:
        if not self.is_str():
            raise TypeError("cannot get a str from a " + self._type.display())
        return self._payload  # type: ignore[return-value]

    @property
    def func(self) -> FunctionValue:
        if not self.is_func():
            raise TypeError("cannot get a func from a " + self._type.display())
        return self._payload  # type: ignore[return-value]

    def copy(self) -> Evaluatable:
        """Deep copy matching the active tag."""
        if self.is_func():
            raise NotImplementedError("function values cannot be copied")
        return Evaluatable(self._type.copy(), self._payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Evaluatable) or self._type != other._type:
            return False
        if self.is_func():
            return self._payload is other._payload
        return self._payload == other._payload

    def __repr__(self) -> str:
        if self.is_func():
            return f"Evaluatable({self._type.display()})"
        return f"Evaluatable({self._type.display()}, {self._payload!r})"


class FunctionValue:
    """A function known at evaluation time.

    Arguments are passed as a whole stack-like list; only the trailing
    `arity` elements are the arguments, laid out left to right:

        ..., arg1, arg2
                   ^ top
    """

    def __init__(self, typ: FuncType):
        if not isinstance(typ, FuncType):
            raise TypeError("function value requires a func type")
        self._type: FuncType = typ

    @property
    def type(self) -> FuncType:
        return self._type

    def check_args(self, args: list[Evaluatable]) -> None:
        arity = self._type.arity
        if len(args) < arity:
            raise ArgumentError(
                f"expected {arity} arguments, got {len(args)}"
            )
        # Walk from the top of the list back to the first argument
        base = len(args) - arity
        i = arity - 1
        while i >= 0:
            expected = self._type.args[i]
            found = args[base + i].type
            if expected != found:
                raise ArgumentError(
                    f"argument {i + 1}: expected {expected.display()}, "
                    f"got {found.display()}"
                )
            i -= 1

    def evaluate(self, args: list[Evaluatable]) -> Evaluatable:
        self.check_args(args)
        return self.evaluate_impl(args)

    def evaluate_impl(self, args: list[Evaluatable]) -> Evaluatable:
        raise NotImplementedError


def binary_int_func_type() -> FuncType:
    return FuncType(IntType(), [IntType(), IntType()])


class Add(FunctionValue):
    def __init__(self) -> None:
        super().__init__(binary_int_func_type())

    def evaluate_impl(self, args: list[Evaluatable]) -> Evaluatable:
        return Evaluatable.from_int(args[-2].int_val + args[-1].int_val)


class Sub(FunctionValue):
    def __init__(self) -> None:
        super().__init__(binary_int_func_type())

    def evaluate_impl(self, args: list[Evaluatable]) -> Evaluatable:
        return Evaluatable.from_int(args[-2].int_val - args[-1].int_val)


BUILTINS: dict[str, FunctionValue] = {
    "add": Add(),
    "sub": Sub(),
}
