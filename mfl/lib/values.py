from __future__ import annotations
import typing
from dataclasses import dataclass, field
from typing import Optional

if typing.TYPE_CHECKING:
    from mfl.lib.env import Environment
    from mfl.lib.nodes import Node


@dataclass(eq=True, frozen=True)
class Value:
    def __str__(self) -> str:
        return pretty(self)


@dataclass(eq=True, frozen=True)
class Int(Value):
    value: int


@dataclass(eq=True, frozen=True)
class Real(Value):
    value: float


@dataclass(eq=True, frozen=True)
class Bool(Value):
    value: bool


@dataclass(eq=True, frozen=True)
class String(Value):
    value: str


@dataclass(eq=True, frozen=True)
class List(Value):
    items: tuple[Value, ...] = ()


@dataclass(eq=True, frozen=True)
class Tuple(Value):
    items: tuple[Value, ...]


# Closures compare by identity; two lambdas with the same text are still
# different functions.
@dataclass(eq=False, frozen=True)
class Closure(Value):
    param: str
    body: Node
    env: Environment = field(repr=False)
    # Set for let/val bound lambdas so the body can refer to itself.
    name: Optional[str] = None


TRUE = Bool(True)
FALSE = Bool(False)


def make_bool(x: bool) -> Bool:
    return TRUE if x else FALSE


def kind_name(value: Value) -> str:
    return type(value).__name__


def pretty(value: Value) -> str:
    if isinstance(value, Bool):
        return "true" if value.value else "false"
    if isinstance(value, (Int, Real)):
        return str(value.value)
    if isinstance(value, String):
        return value.value
    if isinstance(value, (List, Tuple)):
        return f"[{', '.join(pretty(item) for item in value.items)}]"
    if isinstance(value, Closure):
        return "fn"
    raise NotImplementedError(f"pretty not implemented for {kind_name(value)}")
