from __future__ import annotations
import dataclasses
import enum
import logging
import typing
from dataclasses import dataclass
from enum import auto
from typing import Any, Callable, Dict, Sequence

from mfl.lib.env import Environment, TypeEnvironment
from mfl.lib.errors import (
    ArityError,
    BranchTypeMismatch,
    DivisionByZero,
    EmptyList,
    FoldRequiresBinaryFunction,
    HeterogeneousTuple,
    IndexOutOfBounds,
    NotABoolean,
    NotAFunction,
    RangeError,
    RuntimeTypeMismatch,
    TupleArityError,
    TupleIndexError,
    TypeCheckError,
    TypeMismatch,
    UnboundName,
    UndefinedName,
)
from mfl.lib.infer import Inferencer
from mfl.lib.typesystem import (
    BoolType,
    Forall,
    IntType,
    MonoType,
    RealType,
    StringType,
    TyCon,
    TyVar,
    func_type,
    is_tuple,
    list_type,
    mono,
    tuple_type,
)
from mfl.lib.values import (
    Bool,
    Closure,
    Int,
    List,
    Real,
    String,
    Tuple,
    Value,
    kind_name,
    make_bool,
)

logger = logging.getLogger(__name__)

INDENT = 2

V = typing.TypeVar("V", bound=Value)


def indented(text: str, indent: int) -> str:
    return " " * indent + text


def display_call(head: str, children: Sequence[Node], indent: int) -> str:
    lines = [indented(f"{head}(", indent)]
    lines.extend(child.display(indent + INDENT) for child in children)
    lines.append(indented(")", indent))
    return "\n".join(lines)


@dataclass(eq=True, frozen=True)
class Node:
    line: int = dataclasses.field(default=-1, kw_only=True, compare=False)

    def evaluate(self, env: Environment) -> Value:
        raise NotImplementedError(f"evaluate not implemented for {type(self).__name__}")

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        raise NotImplementedError(f"infer_type not implemented for {type(self).__name__}")

    def display(self, indent: int = 0) -> str:
        raise NotImplementedError(f"display not implemented for {type(self).__name__}")

    def __str__(self) -> str:
        return self.display()


def expect(value: Value, kind: typing.Type[V], what: str, line: int) -> V:
    if not isinstance(value, kind):
        raise RuntimeTypeMismatch(f"{what}: expected {kind.__name__}, got {kind_name(value)}", line)
    return value


def eval_int(env: Environment, exp: Node, what: str) -> int:
    return expect(exp.evaluate(env), Int, what, exp.line).value


def eval_str(env: Environment, exp: Node, what: str) -> str:
    return expect(exp.evaluate(env), String, what, exp.line).value


def eval_list(env: Environment, exp: Node, what: str) -> tuple[Value, ...]:
    return expect(exp.evaluate(env), List, what, exp.line).items


def eval_tuple(env: Environment, exp: Node, what: str) -> tuple[Value, ...]:
    return expect(exp.evaluate(env), Tuple, what, exp.line).items


def eval_closure(env: Environment, exp: Node, what: str) -> Closure:
    return expect(exp.evaluate(env), Closure, what, exp.line)


def eval_bool(env: Environment, exp: Node, what: str) -> bool:
    result = exp.evaluate(env)
    if not isinstance(result, Bool):
        raise NotABoolean(f"{what}: expected Bool, got {kind_name(result)}", exp.line)
    return result.value


def apply_closure(closure: Closure, arg: Value) -> Value:
    logger.debug("apply fn %s -> ... to %s", closure.param, arg)
    env = closure.env
    if closure.name is not None:
        env = env.extend(closure.name, closure)
    return closure.body.evaluate(env.extend(closure.param, arg))


def literal_type(value: Value, line: int) -> MonoType:
    if isinstance(value, Int):
        return IntType
    if isinstance(value, Real):
        return RealType
    if isinstance(value, Bool):
        return BoolType
    if isinstance(value, String):
        return StringType
    raise TypeCheckError(f"unsupported literal of kind {kind_name(value)}", line)


@dataclass(eq=True, frozen=True)
class Literal(Node):
    value: Value

    def evaluate(self, env: Environment) -> Value:
        return self.value

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        return literal_type(self.value, self.line)

    def display(self, indent: int = 0) -> str:
        return indented(f"{kind_name(self.value)}[{self.value}]", indent)


@dataclass(eq=True, frozen=True)
class Var(Node):
    name: str

    def evaluate(self, env: Environment) -> Value:
        value = env.get(self.name)
        if value is None:
            raise UndefinedName(f"name '{self.name}' is not defined", self.line)
        return value

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        scheme = tenv.get(self.name)
        if scheme is None:
            raise UnboundName(f"Unbound variable {self.name}", self.line)
        return inferencer.instantiate(scheme)

    def display(self, indent: int = 0) -> str:
        return indented(f"Var[{self.name}]", indent)


class BinopKind(enum.Enum):
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    MOD = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    GREATER = auto()
    LESS_EQUAL = auto()
    GREATER_EQUAL = auto()
    BOOL_AND = auto()
    BOOL_OR = auto()
    CONCAT = auto()

    @classmethod
    def from_str(cls, x: str) -> "BinopKind":
        return {
            "+": cls.ADD,
            "-": cls.SUB,
            "*": cls.MUL,
            "/": cls.DIV,
            "mod": cls.MOD,
            "=": cls.EQUAL,
            "!=": cls.NOT_EQUAL,
            "<": cls.LESS,
            ">": cls.GREATER,
            "<=": cls.LESS_EQUAL,
            ">=": cls.GREATER_EQUAL,
            "and": cls.BOOL_AND,
            "or": cls.BOOL_OR,
            "++": cls.CONCAT,
        }[x]

    @classmethod
    def to_str(cls, binop_kind: "BinopKind") -> str:
        return {
            cls.ADD: "+",
            cls.SUB: "-",
            cls.MUL: "*",
            cls.DIV: "/",
            cls.MOD: "mod",
            cls.EQUAL: "=",
            cls.NOT_EQUAL: "!=",
            cls.LESS: "<",
            cls.GREATER: ">",
            cls.LESS_EQUAL: "<=",
            cls.GREATER_EQUAL: ">=",
            cls.BOOL_AND: "and",
            cls.BOOL_OR: "or",
            cls.CONCAT: "++",
        }[binop_kind]


ARITHMETIC = {BinopKind.ADD, BinopKind.SUB, BinopKind.MUL, BinopKind.DIV}
ORDERING = {BinopKind.LESS, BinopKind.GREATER, BinopKind.LESS_EQUAL, BinopKind.GREATER_EQUAL}

# Type constructors the overloaded operators accept.
CONCATENABLE = frozenset({"string", "list"})
ORDERABLE = frozenset({"int", "real", "string"})


def trunc_div(a: int, b: int) -> int:
    # Rounds toward zero, unlike Python's floor division.
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def trunc_mod(a: int, b: int) -> int:
    r = abs(a) % abs(b)
    return r if a >= 0 else -r


def eval_number(env: Environment, exp: Node, what: str) -> Value:
    result = exp.evaluate(env)
    if not isinstance(result, (Int, Real)):
        raise RuntimeTypeMismatch(f"{what}: expected Int or Real, got {kind_name(result)}", exp.line)
    return result


def eval_operands(env: Environment, exp: Binop, kinds: tuple[type, ...]) -> tuple[Any, Any]:
    op = BinopKind.to_str(exp.op)
    left = exp.left.evaluate(env)
    right = exp.right.evaluate(env)
    if not isinstance(left, kinds) or type(left) is not type(right):
        raise RuntimeTypeMismatch(
            f"unsupported operands for {op}: {kind_name(left)} and {kind_name(right)}",
            exp.line,
        )
    return left, right


def arithmetic(func: Callable[[Any, Any], Any]) -> Callable[[Environment, Binop], Value]:
    def handler(env: Environment, exp: Binop) -> Value:
        left, right = eval_operands(env, exp, (Int, Real))
        if exp.op == BinopKind.DIV and right.value == 0:
            raise DivisionByZero("division by zero", exp.line)
        return type(left)(func(left.value, right.value))

    return handler


def divide(a: Any, b: Any) -> Any:
    if isinstance(a, int):
        return trunc_div(a, b)
    return a / b


def modulo(env: Environment, exp: Binop) -> Value:
    left, right = eval_operands(env, exp, (Int,))
    if right.value == 0:
        raise DivisionByZero("mod by zero", exp.line)
    return Int(trunc_mod(left.value, right.value))


def ordering(func: Callable[[Any, Any], bool]) -> Callable[[Environment, Binop], Value]:
    def handler(env: Environment, exp: Binop) -> Value:
        left, right = eval_operands(env, exp, (Int, Real, String))
        return make_bool(func(left.value, right.value))

    return handler


def concat(env: Environment, exp: Binop) -> Value:
    left, right = eval_operands(env, exp, (String, List))
    if isinstance(left, String):
        return String(left.value + right.value)
    return List(left.items + right.items)


BINOP_HANDLERS: Dict[BinopKind, Callable[[Environment, Binop], Value]] = {
    BinopKind.ADD: arithmetic(lambda x, y: x + y),
    BinopKind.SUB: arithmetic(lambda x, y: x - y),
    BinopKind.MUL: arithmetic(lambda x, y: x * y),
    BinopKind.DIV: arithmetic(divide),
    BinopKind.MOD: modulo,
    BinopKind.EQUAL: lambda env, exp: make_bool(exp.left.evaluate(env) == exp.right.evaluate(env)),
    BinopKind.NOT_EQUAL: lambda env, exp: make_bool(exp.left.evaluate(env) != exp.right.evaluate(env)),
    BinopKind.LESS: ordering(lambda x, y: x < y),
    BinopKind.GREATER: ordering(lambda x, y: x > y),
    BinopKind.LESS_EQUAL: ordering(lambda x, y: x <= y),
    BinopKind.GREATER_EQUAL: ordering(lambda x, y: x >= y),
    BinopKind.BOOL_AND: lambda env, exp: make_bool(
        eval_bool(env, exp.left, "and") and eval_bool(env, exp.right, "and")
    ),
    BinopKind.BOOL_OR: lambda env, exp: make_bool(eval_bool(env, exp.left, "or") or eval_bool(env, exp.right, "or")),
    BinopKind.CONCAT: concat,
}


@dataclass(eq=True, frozen=True)
class Binop(Node):
    op: BinopKind
    left: Node
    right: Node

    def evaluate(self, env: Environment) -> Value:
        handler = BINOP_HANDLERS.get(self.op)
        if handler is None:
            raise NotImplementedError(f"no handler for {self.op}")
        return handler(env, self)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        op = BinopKind.to_str(self.op)
        left = self.left.infer_type(tenv, inferencer)
        right = self.right.infer_type(tenv, inferencer)
        if self.op in (BinopKind.BOOL_AND, BinopKind.BOOL_OR):
            inferencer.unify(left, BoolType, f"left operand of {op} must be bool", self.line)
            inferencer.unify(right, BoolType, f"right operand of {op} must be bool", self.line)
            return BoolType
        if self.op == BinopKind.MOD:
            inferencer.unify(left, IntType, "left operand of mod must be int", self.line)
            inferencer.unify(right, IntType, "right operand of mod must be int", self.line)
            return IntType
        inferencer.unify(left, right, f"operands of {op} must have the same type", self.line)
        operand = inferencer.apply(left)
        if self.op in ARITHMETIC:
            if isinstance(operand, TyVar):
                # Nothing pins the operands down; numbers default to int.
                inferencer.unify(operand, IntType, line=self.line)
                return IntType
            if operand not in (IntType, RealType):
                raise TypeMismatch(f"{op} expects int or real operands, got {operand}", self.line)
            return operand
        if self.op == BinopKind.CONCAT:
            inferencer.constrain(operand, CONCATENABLE, "++ expects lists or strings", self.line)
            return operand
        if self.op in ORDERING:
            inferencer.constrain(operand, ORDERABLE, f"{op} expects int, real or string operands", self.line)
        return BoolType

    def display(self, indent: int = 0) -> str:
        return display_call(f"Binop[{BinopKind.to_str(self.op)}]", [self.left, self.right], indent)


class UnopKind(enum.Enum):
    NOT = auto()
    NEG = auto()


@dataclass(eq=True, frozen=True)
class Unop(Node):
    op: UnopKind
    operand: Node

    def evaluate(self, env: Environment) -> Value:
        if self.op == UnopKind.NOT:
            return make_bool(not eval_bool(env, self.operand, "not"))
        value = eval_number(env, self.operand, "negation")
        return type(value)(-value.value)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = self.operand.infer_type(tenv, inferencer)
        if self.op == UnopKind.NOT:
            inferencer.unify(ty, BoolType, "not expects a bool", self.line)
            return BoolType
        ty = inferencer.apply(ty)
        if isinstance(ty, TyVar):
            inferencer.unify(ty, IntType, line=self.line)
            return IntType
        if ty not in (IntType, RealType):
            raise TypeMismatch(f"negation expects int or real, got {ty}", self.line)
        return ty

    def display(self, indent: int = 0) -> str:
        return display_call(f"Unop[{self.op.name.lower()}]", [self.operand], indent)


@dataclass(eq=True, frozen=True)
class If(Node):
    cond: Node
    then: Node
    otherwise: Node

    def evaluate(self, env: Environment) -> Value:
        if eval_bool(env, self.cond, "condition"):
            return self.then.evaluate(env)
        return self.otherwise.evaluate(env)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        cond_ty = self.cond.infer_type(tenv, inferencer)
        inferencer.unify(cond_ty, BoolType, "condition must be bool", self.line)
        then_ty = self.then.infer_type(tenv, inferencer)
        otherwise_ty = self.otherwise.infer_type(tenv, inferencer)
        inferencer.unify(
            then_ty,
            otherwise_ty,
            "both branches must have the same type",
            self.line,
            error=BranchTypeMismatch,
        )
        return inferencer.apply(then_ty)

    def display(self, indent: int = 0) -> str:
        return display_call("if", [self.cond, self.then, self.otherwise], indent)


@dataclass(eq=True, frozen=True)
class Lambda(Node):
    param: str
    body: Node

    def evaluate(self, env: Environment) -> Value:
        return Closure(self.param, self.body, env)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        param_ty = inferencer.fresh_tyvar()
        body_ty = self.body.infer_type(tenv.extend(self.param, mono(param_ty)), inferencer)
        return inferencer.apply(func_type(param_ty, body_ty))

    def display(self, indent: int = 0) -> str:
        return display_call(f"lambda[{self.param}]", [self.body], indent)


@dataclass(eq=True, frozen=True)
class Apply(Node):
    func: Node
    arg: Node

    def evaluate(self, env: Environment) -> Value:
        callee = self.func.evaluate(env)
        arg = self.arg.evaluate(env)
        if not isinstance(callee, Closure):
            raise NotAFunction(f"attempted to apply a non-function of kind {kind_name(callee)}", self.line)
        return apply_closure(callee, arg)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        func_ty = self.func.infer_type(tenv, inferencer)
        arg_ty = self.arg.infer_type(tenv, inferencer)
        result = inferencer.fresh_tyvar()
        inferencer.unify(func_ty, func_type(arg_ty, result), "function application type mismatch", self.line)
        return inferencer.apply(result)

    def display(self, indent: int = 0) -> str:
        return display_call("Apply", [self.func, self.arg], indent)


def eval_binding(env: Environment, name: str, value: Node) -> Value:
    result = value.evaluate(env)
    if isinstance(value, Lambda) and isinstance(result, Closure):
        # Bound lambdas see their own name, so they can recurse.
        result = dataclasses.replace(result, name=name)
    return result


def infer_binding(tenv: TypeEnvironment, inferencer: Inferencer, name: str, value: Node, line: int) -> Forall:
    if isinstance(value, Lambda):
        self_ty = inferencer.fresh_tyvar()
        value_ty = value.infer_type(tenv.extend(name, mono(self_ty)), inferencer)
        inferencer.unify(self_ty, value_ty, f"recursive use of {name}", line)
    else:
        value_ty = value.infer_type(tenv, inferencer)
    return inferencer.generalize(value_ty, tenv)


@dataclass(eq=True, frozen=True)
class Let(Node):
    name: str
    value: Node
    body: Node

    def evaluate(self, env: Environment) -> Value:
        value = eval_binding(env, self.name, self.value)
        return self.body.evaluate(env.extend(self.name, value))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        scheme = infer_binding(tenv, inferencer, self.name, self.value, self.line)
        return self.body.infer_type(tenv.extend(self.name, scheme), inferencer)

    def display(self, indent: int = 0) -> str:
        return display_call(f"let[{self.name}]", [self.value, self.body], indent)


@dataclass(eq=True, frozen=True)
class Val(Node):
    """A top-level `val name := value;` binding inside a Program."""

    name: str
    value: Node

    def bind(self, env: Environment) -> tuple[Environment, Value]:
        value = eval_binding(env, self.name, self.value)
        return env.extend(self.name, value), value

    def bind_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> tuple[TypeEnvironment, Forall]:
        scheme = infer_binding(tenv, inferencer, self.name, self.value, self.line)
        return tenv.extend(self.name, scheme), scheme

    def evaluate(self, env: Environment) -> Value:
        return self.bind(env)[1]

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        return inferencer.instantiate(self.bind_type(tenv, inferencer)[1])

    def display(self, indent: int = 0) -> str:
        return display_call(f"val[{self.name}]", [self.value], indent)


@dataclass(eq=True, frozen=True)
class Program(Node):
    statements: Sequence[Node]

    def __post_init__(self) -> None:
        if not self.statements:
            raise ValueError("a program needs at least one statement")

    def evaluate(self, env: Environment) -> Value:
        result: Value
        for statement in self.statements:
            if isinstance(statement, Val):
                env, result = statement.bind(env)
            else:
                result = statement.evaluate(env)
        return result

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        result: MonoType
        for statement in self.statements:
            if isinstance(statement, Val):
                tenv, scheme = statement.bind_type(tenv, inferencer)
                result = inferencer.instantiate(scheme)
            else:
                result = statement.infer_type(tenv, inferencer)
        return inferencer.apply(result)

    def display(self, indent: int = 0) -> str:
        return display_call("Program", list(self.statements), indent)


@dataclass(eq=True, frozen=True)
class ListLit(Node):
    items: Sequence[Node] = ()

    def evaluate(self, env: Environment) -> Value:
        return List(tuple(item.evaluate(env) for item in self.items))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        item_ty = inferencer.fresh_tyvar()
        for item in self.items:
            inferencer.unify(
                item_ty,
                item.infer_type(tenv, inferencer),
                "list elements must have the same type",
                item.line if item.line >= 0 else self.line,
            )
        return list_type(inferencer.apply(item_ty))

    def display(self, indent: int = 0) -> str:
        return display_call("List", list(self.items), indent)


@dataclass(eq=True, frozen=True)
class TupleLit(Node):
    items: Sequence[Node]

    def evaluate(self, env: Environment) -> Value:
        if len(self.items) < 2:
            raise ArityError("a tuple needs at least 2 elements", self.line)
        return Tuple(tuple(item.evaluate(env) for item in self.items))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        if len(self.items) < 2:
            raise TupleArityError("a tuple needs at least 2 elements", self.line)
        item_tys = [item.infer_type(tenv, inferencer) for item in self.items]
        return tuple_type(*(inferencer.apply(ty) for ty in item_tys))

    def display(self, indent: int = 0) -> str:
        return display_call("Tuple", list(self.items), indent)


@dataclass(eq=True, frozen=True)
class Head(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        items = eval_list(env, self.expr, "hd")
        if not items:
            raise EmptyList("hd of an empty list", self.line)
        return items[0]

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        item_ty = inferencer.fresh_tyvar()
        inferencer.unify(self.expr.infer_type(tenv, inferencer), list_type(item_ty), "hd expects a list", self.line)
        return inferencer.apply(item_ty)

    def display(self, indent: int = 0) -> str:
        return display_call("hd", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class Tail(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        items = eval_list(env, self.expr, "tl")
        if not items:
            raise EmptyList("tl of an empty list", self.line)
        return List(items[1:])

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = self.expr.infer_type(tenv, inferencer)
        inferencer.unify(ty, list_type(inferencer.fresh_tyvar()), "tl expects a list", self.line)
        return inferencer.apply(ty)

    def display(self, indent: int = 0) -> str:
        return display_call("tl", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class Len(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        return Int(len(eval_list(env, self.expr, "len")))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = self.expr.infer_type(tenv, inferencer)
        inferencer.unify(ty, list_type(inferencer.fresh_tyvar()), "len expects a list", self.line)
        return IntType

    def display(self, indent: int = 0) -> str:
        return display_call("len", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class IsEmpty(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        return make_bool(not eval_list(env, self.expr, "isempty"))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = self.expr.infer_type(tenv, inferencer)
        inferencer.unify(ty, list_type(inferencer.fresh_tyvar()), "isempty expects a list", self.line)
        return BoolType

    def display(self, indent: int = 0) -> str:
        return display_call("isempty", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class Map(Node):
    func: Node
    lst: Node

    def evaluate(self, env: Environment) -> Value:
        func = eval_closure(env, self.func, "map's first argument must be a function")
        items = eval_list(env, self.lst, "map's second argument must be a list")
        return List(tuple(apply_closure(func, item) for item in items))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        func_ty = self.func.infer_type(tenv, inferencer)
        lst_ty = self.lst.infer_type(tenv, inferencer)
        item_ty = inferencer.fresh_tyvar()
        inferencer.unify(lst_ty, list_type(item_ty), "map requires a list", self.line)
        arg_ty = inferencer.fresh_tyvar()
        ret_ty = inferencer.fresh_tyvar()
        inferencer.unify(func_ty, func_type(arg_ty, ret_ty), "map requires a function", self.line)
        inferencer.unify(item_ty, arg_ty, "parameter and list element type mismatch", self.line)
        return list_type(inferencer.apply(ret_ty))

    def display(self, indent: int = 0) -> str:
        return display_call("map", [self.func, self.lst], indent)


@dataclass(eq=True, frozen=True)
class Fold(Node):
    """foldl when left is true, foldr otherwise.

    foldl wants f : acc -> item -> acc and walks the list front to back.
    foldr wants f : item -> acc -> acc and walks it back to front. Both
    start from initial.
    """

    func: Node
    initial: Node
    lst: Node
    left: bool = True

    @property
    def name(self) -> str:
        return "foldl" if self.left else "foldr"

    def evaluate(self, env: Environment) -> Value:
        func = eval_closure(env, self.func, f"{self.name} requires a function")
        acc = self.initial.evaluate(env)
        items = eval_list(env, self.lst, f"{self.name} requires a list")
        if self.left:
            for item in items:
                acc = self.step(func, acc, item)
        else:
            for item in reversed(items):
                acc = self.step(func, item, acc)
        return acc

    def step(self, func: Closure, first: Value, second: Value) -> Value:
        partial = apply_closure(func, first)
        if not isinstance(partial, Closure):
            raise FoldRequiresBinaryFunction(f"{self.name} requires a binary function", self.line)
        return apply_closure(partial, second)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        func_ty = self.func.infer_type(tenv, inferencer)
        lst_ty = self.lst.infer_type(tenv, inferencer)
        initial_ty = self.initial.infer_type(tenv, inferencer)
        item_ty = inferencer.fresh_tyvar()
        inferencer.unify(lst_ty, list_type(item_ty), f"{self.name} requires a list", self.line)
        acc_ty = inferencer.fresh_tyvar()
        other_ty = inferencer.fresh_tyvar()
        if self.left:
            inferencer.unify(
                func_ty, func_type(acc_ty, other_ty, acc_ty), "foldl requires a curried function", self.line
            )
            inferencer.unify(
                acc_ty, initial_ty, "initial value and first argument must be of same type", self.line
            )
            inferencer.unify(item_ty, other_ty, "parameter and list type mismatch", self.line)
        else:
            inferencer.unify(
                func_ty, func_type(other_ty, acc_ty, acc_ty), "foldr requires a curried function", self.line
            )
            inferencer.unify(
                other_ty, item_ty, "list element and first argument must be of same type", self.line
            )
            inferencer.unify(
                initial_ty, acc_ty, "initial value and function argument type mismatch", self.line
            )
        return inferencer.apply(initial_ty)

    def display(self, indent: int = 0) -> str:
        return display_call(self.name, [self.func, self.initial, self.lst], indent)


@dataclass(eq=True, frozen=True)
class StrLen(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        return Int(len(eval_str(env, self.expr, "strlen")))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = self.expr.infer_type(tenv, inferencer)
        inferencer.unify(ty, StringType, "strlen expects a string", self.line)
        return IntType

    def display(self, indent: int = 0) -> str:
        return display_call("strlen", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class StrCat(Node):
    left: Node
    right: Node

    def evaluate(self, env: Environment) -> Value:
        return String(eval_str(env, self.left, "strcat") + eval_str(env, self.right, "strcat"))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        left = self.left.infer_type(tenv, inferencer)
        right = self.right.infer_type(tenv, inferencer)
        inferencer.unify(left, StringType, "strcat expects a string as first argument", self.line)
        inferencer.unify(right, StringType, "strcat expects a string as second argument", self.line)
        return StringType

    def display(self, indent: int = 0) -> str:
        return display_call("strcat", [self.left, self.right], indent)


@dataclass(eq=True, frozen=True)
class Substr(Node):
    string: Node
    start: Node
    length: Node

    def evaluate(self, env: Environment) -> Value:
        s = eval_str(env, self.string, "substr expects a string")
        start = eval_int(env, self.start, "substr expects an int start")
        length = eval_int(env, self.length, "substr expects an int length")
        if start < 0 or length < 0:
            raise RangeError(f"substr start and length must be non-negative, got {start} and {length}", self.line)
        if start + length > len(s):
            raise RangeError(f"substr range {start}..{start + length} out of bounds for length {len(s)}", self.line)
        return String(s[start : start + length])

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        string_ty = self.string.infer_type(tenv, inferencer)
        start_ty = self.start.infer_type(tenv, inferencer)
        length_ty = self.length.infer_type(tenv, inferencer)
        inferencer.unify(string_ty, StringType, "substr expects first argument to be a string", self.line)
        inferencer.unify(start_ty, IntType, "substr expects second argument (start) to be an int", self.line)
        inferencer.unify(length_ty, IntType, "substr expects third argument (length) to be an int", self.line)
        return StringType

    def display(self, indent: int = 0) -> str:
        return display_call("substr", [self.string, self.start, self.length], indent)


@dataclass(eq=True, frozen=True)
class Explode(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        return List(tuple(String(c) for c in eval_str(env, self.expr, "explode")))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        inferencer.unify(self.expr.infer_type(tenv, inferencer), StringType, "explode expects a string", self.line)
        return list_type(StringType)

    def display(self, indent: int = 0) -> str:
        return display_call("explode", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class Proj(Node):
    index: int
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        items = eval_tuple(env, self.expr, "proj")
        if self.index < 0 or self.index >= len(items):
            raise IndexOutOfBounds(f"proj index {self.index} out of bounds for a {len(items)}-tuple", self.line)
        return items[self.index]

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = inferencer.apply(self.expr.infer_type(tenv, inferencer))
        if not is_tuple(ty):
            raise TypeMismatch(f"proj expects a tuple, got {ty}", self.line)
        assert isinstance(ty, TyCon)
        if self.index < 0 or self.index >= len(ty.args):
            raise TupleIndexError(f"proj index {self.index} out of bounds for {ty}", self.line)
        return ty.args[self.index]

    def display(self, indent: int = 0) -> str:
        return display_call(f"proj[{self.index}]", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class Swap(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        items = eval_tuple(env, self.expr, "swap")
        if len(items) != 2:
            raise ArityError(f"swap expects a 2-tuple, got a {len(items)}-tuple", self.line)
        return Tuple((items[1], items[0]))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = inferencer.apply(self.expr.infer_type(tenv, inferencer))
        if is_tuple(ty):
            assert isinstance(ty, TyCon)
            if len(ty.args) != 2:
                raise TupleArityError(f"swap expects a 2-tuple, got {ty}", self.line)
        first = inferencer.fresh_tyvar()
        second = inferencer.fresh_tyvar()
        inferencer.unify(ty, tuple_type(first, second), "swap expects a tuple", self.line)
        return tuple_type(inferencer.apply(second), inferencer.apply(first))

    def display(self, indent: int = 0) -> str:
        return display_call("swap", [self.expr], indent)


@dataclass(eq=True, frozen=True)
class Destruct(Node):
    expr: Node

    def evaluate(self, env: Environment) -> Value:
        return List(eval_tuple(env, self.expr, "destruct"))

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        ty = inferencer.apply(self.expr.infer_type(tenv, inferencer))
        if not is_tuple(ty):
            raise TypeMismatch(f"destruct expects a tuple, got {ty}", self.line)
        assert isinstance(ty, TyCon)
        item_ty = ty.args[0]
        for other in ty.args[1:]:
            inferencer.unify(
                other,
                item_ty,
                "destruct requires a tuple with uniform element types",
                self.line,
                error=HeterogeneousTuple,
            )
        return list_type(inferencer.apply(item_ty))

    def display(self, indent: int = 0) -> str:
        return display_call("destruct", [self.expr], indent)


