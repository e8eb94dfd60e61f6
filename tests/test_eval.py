from typing import Type

import pytest

from mfl.lib.env import Environment
from mfl.lib.errors import (
    ArityError,
    DivisionByZero,
    EmptyList,
    EvaluationDepthExceeded,
    FoldRequiresBinaryFunction,
    IndexOutOfBounds,
    NotABoolean,
    NotAFunction,
    RangeError,
    RuntimeTypeMismatch,
    UndefinedName,
)
from mfl.lib.interpreter import evaluate
from mfl.lib.nodes import (
    Apply,
    Binop,
    BinopKind,
    Destruct,
    Explode,
    Fold,
    Head,
    If,
    IsEmpty,
    Lambda,
    Len,
    Let,
    ListLit,
    Literal,
    Map,
    Node,
    Program,
    Proj,
    StrCat,
    StrLen,
    Substr,
    Swap,
    Tail,
    TupleLit,
    Unop,
    UnopKind,
    Val,
    Var,
)
from mfl.lib.values import FALSE, TRUE, Closure, Int, List, Real, String, Tuple, Value


def i(x: int) -> Literal:
    return Literal(Int(x))


def s(x: str) -> Literal:
    return Literal(String(x))


def ints(*xs: int) -> ListLit:
    return ListLit(tuple(i(x) for x in xs))


ADD_CURRIED = Lambda("a", Lambda("b", Binop(BinopKind.ADD, Var("a"), Var("b"))))
SUB_CURRIED = Lambda("a", Lambda("b", Binop(BinopKind.SUB, Var("a"), Var("b"))))


class TestEval:
    @pytest.mark.parametrize(
        "env, ast, res",
        [
            ({}, i(5), Int(5)),
            ({}, s("xyz"), String("xyz")),
            ({"yes": Int(123)}, Var("yes"), Int(123)),
            ({}, Binop(BinopKind.ADD, i(1), i(2)), Int(3)),
            ({}, Binop(BinopKind.ADD, Binop(BinopKind.ADD, i(1), i(2)), i(3)), Int(6)),
            ({}, Binop(BinopKind.SUB, i(1), i(2)), Int(-1)),
            ({}, Binop(BinopKind.MUL, i(2), i(3)), Int(6)),
            ({}, Binop(BinopKind.DIV, i(2), i(3)), Int(0)),
            ({}, Binop(BinopKind.DIV, i(-7), i(2)), Int(-3)),
            ({}, Binop(BinopKind.MOD, i(7), i(3)), Int(1)),
            ({}, Binop(BinopKind.MOD, i(-7), i(3)), Int(-1)),
            ({}, Binop(BinopKind.MUL, Literal(Real(2.5)), Literal(Real(4.0))), Real(10.0)),
            ({}, Binop(BinopKind.DIV, Literal(Real(1.0)), Literal(Real(4.0))), Real(0.25)),
            ({}, Binop(BinopKind.CONCAT, s("hello"), s(" world")), String("hello world")),
            ({}, Binop(BinopKind.CONCAT, ints(1, 2), ints(3)), List((Int(1), Int(2), Int(3)))),
            ({}, Binop(BinopKind.LESS, i(1), i(2)), TRUE),
            ({}, Binop(BinopKind.GREATER_EQUAL, s("a"), s("b")), FALSE),
            ({}, Binop(BinopKind.EQUAL, ints(1, 2), ints(1, 2)), TRUE),
            ({}, Binop(BinopKind.NOT_EQUAL, i(1), i(1)), FALSE),
            ({}, Binop(BinopKind.BOOL_AND, Literal(TRUE), Literal(FALSE)), FALSE),
            ({}, Binop(BinopKind.BOOL_OR, Literal(TRUE), Literal(FALSE)), TRUE),
            ({}, Unop(UnopKind.NOT, Literal(TRUE)), FALSE),
            ({}, Unop(UnopKind.NEG, i(4)), Int(-4)),
            ({}, Unop(UnopKind.NEG, Literal(Real(1.5))), Real(-1.5)),
        ],
    )
    def test_eval(self, env: dict, ast: Node, res: Value) -> None:
        assert evaluate(ast, Environment(env)) == res

    @pytest.mark.parametrize(
        "env, ast, error_type, message",
        [
            ({}, Var("no"), UndefinedName, "name 'no' is not defined"),
            ({}, Binop(BinopKind.ADD, i(1), s("hello")), RuntimeTypeMismatch, "Int and String"),
            ({}, Binop(BinopKind.ADD, i(3), Literal(Real(4.0))), RuntimeTypeMismatch, "Int and Real"),
            ({}, Binop(BinopKind.MOD, Literal(Real(3.0)), Literal(Real(2.0))), RuntimeTypeMismatch, "mod"),
            ({}, Binop(BinopKind.CONCAT, i(123), s(" world")), RuntimeTypeMismatch, r"\+\+"),
            ({}, Binop(BinopKind.DIV, i(1), i(0)), DivisionByZero, "division by zero"),
            ({}, Binop(BinopKind.MOD, i(1), i(0)), DivisionByZero, "mod by zero"),
            ({}, Binop(BinopKind.BOOL_AND, i(1), Literal(TRUE)), NotABoolean, "expected Bool, got Int"),
            ({}, If(i(1), i(2), i(3)), NotABoolean, "condition"),
            ({}, Apply(i(1), i(2)), NotAFunction, "non-function of kind Int"),
            ({}, Head(ListLit(())), EmptyList, "hd of an empty list"),
            ({}, Tail(ListLit(())), EmptyList, "tl of an empty list"),
            ({}, Head(i(1)), RuntimeTypeMismatch, "expected List, got Int"),
            ({}, TupleLit((i(1),)), ArityError, "at least 2"),
        ],
    )
    def test_eval_error(self, env: dict, ast: Node, error_type: Type[Exception], message: str) -> None:
        with pytest.raises(error_type, match=message):
            evaluate(ast, Environment(env))

    def test_eval_with_list_evaluates_elements(self) -> None:
        exp = ListLit(
            (
                Binop(BinopKind.ADD, i(1), i(2)),
                Binop(BinopKind.ADD, i(3), i(4)),
            )
        )
        assert evaluate(exp) == List((Int(3), Int(7)))

    def test_and_short_circuits(self) -> None:
        exp = Binop(BinopKind.BOOL_AND, Literal(FALSE), Var("unbound"))
        assert evaluate(exp) == FALSE

    def test_or_short_circuits(self) -> None:
        exp = Binop(BinopKind.BOOL_OR, Literal(TRUE), Var("unbound"))
        assert evaluate(exp) == TRUE

    def test_if_only_evaluates_taken_branch(self) -> None:
        exp = If(Literal(TRUE), i(1), Var("unbound"))
        assert evaluate(exp) == Int(1)


class TestClosures:
    def test_lambda_evaluates_to_closure(self) -> None:
        env = Environment({"a": Int(1)})
        result = evaluate(Lambda("x", Var("x")), env)
        assert isinstance(result, Closure)
        assert result.param == "x"
        assert result.body == Var("x")
        assert result.env is env

    def test_apply_binds_param(self) -> None:
        exp = Apply(Lambda("x", Binop(BinopKind.ADD, Var("x"), i(1))), i(2))
        assert evaluate(exp) == Int(3)

    def test_closure_captures_defining_environment(self) -> None:
        # let y := 10 in let f := fn x -> x + y in let y := 0 in f(1)
        exp = Let(
            "y",
            i(10),
            Let(
                "f",
                Lambda("x", Binop(BinopKind.ADD, Var("x"), Var("y"))),
                Let("y", i(0), Apply(Var("f"), i(1))),
            ),
        )
        assert evaluate(exp) == Int(11)

    def test_application_does_not_leak_bindings(self) -> None:
        env = Environment({"x": Int(5)})
        evaluate(Apply(Lambda("x", Var("x")), i(1)), env)
        assert env["x"] == Int(5)

    def test_curried_application(self) -> None:
        assert evaluate(Apply(Apply(SUB_CURRIED, i(10)), i(3))) == Int(7)

    def test_let_bound_lambda_is_recursive(self) -> None:
        # let fact := fn n -> if n = 0 then 1 else n * fact(n - 1) in fact(5)
        fact = Lambda(
            "n",
            If(
                Binop(BinopKind.EQUAL, Var("n"), i(0)),
                i(1),
                Binop(BinopKind.MUL, Var("n"), Apply(Var("fact"), Binop(BinopKind.SUB, Var("n"), i(1)))),
            ),
        )
        assert evaluate(Let("fact", fact, Apply(Var("fact"), i(5)))) == Int(120)

    def test_closures_compare_by_identity(self) -> None:
        exp = Binop(BinopKind.EQUAL, Lambda("x", Var("x")), Lambda("x", Var("x")))
        assert evaluate(exp) == FALSE

    def test_unbounded_recursion_raises_depth_error(self) -> None:
        loop = Lambda("n", Apply(Var("loop"), Var("n")))
        with pytest.raises(EvaluationDepthExceeded):
            evaluate(Let("loop", loop, Apply(Var("loop"), i(0))))


class TestProgram:
    def test_val_bindings_are_visible_to_later_statements(self) -> None:
        program = Program(
            (
                Val("x", i(10)),
                Val("f", Lambda("y", Binop(BinopKind.MUL, Var("y"), Var("x")))),
                Apply(Var("f"), i(3)),
            )
        )
        assert evaluate(program) == Int(30)

    def test_value_of_trailing_val_is_bound_value(self) -> None:
        assert evaluate(Program((Val("x", i(10)),))) == Int(10)

    def test_empty_program_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one statement"):
            Program(())


class TestBuiltins:
    @pytest.mark.parametrize(
        "ast, res",
        [
            (Head(ints(4, 5)), Int(4)),
            (Tail(ints(4, 5, 6)), List((Int(5), Int(6)))),
            (Len(ints(4, 5, 6)), Int(3)),
            (Len(ListLit(())), Int(0)),
            (IsEmpty(ListLit(())), TRUE),
            (IsEmpty(ints(1)), FALSE),
            (Map(Lambda("x", Binop(BinopKind.MUL, Var("x"), i(2))), ints(1, 2, 3)), List((Int(2), Int(4), Int(6)))),
            (Map(Lambda("x", Var("x")), ListLit(())), List(())),
            (Fold(ADD_CURRIED, i(0), ints(1, 2, 3), left=True), Int(6)),
            (Fold(ADD_CURRIED, i(0), ints(1, 2, 3), left=False), Int(6)),
            (Fold(SUB_CURRIED, i(0), ints(1, 2, 3), left=True), Int(-6)),
            (Fold(SUB_CURRIED, i(0), ints(1, 2, 3), left=False), Int(2)),
            (Fold(ADD_CURRIED, i(42), ListLit(()), left=True), Int(42)),
            (Fold(ADD_CURRIED, i(42), ListLit(()), left=False), Int(42)),
            (StrLen(s("hello")), Int(5)),
            (StrLen(s("")), Int(0)),
            (StrCat(s("ab"), s("cd")), String("abcd")),
            (Substr(s("hello"), i(1), i(3)), String("ell")),
            (Substr(s("hello"), i(0), i(5)), String("hello")),
            (Substr(s("hello"), i(5), i(0)), String("")),
            (Explode(s("abc")), List((String("a"), String("b"), String("c")))),
            (Explode(s("")), List(())),
            (TupleLit((i(1), Literal(TRUE), s("hi"))), Tuple((Int(1), TRUE, String("hi")))),
            (Proj(0, TupleLit((i(10), i(20)))), Int(10)),
            (Proj(1, TupleLit((i(10), i(20)))), Int(20)),
            (Swap(TupleLit((s("a"), i(7)))), Tuple((Int(7), String("a")))),
            (Destruct(TupleLit((i(1), i(2), i(3)))), List((Int(1), Int(2), Int(3)))),
        ],
    )
    def test_builtin(self, ast: Node, res: Value) -> None:
        assert evaluate(ast) == res

    @pytest.mark.parametrize(
        "ast, error_type, message",
        [
            (Substr(s("hello"), i(-1), i(2)), RangeError, "non-negative"),
            (Substr(s("hello"), i(1), i(-2)), RangeError, "non-negative"),
            (Substr(s("hello"), i(3), i(5)), RangeError, "out of bounds"),
            (Substr(i(1), i(0), i(0)), RuntimeTypeMismatch, "expected String, got Int"),
            (Proj(2, TupleLit((i(10), i(20)))), IndexOutOfBounds, "proj index 2"),
            (Proj(0, ints(1, 2)), RuntimeTypeMismatch, "expected Tuple, got List"),
            (Swap(TupleLit((i(1), i(2), i(3)))), ArityError, "3-tuple"),
            (Map(i(1), ints(1)), RuntimeTypeMismatch, "must be a function"),
            (Map(Lambda("x", Var("x")), i(1)), RuntimeTypeMismatch, "must be a list"),
            (Fold(Lambda("x", Var("x")), i(0), ints(1), left=True), FoldRequiresBinaryFunction, "foldl"),
            (Fold(Lambda("x", Var("x")), i(0), ints(1), left=False), FoldRequiresBinaryFunction, "foldr"),
        ],
    )
    def test_builtin_error(self, ast: Node, error_type: Type[Exception], message: str) -> None:
        with pytest.raises(error_type, match=message):
            evaluate(ast)

    def test_fold_on_empty_list_does_not_check_function(self) -> None:
        ast = Fold(Lambda("x", Var("x")), i(7), ListLit(()), left=True)
        assert evaluate(ast) == Int(7)

    def test_foldr_applies_element_first(self) -> None:
        # foldr (fn x acc -> x ++ acc) "" ["a", "b", "c"]
        concat = Lambda("x", Lambda("acc", Binop(BinopKind.CONCAT, Var("x"), Var("acc"))))
        ast = Fold(concat, s(""), ListLit((s("a"), s("b"), s("c"))), left=False)
        assert evaluate(ast) == String("abc")

    def test_foldl_applies_accumulator_first(self) -> None:
        concat = Lambda("acc", Lambda("x", Binop(BinopKind.CONCAT, Var("acc"), Var("x"))))
        ast = Fold(concat, s(""), ListLit((s("a"), s("b"), s("c"))), left=True)
        assert evaluate(ast) == String("abc")

    def test_map_preserves_order(self) -> None:
        ast = Map(Lambda("x", Binop(BinopKind.SUB, i(10), Var("x"))), ints(1, 2, 3))
        assert evaluate(ast) == List((Int(9), Int(8), Int(7)))

    def test_tail_is_a_new_list(self) -> None:
        env = Environment({"xs": List((Int(1), Int(2)))})
        assert evaluate(Tail(Var("xs")), env) == List((Int(2),))
        assert env["xs"] == List((Int(1), Int(2)))
