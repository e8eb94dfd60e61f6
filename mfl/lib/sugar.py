from __future__ import annotations
import logging
from dataclasses import dataclass

from mfl.lib.env import Environment, TypeEnvironment
from mfl.lib.infer import Inferencer
from mfl.lib.nodes import (
    Apply,
    Binop,
    BinopKind,
    Fold,
    If,
    Lambda,
    ListLit,
    Node,
    Var,
    display_call,
)
from mfl.lib.typesystem import MonoType
from mfl.lib.values import Value

logger = logging.getLogger(__name__)

# The lexer never produces "$", so these names cannot clash with user code.
COMPOSE_PARAM = "$compose"
FILTER_ITEM = "$x"
FILTER_ACC = "$acc"


@dataclass(eq=True, frozen=True)
class Sugar(Node):
    """A node that is rewritten into core nodes before it is run or checked.

    desugar() is pure: it builds a fresh subtree every call and never changes
    the node, so rewriting once for inference and again for evaluation gives
    equal trees.
    """

    def desugar(self) -> Node:
        raise NotImplementedError(f"desugar not implemented for {type(self).__name__}")

    def evaluate(self, env: Environment) -> Value:
        return desugar(self).evaluate(env)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        return desugar(self).infer_type(tenv, inferencer)


@dataclass(eq=True, frozen=True)
class Compose(Sugar):
    """f o g, the function that applies g and then f."""

    f: Node
    g: Node

    def desugar(self) -> Node:
        line = self.line
        return Lambda(
            COMPOSE_PARAM,
            Apply(self.f, Apply(self.g, Var(COMPOSE_PARAM, line=line), line=line), line=line),
            line=line,
        )

    def display(self, indent: int = 0) -> str:
        return display_call("compose", [self.f, self.g], indent)


@dataclass(eq=True, frozen=True)
class Pipe(Sugar):
    """value |> func"""

    value: Node
    func: Node

    def desugar(self) -> Node:
        return Apply(self.func, self.value, line=self.line)

    def display(self, indent: int = 0) -> str:
        return display_call("pipe", [self.value, self.func], indent)


@dataclass(eq=True, frozen=True)
class Filter(Sugar):
    pred: Node
    lst: Node

    def desugar(self) -> Node:
        line = self.line
        item = Var(FILTER_ITEM, line=line)
        acc = Var(FILTER_ACC, line=line)
        step = Lambda(
            FILTER_ITEM,
            Lambda(
                FILTER_ACC,
                If(
                    Apply(self.pred, item, line=line),
                    Binop(BinopKind.CONCAT, ListLit((item,), line=line), acc, line=line),
                    acc,
                    line=line,
                ),
                line=line,
            ),
            line=line,
        )
        return Fold(step, ListLit((), line=line), self.lst, left=False, line=line)

    def display(self, indent: int = 0) -> str:
        return display_call("filter", [self.pred, self.lst], indent)


def desugar(node: Sugar) -> Node:
    result = node.desugar()
    logger.debug("desugar %s -> %s", type(node).__name__, type(result).__name__)
    return result
