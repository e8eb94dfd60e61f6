from __future__ import annotations
import logging
from typing import Optional

from mfl.lib.env import Environment, TypeEnvironment
from mfl.lib.errors import EvaluationDepthExceeded, InferenceDepthExceeded
from mfl.lib.infer import Inferencer
from mfl.lib.nodes import Node
from mfl.lib.typesystem import MonoType, minimize
from mfl.lib.values import Value

logger = logging.getLogger(__name__)


def evaluate(node: Node, env: Optional[Environment] = None) -> Value:
    """Evaluate node in env (an empty environment by default).

    Deep recursion in the evaluated program surfaces as
    EvaluationDepthExceeded once the interpreter's own stack runs out. Every
    call in the program costs several Python frames, so under CPython's
    default recursion limit of 1000 a recursive function such as
    `count(n - 1)` fails somewhere between 150 and 200 levels deep. Raise
    the limit with sys.setrecursionlimit for deeper programs.
    """
    if env is None:
        env = Environment()
    logger.debug("evaluate %s", type(node).__name__)
    try:
        return node.evaluate(env)
    except RecursionError:
        raise EvaluationDepthExceeded("maximum evaluation depth exceeded", node.line) from None


def infer_type(
    node: Node,
    tenv: Optional[TypeEnvironment] = None,
    inferencer: Optional[Inferencer] = None,
) -> MonoType:
    if tenv is None:
        tenv = TypeEnvironment()
    if inferencer is None:
        inferencer = Inferencer()
    logger.debug("infer %s", type(node).__name__)
    try:
        result = node.infer_type(tenv, inferencer)
    except RecursionError:
        raise InferenceDepthExceeded("maximum inference depth exceeded", node.line) from None
    return inferencer.apply(result)


def check(node: Node, tenv: Optional[TypeEnvironment] = None) -> str:
    return str(minimize(infer_type(node, tenv)))


def run_source(source: str, typecheck: bool = True) -> Value:
    # Imported here to keep the parser out of the core import graph.
    from mfl.lib.parser import parse_program

    program = parse_program(source)
    if typecheck:
        ty = infer_type(program)
        logger.debug("program has type %s", minimize(ty))
    return evaluate(program)
