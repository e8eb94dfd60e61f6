from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from mfl.lib.env import Environment, TypeEnvironment
from mfl.lib.errors import EmptyMatch, NonExhaustiveMatch
from mfl.lib.infer import Inferencer
from mfl.lib.nodes import INDENT, Node, indented, literal_type
from mfl.lib.typesystem import Forall, MonoType, mono
from mfl.lib.values import String, Value, pretty

logger = logging.getLogger(__name__)


@dataclass(eq=True, frozen=True)
class Pattern:
    def match(self, value: Value) -> Optional[Dict[str, Value]]:
        """Return the bindings the pattern introduces, or None on failure."""
        raise NotImplementedError(f"match not implemented for {type(self).__name__}")

    def infer_pattern(self, inferencer: Inferencer) -> tuple[MonoType, Dict[str, Forall]]:
        raise NotImplementedError(f"infer_pattern not implemented for {type(self).__name__}")

    def display(self) -> str:
        raise NotImplementedError(f"display not implemented for {type(self).__name__}")


@dataclass(eq=True, frozen=True)
class WildcardPattern(Pattern):
    def match(self, value: Value) -> Optional[Dict[str, Value]]:
        return {}

    def infer_pattern(self, inferencer: Inferencer) -> tuple[MonoType, Dict[str, Forall]]:
        return inferencer.fresh_tyvar(), {}

    def display(self) -> str:
        return "_"


@dataclass(eq=True, frozen=True)
class VarPattern(Pattern):
    name: str

    def match(self, value: Value) -> Optional[Dict[str, Value]]:
        return {self.name: value}

    def infer_pattern(self, inferencer: Inferencer) -> tuple[MonoType, Dict[str, Forall]]:
        ty = inferencer.fresh_tyvar()
        # Pattern variables are monomorphic.
        return ty, {self.name: mono(ty)}

    def display(self) -> str:
        return self.name


@dataclass(eq=True, frozen=True)
class LiteralPattern(Pattern):
    value: Value

    def match(self, value: Value) -> Optional[Dict[str, Value]]:
        if value == self.value:
            return {}
        return None

    def infer_pattern(self, inferencer: Inferencer) -> tuple[MonoType, Dict[str, Forall]]:
        return literal_type(self.value, -1), {}

    def display(self) -> str:
        if isinstance(self.value, String):
            return f"\"{self.value.value}\""
        return pretty(self.value)


@dataclass(eq=True, frozen=True)
class MatchCase:
    pattern: Pattern
    body: Node


@dataclass(eq=True, frozen=True)
class Match(Node):
    """Tries each case in source order; the first pattern that matches wins."""

    scrutinee: Node
    cases: Sequence[MatchCase]

    def evaluate(self, env: Environment) -> Value:
        value = self.scrutinee.evaluate(env)
        for case in self.cases:
            bindings = case.pattern.match(value)
            if bindings is not None:
                logger.debug("matched %s against %s", value, case.pattern.display())
                return case.body.evaluate(env.extend_many(bindings))
        raise NonExhaustiveMatch(f"no case matched {value}", self.line)

    def infer_type(self, tenv: TypeEnvironment, inferencer: Inferencer) -> MonoType:
        if not self.cases:
            raise EmptyMatch("match needs at least one case", self.line)
        scrutinee_ty = self.scrutinee.infer_type(tenv, inferencer)
        result = inferencer.fresh_tyvar()
        for case in self.cases:
            pattern_ty, bindings = case.pattern.infer_pattern(inferencer)
            inferencer.unify(scrutinee_ty, pattern_ty, "pattern type mismatch", self.line)
            body_ty = case.body.infer_type(tenv.extend_many(bindings), inferencer)
            inferencer.unify(result, body_ty, "case bodies must have the same type", self.line)
        return inferencer.apply(result)

    def display(self, indent: int = 0) -> str:
        lines = [indented("match(", indent), self.scrutinee.display(indent + INDENT)]
        for case in self.cases:
            lines.append(indented(f"| {case.pattern.display()} ->", indent + INDENT))
            lines.append(case.body.display(indent + 2 * INDENT))
        lines.append(indented(")", indent))
        return "\n".join(lines)
