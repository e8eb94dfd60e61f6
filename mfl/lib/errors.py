import logging

logger = logging.getLogger(__name__)


class LangError(Exception):
    def __init__(self, message: str, line: int = -1) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        logger.debug("%s: %s", type(self).__name__, self)

    def __str__(self) -> str:
        if self.line < 0:
            return self.message
        return f"line {self.line}: {self.message}"


class ParseError(LangError, SyntaxError):
    pass


class UnexpectedEOFError(ParseError):
    pass


# Raised only while inferring types.


class TypeCheckError(LangError, TypeError):
    pass


class TypeMismatch(TypeCheckError):
    pass


class BranchTypeMismatch(TypeMismatch):
    pass


class InfiniteType(TypeMismatch):
    pass


class UnboundName(TypeCheckError):
    """Type-time counterpart of UndefinedName."""


class TupleIndexError(TypeCheckError):
    """Type-time counterpart of IndexOutOfBounds, for proj."""


class TupleArityError(TypeCheckError):
    """Type-time counterpart of ArityError, for swap and tuple literals."""


class HeterogeneousTuple(TypeCheckError):
    pass


class EmptyMatch(TypeCheckError):
    pass


class InferenceDepthExceeded(TypeCheckError):
    pass


# Raised only while evaluating.


class EvaluationError(LangError, RuntimeError):
    pass


class UndefinedName(EvaluationError):
    pass


class NotAFunction(EvaluationError):
    pass


class NotABoolean(EvaluationError):
    pass


class RuntimeTypeMismatch(EvaluationError):
    pass


class RangeError(EvaluationError):
    pass


class IndexOutOfBounds(EvaluationError):
    pass


class ArityError(EvaluationError):
    pass


class NonExhaustiveMatch(EvaluationError):
    pass


class FoldRequiresBinaryFunction(EvaluationError):
    pass


class DivisionByZero(EvaluationError):
    pass


class EmptyList(EvaluationError):
    pass


class EvaluationDepthExceeded(EvaluationError):
    pass
