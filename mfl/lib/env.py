from __future__ import annotations
import typing
from typing import Iterator, Mapping, Optional, TypeVar

if typing.TYPE_CHECKING:
    from mfl.lib.typesystem import Forall
    from mfl.lib.values import Value

T = TypeVar("T")


class Scope(typing.Mapping[str, T]):
    """A chain of scopes, innermost first.

    A scope never changes after construction. extend() and extend_many()
    allocate a child scope pointing at this one, so closures holding a
    reference to a parent keep seeing exactly the bindings it had when they
    were created.
    """

    def __init__(self, bindings: Optional[Mapping[str, T]] = None, parent: Optional[Scope[T]] = None) -> None:
        self._bindings: dict[str, T] = dict(bindings or {})
        self._parent = parent

    def __getitem__(self, name: str) -> T:
        scope: Optional[Scope[T]] = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            scope = scope._parent
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        scope: Optional[Scope[T]] = self
        while scope is not None:
            for name in scope._bindings:
                if name not in seen:
                    seen.add(name)
                    yield name
            scope = scope._parent

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def extend(self, name: str, value: T) -> Scope[T]:
        return type(self)({name: value}, self)

    def extend_many(self, bindings: Mapping[str, T]) -> Scope[T]:
        if not bindings:
            return self
        return type(self)(bindings, self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={list(self)})"


class Environment(Scope["Value"]):
    pass


class TypeEnvironment(Scope["Forall"]):
    pass
