from __future__ import annotations
import dataclasses
import logging
from typing import Iterable, Mapping, Type

from mfl.lib.errors import InfiniteType, TypeCheckError, TypeMismatch
from mfl.lib.typesystem import Forall, MonoType, TyCon, TyVar, apply_ty, ftv_scheme, ftv_ty

logger = logging.getLogger(__name__)


class _Mismatch(Exception):
    pass


class _Cycle(Exception):
    def __init__(self, tyvar: TyVar, ty: MonoType) -> None:
        super().__init__(tyvar, ty)
        self.tyvar = tyvar
        self.ty = ty


@dataclasses.dataclass(frozen=True)
class KindConstraint:
    """The type constructors an unresolved variable may still turn into."""

    allowed: frozenset[str]
    message: str
    line: int = -1


@dataclasses.dataclass
class Inferencer:
    """State for one type-checking pass.

    Owns the substitution (type variable id -> type) and the counter used to
    hand out fresh variables. Create a new one for every top-level check; the
    substitution is only ever grown by successful calls to unify().

    Operators such as ++ and < accept several kinds of operand. When the
    operand type is still a variable the restriction is kept in constraints
    and checked again once the variable is bound.
    """

    subst: dict[int, MonoType] = dataclasses.field(default_factory=dict)
    constraints: dict[int, KindConstraint] = dataclasses.field(default_factory=dict)
    counter: int = 0

    def fresh_tyvar(self) -> TyVar:
        result = TyVar(self.counter)
        self.counter += 1
        return result

    def find(self, ty: MonoType) -> MonoType:
        while isinstance(ty, TyVar) and ty.id in self.subst:
            ty = self.subst[ty.id]
        return ty

    def apply(self, ty: MonoType) -> MonoType:
        ty = self.find(ty)
        if isinstance(ty, TyCon) and ty.args:
            return TyCon(ty.name, tuple(self.apply(arg) for arg in ty.args))
        return ty

    def occurs(self, tyvar: TyVar, ty: MonoType) -> bool:
        ty = self.find(ty)
        if isinstance(ty, TyVar):
            return ty.id == tyvar.id
        if isinstance(ty, TyCon):
            return any(self.occurs(tyvar, arg) for arg in ty.args)
        return False

    def unify(
        self,
        ty1: MonoType,
        ty2: MonoType,
        message: str = "",
        line: int = -1,
        error: Type[TypeCheckError] = TypeMismatch,
    ) -> None:
        try:
            self._unify(ty1, ty2)
        except _Mismatch:
            detail = f"Unification failed for {self.apply(ty1)} and {self.apply(ty2)}"
            raise error(f"{message}: {detail}" if message else detail, line) from None
        except _Cycle as e:
            detail = f"{e.tyvar} occurs in {self.apply(e.ty)}"
            raise InfiniteType(f"{message}: infinite type, {detail}" if message else f"infinite type, {detail}", line) from None

    def _unify(self, ty1: MonoType, ty2: MonoType) -> None:
        ty1 = self.find(ty1)
        ty2 = self.find(ty2)
        if isinstance(ty1, TyVar):
            if isinstance(ty2, TyVar) and ty1.id == ty2.id:
                return
            self._bind(ty1, ty2)
            return
        if isinstance(ty2, TyVar):  # Mirror
            return self._unify(ty2, ty1)
        if isinstance(ty1, TyCon) and isinstance(ty2, TyCon):
            if ty1.name != ty2.name:
                raise _Mismatch
            if len(ty1.args) != len(ty2.args):
                raise _Mismatch
            for l, r in zip(ty1.args, ty2.args):
                self._unify(l, r)
            return
        raise TypeError(f"Unexpected types {type(ty1)} and {type(ty2)}")

    def _bind(self, tyvar: TyVar, ty: MonoType) -> None:
        if self.occurs(tyvar, ty):
            raise _Cycle(tyvar, ty)
        constraint = self.constraints.pop(tyvar.id, None)
        if constraint is not None:
            self._enforce(ty, constraint)
        logger.debug("bind %s := %s", tyvar, ty)
        self.subst[tyvar.id] = ty

    def constrain(self, ty: MonoType, allowed: Iterable[str], message: str, line: int = -1) -> None:
        """Require ty to be built from one of the allowed type constructors.

        A variable carries the requirement until it is bound.
        """
        self._enforce(ty, KindConstraint(frozenset(allowed), message, line))

    def _enforce(self, ty: MonoType, constraint: KindConstraint) -> None:
        ty = self.find(ty)
        if isinstance(ty, TyVar):
            existing = self.constraints.get(ty.id)
            if existing is not None:
                message = constraint.message
                if existing.message != message:
                    message = f"{existing.message}; {message}"
                constraint = KindConstraint(existing.allowed & constraint.allowed, message, constraint.line)
                if not constraint.allowed:
                    raise TypeMismatch(f"no type satisfies: {message}", constraint.line)
            self.constraints[ty.id] = constraint
            return
        assert isinstance(ty, TyCon)
        if ty.name not in constraint.allowed:
            raise TypeMismatch(f"{constraint.message}, got {self.apply(ty)}", constraint.line)

    def instantiate(self, scheme: Forall) -> MonoType:
        if not scheme.tyvars:
            return scheme.ty
        fresh = {tyvar.id: self.fresh_tyvar() for tyvar in scheme.tyvars}
        for tyvar_id, tyvar in fresh.items():
            constraint = self.constraints.get(tyvar_id)
            if constraint is not None:
                self.constraints[tyvar.id] = constraint
        return apply_ty(self.apply(scheme.ty), fresh)

    def ftv_env(self, tenv: Mapping[str, Forall]) -> set[int]:
        result: set[int] = set()
        for scheme in tenv.values():
            applied = Forall(scheme.tyvars, self.apply(scheme.ty))
            result |= ftv_scheme(applied)
        return result

    def generalize(self, ty: MonoType, tenv: Mapping[str, Forall]) -> Forall:
        ty = self.apply(ty)
        tyvars = ftv_ty(ty) - self.ftv_env(tenv)
        return Forall(tuple(TyVar(tyvar_id) for tyvar_id in sorted(tyvars)), ty)
