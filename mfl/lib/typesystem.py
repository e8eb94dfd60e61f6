from __future__ import annotations
import dataclasses
import typing


@dataclasses.dataclass(frozen=True)
class MonoType:
    pass


@dataclasses.dataclass(frozen=True)
class TyVar(MonoType):
    id: int
    # Only used when rendering; minimize() hands out letters.
    label: typing.Optional[str] = dataclasses.field(default=None, compare=False)

    def __str__(self) -> str:
        if self.label is not None:
            return f"'{self.label}"
        return f"'t{self.id}"


@dataclasses.dataclass(frozen=True)
class TyCon(MonoType):
    name: str
    args: tuple[MonoType, ...] = ()

    def __str__(self) -> str:
        if self.name == "list":
            return f"[ {self.args[0]} ]"
        if self.name == "tuple":
            return f"[{', '.join(map(str, self.args))}]"
        if self.name == "->":
            arg, ret = self.args
            if is_func(arg):
                return f"({arg}) -> {ret}"
            return f"{arg} -> {ret}"
        return self.name


@dataclasses.dataclass(frozen=True)
class Forall:
    tyvars: tuple[TyVar, ...]
    ty: MonoType

    def __str__(self) -> str:
        if not self.tyvars:
            return str(self.ty)
        return f"(forall {', '.join(map(str, self.tyvars))}. {self.ty})"


IntType = TyCon("int")
RealType = TyCon("real")
BoolType = TyCon("bool")
StringType = TyCon("string")


def func_type(*args: MonoType) -> TyCon:
    assert len(args) >= 2
    if len(args) == 2:
        return TyCon("->", tuple(args))
    return TyCon("->", (args[0], func_type(*args[1:])))


def list_type(arg: MonoType) -> TyCon:
    return TyCon("list", (arg,))


def tuple_type(*args: MonoType) -> TyCon:
    assert len(args) >= 2, "tuples have at least two elements"
    return TyCon("tuple", tuple(args))


def mono(ty: MonoType) -> Forall:
    return Forall((), ty)


def is_func(ty: MonoType) -> bool:
    return isinstance(ty, TyCon) and ty.name == "->"


def is_list(ty: MonoType) -> bool:
    return isinstance(ty, TyCon) and ty.name == "list"


def is_tuple(ty: MonoType) -> bool:
    return isinstance(ty, TyCon) and ty.name == "tuple"


Subst = typing.Mapping[int, MonoType]


def apply_ty(ty: MonoType, subst: Subst) -> MonoType:
    """Replace variables named in subst, one level deep per variable."""
    if isinstance(ty, TyVar):
        return subst.get(ty.id, ty)
    if isinstance(ty, TyCon):
        if not ty.args:
            return ty
        return TyCon(ty.name, tuple(apply_ty(arg, subst) for arg in ty.args))
    raise TypeError(f"Unknown type: {ty}")


def ftv_ty(ty: MonoType) -> set[int]:
    if isinstance(ty, TyVar):
        return {ty.id}
    if isinstance(ty, TyCon):
        return set().union(*map(ftv_ty, ty.args))
    raise TypeError(f"Unknown type: {ty}")


def ftv_scheme(scheme: Forall) -> set[int]:
    return ftv_ty(scheme.ty) - {tyvar.id for tyvar in scheme.tyvars}


def minimize(ty: MonoType) -> MonoType:
    """Rename free variables to 'a, 'b, ... in order of their ids."""
    letters = iter("abcdefghijklmnopqrstuvwxyz")
    free = ftv_ty(ty)
    subst = {}
    for i, tyvar_id in enumerate(sorted(free)):
        label = next(letters, None) or f"t{i}"
        subst[tyvar_id] = TyVar(tyvar_id, label)
    return apply_ty(ty, subst)
