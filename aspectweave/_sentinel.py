from __future__ import annotations

from typing import Final, Literal

__all__ = (
    "Unset",
    "UnsetType",
)


class _SingletonMeta(type):
    """Metaclass that guarantees exactly one instance per subclass."""

    _cache: dict[type, SingletonType] = {}

    def __call__(cls, *a, **kw):
        if cls not in cls._cache:
            cls._cache[cls] = super().__call__(*a, **kw)
        return cls._cache[cls]


class SingletonType(metaclass=_SingletonMeta):
    """Base class for falsy singleton markers that survive copying."""

    __slots__: tuple[str, ...] = ()

    def __deepcopy__(self, memo):
        return self

    def __copy__(self):
        return self

    def __bool__(self) -> bool: ...
    def __repr__(self) -> str: ...


class UnsetType(SingletonType):
    """Marker for a value that exists but has not been produced yet.

    A pending ``DeferredResult`` holds ``Unset`` until its job finishes, so a
    target that legitimately returns ``None`` stays distinguishable.
    """

    __slots__ = ()

    def __bool__(self) -> Literal[False]:
        return False

    def __repr__(self) -> Literal["Unset"]:
        return "Unset"

    def __reduce__(self):
        return "Unset"


Unset: Final = UnsetType()
