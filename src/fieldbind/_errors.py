from __future__ import annotations


def _name(tp: object) -> str:
    return getattr(tp, "__qualname__", repr(tp))


class ResolutionError(RuntimeError):
    pass


class BindingNotFoundError(ResolutionError):
    def __init__(self, requested: type) -> None:
        self.requested = requested
        super().__init__(f"No implementation bound for abstraction {_name(requested)}")


class UnsupportedTypeError(ResolutionError):
    def __init__(self, requested: object, concrete: object | None = None) -> None:
        self.requested = requested
        self.concrete = concrete
        if concrete is None:
            msg = f"Cannot resolve {requested!r}: only classes can be resolved"
        else:
            msg = f"{_name(concrete)} is not marked as injectable and is unsupported by the container"
        super().__init__(msg)


class ConstructionError(ResolutionError):
    def __init__(self, concrete: type, reason: str) -> None:
        self.concrete = concrete
        super().__init__(f"Can't create a new instance of {_name(concrete)}: {reason}")


class InjectionError(ResolutionError):
    def __init__(self, owner: type, field: str) -> None:
        self.owner = owner
        self.field = field
        super().__init__(f"Failed to set field '{field}' of {_name(owner)}")


class CyclicDependencyError(ResolutionError):
    """Raised when a type is requested again while its own fields are being injected.

    ``path`` lists the chain of concrete types, starting and ending with the same type.
    """

    def __init__(self, path: tuple[type, ...]) -> None:
        self.path = path
        chain = " -> ".join(_name(tp) for tp in path)
        super().__init__(f"Circular dependency detected: {chain}")
