from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    get_type_hints,
    runtime_checkable,
)

from ._errors import ResolutionError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    T = TypeVar("T")

_COMPONENT_ATTR = "__fieldbind_component__"


class Inject:
    """Field marker: ``reader: Annotated[FileReaderService, Inject]``.

    Both the class and an instance (``Inject()``) are accepted as metadata.
    """

    def __repr__(self) -> str:
        return "Inject()"


def component(cls: type[T]) -> type[T]:
    """Mark a class as eligible for container management.

    The marker lives on the class itself, subclasses must be marked on their own.
    """
    if not inspect.isclass(cls):
        msg = f"@component can only decorate classes, got {cls!r}"
        raise TypeError(msg)
    setattr(cls, _COMPONENT_ATTR, True)
    return cls


@dataclass(frozen=True)
class InjectionPoint:
    owner: type
    name: str
    declared_type: type


@runtime_checkable
class Inspector(Protocol):
    def is_injectable(self, cls: type) -> bool: ...

    def injection_points(self, cls: type) -> Sequence[InjectionPoint]: ...


class AnnotationInspector:
    """Discovers markers and injection points by introspecting classes.

    - injectable: decorated with ``@component``
    - injection points: class annotations of the form ``Annotated[T, Inject]``,
      base classes first, then declaration order.
    """

    def is_injectable(self, cls: type) -> bool:
        return bool(cls.__dict__.get(_COMPONENT_ATTR, False))

    def injection_points(self, cls: type) -> list[InjectionPoint]:
        hints = _get_class_type_hints(cls)

        points: list[InjectionPoint] = []
        for name, hint in hints.items():
            if typing.get_origin(hint) is not typing.Annotated:
                continue
            declared, *metadata = typing.get_args(hint)
            if any(m is Inject or isinstance(m, Inject) for m in metadata):
                points.append(InjectionPoint(owner=cls, name=name, declared_type=declared))
        return points


class RegistryInspector:
    """Explicit registration of injectable classes and their fields.

    Example:
      registry = RegistryInspector()
      registry.register(ProductParserImpl, reader=FileReaderService)

      @registry.registered(product_parser=ProductParser)
      class ProductServiceImpl: ...

    """

    def __init__(self) -> None:
        self._fields: dict[type, dict[str, type]] = {}

    def register(self, cls: type, **fields: type) -> None:
        if not inspect.isclass(cls):
            msg = f"Only classes can be registered, got {cls!r}"
            raise TypeError(msg)
        if cls in self._fields:
            msg = f"{cls.__name__} is already registered"
            raise KeyError(msg)
        self._fields[cls] = dict(fields)

    def registered(self, **fields: type) -> Callable[[type[T]], type[T]]:
        def decorator(cls: type[T]) -> type[T]:
            self.register(cls, **fields)
            return cls

        return decorator

    def is_injectable(self, cls: type) -> bool:
        return cls in self._fields

    def injection_points(self, cls: type) -> list[InjectionPoint]:
        fields = self._fields.get(cls, {})
        return [InjectionPoint(owner=cls, name=name, declared_type=tp) for name, tp in fields.items()]


def _get_class_type_hints(cls: type) -> dict[str, Any]:
    # base classes first, declaration order within a class
    try:
        return get_type_hints(cls, include_extras=True)
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        msg = f"Cannot evaluate type hints of {cls.__qualname__}: {exc}"
        raise ResolutionError(msg) from exc
