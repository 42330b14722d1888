from __future__ import annotations

import inspect
import logging
import threading
import typing
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    cast,
    get_type_hints,
)

from ._errors import (
    BindingNotFoundError,
    ConstructionError,
    CyclicDependencyError,
    InjectionError,
    UnsupportedTypeError,
)
from ._inspection import AnnotationInspector


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._inspection import Inspector

    T = TypeVar("T")


class Container:
    """Minimal field-injection container.

    - a fixed binding table: abstraction -> concrete class
    - one instance per concrete class (singleton cache)
    - dependencies injected into ``Inject``-marked fields after construction

    Resolution holds a reentrant lock, so a container may be shared between threads.
    """

    def __init__(
        self,
        bindings: Mapping[type, type] | None = None,
        *,
        inspector: Inspector | None = None,
        allow_cycles: bool = False,
    ) -> None:
        self._inspector: Inspector = inspector if inspector is not None else AnnotationInspector()

        bindings = dict(bindings or {})
        for abstraction, impl in bindings.items():
            self._validate_impl(cls=abstraction, impl=impl)
        self._bindings: Mapping[type, type] = MappingProxyType(bindings)
        self._allow_cycles = allow_cycles
        self._instances: dict[type, object] = {}
        self._injecting: list[type] = []  # concrete types whose fields are being injected
        self._lock = threading.RLock()

    @property
    def bindings(self) -> Mapping[type, type]:
        return self._bindings

    @property
    def instances(self) -> Mapping[type, object]:
        """Read-only view of the singleton cache, keyed by concrete class."""
        return MappingProxyType(self._instances)

    @property
    def inspector(self) -> Inspector:
        return self._inspector

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, concrete: object) -> bool:
        return concrete in self._instances

    def resolve(self, token: type[T]) -> T:
        """Resolve an abstraction or a concrete class to its singleton instance.

        - abstraction: looked up in the binding table
        - concrete class: is its own binding
        The instance is cached before its fields are injected.
        """
        with self._lock:
            concrete = self._find_implementation(token)

            if not self._inspector.is_injectable(concrete):
                raise UnsupportedTypeError(token, concrete)

            # Return cached singleton if present
            if concrete in self._instances:
                if concrete in self._injecting and not self._allow_cycles:
                    start = self._injecting.index(concrete)
                    raise CyclicDependencyError((*self._injecting[start:], concrete))
                return cast("T", self._instances[concrete])

            instance = self._construct(concrete)
            self._instances[concrete] = instance

            self._injecting.append(concrete)
            try:
                self._inject_fields(concrete, instance)
            finally:
                self._injecting.pop()

            return cast("T", instance)

    def _find_implementation(self, token: type) -> type:
        if not inspect.isclass(token):
            raise UnsupportedTypeError(token)

        impl = self._bindings.get(token)
        if impl is not None:
            return impl

        if self._is_protocol(token) or inspect.isabstract(token):
            raise BindingNotFoundError(token)

        return token

    def _construct(self, cls: type[T]) -> T:
        try:
            sig = inspect.signature(cls)
        except (TypeError, ValueError):
            # builtins and C types without a signature: let the call decide
            sig = None

        if sig is not None:
            required = [
                name
                for name, p in sig.parameters.items()
                if p.default is inspect.Parameter.empty
                and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
            ]
            if required:
                msg = f"no default constructor (required parameters: {', '.join(required)})"
                raise ConstructionError(cls, msg)

        try:
            instance = cls()
        except Exception as e:
            raise ConstructionError(cls, f"{type(e).__name__}: {e}") from e

        logger.debug("Constructed %s", cls.__qualname__)
        return instance

    def _inject_fields(self, owner: type, instance: object) -> None:
        for point in self._inspector.injection_points(owner):
            dependency = self.resolve(point.declared_type)
            try:
                setattr(instance, point.name, dependency)
            except (AttributeError, TypeError) as e:
                raise InjectionError(owner, point.name) from e
            logger.debug("Injected %s.%s", owner.__qualname__, point.name)

    def _is_protocol(self, tp: type) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        raise NotImplementedError

    def _validate_impl(self, cls: type, impl: type) -> None:
        """Validate a binding-table entry.

        - Both sides must be classes, the implementation must be instantiable.
        - For normal classes/ABCs: require issubclass(impl, cls).
        - For Protocols: nominal via MRO, otherwise the members it declares.
        """
        if not inspect.isclass(cls) or not inspect.isclass(impl):
            msg = f"Bindings must map classes to classes, got {cls!r} -> {impl!r}"
            raise ValueError(msg)

        if self._is_protocol(impl) or inspect.isabstract(impl):
            msg = f"Implementation {impl.__name__} bound to {cls.__name__} is abstract"
            raise TypeError(msg)

        if not self._is_protocol(cls):
            if not issubclass(impl, cls):
                msg = f"Implementation {impl.__name__} must be a subclass of {cls.__name__}"
                raise TypeError(msg)
            return

        # Try nominal conformance without issubclass
        if cls in impl.__mro__:
            return

        self._check_protocol_members(cls, impl)

    def _check_protocol_members(self, proto_cls: type, impl: type) -> None:
        """Check that 'impl' provides every public member 'proto_cls' declares.

        A protocol attribute is provided by a class attribute, a class annotation or an
        injection point: injected fields only exist on instances once resolved.
        Protocol methods must be callable and take no more required positional args.
        """
        fields = self._declared_fields(impl)
        problems: list[str] = []

        try:
            proto_hints = get_type_hints(proto_cls)
        except (NameError, TypeError):
            proto_hints = {}

        for name in proto_hints:
            if not name.startswith("_") and name not in fields and not hasattr(impl, name):
                problems.append(f"no attribute or injected field '{name}'")

        for name, proto_attr in proto_cls.__dict__.items():
            if name.startswith("_") or not inspect.isfunction(proto_attr):
                continue
            if not hasattr(impl, name):
                if name not in fields:
                    problems.append(f"no method '{name}'")
                continue

            impl_attr = getattr(impl, name)
            if not callable(impl_attr):
                problems.append(f"'{name}' is not callable")
                continue

            try:
                wanted = _positional_arity(inspect.signature(proto_attr))
                got = _positional_arity(inspect.signature(impl_attr))
            except (TypeError, ValueError):
                continue  # no signature to compare
            if got < wanted:
                problems.append(f"'{name}' requires {got} positional args, protocol passes {wanted}")

        if problems:
            msg = f"{impl.__name__} cannot implement protocol {proto_cls.__name__}: {'; '.join(problems)}"
            raise TypeError(msg)

    def _declared_fields(self, impl: type) -> set[str]:
        names = {point.name for point in self._inspector.injection_points(impl)}
        for klass in impl.__mro__:
            try:
                names.update(inspect.get_annotations(klass))
            except NameError:
                continue  # unresolvable annotations can still be provided by injection points
        return names


def _positional_arity(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self"
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol_3_13(self: Any, tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

    Container._is_protocol = _is_protocol_3_13  # type: ignore[method-assign] # noqa: SLF001
else:

    def _is_protocol_legacy(self: Any, tp: type) -> bool:
        """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
        return inspect.isclass(tp) and tp is not Protocol and bool(getattr(tp, "_is_protocol", False))

    Container._is_protocol = _is_protocol_legacy  # type: ignore[method-assign] # noqa: SLF001
