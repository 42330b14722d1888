from dataclasses import dataclass
from typing import Annotated, Protocol
from unittest.mock import MagicMock

import pytest

from fieldbind import (
    BindingNotFoundError,
    ConstructionError,
    Container,
    Inject,
    InjectionError,
    UnsupportedTypeError,
    component,
)


@component
class Dependency: ...


class Missing(Protocol):
    def run(self) -> None: ...


def test_constructor_with_required_params_raises_construction_error():
    @component
    class NeedsArgs:
        def __init__(self, port: int):
            self.port = port

    c = Container()

    with pytest.raises(ConstructionError) as ctx:
        c.resolve(NeedsArgs)

    assert ctx.value.concrete is NeedsArgs
    assert "port" in str(ctx.value)
    assert NeedsArgs not in c


def test_constructor_with_defaults_only_is_usable():
    @component
    class WithDefault:
        def __init__(self, port: int = 5555, *args, **kwargs):
            self.port = port

    c = Container()

    assert c.resolve(WithDefault).port == 5555


def test_failing_constructor_is_wrapped_in_construction_error():
    boom = ValueError("boom")

    @component
    class Exploding:
        def __init__(self):
            raise boom

    c = Container()

    with pytest.raises(ConstructionError) as ctx:
        c.resolve(Exploding)

    assert ctx.value.__cause__ is boom
    assert "ValueError: boom" in str(ctx.value)
    assert len(c) == 0


def test_marker_is_checked_before_construction():
    init = MagicMock()

    class Unmarked:
        def __init__(self):
            init()

    c = Container()

    with pytest.raises(UnsupportedTypeError):
        c.resolve(Unmarked)
    init.assert_not_called()


def test_read_only_field_raises_injection_error_naming_field_and_owner():
    @component
    class ReadOnly:
        dep: Annotated[Dependency, Inject]

        @property
        def dep(self):  # type: ignore[no-redef]
            return None

    c = Container()

    with pytest.raises(InjectionError) as ctx:
        c.resolve(ReadOnly)

    assert ctx.value.owner is ReadOnly
    assert ctx.value.field == "dep"
    assert isinstance(ctx.value.__cause__, AttributeError)
    assert "'dep'" in str(ctx.value)


def test_slotted_class_without_slot_raises_injection_error():
    @component
    class Slotted:
        __slots__ = ()
        dep: Annotated[Dependency, Inject]

    c = Container()

    with pytest.raises(InjectionError):
        c.resolve(Slotted)


def test_frozen_dataclass_raises_injection_error():
    @component
    @dataclass(frozen=True)
    class Frozen:
        dep: Annotated[Dependency, Inject] = None  # type: ignore[assignment]

    c = Container()

    with pytest.raises(InjectionError):
        c.resolve(Frozen)


def test_failed_injection_leaves_partial_instance_cached():
    @component
    class Slotted:
        __slots__ = ()
        dep: Annotated[Dependency, Inject]

    c = Container()

    with pytest.raises(InjectionError):
        c.resolve(Slotted)

    # the bare instance was cached before injection and is handed out as-is
    partial = c.instances[Slotted]
    assert c.resolve(Slotted) is partial


def test_missing_binding_of_a_dependency_propagates_unchanged():
    @component
    class Consumer:
        missing: Annotated[Missing, Inject]

    c = Container()

    with pytest.raises(BindingNotFoundError) as ctx:
        c.resolve(Consumer)

    assert ctx.value.requested is Missing
