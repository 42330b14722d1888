"""Minimal field-injection container.

This package wires object graphs from a fixed table of abstraction -> implementation
bindings. Every concrete class gets at most one instance per container, and
dependencies are assigned to marked fields after default construction.

Exports:
- `Container`: resolves abstractions and concrete classes to cached singletons.
- `component`: class decorator marking a class as injectable.
- `Inject`: field marker, used as ``Annotated[Dependency, Inject]``.
- `AnnotationInspector` / `RegistryInspector`: discover injectable classes and their
  fields either from the markers above or from explicit registration.
- `ResolutionError` and its subclasses: `BindingNotFoundError`, `UnsupportedTypeError`,
  `ConstructionError`, `InjectionError`, `CyclicDependencyError`.
"""

from ._container import Container
from ._errors import (
    BindingNotFoundError,
    ConstructionError,
    CyclicDependencyError,
    InjectionError,
    ResolutionError,
    UnsupportedTypeError,
)
from ._inspection import (
    AnnotationInspector,
    Inject,
    InjectionPoint,
    Inspector,
    RegistryInspector,
    component,
)


__all__ = [
    "AnnotationInspector",
    "BindingNotFoundError",
    "ConstructionError",
    "Container",
    "CyclicDependencyError",
    "Inject",
    "InjectionError",
    "InjectionPoint",
    "Inspector",
    "RegistryInspector",
    "ResolutionError",
    "UnsupportedTypeError",
    "component",
]
