"""Hierarchical dependency injection.

This package resolves lookup tokens (strings, `InjectionToken` markers or classes)
into instances using a list of declarative providers. Each injector caches the
singletons it creates and hands unresolved lookups to an optional parent.

Exports:
- `make_injector`: Build an injector from providers, provider mappings or bare classes.
- `Injector`: Provider registry with `get`, `instance_of` and `add_providers` (with undo).
- `Provider`: Recipe bound to a token (`use_value`, `use_class` or `use_factory`, plus `deps`).
- `InjectionToken`: Typed marker for values that have no class of their own.
- `ResolutionError` / `CyclicDependencyError`: Raised when a dependency graph loops.
"""

from ._injector import CyclicDependencyError, Injector, ResolutionError, make_injector
from ._provider import Provider
from ._token import InjectionToken


__all__ = [
    "CyclicDependencyError",
    "InjectionToken",
    "Injector",
    "Provider",
    "ResolutionError",
    "make_injector",
]
