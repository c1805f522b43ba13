from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar, overload

from ._provider import normalize_providers
from ._token import describe_token, same_token


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from ._provider import Provider
    from ._token import InjectionToken, Token

    T = TypeVar("T")

    UndoChanges = Callable[[], "UndoChanges"]


class ResolutionError(RuntimeError):
    pass


class CyclicDependencyError(ResolutionError):
    def __init__(self, path: Sequence[Token]) -> None:
        self.path = tuple(path)
        super().__init__("Cyclic dependency: " + " -> ".join(describe_token(t) for t in self.path))


class _NotFound:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_FOUND"


_NOT_FOUND = _NotFound()


class Injector:
    """Provider registry with a per-injector singleton cache.

    - `get`: cached lookup, falls back to the parent's `get`
    - `instance_of`: fresh lookup, never touches the cache
    - `add_providers`: register or override providers, returns an undo callable
    - unresolved lookups return None rather than raising.
    """

    def __init__(self, providers: Iterable[object] = (), parent: Injector | None = None) -> None:
        self._providers: tuple[Provider, ...] = tuple(normalize_providers(providers))
        self._singletons: dict[Any, object] = {}
        self._parent = parent
        self._version = 0
        self._resolving: list[Token] = []
        self._lock = threading.RLock()

    @property
    def parent(self) -> Injector | None:
        return self._parent

    @property
    def providers(self) -> tuple[Provider, ...]:
        return self._providers

    @property
    def version(self) -> int:
        """Incremented on every change to the provider list."""
        return self._version

    def create_child(self, registry: Iterable[object] = ()) -> Injector:
        """Create an injector that resolves locally first, then asks this one."""
        return Injector(registry, parent=self)

    @overload
    def get(self, token: type[T]) -> T | None: ...

    @overload
    def get(self, token: InjectionToken[T]) -> T | None: ...

    @overload
    def get(self, token: str) -> Any: ...

    def get(self, token: Token) -> Any:
        """Return the singleton for `token`, creating and caching it on first use.

        Only providers registered on this injector are cached here. When none
        matches, the lookup is handed to the parent's `get`, so the instance is
        cached by whichever injector owns the provider.
        """
        with self._lock:
            if token in self._singletons:
                logger.debug("Cache hit for %s", describe_token(token))
                return self._singletons[token]

            result = self._from_registry(token)
            if result is not _NOT_FOUND:
                self._singletons[token] = result
                return result

        if self._parent is not None:
            logger.debug("No provider for %s, asking parent", describe_token(token))
            return self._parent.get(token)

        return None

    @overload
    def instance_of(self, token: type[T], ask_parent: bool = True) -> T | None: ...

    @overload
    def instance_of(self, token: InjectionToken[T], ask_parent: bool = True) -> T | None: ...

    @overload
    def instance_of(self, token: str, ask_parent: bool = True) -> Any: ...

    def instance_of(self, token: Token, ask_parent: bool = True) -> Any:
        """Create an unshared instance of `token` from its provider.

        Dependencies are resolved the same way (fresh, parents allowed).
        """
        with self._lock:
            result = self._from_registry(token)

        if result is not _NOT_FOUND:
            return result

        if ask_parent and self._parent is not None:
            logger.debug("No provider for %s, asking parent", describe_token(token))
            return self._parent.instance_of(token, ask_parent)

        return None

    def add_providers(self, registry: Iterable[object], replace: bool = True) -> UndoChanges:
        """Register providers at runtime.

        With `replace`, existing providers for the incoming tokens are removed
        first. Either way the incoming providers are appended last, so they win,
        and cached singletons for their tokens are evicted.

        Example:
          undo = injector.add_providers([Provider("db", use_value=fake_db)])
          ...
          undo()

        Returns a callable restoring the previous provider list. It returns an
        undo for the restore in turn.
        """
        incoming = normalize_providers(registry)

        with self._lock:
            if replace:
                kept = tuple(
                    p for p in self._providers if not any(same_token(p.provide, n.provide) for n in incoming)
                )
            else:
                kept = self._providers

            return self._install(kept + tuple(incoming), [p.provide for p in incoming])

    def _install(self, providers: tuple[Provider, ...], touched: Sequence[Token]) -> UndoChanges:
        snapshot = self._providers
        self._providers = providers
        self._version += 1

        # Incoming tokens always, plus every token whose winning provider changed
        for token in [*touched, *_changed_tokens(snapshot, providers)]:
            if self._singletons.pop(token, _NOT_FOUND) is not _NOT_FOUND:
                logger.debug("Evicted cached %s", describe_token(token))

        logger.debug(
            "Provider list v%d: %d providers (%d touched)", self._version, len(providers), len(touched)
        )

        def undo() -> UndoChanges:
            with self._lock:
                return self._install(snapshot, touched)

        return undo

    def _find_last_registration(self, token: Token) -> Provider | None:
        # last one wins
        for provider in reversed(self._providers):
            if same_token(provider.provide, token):
                return provider
        return None

    def _from_registry(self, token: Token) -> object:
        provider = self._find_last_registration(token)
        if provider is None:
            return _NOT_FOUND

        if any(same_token(t, token) for t in self._resolving):
            raise CyclicDependencyError([*self._resolving, token])

        self._resolving.append(token)
        try:
            deps = [self.instance_of(dep) for dep in provider.deps]
            return self._make(provider, deps)
        finally:
            self._resolving.pop()

    def _make(self, provider: Provider, deps: list[Any]) -> object:
        if provider.has_value:
            return provider.use_value

        if provider.use_class is not None:
            return provider.use_class(*deps)

        if provider.use_factory is not None:
            return _call_factory(provider.use_factory, deps)

        # Fallback: the token is the class
        if inspect.isclass(provider.provide):
            return provider.provide(*deps)

        logger.warning("Provider for %s has no value, class or factory", describe_token(provider.provide))
        return _NOT_FOUND


def _changed_tokens(old: Sequence[Provider], new: Sequence[Provider]) -> list[Token]:
    """Tokens whose last registered provider differs between two provider lists."""
    old_winners = {p.provide: p for p in old}
    new_winners = {p.provide: p for p in new}
    return [
        token
        for token in {**old_winners, **new_winners}
        if old_winners.get(token) is not new_winners.get(token)
    ]


def _call_factory(factory: Callable[..., Any], deps: list[Any]) -> object:
    """Call `factory(deps)` with the dependency list.

    A factory without positional parameters gets the list through its first
    required keyword-only parameter (`def f(*, deps)`), or no argument at all.
    """
    try:
        params = list(inspect.signature(factory).parameters.values())
    except (TypeError, ValueError):
        # builtins without signature metadata
        return factory(deps)

    if any(p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL) for p in params):
        return factory(deps)

    keyword_only = [p for p in params if p.kind is p.KEYWORD_ONLY and p.default is p.empty]
    if keyword_only:
        return factory(**{keyword_only[0].name: deps})

    return factory()


def make_injector(registry: Iterable[object], *, parent: Injector | None = None) -> Injector:
    """Build an injector from providers, provider mappings or bare classes.

    A bare class is registered under itself, with dependencies taken from its
    `deps` class attribute:

      class Service:
          deps = [Repo, "config"]

          def __init__(self, repo, config): ...

      injector = make_injector([Repo, Service, Provider("config", use_value={})])
    """
    return Injector(registry, parent=parent)
