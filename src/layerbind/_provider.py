from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from ._token import Token


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()

_PROVIDER_FIELDS = frozenset({"provide", "use_value", "use_class", "use_factory", "deps"})


@dataclass(frozen=True)
class Provider:
    """Recipe bound to a token.

    At most one strategy is expected. When several are set, the first one in
    this order is used: `use_value`, `use_class`, `use_factory`, then `provide`
    itself when it is a class.

    Example:
      Provider("port", use_value=8080)
      Provider(Repo, use_class=SqlRepo, deps=[Database])
      Provider("client", use_factory=lambda deps: Client(*deps), deps=["port"])

    """

    provide: Token
    use_value: object = UNSET
    use_class: type | None = None
    use_factory: Callable[..., Any] | None = None
    deps: Sequence[Token] = field(default=())

    def __post_init__(self) -> None:
        # Accept any iterable of tokens but keep the dataclass immutable
        object.__setattr__(self, "deps", tuple(self.deps))

    @property
    def has_value(self) -> bool:
        return self.use_value is not UNSET


def make_class_provider(cls: type) -> Provider:
    """Bare class: the class is its own token and its own strategy.

    Dependencies come from a `deps` class attribute, if declared.
    """
    return Provider(provide=cls, use_class=cls, deps=tuple(getattr(cls, "deps", ())))


def normalize_provider(entry: object) -> Provider:
    if isinstance(entry, Provider):
        return entry

    if isinstance(entry, Mapping) and "provide" in entry:
        unknown = set(entry) - _PROVIDER_FIELDS
        if unknown:
            msg = f"Unknown provider fields: {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        return Provider(**entry)

    if inspect.isclass(entry):
        return make_class_provider(entry)

    msg = f"Expected a Provider, a provider mapping or a class, got {entry!r}"
    raise TypeError(msg)


def normalize_providers(registry: Iterable[object]) -> list[Provider]:
    return [normalize_provider(entry) for entry in registry]
