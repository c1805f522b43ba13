from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar


T = TypeVar("T")

if TYPE_CHECKING:
    # Names compare by value, markers and classes by identity
    Token = str | "InjectionToken[Any]" | type


class InjectionToken(Generic[T]):
    """Opaque lookup key for values that have no class of their own.

    Two tokens are never equal unless they are the same object, even when they
    share a description:

      API_URL = InjectionToken[str]("api url")
      injector = make_injector([Provider(API_URL, use_value="https://example.org")])
    """

    __slots__ = ("description",)

    def __init__(self, description: str) -> None:
        self.description = description

    def __repr__(self) -> str:
        return f"InjectionToken({self.description!r})"


def same_token(a: object, b: object) -> bool:
    """Names match by value; markers and classes only match themselves."""
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def describe_token(token: object) -> str:
    if isinstance(token, type):
        return token.__name__
    return repr(token)
