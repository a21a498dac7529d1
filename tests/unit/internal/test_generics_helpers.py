from __future__ import annotations

from typing import Any, Optional, Protocol, TypeVar, get_args

import pytest

from proxywire._internal.generics import (
    collect_typevars,
    optional_inner,
    substitute_typevars,
    type_of_optional,
    typevar_fallback,
    validate_typevar_arguments,
)
from proxywire.exceptions import ProxyWireInvalidGenericTypeArgumentError

T = TypeVar("T")
U = TypeVar("U")


class _Model:
    pass


class _User(_Model):
    pass


class _Named(Protocol):
    name: str


M = TypeVar("M", bound=_Model)
S = TypeVar("S", str, bytes)
P = TypeVar("P", bound=_Named)
Forward = TypeVar("Forward", bound="_Model")
Dangling = TypeVar("Dangling", bound="_NotDefinedAnywhere")


def test_substitute_typevars_rebuilds_nested_aliases() -> None:
    assert substitute_typevars(T, mapping={T: int}) is int
    assert substitute_typevars(list[T], mapping={T: int}) == list[int]
    assert substitute_typevars(dict[T, list[U]], mapping={T: str, U: int}) == dict[str, list[int]]
    assert substitute_typevars(list[T], mapping={}) == list[T]
    assert substitute_typevars(int, mapping={T: str}) is int


def test_substitute_typevars_handles_unions() -> None:
    substituted = substitute_typevars(T | None, mapping={T: int})

    assert get_args(substituted) == (int, type(None))
    assert get_args(substitute_typevars(Optional[T], mapping={T: str})) == (str, type(None))  # noqa: UP045


def test_collect_typevars_keeps_first_appearance_order() -> None:
    assert collect_typevars([U, dict[T, U], list[T], int]) == (U, T)
    assert collect_typevars([]) == ()


def test_validate_typevar_arguments_accepts_bounds_and_constraints() -> None:
    validate_typevar_arguments({M: _User, S: bytes, T: object, U: Any})


def test_validate_typevar_arguments_rejects_bound_violation() -> None:
    with pytest.raises(ProxyWireInvalidGenericTypeArgumentError, match="bound"):
        validate_typevar_arguments({M: int})


def test_validate_typevar_arguments_accepts_uncheckable_bounds() -> None:
    validate_typevar_arguments({P: int, Dangling: int})


def test_validate_typevar_arguments_resolves_string_bounds() -> None:
    validate_typevar_arguments({Forward: _User})

    with pytest.raises(ProxyWireInvalidGenericTypeArgumentError, match="bound"):
        validate_typevar_arguments({Forward: int})


def test_validate_typevar_arguments_rejects_constraint_violation() -> None:
    with pytest.raises(ProxyWireInvalidGenericTypeArgumentError, match="one of"):
        validate_typevar_arguments({S: int})


def test_typevar_fallback_prefers_bound() -> None:
    assert typevar_fallback(M) is _Model
    assert typevar_fallback(T) is Any
    assert typevar_fallback(Forward) is _Model
    assert typevar_fallback(Dangling) is Any


def test_optional_inner() -> None:
    assert optional_inner(T | None) is T
    assert optional_inner(Optional[T]) is T  # noqa: UP045
    assert optional_inner(T) is None
    assert optional_inner(T | int) is None
    assert optional_inner(int | str | None) is None


def test_type_of_optional_uses_fallback_for_none() -> None:
    assert type_of_optional(3, Any) is int
    assert type_of_optional(None, _Model) is _Model
