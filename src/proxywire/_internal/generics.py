from __future__ import annotations

import sys
import types
from collections.abc import Iterable, Mapping
from typing import Any, ForwardRef, TypeVar, Union, get_args, get_origin

from proxywire.exceptions import ProxyWireInvalidGenericTypeArgumentError


def collect_typevars(values: Iterable[Any]) -> tuple[TypeVar, ...]:
    """Collect TypeVars from type expressions in first-appearance order.

    Args:
        values: Type expressions to walk, usually parameter and return annotations.

    Returns:
        Unique TypeVars in the order they are first encountered.

    """
    found: list[TypeVar] = []
    for value in values:
        _collect_typevars_into(value=value, found=found)
    unique: dict[TypeVar, None] = {}
    for typevar in found:
        unique[typevar] = None
    return tuple(unique)


def substitute_typevars(value: Any, *, mapping: Mapping[TypeVar, Any]) -> Any:
    """Substitute TypeVars in a type expression using a resolved mapping.

    This is used to close class-level TypeVars of generic contracts and to
    reify method-level TypeVars at dispatch time.

    Args:
        value: Type expression template that may contain TypeVars.
        mapping: Mapping from template TypeVars to concrete type arguments.

    Returns:
        The substituted type expression with available TypeVars replaced.

    """
    if not mapping:
        return value

    if isinstance(value, TypeVar):
        return mapping.get(value, value)

    origin = get_origin(value)
    if origin is None:
        return value

    arguments = get_args(value)
    if not arguments:
        return value

    substituted_arguments = tuple(
        substitute_typevars(argument, mapping=mapping) for argument in arguments
    )
    return _rebuild_alias(origin=origin, args=substituted_arguments, fallback=value)


def validate_typevar_arguments(typevar_map: Mapping[TypeVar, Any]) -> None:
    """Validate type arguments against TypeVar constraints and bounds.

    Args:
        typevar_map: Mapping from method TypeVars to candidate concrete arguments.

    Raises:
        ProxyWireInvalidGenericTypeArgumentError: If any argument violates TypeVar
            constraints or bound requirements.

    """
    for typevar, argument in typevar_map.items():
        if not _is_type_argument_valid(typevar=typevar, argument=argument):
            constraints = getattr(typevar, "__constraints__", ())
            bound = getattr(typevar, "__bound__", None)
            if constraints:
                formatted_constraints = ", ".join(repr(item) for item in constraints)
                msg = (
                    f"Generic argument {argument!r} for TypeVar '{typevar.__name__}' must satisfy "
                    f"one of: {formatted_constraints}."
                )
            else:
                msg = (
                    f"Generic argument {argument!r} for TypeVar '{typevar.__name__}' must satisfy "
                    f"bound {bound!r}."
                )
            raise ProxyWireInvalidGenericTypeArgumentError(msg)


def typevar_fallback(typevar: TypeVar) -> Any:
    """Return the type argument used when a TypeVar cannot be inferred from call arguments.

    Args:
        typevar: Method-level TypeVar with no inferable parameter.

    """
    bound = getattr(typevar, "__bound__", None)
    if isinstance(bound, (str, ForwardRef)):
        bound = _resolve_forward_ref(typevar=typevar, reference=bound)
    if bound is not None:
        return bound
    return Any


def optional_inner(annotation: Any) -> Any | None:
    """Return ``T`` for ``T | None`` / ``Optional[T]`` annotations, else ``None``.

    Args:
        annotation: Parameter annotation to inspect.

    """
    if get_origin(annotation) not in (Union, types.UnionType):
        return None
    arguments = [argument for argument in get_args(annotation) if argument is not type(None)]
    if len(arguments) != 1 or len(arguments) == len(get_args(annotation)):
        return None
    return arguments[0]


def type_of_optional(value: Any, fallback: Any) -> Any:
    """Return ``type(value)`` unless ``value`` is ``None``."""
    if value is None:
        return fallback
    return type(value)


def _collect_typevars_into(*, value: Any, found: list[TypeVar]) -> None:
    if isinstance(value, TypeVar):
        found.append(value)
        return

    origin = get_origin(value)
    if origin is not None:
        for argument in get_args(value):
            _collect_typevars_into(value=argument, found=found)
        return

    found.extend(
        parameter
        for parameter in getattr(value, "__parameters__", ())
        if isinstance(parameter, TypeVar)
    )


def _rebuild_alias(*, origin: Any, args: tuple[Any, ...], fallback: Any) -> Any:
    if origin is Union or origin is types.UnionType:
        return Union[args]  # noqa: UP007
    try:
        if len(args) == 1:
            return origin[args[0]]
        return origin[args]
    except TypeError:
        return fallback


def _is_type_argument_valid(*, typevar: TypeVar, argument: Any) -> bool:
    constraints = getattr(typevar, "__constraints__", ())
    if constraints:
        return any(
            _matches_type_constraint(typevar=typevar, argument=argument, constraint=constraint)
            for constraint in constraints
        )
    bound = getattr(typevar, "__bound__", None)
    if bound is None:
        return True
    return _matches_type_constraint(typevar=typevar, argument=argument, constraint=bound)


def _matches_type_constraint(*, typevar: TypeVar, argument: Any, constraint: Any) -> bool:
    # Only a provable violation fails; bounds that cannot be checked pass.
    if isinstance(constraint, (str, ForwardRef)):
        constraint = _resolve_forward_ref(typevar=typevar, reference=constraint)
        if constraint is None:
            return True
    if constraint is Any or argument is Any:
        return True
    argument_type = _origin_or_self(argument)
    constraint_type = _origin_or_self(constraint)
    if isinstance(argument_type, type) and isinstance(constraint_type, type):
        try:
            return issubclass(argument_type, constraint_type)
        except TypeError:
            return True
    return True


def _resolve_forward_ref(*, typevar: TypeVar, reference: str | ForwardRef) -> Any | None:
    name = reference.__forward_arg__ if isinstance(reference, ForwardRef) else reference
    value: Any = sys.modules.get(getattr(typevar, "__module__", ""))
    if value is None:
        return None
    for part in name.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    return value


def _origin_or_self(value: Any) -> Any:
    return get_origin(value) or value
