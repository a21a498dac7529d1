from __future__ import annotations

import inspect
import keyword
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, get_args

from proxywire._internal.generics import collect_typevars, substitute_typevars
from proxywire._internal.type_checks import runtime_origin
from proxywire.exceptions import (
    ProxyWireMissingConstructorError,
    ProxyWireUnsupportedContractShapeError,
)
from proxywire.methods import MethodIdentity, MethodKind

logger = logging.getLogger(__name__)

GENERATED_NAME_PREFIX = "_proxywire_"
_SKIPPED_BASES: tuple[Any, ...] = (object, Generic, Protocol)
_PROPERTY_ACCESSORS: tuple[tuple[str, MethodKind], ...] = (
    ("fget", MethodKind.GETTER),
    ("fset", MethodKind.SETTER),
    ("fdel", MethodKind.DELETER),
)
_RECEIVER_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True, slots=True)
class ContractShape:
    """Inspected contract: runtime class and method table."""

    contract: Any
    origin: type[Any]
    methods: tuple[MethodIdentity, ...]
    receiver_names: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ConstructorShape:
    """Inspected decorator ``__init__`` used as the forwarding constructor template."""

    function: Callable[..., Any]
    signature: inspect.Signature
    receiver_name: str


def inspect_contract(contract: Any, *, reserved_names: frozenset[str]) -> ContractShape:
    """Resolve the ordered method identity table of a contract.

    This is the single canonical enumeration shared by code generation and
    dispatch: generated forwarding methods are rendered against the indices
    produced here, and proxies dispatch through the same table.

    Args:
        contract: Contract class or generic alias of a contract class.
        reserved_names: Public attribute names of the dispatcher base that a
            contract member must not shadow.

    Raises:
        ProxyWireUnsupportedContractShapeError: If the contract is not a class
            or any public member cannot be represented by a forwarding method.

    """
    origin = runtime_origin(contract)
    if origin is None:
        msg = f"Contract must be a class or a generic alias of a class, got {contract!r}."
        raise ProxyWireUnsupportedContractShapeError(msg)

    typevar_map = _class_typevar_map(contract=contract, origin=origin)
    class_parameters = frozenset(getattr(origin, "__parameters__", ()))

    methods: list[MethodIdentity] = []
    receiver_names: list[str] = []
    for name, member in _iter_public_members(origin):
        if not name.isidentifier() or keyword.iskeyword(name):
            msg = f"Contract member name {name!r} on {origin.__qualname__!r} is not an identifier."
            raise ProxyWireUnsupportedContractShapeError(msg)
        if name in reserved_names:
            msg = (
                f"Contract member '{origin.__qualname__}.{name}' clashes with a name reserved "
                "by InterceptingDecorator."
            )
            raise ProxyWireUnsupportedContractShapeError(msg)

        for kind, function in _member_functions(origin=origin, name=name, member=member):
            signature, receiver_name = _method_signature(
                origin=origin,
                name=name,
                function=function,
                typevar_map=typevar_map,
            )
            type_parameters = _method_type_parameters(
                function=function,
                signature=signature,
                class_parameters=class_parameters,
            )
            methods.append(
                MethodIdentity(
                    index=len(methods),
                    name=name,
                    kind=kind,
                    signature=signature,
                    owner=origin,
                    type_parameters=type_parameters,
                ),
            )
            receiver_names.append(receiver_name)

    return ContractShape(
        contract=contract,
        origin=origin,
        methods=tuple(methods),
        receiver_names=tuple(receiver_names),
    )


def inspect_constructor(decorator: type[Any]) -> ConstructorShape:
    """Return the decorator ``__init__`` shape the forwarding constructor mirrors.

    Args:
        decorator: Decorator class whose constructor is forwarded.

    Raises:
        ProxyWireMissingConstructorError: If ``__init__`` is not a Python function
            with an introspectable signature and a receiver parameter.

    """
    function = getattr(decorator, "__init__", None)
    if not inspect.isfunction(function):
        msg = f"Decorator '{decorator.__qualname__}' does not declare a usable __init__."
        raise ProxyWireMissingConstructorError(msg)

    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError) as error:
        msg = f"Cannot inspect __init__ signature of decorator '{decorator.__qualname__}'."
        raise ProxyWireMissingConstructorError(msg) from error

    parameters = list(signature.parameters.values())
    if not parameters or parameters[0].kind not in _RECEIVER_KINDS:
        msg = f"Decorator '{decorator.__qualname__}' __init__ has no receiver parameter."
        raise ProxyWireMissingConstructorError(msg)

    _reject_generated_names(
        qualified_name=f"{decorator.__qualname__}.__init__",
        parameters=parameters,
        error_type=ProxyWireMissingConstructorError,
    )
    return ConstructorShape(
        function=function,
        signature=signature.replace(parameters=parameters[1:]),
        receiver_name=parameters[0].name,
    )


def _class_typevar_map(*, contract: Any, origin: type[Any]) -> dict[TypeVar, Any]:
    if contract is origin:
        return {}
    parameters = tuple(getattr(origin, "__parameters__", ()))
    arguments = get_args(contract)
    if len(parameters) != len(arguments):
        msg = (
            f"Contract alias {contract!r} supplies {len(arguments)} type argument(s) for "
            f"{len(parameters)} class type parameter(s)."
        )
        raise ProxyWireUnsupportedContractShapeError(msg)
    return {
        parameter: argument
        for parameter, argument in zip(parameters, arguments, strict=True)
        if isinstance(parameter, TypeVar)
    }


def _iter_public_members(origin: type[Any]) -> Iterator[tuple[str, Any]]:
    members: dict[str, Any] = {}
    for klass in reversed(origin.__mro__):
        if klass in _SKIPPED_BASES:
            continue
        for name, member in vars(klass).items():
            if name.startswith("_"):
                continue
            members[name] = member
    yield from members.items()


def _member_functions(
    *,
    origin: type[Any],
    name: str,
    member: Any,
) -> Iterator[tuple[MethodKind, Callable[..., Any]]]:
    qualified_name = f"{origin.__qualname__}.{name}"
    if isinstance(member, (staticmethod, classmethod)):
        msg = f"Contract member '{qualified_name}' is a static or class method."
        raise ProxyWireUnsupportedContractShapeError(msg)

    if isinstance(member, property):
        for attribute, kind in _PROPERTY_ACCESSORS:
            accessor = getattr(member, attribute)
            if accessor is None:
                continue
            if not inspect.isfunction(accessor):
                msg = f"Accessor '{attribute}' of property '{qualified_name}' is not a function."
                raise ProxyWireUnsupportedContractShapeError(msg)
            yield kind, accessor
        return

    if not inspect.isfunction(member):
        msg = (
            f"Contract member '{qualified_name}' is neither an instance method nor a property "
            f"(got {type(member).__name__})."
        )
        raise ProxyWireUnsupportedContractShapeError(msg)
    yield MethodKind.METHOD, member


def _method_signature(
    *,
    origin: type[Any],
    name: str,
    function: Callable[..., Any],
    typevar_map: dict[TypeVar, Any],
) -> tuple[inspect.Signature, str]:
    qualified_name = f"{origin.__qualname__}.{name}"
    signature = _evaluated_signature(function=function, qualified_name=qualified_name)
    parameters = list(signature.parameters.values())
    if not parameters or parameters[0].kind not in _RECEIVER_KINDS:
        msg = f"Contract method '{qualified_name}' has no receiver parameter."
        raise ProxyWireUnsupportedContractShapeError(msg)

    _reject_generated_names(
        qualified_name=qualified_name,
        parameters=parameters,
        error_type=ProxyWireUnsupportedContractShapeError,
    )
    receiver_name = parameters[0].name
    parameters = [
        parameter.replace(
            annotation=substitute_typevars(parameter.annotation, mapping=typevar_map),
        )
        for parameter in parameters[1:]
    ]
    return (
        signature.replace(
            parameters=parameters,
            return_annotation=substitute_typevars(
                signature.return_annotation,
                mapping=typevar_map,
            ),
        ),
        receiver_name,
    )


def _evaluated_signature(
    *,
    function: Callable[..., Any],
    qualified_name: str,
) -> inspect.Signature:
    try:
        return inspect.signature(function, eval_str=True)
    except NameError as error:
        logger.debug(
            "Keeping unevaluated annotations for '%s': %s",
            qualified_name,
            error,
        )
    except (TypeError, ValueError) as error:
        msg = f"Cannot inspect signature of contract method '{qualified_name}'."
        raise ProxyWireUnsupportedContractShapeError(msg) from error
    return inspect.signature(function)


def _method_type_parameters(
    *,
    function: Callable[..., Any],
    signature: inspect.Signature,
    class_parameters: frozenset[Any],
) -> tuple[TypeVar, ...]:
    declared = tuple(
        parameter
        for parameter in getattr(function, "__type_params__", ())
        if isinstance(parameter, TypeVar)
    )
    if declared:
        return declared

    annotations = [parameter.annotation for parameter in signature.parameters.values()]
    annotations.append(signature.return_annotation)
    return tuple(
        typevar for typevar in collect_typevars(annotations) if typevar not in class_parameters
    )


def _reject_generated_names(
    *,
    qualified_name: str,
    parameters: list[inspect.Parameter],
    error_type: type[Exception],
) -> None:
    for parameter in parameters:
        if parameter.name.startswith(GENERATED_NAME_PREFIX):
            msg = (
                f"Parameter '{parameter.name}' of '{qualified_name}' uses the prefix "
                f"'{GENERATED_NAME_PREFIX}' reserved for generated code."
            )
            raise error_type(msg)
