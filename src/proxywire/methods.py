from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, TypeVar

from proxywire._internal.generics import substitute_typevars, validate_typevar_arguments
from proxywire.exceptions import ProxyWireGenericArityMismatchError


class MethodKind(Enum):
    """Kind of contract member a dispatch index refers to."""

    METHOD = "method"
    """A regular public instance method."""

    GETTER = "getter"
    """The getter accessor of a contract property."""

    SETTER = "setter"
    """The setter accessor of a contract property."""

    DELETER = "deleter"
    """The deleter accessor of a contract property."""


@dataclass(frozen=True, slots=True)
class MethodIdentity:
    """Describe one contract method at a stable dispatch index.

    Identities are produced once per contract in a single canonical pass, so
    ``index`` is stable for the lifetime of the process. ``signature`` never
    includes the receiver parameter; its annotations are evaluated and have
    class-level TypeVars of generic contracts already substituted.

    Generic methods keep their method-level TypeVars in ``type_parameters``.
    ``reify`` produces a new identity with concrete ``type_arguments`` and a
    substituted signature.
    """

    index: int
    name: str
    kind: MethodKind
    signature: inspect.Signature
    owner: type[Any]
    type_parameters: tuple[TypeVar, ...] = ()
    type_arguments: tuple[Any, ...] = ()

    @property
    def is_generic(self) -> bool:
        """Return whether the method declares method-level type parameters."""
        return bool(self.type_parameters)

    @property
    def return_annotation(self) -> Any:
        """Return the (possibly reified) return annotation."""
        return self.signature.return_annotation

    @property
    def returns_value(self) -> bool:
        """Return ``False`` for methods annotated ``-> None`` and for setters/deleters."""
        if self.kind in (MethodKind.SETTER, MethodKind.DELETER):
            return False
        return self.signature.return_annotation not in (None, type(None))

    @property
    def qualified_name(self) -> str:
        """Return ``Contract.method`` for diagnostics."""
        return f"{self.owner.__qualname__}.{self.name}"

    def reify(self, type_arguments: tuple[Any, ...]) -> MethodIdentity:
        """Substitute concrete type arguments into the method's type parameters.

        Args:
            type_arguments: Concrete types, one per entry of ``type_parameters``.

        Returns:
            A new identity with ``type_arguments`` set and TypeVars replaced in
            the signature. Non-generic identities reified with no arguments
            are returned unchanged.

        Raises:
            ProxyWireGenericArityMismatchError: If the number of type arguments
                differs from the number of type parameters.
            ProxyWireInvalidGenericTypeArgumentError: If a type argument violates
                its TypeVar bound or constraints.

        """
        type_arguments = tuple(type_arguments)
        if len(type_arguments) != len(self.type_parameters):
            msg = (
                f"Method '{self.qualified_name}' expects {len(self.type_parameters)} type "
                f"argument(s), got {len(type_arguments)}."
            )
            raise ProxyWireGenericArityMismatchError(msg)
        if not type_arguments:
            return self

        mapping = dict(zip(self.type_parameters, type_arguments, strict=True))
        validate_typevar_arguments(mapping)
        parameters = [
            parameter.replace(annotation=substitute_typevars(parameter.annotation, mapping=mapping))
            for parameter in self.signature.parameters.values()
        ]
        signature = self.signature.replace(
            parameters=parameters,
            return_annotation=substitute_typevars(
                self.signature.return_annotation,
                mapping=mapping,
            ),
        )
        return replace(self, signature=signature, type_arguments=type_arguments)

    def __repr__(self) -> str:
        type_arguments = ""
        if self.type_arguments:
            type_arguments = "[" + ", ".join(_type_name(item) for item in self.type_arguments) + "]"
        return (
            f"MethodIdentity({self.index}: {self.qualified_name}{type_arguments}"
            f"{self.signature}, kind={self.kind.value})"
        )


def _type_name(value: Any) -> str:
    if isinstance(value, type):
        return value.__qualname__
    return repr(value)
