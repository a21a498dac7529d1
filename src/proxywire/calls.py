from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from proxywire.methods import MethodIdentity


@dataclass(frozen=True, slots=True)
class CallResult:
    """Wrap the value produced for one intercepted call.

    A ``CallResult`` with ``return_value=None`` is how methods without a
    return value report completion. Forwarding methods annotated ``-> None``
    discard whatever value the result carries.
    """

    return_value: Any = None


@dataclass(frozen=True, slots=True)
class Call:
    """Describe one intercepted invocation of a contract method.

    ``args`` holds every positional and positional-or-keyword argument (with
    contract defaults filled in) followed by any ``*args`` values.
    ``kwargs`` holds keyword-only arguments and any ``**kwargs`` values.

    A call record is immutable. Use ``with_arguments`` or ``with_argument``
    to derive a record with different arguments and ``proceed`` to run the
    real method.
    """

    method: MethodIdentity
    args: tuple[Any, ...]
    kwargs: Mapping[str, Any]
    _invoker: Callable[..., Any] = field(repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.kwargs, MappingProxyType):
            object.__setattr__(self, "kwargs", MappingProxyType(dict(self.kwargs)))

    def proceed(self) -> CallResult:
        """Run the real method with this call's arguments.

        Every invocation executes the real method again; nothing is memoized.
        Exceptions raised by the real method propagate unchanged.

        Returns:
            The real method's return value wrapped in a ``CallResult``.

        """
        return CallResult(self._invoker(*self.args, **self.kwargs))

    def with_arguments(self, *args: Any, **kwargs: Any) -> Call:
        """Return a copy of this call with all arguments replaced.

        Args:
            *args: New positional arguments.
            **kwargs: New keyword arguments.

        """
        return replace(self, args=args, kwargs=MappingProxyType(kwargs))

    def with_argument(self, name: str, value: Any) -> Call:
        """Return a copy of this call with one named argument replaced.

        Args:
            name: Parameter name from the method signature.
            value: Replacement value.

        Raises:
            KeyError: If ``name`` is not a bound parameter of this call.

        """
        bound = self.bind()
        if name not in bound.arguments:
            msg = f"'{self.method.qualified_name}' has no bound argument named '{name}'."
            raise KeyError(msg)
        bound.arguments[name] = value
        return self.with_arguments(*bound.args, **bound.kwargs)

    def bind(self) -> inspect.BoundArguments:
        """Bind the call's arguments to the method's parameter names."""
        return self.method.signature.bind(*self.args, **self.kwargs)

    @property
    def arguments(self) -> dict[str, Any]:
        """Return arguments keyed by parameter name."""
        return dict(self.bind().arguments)
