from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, ClassVar, Generic, TypeVar

from proxywire.calls import Call, CallResult
from proxywire.exceptions import (
    ProxyWireIndexOutOfRangeError,
    ProxyWireInvalidCallResultError,
    ProxyWireInvalidDecoratorError,
    ProxyWireServiceContractError,
)
from proxywire.methods import MethodIdentity, MethodKind

TService = TypeVar("TService")


class InterceptingDecorator(ABC, Generic[TService]):
    """Base class for decorators whose ``intercept`` receives every contract call.

    Subclass it, implement ``intercept``, and let ``ProxySynthesizer`` generate
    the concrete proxy type. The generated type subclasses the decorator and
    the contract, forwards each contract method to ``_invoke`` with its stable
    dispatch index, and mirrors the decorator's ``__init__``.

    Subclasses that declare their own ``__init__`` must pass the real service
    to ``super().__init__``. Decorator state lives on the same instance as the
    contract members, so keep it in underscore-prefixed attributes; public
    attributes or methods named like a contract member are rejected at
    synthesis.

    Examples:
        .. code-block:: python

            class Timing(InterceptingDecorator[Repository]):
                def intercept(self, call: Call) -> CallResult:
                    started = time.perf_counter()
                    try:
                        return call.proceed()
                    finally:
                        print(call.method.name, time.perf_counter() - started)

            repository = synthesizer.create_proxy(Repository, Timing, SqlRepository())

    """

    _proxy_contract: ClassVar[Any] = None
    _proxy_methods: ClassVar[tuple[MethodIdentity, ...]] = ()

    def __init__(self, service: TService) -> None:
        """Bind the real service and resolve one invoker per dispatch index.

        Args:
            service: Real contract implementation calls are forwarded to.

        Raises:
            ProxyWireInvalidDecoratorError: If the class was not produced by
                ``ProxySynthesizer``.
            ProxyWireServiceContractError: If ``service`` lacks a contract method.

        """
        if self._proxy_contract is None:
            msg = (
                f"'{type(self).__qualname__}' is not a synthesized proxy type. Use "
                "ProxySynthesizer.create_proxy() or generate_proxy_type() to build one."
            )
            raise ProxyWireInvalidDecoratorError(msg)

        self._service = service
        self._invokers: tuple[Callable[..., Any], ...] = tuple(
            _build_invoker(service=service, method=method) for method in self._proxy_methods
        )

    @abstractmethod
    def intercept(self, call: Call) -> CallResult:
        """Intercept one contract call.

        Return ``call.proceed()`` to run the real method, return a substitute
        ``CallResult`` to skip it, or raise to fail the call. ``proceed`` may be
        invoked more than once; each invocation runs the real method again.

        Args:
            call: Method identity, arguments and the ``proceed`` operation.

        """

    def _invoke(
        self,
        method_index: int,
        args: tuple[Any, ...],
        kwargs: Mapping[str, Any],
        type_arguments: tuple[Any, ...] | None,
    ) -> Any:
        """Dispatch one packaged call from a generated forwarding method.

        Args:
            method_index: Stable index of the method in the contract table.
            args: Positional arguments packaged by the forwarding method.
            kwargs: Keyword arguments packaged by the forwarding method.
            type_arguments: Type arguments for generic methods, ``None`` otherwise.

        Raises:
            ProxyWireIndexOutOfRangeError: If ``method_index`` is outside the table.
            ProxyWireGenericArityMismatchError: If ``type_arguments`` does not
                match the method's type parameters.
            ProxyWireInvalidCallResultError: If ``intercept`` returns something
                other than a ``CallResult``.

        """
        methods = self._proxy_methods
        if not 0 <= method_index < len(methods):
            msg = (
                f"Dispatch index {method_index} is out of range for contract "
                f"{self._proxy_contract!r} with {len(methods)} method(s)."
            )
            raise ProxyWireIndexOutOfRangeError(msg)

        method = methods[method_index]
        if type_arguments is not None or method.is_generic:
            method = method.reify(type_arguments or ())

        call = Call(
            method=method,
            args=args,
            kwargs=kwargs,
            _invoker=self._invokers[method_index],
        )
        result = self.intercept(call)
        if not isinstance(result, CallResult):
            msg = (
                f"{type(self).__qualname__}.intercept() must return a CallResult for "
                f"'{method.qualified_name}', got {type(result).__name__}."
            )
            raise ProxyWireInvalidCallResultError(msg)
        return result.return_value


def _build_invoker(*, service: Any, method: MethodIdentity) -> Callable[..., Any]:
    if method.kind is MethodKind.GETTER:
        return functools.partial(getattr, service, method.name)
    if method.kind is MethodKind.SETTER:
        return functools.partial(setattr, service, method.name)
    if method.kind is MethodKind.DELETER:
        return functools.partial(delattr, service, method.name)

    try:
        target = getattr(service, method.name)
    except AttributeError as error:
        msg = (
            f"Service {type(service).__qualname__!r} does not implement contract method "
            f"'{method.qualified_name}'."
        )
        raise ProxyWireServiceContractError(msg) from error
    if not callable(target):
        msg = (
            f"Service attribute {type(service).__qualname__}.{method.name} is not callable "
            f"but the contract declares '{method.qualified_name}' as a method."
        )
        raise ProxyWireServiceContractError(msg)
    return target
