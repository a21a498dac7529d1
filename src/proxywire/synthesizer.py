from __future__ import annotations

import contextlib
import dis
import inspect
import logging
import re
import threading
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, cast, get_args, get_origin

from proxywire._internal.contracts import (
    ConstructorShape,
    ContractShape,
    inspect_constructor,
    inspect_contract,
)
from proxywire._internal.templates.renderer import ProxyModule, ProxyTemplateRenderer
from proxywire._internal.type_checks import is_runtime_class, runtime_origin
from proxywire.decorator import InterceptingDecorator
from proxywire.defaults import DEFAULT_LOCK_MODE, DEFAULT_PROXY_MODULE, PROXY_CLASS_NAME_TEMPLATE
from proxywire.exceptions import (
    ProxyWireInvalidDecoratorError,
    ProxyWireUnsupportedContractShapeError,
)
from proxywire.lock_mode import LockMode
from proxywire.methods import MethodKind

if TYPE_CHECKING:
    from typing_extensions import Self

T = TypeVar("T")

logger = logging.getLogger(__name__)
_RESERVED_NAMES = frozenset(
    name for name in dir(InterceptingDecorator) if not name.startswith("_")
)


class ProxySynthesizer:
    """Generate, cache and instantiate intercepting proxy types.

    A proxy type is generated at most once per ``(contract, decorator)`` key
    and kept for the lifetime of the synthesizer. Own one synthesizer per
    process (or per subsystem) and share it; the cache is not global.

    Examples:
        .. code-block:: python

            synthesizer = ProxySynthesizer()

            proxy_type = synthesizer.generate_proxy_type(Repository, Logging)
            repository = synthesizer.create_proxy(Repository, Logging, SqlRepository())

    """

    def __init__(
        self,
        *,
        lock_mode: LockMode = DEFAULT_LOCK_MODE,
        module_name: str = DEFAULT_PROXY_MODULE,
    ) -> None:
        """Initialize an empty synthesizer.

        Args:
            lock_mode: Locking strategy guarding first-time synthesis of a key.
                ``LockMode.THREAD`` serializes concurrent first requests so each
                key is synthesized once; ``LockMode.NONE`` skips locking.
            module_name: Value used as ``__module__`` of generated proxy types.

        """
        self._lock_mode = lock_mode
        self._module_name = module_name
        self._template_renderer = ProxyTemplateRenderer()
        self._cache: dict[tuple[Any, type[Any]], type[Any]] = {}
        self._lock: contextlib.AbstractContextManager[Any] = (
            threading.Lock() if lock_mode is LockMode.THREAD else contextlib.nullcontext()
        )

    def generate_proxy_type(self, contract: Any, decorator: type[Any]) -> type[Any]:
        """Return the proxy type for ``contract`` dispatching through ``decorator``.

        The first request for a key generates the type; later requests return
        the identical cached object. Failed synthesis is never cached.

        Args:
            contract: Contract class, ``typing.Protocol`` or generic alias such as
                ``Repository[User]``.
            decorator: Concrete ``InterceptingDecorator`` subclass.

        Raises:
            ProxyWireInvalidDecoratorError: If ``decorator`` cannot back a proxy
                for ``contract``.
            ProxyWireUnsupportedContractShapeError: If a contract member cannot be
                forwarded.
            ProxyWireMissingConstructorError: If the decorator has no usable
                ``__init__``.

        """
        key = (contract, decorator)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Proxy type cache hit for %r via %s", contract, decorator.__qualname__)
            return cached

        with self._lock:
            cached = self._cache.get(key)
            if cached is None:
                cached = self._synthesize(contract=contract, decorator=decorator)
                self._cache[key] = cached
        return cached

    def create_proxy(
        self,
        contract: type[T] | Any,
        decorator: type[Any],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Synthesize (or reuse) the proxy type and instantiate it.

        Synthesis errors and errors raised by the decorator constructor
        propagate unchanged.

        Args:
            contract: Contract the proxy implements.
            decorator: Concrete ``InterceptingDecorator`` subclass.
            *args: Positional arguments for the decorator constructor, usually
                starting with the real service.
            **kwargs: Keyword arguments for the decorator constructor.

        """
        proxy_type = self.generate_proxy_type(contract, decorator)
        return cast("T", proxy_type(*args, **kwargs))

    def get_cached(self, contract: Any, decorator: type[Any]) -> type[Any] | None:
        """Return the cached proxy type for a key without synthesizing it.

        Args:
            contract: Contract part of the cache key.
            decorator: Decorator part of the cache key.

        """
        return self._cache.get((contract, decorator))

    def clear(self) -> None:
        """Drop every cached proxy type.

        Proxy instances already created keep working; later requests generate
        new types.
        """
        with self._lock:
            self._cache.clear()

    def close(self) -> None:
        """Dispose the synthesizer by clearing its cache."""
        self.clear()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _synthesize(self, *, contract: Any, decorator: type[Any]) -> type[Any]:
        self._validate_decorator(contract=contract, decorator=decorator)
        contract_shape = inspect_contract(contract, reserved_names=_RESERVED_NAMES)
        _validate_member_names(contract_shape=contract_shape, decorator=decorator)
        constructor = inspect_constructor(decorator)
        class_name = _class_name(decorator=decorator, contract_shape=contract_shape)

        module = self._template_renderer.get_proxy_code(
            class_name=class_name,
            contract=contract_shape,
            decorator=decorator,
            constructor=constructor,
        )
        proxy_type = self._execute_module(
            module=module,
            contract_shape=contract_shape,
            decorator=decorator,
        )
        _finalize_proxy_type(
            proxy_type=proxy_type,
            module=module,
            contract_shape=contract_shape,
            constructor=constructor,
        )
        logger.debug(
            "Synthesized %s.%s for %r (lock_mode=%s)",
            self._module_name,
            class_name,
            contract,
            self._lock_mode.value,
        )
        return proxy_type

    def _validate_decorator(self, *, contract: Any, decorator: type[Any]) -> None:
        if not is_runtime_class(decorator) or not issubclass(decorator, InterceptingDecorator):
            msg = f"Decorator must be an InterceptingDecorator subclass, got {decorator!r}."
            raise ProxyWireInvalidDecoratorError(msg)
        if inspect.isabstract(decorator):
            abstract = ", ".join(sorted(getattr(decorator, "__abstractmethods__", ())))
            msg = f"Decorator '{decorator.__qualname__}' is abstract (missing: {abstract})."
            raise ProxyWireInvalidDecoratorError(msg)
        if decorator._proxy_contract is not None:
            msg = f"'{decorator.__qualname__}' is already a synthesized proxy type."
            raise ProxyWireInvalidDecoratorError(msg)

        declared = _declared_service_type(decorator)
        if declared is not None and declared not in (contract, runtime_origin(contract)):
            msg = (
                f"Decorator '{decorator.__qualname__}' intercepts {declared!r} and cannot "
                f"proxy {contract!r}."
            )
            raise ProxyWireInvalidDecoratorError(msg)

    def _execute_module(
        self,
        *,
        module: ProxyModule,
        contract_shape: ContractShape,
        decorator: type[Any],
    ) -> type[Any]:
        namespace: dict[str, Any] = {
            "__name__": self._module_name,
            "_proxywire_decorator": decorator,
            "_proxywire_contract_class": contract_shape.origin,
            "_proxywire_contract": contract_shape.contract,
            "_proxywire_methods": contract_shape.methods,
            **module.namespace,
        }
        filename = f"<proxywire {self._module_name}.{module.class_name}>"
        try:
            exec(compile(module.code, filename, "exec"), namespace)  # noqa: S102
        except TypeError as error:
            msg = (
                f"Cannot combine decorator '{decorator.__qualname__}' with contract "
                f"{contract_shape.contract!r}: {error}"
            )
            raise ProxyWireUnsupportedContractShapeError(msg) from error
        return cast("type[Any]", namespace[module.class_name])


def _declared_service_type(decorator: type[Any]) -> Any | None:
    for klass in decorator.__mro__:
        for base in vars(klass).get("__orig_bases__", ()):
            if get_origin(base) is not InterceptingDecorator:
                continue
            arguments = get_args(base)
            if not arguments or arguments[0] is Any or isinstance(arguments[0], TypeVar):
                return None
            return arguments[0]
    return None


def _validate_member_names(*, contract_shape: ContractShape, decorator: type[Any]) -> None:
    clashes = sorted(
        {method.name for method in contract_shape.methods} & _decorator_member_names(decorator),
    )
    if clashes:
        msg = (
            f"Decorator '{decorator.__qualname__}' defines {', '.join(clashes)}, which "
            f"clashes with members of contract {contract_shape.contract!r}. Keep decorator "
            "state in underscore-prefixed attributes."
        )
        raise ProxyWireInvalidDecoratorError(msg)


def _decorator_member_names(decorator: type[Any]) -> set[str]:
    names: set[str] = set()
    for klass in decorator.__mro__:
        if klass is InterceptingDecorator:
            break
        for name, member in vars(klass).items():
            if not name.startswith("_"):
                names.add(name)
            if inspect.isfunction(member):
                names.update(_assigned_attribute_names(member))
    return names


def _assigned_attribute_names(function: Any) -> set[str]:
    # Public names stored on the receiver, e.g. ``self.retries = retries``.
    code = function.__code__
    if not code.co_argcount:
        return set()
    receiver = code.co_varnames[0]
    names: set[str] = set()
    previous: dis.Instruction | None = None
    for instruction in dis.get_instructions(code):
        if (
            instruction.opname == "STORE_ATTR"
            and previous is not None
            and previous.opname.startswith("LOAD_FAST")
            and _loads_receiver(previous.argval, receiver)
            and not instruction.argval.startswith("_")
        ):
            names.add(instruction.argval)
        previous = instruction
    return names


def _loads_receiver(argval: Any, receiver: str) -> bool:
    if isinstance(argval, tuple):
        return bool(argval) and argval[-1] == receiver
    return argval == receiver


def _class_name(*, decorator: type[Any], contract_shape: ContractShape) -> str:
    name = PROXY_CLASS_NAME_TEMPLATE.format(
        decorator=decorator.__name__,
        contract=contract_shape.origin.__name__,
    )
    return re.sub(r"\W", "_", name)


def _finalize_proxy_type(
    *,
    proxy_type: type[Any],
    module: ProxyModule,
    contract_shape: ContractShape,
    constructor: ConstructorShape,
) -> None:
    proxy_type._proxy_source = module.code  # type: ignore[attr-defined]  # noqa: SLF001

    init = vars(proxy_type)["__init__"]
    init.__doc__ = constructor.function.__doc__
    init.__signature__ = _with_receiver(constructor.signature, constructor.receiver_name)

    for method in contract_shape.methods:
        member = vars(proxy_type)[method.name]
        if method.kind is MethodKind.METHOD:
            function = member
        else:
            function = getattr(member, _ACCESSOR_ATTRIBUTES[method.kind])
            function.__name__ = method.name
        function.__qualname__ = f"{proxy_type.__qualname__}.{method.name}"
        function.__doc__ = _contract_doc(contract_shape=contract_shape, method_name=method.name)
        function.__signature__ = _with_receiver(
            method.signature,
            contract_shape.receiver_names[method.index],
        )


_ACCESSOR_ATTRIBUTES: dict[MethodKind, str] = {
    MethodKind.GETTER: "fget",
    MethodKind.SETTER: "fset",
    MethodKind.DELETER: "fdel",
}


def _with_receiver(signature: inspect.Signature, receiver_name: str) -> inspect.Signature:
    kind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    if any(
        parameter.kind is inspect.Parameter.POSITIONAL_ONLY
        for parameter in signature.parameters.values()
    ):
        kind = inspect.Parameter.POSITIONAL_ONLY
    receiver = inspect.Parameter(receiver_name, kind)
    return signature.replace(parameters=[receiver, *signature.parameters.values()])


def _contract_doc(*, contract_shape: ContractShape, method_name: str) -> str | None:
    for klass in contract_shape.origin.__mro__:
        if method_name in vars(klass):
            return getattr(vars(klass)[method_name], "__doc__", None)
    return None
