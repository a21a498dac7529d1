class ProxyWireError(Exception):
    """Represent a base class for all proxywire-specific failures.

    Catch this type when you want to handle any proxywire error path without
    matching each concrete exception class individually. Failures raised by a
    real service method are never wrapped in this type.
    """


class ProxyWireUnsupportedContractShapeError(ProxyWireError):
    """Signal a contract member that cannot be represented by a forwarding method.

    Raised by ``ProxySynthesizer.generate_proxy_type`` before any class is
    created, for example for ``staticmethod``/``classmethod`` members, public
    attributes that are neither functions nor properties, methods without a
    receiver parameter, or method names reserved by ``InterceptingDecorator``.

    Typical fixes include turning static members into instance methods,
    renaming members that clash with ``intercept``, or moving helpers to
    private (underscore-prefixed) names.
    """


class ProxyWireMissingConstructorError(ProxyWireError):
    """Signal a decorator type without a usable ``__init__``.

    Raised during synthesis when the decorator's ``__init__`` is not a plain
    Python function, so no forwarding constructor can be generated from it.

    Typical fix is declaring ``__init__`` as a regular method that calls
    ``super().__init__(service)``.
    """


class ProxyWireInvalidDecoratorError(ProxyWireError):
    """Signal a decorator type that cannot back a proxy for the requested contract.

    Raised when the decorator is not a concrete ``InterceptingDecorator``
    subclass, when it is parameterised over a different contract, or when a
    decorator class is instantiated directly instead of through a synthesized
    proxy type.
    """


class ProxyWireGenericArityMismatchError(ProxyWireError):
    """Signal a wrong number of type arguments for a generic contract method.

    Raised by dispatch when the supplied type arguments do not match the
    number of type parameters of the target method. The real method is not
    executed.
    """


class ProxyWireInvalidGenericTypeArgumentError(ProxyWireError):
    """Signal a type argument that violates a method TypeVar bound or constraints.

    Raised while reifying a generic contract method, before the interceptor
    runs.

    Typical fixes include passing arguments compatible with the TypeVar bound
    or relaxing the TypeVar declaration on the contract.
    """


class ProxyWireIndexOutOfRangeError(ProxyWireError):
    """Signal a dispatch index that was not produced for the proxy's contract.

    Generated forwarding methods only ever pass indices of their own
    contract, so this error points at a defect rather than a usage mistake.
    """


class ProxyWireServiceContractError(ProxyWireError):
    """Signal a real service instance that does not implement a contract method.

    Raised when a proxy is constructed around a service lacking one of the
    contract's methods.
    """


class ProxyWireInvalidCallResultError(ProxyWireError):
    """Signal an ``intercept`` implementation that did not return a ``CallResult``.

    Typical fix is returning ``call.proceed()`` or ``CallResult(value)`` from
    ``intercept``.
    """
