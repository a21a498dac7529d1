from proxywire.calls import Call, CallResult
from proxywire.decorator import InterceptingDecorator
from proxywire.exceptions import (
    ProxyWireError,
    ProxyWireGenericArityMismatchError,
    ProxyWireIndexOutOfRangeError,
    ProxyWireInvalidCallResultError,
    ProxyWireInvalidDecoratorError,
    ProxyWireInvalidGenericTypeArgumentError,
    ProxyWireMissingConstructorError,
    ProxyWireServiceContractError,
    ProxyWireUnsupportedContractShapeError,
)
from proxywire.lock_mode import LockMode
from proxywire.methods import MethodIdentity, MethodKind
from proxywire.synthesizer import ProxySynthesizer

__all__ = [
    "Call",
    "CallResult",
    "InterceptingDecorator",
    "LockMode",
    "MethodIdentity",
    "MethodKind",
    "ProxySynthesizer",
    "ProxyWireError",
    "ProxyWireGenericArityMismatchError",
    "ProxyWireIndexOutOfRangeError",
    "ProxyWireInvalidCallResultError",
    "ProxyWireInvalidDecoratorError",
    "ProxyWireInvalidGenericTypeArgumentError",
    "ProxyWireMissingConstructorError",
    "ProxyWireServiceContractError",
    "ProxyWireUnsupportedContractShapeError",
]
