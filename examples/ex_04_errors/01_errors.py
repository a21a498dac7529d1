"""Errors: what synthesis and dispatch reject.

Every proxywire error derives from ``ProxyWireError``. Synthesis errors are
raised by ``generate_proxy_type`` and never cached; dispatch errors are raised
by the proxy before the real method runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from proxywire import (
    Call,
    CallResult,
    InterceptingDecorator,
    ProxySynthesizer,
    ProxyWireError,
    ProxyWireIndexOutOfRangeError,
    ProxyWireInvalidCallResultError,
    ProxyWireInvalidDecoratorError,
    ProxyWireUnsupportedContractShapeError,
)


class Clock(ABC):
    @abstractmethod
    def now(self) -> str: ...


class WithStaticMethod(ABC):
    @staticmethod
    def today() -> str:
        return "monday"


class FixedClock(Clock):
    def now(self) -> str:
        return "12:00"


class Passthrough(InterceptingDecorator[Clock]):
    def intercept(self, call: Call) -> CallResult:
        return call.proceed()


class Careless(InterceptingDecorator[Clock]):
    def intercept(self, call: Call) -> CallResult:
        return call.proceed().return_value  # type: ignore[no-any-return]


class Unfinished(InterceptingDecorator[Clock]):
    pass


def main() -> None:
    synthesizer = ProxySynthesizer()

    try:
        synthesizer.generate_proxy_type(WithStaticMethod, Passthrough)
    except ProxyWireInvalidDecoratorError as error:
        print(type(error).__name__)  # => ProxyWireInvalidDecoratorError

    try:
        synthesizer.generate_proxy_type(Clock, Unfinished)
    except ProxyWireError as error:
        print(error)  # => Decorator 'Unfinished' is abstract (missing: intercept).

    try:
        synthesizer.generate_proxy_type(WithStaticMethod, InterceptingDecorator)
    except ProxyWireInvalidDecoratorError:
        print("base class is abstract")  # => base class is abstract

    class AnyClock(InterceptingDecorator):  # type: ignore[type-arg]
        def intercept(self, call: Call) -> CallResult:
            return call.proceed()

    try:
        synthesizer.generate_proxy_type(WithStaticMethod, AnyClock)
    except ProxyWireUnsupportedContractShapeError:
        print("static methods cannot be forwarded")  # => static methods cannot be forwarded
    print(synthesizer.get_cached(WithStaticMethod, AnyClock))  # => None

    careless = synthesizer.create_proxy(Clock, Careless, FixedClock())
    try:
        careless.now()
    except ProxyWireInvalidCallResultError:
        print("intercept must return CallResult")  # => intercept must return CallResult

    clock = synthesizer.create_proxy(Clock, Passthrough, FixedClock())
    print(clock.now())  # => 12:00
    try:
        clock._invoke(5, (), {}, None)
    except ProxyWireIndexOutOfRangeError:
        print("index 5 is out of range")  # => index 5 is out of range


if __name__ == "__main__":
    main()
