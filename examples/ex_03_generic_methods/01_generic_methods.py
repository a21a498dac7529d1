"""Generic methods: each call carries its concrete type arguments.

Type arguments are taken from parameters annotated ``T``, ``type[T]`` or
``T | None``; otherwise the TypeVar bound (or ``Any``) is used. The call's
method identity is reified with them, and bounds are validated before the
real method runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

from proxywire import (
    Call,
    CallResult,
    InterceptingDecorator,
    ProxySynthesizer,
    ProxyWireInvalidGenericTypeArgumentError,
)

T = TypeVar("T")
TNumber = TypeVar("TNumber", bound=float)


class Codec(ABC):
    @abstractmethod
    def encode(self, value: T) -> str: ...

    @abstractmethod
    def decode(self, text: str, kind: type[T]) -> T: ...

    @abstractmethod
    def scale(self, value: TNumber, factor: int) -> TNumber: ...


class TextCodec(Codec):
    def encode(self, value: T) -> str:
        return str(value)

    def decode(self, text: str, kind: type[T]) -> T:
        return kind(text)  # type: ignore[call-arg]

    def scale(self, value: TNumber, factor: int) -> TNumber:
        return value * factor  # type: ignore[return-value]


class Tracing(InterceptingDecorator[Codec]):
    def __init__(self, service: Codec) -> None:
        super().__init__(service)
        self.trace: list[str] = []

    def intercept(self, call: Call) -> CallResult:
        method = call.method
        type_arguments = ", ".join(item.__name__ for item in method.type_arguments)
        self.trace.append(f"{method.name}[{type_arguments}] -> {method.return_annotation.__name__}")
        return call.proceed()


def main() -> None:
    synthesizer = ProxySynthesizer()
    codec = synthesizer.create_proxy(Codec, Tracing, TextCodec())

    print(codec.encode(42))  # => 42
    print(codec.trace[-1])  # => encode[int] -> str
    print(codec.decode("3", int) + 1)  # => 4
    print(codec.trace[-1])  # => decode[int] -> int
    print(codec.scale(1.5, 2))  # => 3.0
    print(codec.trace[-1])  # => scale[float] -> float

    try:
        codec.scale("x", 2)
    except ProxyWireInvalidGenericTypeArgumentError:
        print("rejected str for TNumber")  # => rejected str for TNumber
    print(len(codec.trace))  # => 3


if __name__ == "__main__":
    main()
