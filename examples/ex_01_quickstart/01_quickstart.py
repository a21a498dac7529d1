"""Quickstart: wrap a service in a generated intercepting proxy.

Declare a contract, implement it, write one ``intercept`` method, and let
proxywire generate the proxy type that forwards every contract call to it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from proxywire import Call, CallResult, InterceptingDecorator, ProxySynthesizer


class Greeter(ABC):
    @abstractmethod
    def greet(self, name: str, punctuation: str = "!") -> str: ...


class EnglishGreeter(Greeter):
    def greet(self, name: str, punctuation: str = "!") -> str:
        return f"Hello, {name}{punctuation}"


class Logging(InterceptingDecorator[Greeter]):
    def __init__(self, service: Greeter) -> None:
        super().__init__(service)
        self.log: list[str] = []

    def intercept(self, call: Call) -> CallResult:
        self.log.append(f"{call.method.name}{call.args}")
        return call.proceed()


def main() -> None:
    synthesizer = ProxySynthesizer()
    greeter = synthesizer.create_proxy(Greeter, Logging, EnglishGreeter())

    print(greeter.greet("Ada"))  # => Hello, Ada!
    print(greeter.greet("Bob", punctuation="?"))  # => Hello, Bob?
    print(greeter.log)  # => ["greet('Ada', '!')", "greet('Bob', '?')"]

    proxy_type = synthesizer.generate_proxy_type(Greeter, Logging)
    print(proxy_type is type(greeter))  # => True
    print(isinstance(greeter, Greeter))  # => True


if __name__ == "__main__":
    main()
