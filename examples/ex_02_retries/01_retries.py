"""Retries: call ``proceed`` more than once.

Each ``proceed`` runs the real method again, so a decorator can retry
flaky calls. Returning a substitute ``CallResult`` skips the real method.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from proxywire import Call, CallResult, InterceptingDecorator, ProxySynthesizer


class Inventory(ABC):
    @abstractmethod
    def count(self, sku: str) -> int: ...


class FlakyInventory(Inventory):
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.attempts = 0

    def count(self, sku: str) -> int:
        self.attempts += 1
        if self.attempts <= self.failures:
            msg = f"inventory unavailable (attempt {self.attempts})"
            raise ConnectionError(msg)
        return 7


class Retrying(InterceptingDecorator[Inventory]):
    def __init__(self, service: Inventory, *, attempts: int) -> None:
        super().__init__(service)
        self.attempts = attempts

    def intercept(self, call: Call) -> CallResult:
        for attempt in range(1, self.attempts + 1):
            try:
                return call.proceed()
            except ConnectionError:
                if attempt == self.attempts:
                    raise
        msg = "attempts must be positive"
        raise ValueError(msg)


class Fallback(InterceptingDecorator[Inventory]):
    def intercept(self, call: Call) -> CallResult:
        return CallResult(0)


def main() -> None:
    synthesizer = ProxySynthesizer()

    service = FlakyInventory(failures=2)
    inventory = synthesizer.create_proxy(Inventory, Retrying, service, attempts=3)
    print(inventory.count("apple"))  # => 7
    print(service.attempts)  # => 3

    exhausted = synthesizer.create_proxy(
        Inventory,
        Retrying,
        FlakyInventory(failures=5),
        attempts=2,
    )
    try:
        exhausted.count("pear")
    except ConnectionError as error:
        print(error)  # => inventory unavailable (attempt 2)

    untouched = FlakyInventory(failures=0)
    offline = synthesizer.create_proxy(Inventory, Fallback, untouched)
    print(offline.count("plum"))  # => 0
    print(untouched.attempts)  # => 0


if __name__ == "__main__":
    main()
