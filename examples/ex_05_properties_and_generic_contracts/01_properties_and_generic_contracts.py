"""Properties and generic contracts.

Property accessors get their own dispatch indices (getter, setter, deleter),
and parameterized contracts such as ``Repository[User]`` are proxied with
their class type arguments substituted into every method signature.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from proxywire import Call, CallResult, InterceptingDecorator, ProxySynthesizer

TModel = TypeVar("TModel")


@dataclass
class User:
    name: str


class Repository(ABC, Generic[TModel]):
    @property
    @abstractmethod
    def size(self) -> int: ...

    @abstractmethod
    def add(self, model: TModel) -> None: ...

    @abstractmethod
    def first(self) -> TModel: ...


class MemoryRepository(Repository[User]):
    def __init__(self) -> None:
        self.users: list[User] = []

    @property
    def size(self) -> int:
        return len(self.users)

    def add(self, model: User) -> None:
        self.users.append(model)

    def first(self) -> User:
        return self.users[0]


class Auditing(InterceptingDecorator[Any]):
    def __init__(self, service: Any) -> None:
        super().__init__(service)
        self.audit: list[str] = []

    def intercept(self, call: Call) -> CallResult:
        method = call.method
        self.audit.append(f"{method.index}:{method.kind.value}:{method.name}")
        return call.proceed()


def _annotation_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", repr(annotation))


def main() -> None:
    synthesizer = ProxySynthesizer()
    repository = synthesizer.create_proxy(Repository[User], Auditing, MemoryRepository())

    repository.add(User("ada"))
    print(repository.size)  # => 1
    print(repository.first().name)  # => ada
    print(repository.audit)  # => ['1:method:add', '0:getter:size', '2:method:first']

    methods = type(repository)._proxy_methods
    print([_annotation_name(method.return_annotation) for method in methods])  # => ['int', 'None', 'User']
    print(synthesizer.get_cached(Repository[User], Auditing) is type(repository))  # => True


if __name__ == "__main__":
    main()
