from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TypeVar

from proxywire import Call, CallResult, InterceptingDecorator
from proxywire._internal.contracts import inspect_constructor, inspect_contract
from proxywire._internal.templates.renderer import ProxyModule, ProxyTemplateRenderer

T = TypeVar("T")
TNumber = TypeVar("TNumber", bound=int)


class _Counter(ABC):
    @abstractmethod
    def increment(self, step: int = 1) -> int: ...

    @abstractmethod
    def reset(self) -> None: ...


class _Passthrough(InterceptingDecorator[Any]):
    def intercept(self, call: Call) -> CallResult:
        return call.proceed()


class _Gauge(ABC):
    @property
    @abstractmethod
    def value(self) -> int:
        """Current reading."""

    @value.setter
    @abstractmethod
    def value(self, reading: int) -> None: ...


class _Factory(ABC):
    @abstractmethod
    def echo(self, value: T) -> T: ...

    @abstractmethod
    def build(self, kind: type[T]) -> T: ...

    @abstractmethod
    def maybe(self, value: T | None) -> T: ...

    @abstractmethod
    def zero(self) -> TNumber: ...

    @abstractmethod
    def split(self, head: T, /, *rest: T, sep: str = ",", **options: Any) -> list[T]: ...


def _render(contract: Any, class_name: str) -> ProxyModule:
    return ProxyTemplateRenderer().get_proxy_code(
        class_name=class_name,
        contract=inspect_contract(contract, reserved_names=frozenset({"intercept"})),
        decorator=_Passthrough,
        constructor=inspect_constructor(_Passthrough),
    )


def test_renders_proxy_class_with_forwarding_methods() -> None:
    module = _render(_Counter, "Counter_proxy")

    expected_class = (
        "class Counter_proxy(_proxywire_decorator, _proxywire_contract_class):\n"
        "    'Proxy for _Counter dispatching through _Passthrough.'\n"
        "\n"
        "    _proxy_contract = _proxywire_contract\n"
        "    _proxy_methods = _proxywire_methods\n"
        "\n"
        "    def __init__(self, service) -> None:\n"
        "        _proxywire_decorator.__init__(self, service)\n"
        "\n"
        "    def increment(self, step=_proxywire_default_0_step):\n"
        "        return self._invoke(0, (step,), {}, None)\n"
        "\n"
        "    def reset(self):\n"
        "        self._invoke(1, (), {}, None)\n"
    )
    assert module.class_name == "Counter_proxy"
    assert module.code.startswith('"""\nGenerated proxy module.\n')
    assert module.code.endswith(expected_class)
    assert module.namespace["_proxywire_default_0_step"] == 1
    compile(module.code, "<test>", "exec")


def test_module_docstring_lists_method_table() -> None:
    module = _render(_Counter, "Counter_proxy")

    assert "- method count: 2" in module.code
    assert "- [0] method increment(step: int = 1) -> int" in module.code
    assert "- [1] method reset() -> None" in module.code


def test_renders_property_accessors() -> None:
    module = _render(_Gauge, "Gauge_proxy")

    expected_property = (
        "    def _proxywire_get_value(self):\n"
        "        return self._invoke(0, (), {}, None)\n"
        "\n"
        "    def _proxywire_set_value(self, reading):\n"
        "        self._invoke(1, (reading,), {}, None)\n"
        "\n"
        "    value = property(_proxywire_get_value, _proxywire_set_value, None, "
        "_proxywire_doc_value)\n"
        "    del _proxywire_get_value\n"
        "    del _proxywire_set_value\n"
    )
    assert module.code.endswith(expected_property)
    assert module.namespace["_proxywire_doc_value"] == "Current reading."


def test_renders_type_argument_inference_per_parameter_shape() -> None:
    module = _render(_Factory, "Factory_proxy")

    assert "return self._invoke(0, (value,), {}, (_proxywire_type(value),))" in module.code
    assert "return self._invoke(1, (kind,), {}, (kind,))" in module.code
    assert (
        "return self._invoke(2, (value,), {}, "
        "(_proxywire_type_of_optional(value, _proxywire_fallback_2_0),))"
    ) in module.code
    assert "return self._invoke(3, (), {}, (_proxywire_fallback_3_0,))" in module.code
    assert module.namespace["_proxywire_fallback_2_0"] is Any
    assert module.namespace["_proxywire_fallback_3_0"] is int


def test_renders_positional_only_and_variadic_parameters() -> None:
    module = _render(_Factory, "Factory_proxy")

    assert (
        "def split(self, head, /, *rest, sep=_proxywire_default_4_sep, **options):" in module.code
    )
    assert (
        "return self._invoke(4, (head, *rest), {'sep': sep, **options}, "
        "(_proxywire_type(head),))"
    ) in module.code
    assert module.namespace["_proxywire_default_4_sep"] == ","
