from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from textwrap import indent
from typing import Any, TypeVar, get_args, get_origin

from jinja2 import Environment, StrictUndefined, Template

from proxywire._internal.contracts import GENERATED_NAME_PREFIX, ConstructorShape, ContractShape
from proxywire._internal.generics import optional_inner, type_of_optional, typevar_fallback
from proxywire._internal.templates.templates import (
    CLASS_TEMPLATE,
    INIT_METHOD_TEMPLATE,
    METHOD_TEMPLATE,
    MODULE_TEMPLATE,
    PROPERTY_TEMPLATE,
)
from proxywire.methods import MethodIdentity, MethodKind

_INDENT = " " * 4
_GENERATOR_SOURCE = "proxywire._internal.templates.renderer.ProxyTemplateRenderer.get_proxy_code"
_ACCESSOR_PREFIXES: dict[MethodKind, str] = {
    MethodKind.GETTER: "get",
    MethodKind.SETTER: "set",
    MethodKind.DELETER: "del",
}
_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)
logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProxyModule:
    """Generated proxy module source plus the globals it must be executed with."""

    code: str
    class_name: str
    namespace: dict[str, Any] = field(default_factory=dict)


class ProxyTemplateRenderer:
    """Renderer for generated proxy class code."""

    def __init__(self) -> None:
        self._env = Environment(
            autoescape=False,  # noqa: S701
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self._module_template = self._template(MODULE_TEMPLATE)
        self._class_template = self._template(CLASS_TEMPLATE)
        self._init_method_template = self._template(INIT_METHOD_TEMPLATE)
        self._method_template = self._template(METHOD_TEMPLATE)
        self._property_template = self._template(PROPERTY_TEMPLATE)

    def get_proxy_code(
        self,
        *,
        class_name: str,
        contract: ContractShape,
        decorator: type[Any],
        constructor: ConstructorShape,
    ) -> ProxyModule:
        """Render the module that defines one proxy class.

        The module expects ``_proxywire_decorator``, ``_proxywire_contract_class``,
        ``_proxywire_contract`` and ``_proxywire_methods`` in its globals; every
        other global it references is returned in ``ProxyModule.namespace``.

        Args:
            class_name: Name of the generated class.
            contract: Inspected contract the proxy implements.
            decorator: Decorator class the proxy subclasses.
            constructor: Decorator constructor shape to forward.

        """
        namespace: dict[str, Any] = {
            f"{GENERATED_NAME_PREFIX}type": type,
            f"{GENERATED_NAME_PREFIX}type_of_optional": type_of_optional,
        }
        self._log_codegen_strategy(class_name=class_name, contract=contract, decorator=decorator)
        member_blocks = [
            self._render_member(
                contract=contract,
                methods=methods,
                namespace=namespace,
            )
            for methods in _group_members(contract.methods)
        ]
        class_block = self._class_template.render(
            class_name=class_name,
            class_docstring_block=indent(
                repr(
                    f"Proxy for {contract.origin.__qualname__} dispatching through "
                    f"{decorator.__qualname__}.",
                ),
                _INDENT,
            ),
            init_method_block=indent(
                self._render_init_method(constructor=constructor, namespace=namespace),
                _INDENT,
            ),
            member_blocks=[indent(block, _INDENT) for block in member_blocks],
        )
        code = self._module_template.render(
            module_docstring_block=self._render_module_docstring(
                class_name=class_name,
                contract=contract,
                decorator=decorator,
            ),
            class_block=class_block.rstrip(),
        )
        return ProxyModule(code=code + "\n", class_name=class_name, namespace=namespace)

    def _log_codegen_strategy(
        self,
        *,
        class_name: str,
        contract: ContractShape,
        decorator: type[Any],
    ) -> None:
        logger.info(
            (
                "Proxy codegen strategy: class=%s contract=%r decorator=%s "
                "method_count=%d generic_method_count=%d accessor_count=%d"
            ),
            class_name,
            contract.contract,
            decorator.__qualname__,
            len(contract.methods),
            sum(1 for method in contract.methods if method.is_generic),
            sum(1 for method in contract.methods if method.kind is not MethodKind.METHOD),
        )

    def _render_module_docstring(
        self,
        *,
        class_name: str,
        contract: ContractShape,
        decorator: type[Any],
    ) -> str:
        generic_count = sum(1 for method in contract.methods if method.is_generic)
        lines = [
            "Generated proxy module.",
            "",
            f"Generated by: {_GENERATOR_SOURCE}",
            f"proxywire version used for generation: {self._resolve_proxywire_version()}",
            "",
            "Generation configuration:",
            f"- class: {class_name}",
            f"- contract: {contract.contract!r}",
            f"- decorator: {decorator.__module__}.{decorator.__qualname__}",
            f"- method count: {len(contract.methods)}",
            f"- generic method count: {generic_count}",
        ]
        lines.extend(
            f"- [{method.index}] {method.kind.value} {method.name}{method.signature}"
            for method in contract.methods
        )
        body = "\n".join(lines).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
        return f'"""\n{body}\n"""'

    def _render_init_method(
        self,
        *,
        constructor: ConstructorShape,
        namespace: dict[str, Any],
    ) -> str:
        parameters = list(constructor.signature.parameters.values())
        signature = self._render_signature(
            receiver=constructor.receiver_name,
            parameters=parameters,
            default_prefix=f"{GENERATED_NAME_PREFIX}init_default",
            namespace=namespace,
        )
        args_items = [constructor.receiver_name, *_positional_items(parameters)]
        keyword_items = [
            f"{parameter.name}={parameter.name}"
            for parameter in parameters
            if parameter.kind is inspect.Parameter.KEYWORD_ONLY
        ]
        keyword_items.extend(
            f"**{parameter.name}"
            for parameter in parameters
            if parameter.kind is inspect.Parameter.VAR_KEYWORD
        )
        return self._init_method_template.render(
            signature=signature,
            arguments=", ".join([*args_items, *keyword_items]),
        ).rstrip()

    def _render_member(
        self,
        *,
        contract: ContractShape,
        methods: list[MethodIdentity],
        namespace: dict[str, Any],
    ) -> str:
        first = methods[0]
        if first.kind is MethodKind.METHOD:
            return self._render_method(
                method=first,
                function_name=first.name,
                receiver=contract.receiver_names[first.index],
                namespace=namespace,
            )

        accessor_names: dict[MethodKind, str] = {}
        accessor_blocks: list[str] = []
        for method in methods:
            function_name = f"{GENERATED_NAME_PREFIX}{_ACCESSOR_PREFIXES[method.kind]}_{method.name}"
            accessor_names[method.kind] = function_name
            accessor_blocks.append(
                self._render_method(
                    method=method,
                    function_name=function_name,
                    receiver=contract.receiver_names[method.index],
                    namespace=namespace,
                ),
            )
        doc_name = f"{GENERATED_NAME_PREFIX}doc_{first.name}"
        namespace[doc_name] = getattr(_declared_member(contract.origin, first.name), "__doc__", None)
        return self._property_template.render(
            name=first.name,
            accessor_blocks=accessor_blocks,
            getter=accessor_names.get(MethodKind.GETTER, "None"),
            setter=accessor_names.get(MethodKind.SETTER, "None"),
            deleter=accessor_names.get(MethodKind.DELETER, "None"),
            doc=doc_name,
            accessor_function_names=list(accessor_names.values()),
        ).rstrip()

    def _render_method(
        self,
        *,
        method: MethodIdentity,
        function_name: str,
        receiver: str,
        namespace: dict[str, Any],
    ) -> str:
        parameters = list(method.signature.parameters.values())
        signature = self._render_signature(
            receiver=receiver,
            parameters=parameters,
            default_prefix=f"{GENERATED_NAME_PREFIX}default_{method.index}",
            namespace=namespace,
        )
        return self._method_template.render(
            function_name=function_name,
            signature=signature,
            receiver=receiver,
            index=method.index,
            returns_value=method.returns_value,
            args_expression=_tuple_expression(_positional_items(parameters)),
            kwargs_expression=_kwargs_expression(parameters),
            type_arguments_expression=self._type_arguments_expression(
                method=method,
                parameters=parameters,
                namespace=namespace,
            ),
        ).rstrip()

    def _render_signature(
        self,
        *,
        receiver: str,
        parameters: list[inspect.Parameter],
        default_prefix: str,
        namespace: dict[str, Any],
    ) -> str:
        items = [receiver]
        has_positional_only = False
        star_emitted = False
        for parameter in parameters:
            if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
                has_positional_only = True
            elif has_positional_only:
                items.append("/")
                has_positional_only = False

            if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
                items.append(f"*{parameter.name}")
                star_emitted = True
                continue
            if parameter.kind is inspect.Parameter.VAR_KEYWORD:
                items.append(f"**{parameter.name}")
                continue
            if parameter.kind is inspect.Parameter.KEYWORD_ONLY and not star_emitted:
                items.append("*")
                star_emitted = True

            if parameter.default is inspect.Parameter.empty:
                items.append(parameter.name)
            else:
                default_name = f"{default_prefix}_{parameter.name}"
                namespace[default_name] = parameter.default
                items.append(f"{parameter.name}={default_name}")
        if has_positional_only:
            items.append("/")
        return ", ".join(items)

    def _type_arguments_expression(
        self,
        *,
        method: MethodIdentity,
        parameters: list[inspect.Parameter],
        namespace: dict[str, Any],
    ) -> str:
        if not method.type_parameters:
            return "None"
        expressions = [
            self._type_argument_expression(
                method=method,
                position=position,
                typevar=typevar,
                parameters=parameters,
                namespace=namespace,
            )
            for position, typevar in enumerate(method.type_parameters)
        ]
        return _tuple_expression(expressions)

    def _type_argument_expression(
        self,
        *,
        method: MethodIdentity,
        position: int,
        typevar: TypeVar,
        parameters: list[inspect.Parameter],
        namespace: dict[str, Any],
    ) -> str:
        fallback_name = f"{GENERATED_NAME_PREFIX}fallback_{method.index}_{position}"
        namespace[fallback_name] = typevar_fallback(typevar)
        for parameter in parameters:
            if parameter.kind in (
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD,
            ):
                continue
            annotation = parameter.annotation
            if annotation is typevar:
                return f"{GENERATED_NAME_PREFIX}type({parameter.name})"
            if get_origin(annotation) is type and get_args(annotation) == (typevar,):
                return parameter.name
            if optional_inner(annotation) is typevar:
                return (
                    f"{GENERATED_NAME_PREFIX}type_of_optional({parameter.name}, {fallback_name})"
                )
        return fallback_name

    def _template(self, source: str) -> Template:
        return self._env.from_string(source)

    def _resolve_proxywire_version(self) -> str:
        try:
            return version("proxywire")
        except PackageNotFoundError:
            return "unknown"


def _group_members(methods: tuple[MethodIdentity, ...]) -> list[list[MethodIdentity]]:
    groups: list[list[MethodIdentity]] = []
    for method in methods:
        if (
            method.kind is not MethodKind.METHOD
            and groups
            and groups[-1][0].kind is not MethodKind.METHOD
            and groups[-1][0].name == method.name
        ):
            groups[-1].append(method)
            continue
        groups.append([method])
    return groups


def _declared_member(origin: type[Any], name: str) -> Any:
    for klass in origin.__mro__:
        if name in vars(klass):
            return vars(klass)[name]
    return None


def _positional_items(parameters: list[inspect.Parameter]) -> list[str]:
    items = [parameter.name for parameter in parameters if parameter.kind in _POSITIONAL_KINDS]
    items.extend(
        f"*{parameter.name}"
        for parameter in parameters
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL
    )
    return items


def _kwargs_expression(parameters: list[inspect.Parameter]) -> str:
    items = [
        f"{parameter.name!r}: {parameter.name}"
        for parameter in parameters
        if parameter.kind is inspect.Parameter.KEYWORD_ONLY
    ]
    items.extend(
        f"**{parameter.name}"
        for parameter in parameters
        if parameter.kind is inspect.Parameter.VAR_KEYWORD
    )
    return "{" + ", ".join(items) + "}"


def _tuple_expression(items: list[str]) -> str:
    if len(items) == 1:
        return f"({items[0]},)"
    return "(" + ", ".join(items) + ")"
