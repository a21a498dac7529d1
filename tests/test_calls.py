from __future__ import annotations

import dataclasses
import inspect
from typing import Any

import pytest

from proxywire import Call, CallResult, MethodIdentity, MethodKind


class _Ledger:
    def transfer(self, source: str, target: str, *, amount: int = 0) -> bool:
        return True


def _identity() -> MethodIdentity:
    signature = inspect.signature(_Ledger.transfer)
    return MethodIdentity(
        index=0,
        name="transfer",
        kind=MethodKind.METHOD,
        signature=signature.replace(parameters=list(signature.parameters.values())[1:]),
        owner=_Ledger,
    )


def _call(invoker: Any) -> Call:
    return Call(
        method=_identity(),
        args=("alice", "bob"),
        kwargs={"amount": 5},
        _invoker=invoker,
    )


def test_call_result_defaults_to_none() -> None:
    assert CallResult().return_value is None
    assert CallResult(3) == CallResult(return_value=3)


def test_proceed_runs_invoker_every_time() -> None:
    received: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    def _invoker(*args: Any, **kwargs: Any) -> str:
        received.append((args, kwargs))
        return f"transfer #{len(received)}"

    call = _call(_invoker)

    assert call.proceed() == CallResult("transfer #1")
    assert call.proceed() == CallResult("transfer #2")
    assert received == [
        (("alice", "bob"), {"amount": 5}),
        (("alice", "bob"), {"amount": 5}),
    ]


def test_proceed_propagates_invoker_exception() -> None:
    error = LookupError("no such account")

    def _invoker(*args: Any, **kwargs: Any) -> None:
        raise error

    with pytest.raises(LookupError) as exc_info:
        _call(_invoker).proceed()

    assert exc_info.value is error


def test_call_is_immutable() -> None:
    call = _call(lambda *args, **kwargs: None)

    with pytest.raises(dataclasses.FrozenInstanceError):
        call.args = ()  # type: ignore[misc]
    with pytest.raises(TypeError):
        call.kwargs["amount"] = 1  # type: ignore[index]


def test_kwargs_are_copied_from_caller_mapping() -> None:
    kwargs = {"amount": 5}
    call = Call(method=_identity(), args=("a", "b"), kwargs=kwargs, _invoker=print)

    kwargs["amount"] = 10

    assert call.kwargs["amount"] == 5


def test_arguments_are_keyed_by_parameter_name() -> None:
    call = _call(lambda *args, **kwargs: None)

    assert call.arguments == {"source": "alice", "target": "bob", "amount": 5}
    assert call.bind().args == ("alice", "bob")


def test_with_argument_replaces_one_value_and_keeps_original() -> None:
    received: list[tuple[tuple[Any, ...], dict[str, Any]]] = []
    call = _call(lambda *args, **kwargs: received.append((args, kwargs)))

    rewritten = call.with_argument("target", "carol").with_argument("amount", 9)
    rewritten.proceed()

    assert rewritten.args == ("alice", "carol")
    assert dict(rewritten.kwargs) == {"amount": 9}
    assert call.args == ("alice", "bob")
    assert dict(call.kwargs) == {"amount": 5}
    assert received == [(("alice", "carol"), {"amount": 9})]
    assert rewritten.method is call.method


def test_with_argument_rejects_unknown_name() -> None:
    call = _call(lambda *args, **kwargs: None)

    with pytest.raises(KeyError, match="currency"):
        call.with_argument("currency", "EUR")


def test_with_arguments_replaces_all_arguments() -> None:
    call = _call(lambda *args, **kwargs: (args, kwargs))

    rewritten = call.with_arguments("dave", "erin")

    assert rewritten.args == ("dave", "erin")
    assert dict(rewritten.kwargs) == {}
    assert rewritten.proceed().return_value == (("dave", "erin"), {})
