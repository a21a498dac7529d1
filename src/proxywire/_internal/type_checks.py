from __future__ import annotations

import types
from typing import Any, TypeGuard, get_origin


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def runtime_origin(candidate: object) -> type[Any] | None:
    """Return the runtime class behind a class or a parameterized generic alias.

    Args:
        candidate: Class, generic alias such as ``Repository[User]``, or any other value.

    """
    if is_runtime_class(candidate):
        return candidate
    origin = get_origin(candidate)
    if is_runtime_class(origin):
        return origin
    return None


__all__ = ["is_runtime_class", "runtime_origin"]
