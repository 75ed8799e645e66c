# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Decorator for gating functions behind a role check."""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

from .registry import RoleRegistry, get_role_registry
from .roles import RoleLike, role_key

P = ParamSpec("P")
T = TypeVar("T")


def requires_role(
    role: RoleLike,
    *,
    account_param: str = "account",
    registry: RoleRegistry | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Only run the decorated function if the calling account holds ``role``.

    The account is read from the argument named ``account_param``. The check
    happens on every call against ``registry`` (the default registry if None,
    looked up at call time so tests can swap it).

    Example:
        @requires_role(Moderator)
        def delete_post(post_id: str, account: str) -> None:
            ...

        @requires_role(Bridge, account_param="relayer")
        async def relay(message: bytes, relayer: str) -> None:
            ...

    Raises:
        NotRegistered, RoleExpired, AccessDenied: from assert_has_role
        ValueError: the account argument was not supplied
    """
    key = role_key(role)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        sig = inspect.signature(func)
        if account_param not in sig.parameters:
            raise ValueError(f"{func.__qualname__} has no parameter named '{account_param}'")

        def check(args: tuple, kwargs: dict) -> None:
            bound = sig.bind_partial(*args, **kwargs)
            bound.apply_defaults()
            account = bound.arguments.get(account_param)
            if account is None:
                raise ValueError(f"Required parameter '{account_param}' not provided")
            (registry or get_role_registry()).assert_has_role(key, account)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                check(args, kwargs)
                return await func(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            check(args, kwargs)
            return func(*args, **kwargs)

        return sync_wrapper  # type: ignore[return-value]

    return decorator
