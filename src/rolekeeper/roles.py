# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Role identifiers.

A role is a marker class, not a runtime string. Each class is bound to the
account that owns it, and the pair ``(name, owner)`` is the key under which
the role's registry lives::

    class Moderator(RoleId, owner="0xA"):
        pass

    role_key(Moderator)  # RoleKey(name="app.roles.Moderator", owner="0xA")

Roles whose names only exist at runtime (configuration files, the CLI) can be
built with :func:`define_role`.
"""

from __future__ import annotations

from typing import Any, ClassVar, NamedTuple, Union


class RoleKey(NamedTuple):
    """Storage key derived from a role tag."""

    name: str
    owner: str

    def __str__(self) -> str:
        # Display form only; not unique when names or owners contain "@"
        return f"{self.name}@{self.owner}"


class RoleId:
    """Base class for role tags.

    Subclasses must pass ``owner=`` as a class keyword. ``name=`` is optional
    and defaults to the dotted module path of the class.
    """

    owner: ClassVar[str]
    role_name: ClassVar[str]

    def __init_subclass__(cls, *, owner: str | None = None, name: str | None = None, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        if not owner:
            raise TypeError(f"Role {cls.__qualname__} must declare an owner")
        cls.owner = owner
        cls.role_name = name or f"{cls.__module__}.{cls.__qualname__}"

    def __new__(cls, *args: Any, **kwargs: Any):
        raise TypeError("Role tags are types, not instances")

    @classmethod
    def key(cls) -> RoleKey:
        return RoleKey(cls.role_name, cls.owner)


RoleLike = Union[type[RoleId], RoleKey]


def role_key(role: RoleLike) -> RoleKey:
    """Resolve a role tag or key to its RoleKey."""
    if isinstance(role, RoleKey):
        return role
    if isinstance(role, type) and issubclass(role, RoleId) and role is not RoleId:
        return role.key()
    raise TypeError(f"Expected a RoleId subclass or RoleKey, got {role!r}")


def define_role(name: str, owner: str) -> type[RoleId]:
    """Build a role tag at runtime."""
    class_name = name.rsplit(".", 1)[-1] or "Role"
    return type(class_name, (RoleId,), {}, owner=owner, name=name)
