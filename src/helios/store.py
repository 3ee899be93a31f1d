"""Collaborator contracts used by the role bootstrap and an in-memory store."""

from __future__ import annotations

import itertools
import threading
from typing import Iterable, Protocol, Sequence

from msgspec import structs

from .constants import Env, PermissionType
from .exceptions import DuplicateCreationError, NotFoundError
from .models import Permission, Role, RoleUserAssignment, UserInfo


class PermissionStore(Protocol):
    """Persistence for roles, permissions and role assignments.

    Each call is expected to be atomic on its own.  Implementations must reject
    a second role with an existing name by raising
    :class:`~helios.exceptions.DuplicateCreationError` and report infrastructure
    failures as :class:`~helios.exceptions.StoreUnavailableError`.
    """

    def find_role_by_role_name(self, role_name: str) -> Role | None: ...

    def create_permission(self, permission: Permission) -> Permission: ...

    def create_permissions(self, permissions: Iterable[Permission]) -> tuple[Permission, ...]: ...

    def create_role_with_permissions(self, role: Role, permission_ids: set[int]) -> Role: ...

    def assign_role_to_users(self, role_name: str, user_ids: set[str], operator: str) -> set[str]: ...


class UserContext(Protocol):
    """Identity of the user driving the current administrative action."""

    def current_user(self) -> UserInfo: ...


class EnvironmentProvider(Protocol):
    """Ordered environments the portal currently manages."""

    def portal_supported_envs(self) -> Sequence[Env]: ...


class StaticUserContext:
    """User context that always reports the same user."""

    def __init__(self, user: UserInfo | str) -> None:
        self._user = UserInfo(user_id=user) if isinstance(user, str) else user

    def current_user(self) -> UserInfo:
        return self._user


class InMemoryPermissionStore:
    """Thread-safe, process-local :class:`PermissionStore`.

    Role names are unique; permissions are not deduplicated, so a permission
    left behind by an interrupted bootstrap never blocks a retry.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._roles: dict[str, Role] = {}
        self._permissions: dict[int, Permission] = {}
        self._role_permissions: dict[int, set[int]] = {}
        self._assignments: list[RoleUserAssignment] = []

    def find_role_by_role_name(self, role_name: str) -> Role | None:
        with self._lock:
            return self._roles.get(role_name)

    def create_permission(self, permission: Permission) -> Permission:
        with self._lock:
            return self._insert_permission(permission)

    def create_permissions(self, permissions: Iterable[Permission]) -> tuple[Permission, ...]:
        with self._lock:
            return tuple(self._insert_permission(permission) for permission in permissions)

    def create_role_with_permissions(self, role: Role, permission_ids: set[int]) -> Role:
        with self._lock:
            if role.role_name in self._roles:
                raise DuplicateCreationError(role.role_name)
            missing = sorted(pid for pid in permission_ids if pid not in self._permissions)
            if missing:
                raise NotFoundError("Permission", ",".join(str(pid) for pid in missing))
            stored = structs.replace(role, id=next(self._ids))
            self._roles[stored.role_name] = stored
            self._role_permissions[stored.id] = set(permission_ids)
            return stored

    def assign_role_to_users(self, role_name: str, user_ids: set[str], operator: str) -> set[str]:
        """Assign ``role_name`` and return the users that did not already hold it."""

        with self._lock:
            role = self._roles.get(role_name)
            if role is None:
                raise NotFoundError("Role", role_name)
            existing = {item.user_id for item in self._assignments if item.role_id == role.id}
            assigned: set[str] = set()
            for user_id in sorted(user_ids):
                if user_id in existing:
                    continue
                self._assignments.append(
                    RoleUserAssignment(
                        id=next(self._ids),
                        role_id=role.id,
                        user_id=user_id,
                        created_by=operator,
                        updated_by=operator,
                    )
                )
                assigned.add(user_id)
            return assigned

    def roles(self) -> tuple[Role, ...]:
        with self._lock:
            return tuple(self._roles.values())

    def permissions(self) -> tuple[Permission, ...]:
        with self._lock:
            return tuple(self._permissions.values())

    def permissions_for_role(self, role_name: str) -> tuple[Permission, ...]:
        with self._lock:
            role = self._roles.get(role_name)
            if role is None:
                raise NotFoundError("Role", role_name)
            ids = sorted(self._role_permissions.get(role.id, ()))
            return tuple(self._permissions[pid] for pid in ids)

    def users_with_role(self, role_name: str) -> set[str]:
        with self._lock:
            role = self._roles.get(role_name)
            if role is None:
                return set()
            return {item.user_id for item in self._assignments if item.role_id == role.id}

    def assignments(self) -> tuple[RoleUserAssignment, ...]:
        with self._lock:
            return tuple(self._assignments)

    def _insert_permission(self, permission: Permission) -> Permission:
        stored = structs.replace(
            permission,
            id=next(self._ids),
            permission_type=PermissionType(permission.permission_type),
        )
        self._permissions[stored.id] = stored
        return stored


__all__ = [
    "EnvironmentProvider",
    "InMemoryPermissionStore",
    "PermissionStore",
    "StaticUserContext",
    "UserContext",
]
