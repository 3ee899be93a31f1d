"""Test support utilities for role bootstrap tests."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from helios.constants import Env, PermissionType
from helios.exceptions import StoreUnavailableError
from helios.models import Permission, Role
from helios.observability import Observability, ObservabilityConfig
from helios.store import InMemoryPermissionStore


class RecordingPermissionStore(InMemoryPermissionStore):
    """In-memory store that records every port call and can fail on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: Counter[str] = Counter()
        self.lookups: list[str] = []
        self.assign_calls: list[tuple[str, set[str], str]] = []
        self.fail_on: dict[str, int] = {}

    def fail_after(self, method: str, successful_calls: int = 0) -> None:
        self.fail_on[method] = successful_calls

    def _record(self, method: str) -> None:
        limit = self.fail_on.get(method)
        if limit is not None and self.calls[method] >= limit:
            raise StoreUnavailableError(f"{method} unavailable")
        self.calls[method] += 1

    def seed_role(self, role_name: str) -> Role:
        permission = InMemoryPermissionStore.create_permission(
            self, Permission(permission_type=PermissionType.MODIFY_NAMESPACE, target_id="seed")
        )
        return InMemoryPermissionStore.create_role_with_permissions(
            self, Role(role_name=role_name), {permission.id}
        )

    def find_role_by_role_name(self, role_name: str) -> Role | None:
        self._record("find_role_by_role_name")
        self.lookups.append(role_name)
        return super().find_role_by_role_name(role_name)

    def create_permission(self, permission: Permission) -> Permission:
        self._record("create_permission")
        return super().create_permission(permission)

    def create_permissions(self, permissions: Iterable[Permission]) -> tuple[Permission, ...]:
        self._record("create_permissions")
        return super().create_permissions(permissions)

    def create_role_with_permissions(self, role: Role, permission_ids: set[int]) -> Role:
        self._record("create_role_with_permissions")
        return super().create_role_with_permissions(role, permission_ids)

    def assign_role_to_users(self, role_name: str, user_ids: set[str], operator: str) -> set[str]:
        self._record("assign_role_to_users")
        self.assign_calls.append((role_name, set(user_ids), operator))
        return super().assign_role_to_users(role_name, user_ids, operator)


class StaticEnvironments:
    def __init__(self, envs: Sequence[Env]) -> None:
        self.envs = list(envs)
        self.calls = 0

    def portal_supported_envs(self) -> Sequence[Env]:
        self.calls += 1
        return tuple(self.envs)


def local_observability() -> Observability:
    """Observability that only logs, whatever optional providers are installed."""

    return Observability(
        ObservabilityConfig(opentelemetry_enabled=False, sentry_enabled=False, datadog_enabled=False)
    )


__all__ = ["RecordingPermissionStore", "StaticEnvironments", "local_observability"]
