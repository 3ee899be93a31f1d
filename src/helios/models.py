"""Portal records manipulated by the role bootstrap."""

from __future__ import annotations

import datetime as dt

import msgspec

from .constants import PermissionType


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Record(msgspec.Struct, frozen=True, omit_defaults=True, kw_only=True):
    """Base record carrying a store-assigned identifier and audit metadata."""

    id: int | None = None
    created_by: str | None = None
    created_at: dt.datetime = msgspec.field(default_factory=_utcnow)
    updated_by: str | None = None
    updated_at: dt.datetime = msgspec.field(default_factory=_utcnow)


class Role(Record, frozen=True, kw_only=True):
    role_name: str
    comment: str | None = None


class Permission(Record, frozen=True, kw_only=True):
    permission_type: PermissionType
    target_id: str


class RoleUserAssignment(Record, frozen=True, kw_only=True):
    role_id: int
    user_id: str


class App(msgspec.Struct, frozen=True, omit_defaults=True, kw_only=True):
    """The subset of an application record the bootstrap needs."""

    app_id: str
    name: str = ""
    org_id: str = ""
    org_name: str = ""
    owner_name: str = ""
    owner_email: str | None = None
    data_change_created_by: str | None = None


class UserInfo(msgspec.Struct, frozen=True, omit_defaults=True):
    user_id: str
    name: str | None = None
    email: str | None = None


class BootstrapResult(msgspec.Struct, frozen=True, omit_defaults=True):
    """Summary of what a single bootstrap call created."""

    created_roles: tuple[str, ...] = ()
    created_permissions: int = 0
    assigned_users: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.created_roles or self.created_permissions or self.assigned_users)


__all__ = [
    "App",
    "BootstrapResult",
    "Permission",
    "Record",
    "Role",
    "RoleUserAssignment",
    "UserInfo",
]
