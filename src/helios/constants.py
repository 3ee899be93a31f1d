"""Role types, permission types and environments understood by the portal."""

from __future__ import annotations

from enum import Enum

from .exceptions import InvalidIdentifierError

#: Joins the components of role names and permission target ids.
SEPARATOR = "+"
DEFAULT_CLUSTER = "default"
DEFAULT_NAMESPACE = "application"


class RoleType(str, Enum):
    MASTER = "Master"
    MODIFY_NAMESPACE = "ModifyNamespace"
    RELEASE_NAMESPACE = "ReleaseNamespace"
    MODIFY_NAMESPACES_IN_CLUSTER = "ModifyNamespacesInCluster"
    RELEASE_NAMESPACES_IN_CLUSTER = "ReleaseNamespacesInCluster"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


class PermissionType(str, Enum):
    # app scope
    CREATE_NAMESPACE = "CreateNamespace"
    CREATE_CLUSTER = "CreateCluster"
    ASSIGN_ROLE = "AssignRole"
    MANAGE_APP_MASTER = "ManageAppMaster"

    # namespace scope
    MODIFY_NAMESPACE = "ModifyNamespace"
    RELEASE_NAMESPACE = "ReleaseNamespace"

    # cluster scope
    MODIFY_NAMESPACES_IN_CLUSTER = "ModifyNamespacesInCluster"
    RELEASE_NAMESPACES_IN_CLUSTER = "ReleaseNamespacesInCluster"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


#: Permissions bundled into the master role of every app.
APP_MASTER_PERMISSIONS: tuple[PermissionType, ...] = (
    PermissionType.CREATE_CLUSTER,
    PermissionType.CREATE_NAMESPACE,
    PermissionType.ASSIGN_ROLE,
)


class Env(str, Enum):
    """Deployment environments a portal can manage."""

    LOCAL = "LOCAL"
    DEV = "DEV"
    FWS = "FWS"
    FAT = "FAT"
    UAT = "UAT"
    LPT = "LPT"
    PRO = "PRO"
    TOOLS = "TOOLS"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def from_string(cls, value: "str | Env") -> "Env":
        if isinstance(value, Env):
            return value
        normalized = value.strip().upper() if isinstance(value, str) else ""
        if normalized == "PROD":
            normalized = "PRO"
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidIdentifierError("env", value, "unknown environment") from exc


def parse_env_list(raw: str) -> tuple[Env, ...]:
    """Parse a comma separated list such as ``"dev,fat"`` preserving order."""

    envs: list[Env] = []
    for item in raw.split(","):
        if not item.strip():
            continue
        env = Env.from_string(item)
        if env not in envs:
            envs.append(env)
    return tuple(envs)


__all__ = [
    "APP_MASTER_PERMISSIONS",
    "DEFAULT_CLUSTER",
    "DEFAULT_NAMESPACE",
    "SEPARATOR",
    "Env",
    "PermissionType",
    "RoleType",
    "parse_env_list",
]
