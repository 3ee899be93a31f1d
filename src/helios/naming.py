"""Canonical role names and permission target ids.

Every name is built by joining its components with ``+``.  Optional components
that are ``None`` are skipped, so an environment-agnostic namespace role and its
per-environment variants never collide: the former has three components and the
latter four.  All functions are pure; malformed identifiers are rejected with
:class:`~helios.exceptions.InvalidIdentifierError` before anything is joined.
"""

from __future__ import annotations

from .constants import DEFAULT_NAMESPACE, SEPARATOR, Env, PermissionType, RoleType
from .exceptions import InvalidIdentifierError

_NAMESPACE_ROLE_TYPES = frozenset({RoleType.MODIFY_NAMESPACE.value, RoleType.RELEASE_NAMESPACE.value})


def validate_identifier(field: str, value: object) -> str:
    """Return ``value`` if it can be used as one component of a name."""

    if not isinstance(value, str):
        raise InvalidIdentifierError(field, value, "expected a string")
    if not value:
        raise InvalidIdentifierError(field, value, "must not be empty")
    if value != value.strip():
        raise InvalidIdentifierError(field, value, "must not have surrounding whitespace")
    if SEPARATOR in value:
        raise InvalidIdentifierError(field, value, f"must not contain {SEPARATOR!r}")
    return value


def _env(value: Env | str | None) -> str | None:
    if value is None:
        return None
    return Env.from_string(value).value


def _join(*parts: tuple[str, object], optional: tuple[str, ...] = ()) -> str:
    components: list[str] = []
    for field, value in parts:
        if value is None and field in optional:
            continue
        components.append(validate_identifier(field, value))
    return SEPARATOR.join(components)


def app_target_id(app_id: str) -> str:
    return _join(("app_id", app_id))


def namespace_target_id(app_id: str, namespace: str, env: Env | str | None = None) -> str:
    return _join(("app_id", app_id), ("namespace", namespace), ("env", _env(env)), optional=("env",))


def default_namespace_target_id(app_id: str) -> str:
    return namespace_target_id(app_id, DEFAULT_NAMESPACE)


def namespace_in_cluster_target_id(
    app_id: str,
    env: Env | str,
    cluster: str,
    namespace: str | None = None,
) -> str:
    return _join(
        ("app_id", app_id),
        ("env", _env(env)),
        ("cluster", cluster),
        ("namespace", namespace),
        optional=("namespace",),
    )


def app_master_role_name(app_id: str) -> str:
    return _join(("role_type", RoleType.MASTER.value), ("app_id", app_id))


def app_role_name(app_id: str, role_type: RoleType | PermissionType | str) -> str:
    return _join(("role_type", str(role_type)), ("app_id", app_id))


def namespace_role_name(
    app_id: str,
    namespace: str,
    role_type: RoleType | str,
    env: Env | str | None = None,
) -> str:
    return _join(
        ("role_type", str(role_type)),
        ("app_id", app_id),
        ("namespace", namespace),
        ("env", _env(env)),
        optional=("env",),
    )


def modify_namespace_role_name(app_id: str, namespace: str, env: Env | str | None = None) -> str:
    return namespace_role_name(app_id, namespace, RoleType.MODIFY_NAMESPACE, env)


def release_namespace_role_name(app_id: str, namespace: str, env: Env | str | None = None) -> str:
    return namespace_role_name(app_id, namespace, RoleType.RELEASE_NAMESPACE, env)


def modify_default_namespace_role_name(app_id: str) -> str:
    return modify_namespace_role_name(app_id, DEFAULT_NAMESPACE)


def release_default_namespace_role_name(app_id: str) -> str:
    return release_namespace_role_name(app_id, DEFAULT_NAMESPACE)


def _cluster_role_name(
    role_type: RoleType,
    app_id: str,
    env: Env | str,
    cluster: str,
    namespace: str | None,
) -> str:
    return _join(
        ("role_type", role_type.value),
        ("app_id", app_id),
        ("env", _env(env)),
        ("cluster", cluster),
        ("namespace", namespace),
        optional=("namespace",),
    )


def modify_namespace_in_cluster_role_name(
    app_id: str,
    env: Env | str,
    cluster: str,
    namespace: str | None = None,
) -> str:
    """Role allowed to modify ``namespace`` (or every namespace) in one cluster."""

    return _cluster_role_name(RoleType.MODIFY_NAMESPACES_IN_CLUSTER, app_id, env, cluster, namespace)


def release_namespace_in_cluster_role_name(
    app_id: str,
    env: Env | str,
    cluster: str,
    namespace: str | None = None,
) -> str:
    """Role allowed to release ``namespace`` (or every namespace) in one cluster."""

    return _cluster_role_name(RoleType.RELEASE_NAMESPACES_IN_CLUSTER, app_id, env, cluster, namespace)


def extract_app_id_from_master_role_name(role_name: str) -> str | None:
    prefix = f"{RoleType.MASTER.value}{SEPARATOR}"
    if not role_name.startswith(prefix):
        return None
    app_id = role_name[len(prefix) :]
    if not app_id or SEPARATOR in app_id:
        return None
    return app_id


def extract_app_id_from_role_name(role_name: str) -> str | None:
    """Return the app id of a namespace role, with or without an env suffix.

    Only ``ModifyNamespace`` and ``ReleaseNamespace`` names are recognised;
    master and cluster-scoped roles yield ``None``.
    """

    parts = role_name.split(SEPARATOR)
    if parts[0] not in _NAMESPACE_ROLE_TYPES:
        return None
    if len(parts) in (3, 4) and parts[1]:
        return parts[1]
    return None


__all__ = [
    "app_master_role_name",
    "app_role_name",
    "app_target_id",
    "default_namespace_target_id",
    "extract_app_id_from_master_role_name",
    "extract_app_id_from_role_name",
    "modify_default_namespace_role_name",
    "modify_namespace_in_cluster_role_name",
    "modify_namespace_role_name",
    "namespace_in_cluster_target_id",
    "namespace_role_name",
    "namespace_target_id",
    "release_default_namespace_role_name",
    "release_namespace_in_cluster_role_name",
    "release_namespace_role_name",
    "validate_identifier",
]
