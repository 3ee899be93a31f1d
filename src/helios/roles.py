"""Idempotent bootstrap of the roles guarding apps, namespaces and clusters.

Every role is handled by the same create-if-absent step: look the role up by
its canonical name and, only when it is missing, create a fresh permission and
bind it to a new role.  The role name is the idempotency key, so repeating any
call converges on the same set of roles.  Nothing here locks, retries or rolls
back; store errors propagate to the workflow that triggered the bootstrap, and
re-running the bootstrap is the recovery path.  The master role is the one
exception: once it exists ``init_app_roles`` skips its creator assignment and
the ``ManageAppMaster`` role, so an interrupted app bootstrap is repaired with
:meth:`RoleInitializationService.ensure_app_master_assignment` and
:meth:`RoleInitializationService.init_manage_app_master_role`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from . import naming
from .constants import APP_MASTER_PERMISSIONS, DEFAULT_NAMESPACE, Env, PermissionType
from .exceptions import InvalidIdentifierError, NotFoundError
from .models import App, BootstrapResult, Permission, Role
from .observability import Observability
from .store import EnvironmentProvider, PermissionStore

if TYPE_CHECKING:
    from .observability import _ObservationContext

logger = logging.getLogger(__name__)


class _BootstrapRun:
    __slots__ = ("assigned_users", "context", "created_permissions", "created_roles")

    def __init__(self, context: _ObservationContext | None) -> None:
        self.context = context
        self.created_roles: list[str] = []
        self.created_permissions = 0
        self.assigned_users: list[str] = []

    def result(self) -> BootstrapResult:
        return BootstrapResult(
            created_roles=tuple(self.created_roles),
            created_permissions=self.created_permissions,
            assigned_users=tuple(self.assigned_users),
        )


class RoleInitializationService:
    """Create the access-control roles for newly created portal resources."""

    def __init__(
        self,
        store: PermissionStore,
        environments: EnvironmentProvider,
        *,
        observability: Observability | None = None,
        default_namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self._store = store
        self._environments = environments
        self._observability = observability or Observability()
        self._default_namespace = naming.validate_identifier("default_namespace", default_namespace)

    def init_app_roles(self, app: App, operator: str) -> BootstrapResult:
        """Ensure the master role of ``app`` and its default namespace roles exist.

        The master role is assigned to ``operator`` only when it is created here.
        Default namespace roles are checked on every call, once without an
        environment and once per supported environment.
        """

        _require_operator(operator)
        with self._observe("app", app_id=app.app_id, operator=operator) as run:
            master_role_name = naming.app_master_role_name(app.app_id)
            if self._store.find_role_by_role_name(master_role_name) is None:
                self._create_app_master_role(run, app.app_id, operator)
                self._create_manage_app_master_role(run, app.app_id, operator)
                assigned = self._store.assign_role_to_users(master_role_name, {operator}, operator)
                run.assigned_users.extend(sorted(assigned))
            else:
                logger.debug("App %s already has roles, checking namespace roles only", app.app_id)
            self._init_namespace_roles(run, app.app_id, self._default_namespace, operator)
            for env in self._supported_envs():
                self._init_namespace_env_roles(run, app.app_id, self._default_namespace, env, operator)
        return run.result()

    def init_manage_app_master_role(self, app_id: str, operator: str) -> BootstrapResult:
        """Create the ``ManageAppMaster`` role for apps bootstrapped without it."""

        _require_operator(operator)
        with self._observe("manage_app_master", app_id=app_id, operator=operator) as run:
            role_name = naming.app_role_name(app_id, PermissionType.MANAGE_APP_MASTER)
            if self._store.find_role_by_role_name(role_name) is None:
                self._create_manage_app_master_role(run, app_id, operator)
        return run.result()

    def ensure_app_master_assignment(self, app_id: str, user_id: str, operator: str) -> BootstrapResult:
        """Assign the existing master role of ``app_id`` to ``user_id``.

        Repairs an app whose bootstrap failed after the master role was created
        but before its creator was assigned.  Users already holding the role are
        left alone, so repeating the call is harmless.
        """

        _require_operator(operator)
        naming.validate_identifier("user_id", user_id)
        with self._observe("app_master_assignment", app_id=app_id, user_id=user_id, operator=operator) as run:
            master_role_name = naming.app_master_role_name(app_id)
            if self._store.find_role_by_role_name(master_role_name) is None:
                raise NotFoundError("Role", master_role_name)
            assigned = self._store.assign_role_to_users(master_role_name, {user_id}, operator)
            run.assigned_users.extend(sorted(assigned))
        return run.result()

    def init_namespace_roles(self, app_id: str, namespace: str, operator: str) -> BootstrapResult:
        """Ensure the environment-agnostic modify and release roles of a namespace."""

        _require_operator(operator)
        with self._observe("namespace", app_id=app_id, namespace=namespace, operator=operator) as run:
            self._init_namespace_roles(run, app_id, namespace, operator)
        return run.result()

    def init_namespace_env_roles(self, app_id: str, namespace: str, operator: str) -> BootstrapResult:
        """Ensure per-environment namespace roles for every supported environment."""

        _require_operator(operator)
        with self._observe("namespace_envs", app_id=app_id, namespace=namespace, operator=operator) as run:
            for env in self._supported_envs():
                self._init_namespace_env_roles(run, app_id, namespace, env, operator)
        return run.result()

    def init_namespace_specific_env_roles(
        self,
        app_id: str,
        namespace: str,
        env: Env | str,
        operator: str,
    ) -> BootstrapResult:
        _require_operator(operator)
        resolved = Env.from_string(env)
        with self._observe(
            "namespace_env",
            app_id=app_id,
            namespace=namespace,
            env=resolved.value,
            operator=operator,
        ) as run:
            self._init_namespace_env_roles(run, app_id, namespace, resolved, operator)
        return run.result()

    def init_cluster_namespace_roles(
        self,
        app_id: str,
        env: Env | str,
        cluster: str,
        namespace: str | None,
        operator: str,
    ) -> BootstrapResult:
        """Ensure modify and release roles scoped to one cluster of one environment.

        With ``namespace=None`` the roles govern every namespace in the cluster.
        """

        _require_operator(operator)
        resolved = Env.from_string(env)
        with self._observe(
            "cluster_namespace",
            app_id=app_id,
            env=resolved.value,
            cluster=cluster,
            namespace=namespace,
            operator=operator,
        ) as run:
            target_id = naming.namespace_in_cluster_target_id(app_id, resolved, cluster, namespace)
            self._create_role_if_absent(
                run,
                naming.modify_namespace_in_cluster_role_name(app_id, resolved, cluster, namespace),
                PermissionType.MODIFY_NAMESPACES_IN_CLUSTER,
                target_id,
                operator,
            )
            self._create_role_if_absent(
                run,
                naming.release_namespace_in_cluster_role_name(app_id, resolved, cluster, namespace),
                PermissionType.RELEASE_NAMESPACES_IN_CLUSTER,
                target_id,
                operator,
            )
        return run.result()

    def _supported_envs(self) -> tuple[Env, ...]:
        # one snapshot per call so the fan-out is stable within it
        return tuple(Env.from_string(env) for env in self._environments.portal_supported_envs())

    def _init_namespace_roles(self, run: _BootstrapRun, app_id: str, namespace: str, operator: str) -> None:
        target_id = naming.namespace_target_id(app_id, namespace)
        self._create_role_if_absent(
            run,
            naming.modify_namespace_role_name(app_id, namespace),
            PermissionType.MODIFY_NAMESPACE,
            target_id,
            operator,
        )
        self._create_role_if_absent(
            run,
            naming.release_namespace_role_name(app_id, namespace),
            PermissionType.RELEASE_NAMESPACE,
            target_id,
            operator,
        )

    def _init_namespace_env_roles(
        self,
        run: _BootstrapRun,
        app_id: str,
        namespace: str,
        env: Env,
        operator: str,
    ) -> None:
        target_id = naming.namespace_target_id(app_id, namespace, env)
        self._create_role_if_absent(
            run,
            naming.modify_namespace_role_name(app_id, namespace, env),
            PermissionType.MODIFY_NAMESPACE,
            target_id,
            operator,
        )
        self._create_role_if_absent(
            run,
            naming.release_namespace_role_name(app_id, namespace, env),
            PermissionType.RELEASE_NAMESPACE,
            target_id,
            operator,
        )

    def _create_role_if_absent(
        self,
        run: _BootstrapRun,
        role_name: str,
        permission_type: PermissionType,
        target_id: str,
        operator: str,
    ) -> bool:
        if self._store.find_role_by_role_name(role_name) is not None:
            logger.debug("Role %s already exists", role_name)
            return False
        permission = self._store.create_permission(_permission(permission_type, target_id, operator))
        self._create_role(run, role_name, {_stored_id(permission)}, operator)
        return True

    def _create_app_master_role(self, run: _BootstrapRun, app_id: str, operator: str) -> None:
        target_id = naming.app_target_id(app_id)
        permissions = self._store.create_permissions(
            [_permission(permission_type, target_id, operator) for permission_type in APP_MASTER_PERMISSIONS]
        )
        self._create_role(
            run,
            naming.app_master_role_name(app_id),
            {_stored_id(permission) for permission in permissions},
            operator,
        )

    def _create_manage_app_master_role(self, run: _BootstrapRun, app_id: str, operator: str) -> None:
        permission = self._store.create_permission(
            _permission(PermissionType.MANAGE_APP_MASTER, naming.app_target_id(app_id), operator)
        )
        self._create_role(
            run,
            naming.app_role_name(app_id, PermissionType.MANAGE_APP_MASTER),
            {_stored_id(permission)},
            operator,
        )

    def _create_role(self, run: _BootstrapRun, role_name: str, permission_ids: set[int], operator: str) -> None:
        self._store.create_role_with_permissions(
            Role(role_name=role_name, created_by=operator, updated_by=operator),
            permission_ids,
        )
        run.created_roles.append(role_name)
        run.created_permissions += len(permission_ids)
        self._observability.on_role_created(run.context, role_name, permission_count=len(permission_ids))

    @contextmanager
    def _observe(self, operation: str, **scope: object) -> Iterator[_BootstrapRun]:
        run = _BootstrapRun(self._observability.on_bootstrap_start(operation, scope))
        try:
            yield run
        except Exception as exc:
            logger.error(
                "Role bootstrap %s failed after creating %d role(s): %s",
                operation,
                len(run.created_roles),
                exc,
            )
            self._observability.on_bootstrap_error(run.context, exc)
            raise
        self._observability.on_bootstrap_success(run.context, run.result())


def _require_operator(operator: str) -> None:
    if not isinstance(operator, str) or not operator.strip():
        raise InvalidIdentifierError("operator", operator, "must not be empty")


def _permission(permission_type: PermissionType, target_id: str, operator: str) -> Permission:
    return Permission(
        permission_type=permission_type,
        target_id=target_id,
        created_by=operator,
        updated_by=operator,
    )


def _stored_id(permission: Permission) -> int:
    if permission.id is None:
        raise ValueError(f"Store returned permission {permission.target_id!r} without an id")
    return permission.id


__all__ = ["RoleInitializationService"]
