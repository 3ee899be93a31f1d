"""Command line utilities for Helios."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Sequence

import msgspec

from .config import PortalConfig, load_config_file
from .exceptions import HeliosError
from .metadata import PROJECT_NAME, VERSION
from .models import App, BootstrapResult
from .observability import Observability, ObservabilityConfig
from .roles import RoleInitializationService
from .store import InMemoryPermissionStore, StaticUserContext


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except (HeliosError, OSError, msgspec.DecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROJECT_NAME, description="Helios portal role bootstrap")
    parser.add_argument("--version", action="version", version=f"{PROJECT_NAME} {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    envs = sub.add_parser("envs", help="Print the supported environments")
    _add_config_arguments(envs)
    envs.set_defaults(func=_cmd_envs)

    plan = sub.add_parser("plan", help="Preview the roles a bootstrap would create on an empty store")
    scopes = plan.add_subparsers(dest="scope", required=True)

    app = scopes.add_parser("app", help="Roles created for a new app")
    app.add_argument("app_id")
    app.add_argument("--name", default="", help="Human readable app name")
    _add_plan_arguments(app)
    app.set_defaults(func=_cmd_plan_app)

    namespace = scopes.add_parser("namespace", help="Roles created for a new namespace")
    namespace.add_argument("app_id")
    namespace.add_argument("namespace")
    namespace.add_argument("--per-env", action="store_true", help="Also create per-environment roles")
    _add_plan_arguments(namespace)
    namespace.set_defaults(func=_cmd_plan_namespace)

    cluster = scopes.add_parser("cluster", help="Roles created for a namespace released into a cluster")
    cluster.add_argument("app_id")
    cluster.add_argument("env")
    cluster.add_argument("cluster", nargs="?", default=None, help="Defaults to the configured default cluster")
    cluster.add_argument("--namespace", default=None, help="Restrict the roles to one namespace")
    _add_plan_arguments(cluster)
    cluster.set_defaults(func=_cmd_plan_cluster)

    return parser


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", default=None, help="JSON file holding the portal configuration")
    parser.add_argument("--envs", default=None, help="Comma separated environments, overrides --config")


def _add_plan_arguments(parser: argparse.ArgumentParser) -> None:
    _add_config_arguments(parser)
    parser.add_argument("--operator", required=True, help="User performing the action")


def _load_config(args: argparse.Namespace) -> PortalConfig:
    config = load_config_file(args.config) if args.config else PortalConfig()
    if args.envs:
        config = config.with_envs(args.envs)
    return config


def _cmd_envs(args: argparse.Namespace) -> int:
    config = _load_config(args)
    for env in config.portal_supported_envs():
        print(env.value)
    return 0


def _cmd_plan_app(args: argparse.Namespace) -> int:
    service, store, operator, _ = _plan_environment(args)
    app = App(app_id=args.app_id, name=args.name, owner_name=operator, data_change_created_by=operator)
    result = service.init_app_roles(app, operator)
    _print_plan(store, result)
    return 0


def _cmd_plan_namespace(args: argparse.Namespace) -> int:
    service, store, operator, _ = _plan_environment(args)
    result = service.init_namespace_roles(args.app_id, args.namespace, operator)
    if args.per_env:
        extra = service.init_namespace_env_roles(args.app_id, args.namespace, operator)
        result = BootstrapResult(
            created_roles=result.created_roles + extra.created_roles,
            created_permissions=result.created_permissions + extra.created_permissions,
        )
    _print_plan(store, result)
    return 0


def _cmd_plan_cluster(args: argparse.Namespace) -> int:
    service, store, operator, config = _plan_environment(args)
    cluster = config.default_cluster if args.cluster is None else args.cluster
    result = service.init_cluster_namespace_roles(args.app_id, args.env, cluster, args.namespace, operator)
    _print_plan(store, result)
    return 0


def _plan_environment(
    args: argparse.Namespace,
) -> tuple[RoleInitializationService, InMemoryPermissionStore, str, PortalConfig]:
    config = _load_config(args)
    store = InMemoryPermissionStore()
    # previews stay quiet unless asked; the JSON on stdout is the output
    observability_config = config.observability if args.verbose else ObservabilityConfig(enabled=False)
    service = RoleInitializationService(
        store,
        config,
        observability=Observability(observability_config),
        default_namespace=config.default_namespace,
    )
    operator = StaticUserContext(args.operator).current_user().user_id
    return service, store, operator, config


def _print_plan(store: InMemoryPermissionStore, result: BootstrapResult) -> None:
    payload: dict[str, Any] = {
        "roles": [
            {
                "role_name": role.role_name,
                "permissions": [
                    {"type": permission.permission_type.value, "target_id": permission.target_id}
                    for permission in store.permissions_for_role(role.role_name)
                ],
                "users": sorted(store.users_with_role(role.role_name)),
            }
            for role in store.roles()
        ],
        "created_roles": len(result.created_roles),
        "created_permissions": result.created_permissions,
    }
    print(msgspec.json.format(msgspec.json.encode(payload), indent=2).decode("utf-8"))


__all__ = ["main"]
