"""Helios portal role and permission bootstrap."""

from . import naming
from .config import PortalConfig, load_config, load_config_file
from .constants import (
    APP_MASTER_PERMISSIONS,
    DEFAULT_CLUSTER,
    DEFAULT_NAMESPACE,
    Env,
    PermissionType,
    RoleType,
    parse_env_list,
)
from .exceptions import (
    DuplicateCreationError,
    HeliosError,
    InvalidIdentifierError,
    NotFoundError,
    StoreUnavailableError,
)
from .models import App, BootstrapResult, Permission, Role, RoleUserAssignment, UserInfo
from .observability import BootstrapObservabilityConfig, Observability, ObservabilityConfig
from .roles import RoleInitializationService
from .store import (
    EnvironmentProvider,
    InMemoryPermissionStore,
    PermissionStore,
    StaticUserContext,
    UserContext,
)

__all__ = [
    "APP_MASTER_PERMISSIONS",
    "DEFAULT_CLUSTER",
    "DEFAULT_NAMESPACE",
    "App",
    "BootstrapObservabilityConfig",
    "BootstrapResult",
    "DuplicateCreationError",
    "Env",
    "EnvironmentProvider",
    "HeliosError",
    "InMemoryPermissionStore",
    "InvalidIdentifierError",
    "NotFoundError",
    "Observability",
    "ObservabilityConfig",
    "Permission",
    "PermissionStore",
    "PermissionType",
    "PortalConfig",
    "Role",
    "RoleInitializationService",
    "RoleType",
    "RoleUserAssignment",
    "StaticUserContext",
    "StoreUnavailableError",
    "UserContext",
    "UserInfo",
    "load_config",
    "load_config_file",
    "naming",
    "parse_env_list",
]
