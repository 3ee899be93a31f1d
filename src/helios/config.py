"""Portal configuration objects."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import msgspec
from msgspec import Struct

from .constants import DEFAULT_CLUSTER, DEFAULT_NAMESPACE, Env, parse_env_list
from .observability import ObservabilityConfig


class PortalConfig(Struct, frozen=True):
    """Typed configuration for the role bootstrap.

    A config doubles as the :class:`~helios.store.EnvironmentProvider` handed to
    :class:`~helios.roles.RoleInitializationService`.
    """

    supported_envs: tuple[Env, ...] = (Env.DEV,)
    default_cluster: str = DEFAULT_CLUSTER
    default_namespace: str = DEFAULT_NAMESPACE
    observability: ObservabilityConfig = ObservabilityConfig()

    def portal_supported_envs(self) -> tuple[Env, ...]:
        return self.supported_envs

    def with_envs(self, raw: str) -> "PortalConfig":
        """Return a copy whose environments are parsed from ``"dev,fat"`` style input."""

        return msgspec.structs.replace(self, supported_envs=parse_env_list(raw))

    @classmethod
    def from_env_list(cls, raw: str) -> "PortalConfig":
        return cls(supported_envs=parse_env_list(raw))


def load_config(data: Mapping[str, Any]) -> PortalConfig:
    """Build a :class:`PortalConfig` from plain mappings such as decoded JSON."""

    payload = dict(data)
    envs = payload.get("supported_envs")
    if isinstance(envs, str):
        payload["supported_envs"] = [env.value for env in parse_env_list(envs)]
    elif envs is not None:
        payload["supported_envs"] = [Env.from_string(env).value for env in envs]
    return msgspec.convert(payload, PortalConfig)


def load_config_file(path: str | Path) -> PortalConfig:
    raw = Path(path).read_bytes()
    data = msgspec.json.decode(raw)
    if not isinstance(data, dict):
        raise msgspec.ValidationError("Expected a JSON object at the top level")
    return load_config(data)


__all__ = ["PortalConfig", "load_config", "load_config_file"]
