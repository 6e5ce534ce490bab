"""
Configuration settings for the preview dashboard.

``Settings`` comes from environment variables. The namespace exclusion list
and UI settings live in a YAML file that is re-read whenever it changes.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    APP_NAME: str = Field(default="preview-dashboard", description="Application name")
    APP_ENV: str = Field(default="dev", description="Environment: dev|staging|prod")

    # HTTP Configuration
    HTTP_PORT: int = Field(default=3001, description="Service port")
    STATIC_DIR: Optional[str] = Field(default=None, description="Built frontend to serve at /")

    # Kubernetes Configuration
    K8S_CONTEXT: Optional[str] = Field(default=None, description="Kubernetes context")
    K8S_IN_CLUSTER: Optional[bool] = Field(default=None, description="Running in cluster (unset: auto-detect)")

    # Dashboard Configuration
    CONFIG_PATH: str = Field(default="config/namespaces.yaml", description="Namespace config file")
    EXEC_TIMEOUT_SECS: float = Field(default=30, description="Timeout for commands run in containers")
    EXEC_MAX_WORKERS: int = Field(default=8, description="Commands that may run in containers at once")
    DEFAULT_TAIL_LINES: int = Field(default=100, description="Log lines returned by default")

    # Service Configuration
    LOG_LEVEL: str = Field(default="info", description="Log level: info|debug|warning")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()


DEFAULT_EXCLUDE_NAMESPACES = ("kube-system", "kube-public", "kube-node-lease")


@dataclass(frozen=True)
class DashboardConfig:
    """Snapshot of the namespace config file."""
    version: str = "1.0"
    exclude_namespaces: Tuple[str, ...] = DEFAULT_EXCLUDE_NAMESPACES
    polling_interval: int = 5000
    scaling_enabled: bool = True
    _excluded: frozenset = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_excluded", frozenset(n.lower() for n in self.exclude_namespaces))

    def is_namespace_allowed(self, namespace: str) -> bool:
        return namespace.lower() not in self._excluded

    def to_dict(self) -> Dict[str, Any]:
        return {
            "excludeNamespaces": list(self.exclude_namespaces),
            "settings": {
                "pollingInterval": self.polling_interval,
                "scalingEnabled": self.scaling_enabled,
            },
        }


def load_config(path: str) -> DashboardConfig:
    """Read the namespace config file, falling back to defaults."""
    defaults = DashboardConfig()
    if not os.path.exists(path):
        logger.warning(f"Config file not found at {path}, using defaults")
        return defaults

    try:
        with open(path, encoding="utf-8") as f:
            parsed = yaml.safe_load(f) or {}
        if not isinstance(parsed, dict):
            raise ValueError("config root must be a mapping")

        ui_settings = parsed.get("settings") or {}
        exclude = parsed.get("excludeNamespaces")
        return DashboardConfig(
            version=str(parsed.get("version", defaults.version)),
            exclude_namespaces=tuple(exclude) if exclude is not None else defaults.exclude_namespaces,
            polling_interval=int(ui_settings.get("pollingInterval", defaults.polling_interval)),
            scaling_enabled=bool(ui_settings.get("scalingEnabled", defaults.scaling_enabled)),
        )
    except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
        logger.error(f"Error loading config from {path}: {e}")
        return defaults


_cached_config: Optional[DashboardConfig] = None
_cached_mtime: Optional[float] = None


def _mtime(path: str) -> Optional[float]:
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


def get_config(path: Optional[str] = None) -> DashboardConfig:
    """Cached config; re-read when the file's modification time changes."""
    global _cached_config, _cached_mtime

    path = path or settings.CONFIG_PATH
    mtime = _mtime(path)
    if _cached_config is None:
        _cached_config = load_config(path)
        _cached_mtime = mtime
        logger.info(f"Loaded config, excluding namespaces: {', '.join(_cached_config.exclude_namespaces)}")
    elif mtime != _cached_mtime:
        logger.info("Config file changed, reloading...")
        _cached_config = load_config(path)
        _cached_mtime = mtime
        logger.info(f"Reloaded config, excluding: {', '.join(_cached_config.exclude_namespaces)}")
    return _cached_config


def reload_config(path: Optional[str] = None) -> DashboardConfig:
    global _cached_config, _cached_mtime

    path = path or settings.CONFIG_PATH
    _cached_config = load_config(path)
    _cached_mtime = _mtime(path)
    return _cached_config
