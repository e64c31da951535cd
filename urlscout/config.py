"""Configuration loading and management."""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATHS = [
    Path("configs/default.yaml"),
    Path("urlscout.yaml"),
    Path.home() / ".urlscout" / "config.yaml",
]

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; URLScout/1.0; +https://github.com/urlscout)"
DEFAULT_AGENT_TOKEN = "URLScout"

RENDERERS = ("browser", "static")


@dataclass(frozen=True)
class DiscoveryConfig:
    """Budgets and timeouts for a discovery run.

    Timeouts are in seconds.
    """

    max_urls: int = 500
    max_depth: int = 4
    timeout: float = 60.0
    robots_timeout: float = 5.0
    sitemap_timeout: float = 10.0
    probe_timeout: float = 3.0
    page_timeout: float = 10.0
    max_sitemap_depth: int = 3
    user_agent: str = DEFAULT_USER_AGENT
    agent_token: str = DEFAULT_AGENT_TOKEN
    renderer: str = "browser"

    def __post_init__(self) -> None:
        if self.max_urls < 1:
            raise ValueError("max_urls must be at least 1")
        if self.max_depth < 0:
            raise ValueError("max_depth must not be negative")
        if self.max_sitemap_depth < 0:
            raise ValueError("max_sitemap_depth must not be negative")
        for name in ("timeout", "robots_timeout", "sitemap_timeout", "probe_timeout", "page_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.renderer not in RENDERERS:
            raise ValueError(f"renderer must be one of: {', '.join(RENDERERS)}")

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "DiscoveryConfig":
        """Build a config from a ``discovery:`` section, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (data or {}).items() if k in known and v is not None}
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "DiscoveryConfig":
        """Return a copy with the given values replaced.

        ``None`` values are skipped so CLI options and API parameters can be
        passed through unconditionally.

        Raises:
            TypeError: If an override names an unknown setting.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown discovery settings: {', '.join(sorted(unknown))}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from file.

    Args:
        config_path: Optional path to config file. If not provided,
                    searches default locations.

    Returns:
        Configuration dictionary, merged over the defaults.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
    """
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    paths_to_try = [config_path] if config_path else DEFAULT_CONFIG_PATHS

    for path in paths_to_try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
                return merge_configs(get_default_config(), config or {})

    return get_default_config()


def get_default_config() -> dict[str, Any]:
    """Return minimal default configuration."""
    return {
        "discovery": {
            "max_urls": 500,
            "max_depth": 4,
            "timeout": 60.0,
            "robots_timeout": 5.0,
            "sitemap_timeout": 10.0,
            "probe_timeout": 3.0,
            "page_timeout": 10.0,
            "max_sitemap_depth": 3,
            "user_agent": DEFAULT_USER_AGENT,
            "agent_token": DEFAULT_AGENT_TOKEN,
            "renderer": "browser",
        },
        "web": {
            "host": "127.0.0.1",
            "port": 8888,
            "initial_batch": 20,
            "initial_wait": 10.0,
            "cache_ttl_hours": 24,
        },
    }


def get_discovery_config(config: dict[str, Any], **overrides: Any) -> DiscoveryConfig:
    """Get the discovery settings from a full configuration.

    Args:
        config: Full configuration dictionary.
        **overrides: Per-call values that take precedence.

    Returns:
        Validated discovery configuration.
    """
    return DiscoveryConfig.from_mapping(config.get("discovery")).with_overrides(**overrides)


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries.

    Args:
        base: Base configuration.
        override: Override configuration (takes precedence).

    Returns:
        Merged configuration.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result
