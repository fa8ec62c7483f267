from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(slots=True)
class MatchConfig:
    strict: bool = False
    explain: bool = False


@dataclass(slots=True)
class SourceConfig:
    path: str = "items.json"
    url: str | None = None
    timeout_seconds: float = 20.0
    retry_max: int = 3
    retry_backoff_seconds: float = 2.0


@dataclass(slots=True)
class StatsConfig:
    top_categories: int = 5
    top_locations: int = 3
    recent: int = 5


@dataclass(slots=True)
class AppConfig:
    match: MatchConfig = field(default_factory=MatchConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    user_agent: str = "lostfound-match/0.1"
    show_warnings: bool = True
    log_level: str = "WARNING"


def _merge(default: Any, override: Any) -> Any:
    if isinstance(default, dict) and isinstance(override, dict):
        merged: dict[str, Any] = {**default}
        for key, value in override.items():
            merged[key] = _merge(default.get(key), value)
        return merged
    return override if override is not None else default


def load_config(path: Path) -> AppConfig:
    data: dict[str, Any] = {}
    if path.exists():
        data = _read_toml(path)

    defaults = AppConfig()
    merged = _merge(_as_dict(defaults), data)

    config = AppConfig(
        match=MatchConfig(**merged.get("match", {})),
        source=SourceConfig(**merged.get("source", {})),
        stats=StatsConfig(**merged.get("stats", {})),
        user_agent=merged.get("user_agent", defaults.user_agent),
        show_warnings=merged.get("show_warnings", defaults.show_warnings),
        log_level=merged.get("log_level", defaults.log_level),
    )

    if env_url := os.getenv("LOSTFOUND_ITEMS_URL"):
        config.source.url = env_url.strip()
    if env_path := os.getenv("LOSTFOUND_ITEMS_PATH"):
        config.source.path = env_path
    if env_level := os.getenv("LOSTFOUND_LOG_LEVEL"):
        config.log_level = env_level

    config.log_level = config.log_level.upper()
    return config


def config_path(cli_path: str | None) -> Path:
    if cli_path:
        return Path(cli_path).expanduser()
    if env_path := os.getenv("LOSTFOUND_MATCH_CONFIG"):
        return Path(env_path).expanduser()
    return Path("config.toml")


def _read_toml(path: Path) -> dict[str, Any]:
    import tomllib

    with path.open("rb") as handle:
        return tomllib.load(handle)


def _as_dict(config: AppConfig) -> dict[str, Any]:
    return {
        "user_agent": config.user_agent,
        "show_warnings": config.show_warnings,
        "log_level": config.log_level,
        "match": {
            "strict": config.match.strict,
            "explain": config.match.explain,
        },
        "source": {
            "path": config.source.path,
            "url": config.source.url,
            "timeout_seconds": config.source.timeout_seconds,
            "retry_max": config.source.retry_max,
            "retry_backoff_seconds": config.source.retry_backoff_seconds,
        },
        "stats": {
            "top_categories": config.stats.top_categories,
            "top_locations": config.stats.top_locations,
            "recent": config.stats.recent,
        },
    }
