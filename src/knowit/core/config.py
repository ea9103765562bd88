"""TOML-backed configuration for knowit.

The config file groups related concerns into tables. Every key has a default
so a missing file is valid; unknown keys are rejected so typos surface early.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - should never happen
    raise RuntimeError("Python 3.11+ required for tomllib support") from exc

from dotenv import load_dotenv

from . import workspace

__all__ = [
    "CONFIG_PATH_ENV",
    "CONFIG_FILENAME",
    "ConfigError",
    "UpstreamConfig",
    "SessionConfig",
    "CacheConfig",
    "ServerConfig",
    "LoggingConfig",
    "KnowItConfig",
    "load_config",
    "resolve_config_path",
    "default_tree",
    "config_template",
    "write_template",
]


CONFIG_PATH_ENV = "KNOWIT_CONFIG"
CONFIG_FILENAME = "knowit.toml"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class UpstreamConfig:
    base_url: str
    user_agent: str
    timeout_seconds: float


@dataclass(frozen=True)
class SessionConfig:
    question_count: int
    categories: tuple[str, ...]
    difficulties: tuple[str, ...]


@dataclass(frozen=True)
class CacheConfig:
    max_items: int
    storage_key: str


@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class KnowItConfig:
    upstream: UpstreamConfig
    session: SessionConfig
    cache: CacheConfig
    server: ServerConfig
    logging: LoggingConfig


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted,
                        type(value).__name__,
                    )
                )
            _merge_dict(base_value, value, path=f"{dotted}.")
        else:
            base[key] = value


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_positive_number(value: Any, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    if value <= 0:
        raise ConfigError(f"'{field}' must be greater than zero.")
    return float(value)


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_vocabulary(value: Any, *, field: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"'{field}' must be a non-empty list of strings.")
    tokens = tuple(
        _require_string(item, field=f"{field}[{idx}]")
        for idx, item in enumerate(value)
    )
    return tokens


def _build_upstream(section: Mapping[str, Any]) -> UpstreamConfig:
    base_url = _require_string(
        section.get("base_url"), field="upstream.base_url"
    )
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError("upstream.base_url must be an http(s) URL.")
    return UpstreamConfig(
        base_url=base_url,
        user_agent=_require_string(
            section.get("user_agent"), field="upstream.user_agent"
        ),
        timeout_seconds=_require_positive_number(
            section.get("timeout_seconds"), field="upstream.timeout_seconds"
        ),
    )


def _build_session(section: Mapping[str, Any]) -> SessionConfig:
    return SessionConfig(
        question_count=_require_positive_int(
            section.get("question_count"), field="session.question_count"
        ),
        categories=_require_vocabulary(
            section.get("categories"), field="session.categories"
        ),
        difficulties=_require_vocabulary(
            section.get("difficulties"), field="session.difficulties"
        ),
    )


def _build_cache(section: Mapping[str, Any]) -> CacheConfig:
    return CacheConfig(
        max_items=_require_positive_int(
            section.get("max_items"), field="cache.max_items"
        ),
        storage_key=_require_string(
            section.get("storage_key"), field="cache.storage_key"
        ),
    )


def _build_server(section: Mapping[str, Any]) -> ServerConfig:
    port = _require_positive_int(section.get("port"), field="server.port")
    if port > 65535:
        raise ConfigError("'server.port' must be at most 65535.")
    return ServerConfig(
        host=_require_string(section.get("host"), field="server.host"),
        port=port,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(tree: Mapping[str, Any]) -> KnowItConfig:
    return KnowItConfig(
        upstream=_build_upstream(tree["upstream"]),
        session=_build_session(tree["session"]),
        cache=_build_cache(tree["cache"]),
        server=_build_server(tree["server"]),
        logging=_build_logging(tree["logging"]),
    )


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    env_override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if env_override:
        return Path(env_override).expanduser().resolve()
    layout = workspace.ensure_workspace(env=env_map)
    return layout.path_for("config") / CONFIG_FILENAME


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> KnowItConfig:
    """Load the TOML config, applying defaults and validation.

    A missing file is not an error unless ``explicit_path`` names it.
    """

    if env is None:
        load_dotenv()
    path = resolve_config_path(explicit_path=explicit_path, env=env)
    tree = default_tree()
    if path.is_file():
        toml_data = _load_toml(path)
        _merge_dict(tree, toml_data)
    elif explicit_path is not None:
        raise ConfigError(f"Config file not found: {path}")
    return _build_config(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template recommended for new installs."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    with path.open("w", encoding="utf-8") as fh:
        fh.write(config_template())
    try:
        path.chmod(mode)
    except PermissionError:
        pass
    return path


_CATEGORIES = [
    "musique",
    "culture_generale",
    "art_litterature",
    "tv_cinema",
    "actu_politique",
    "sport",
    "jeux_videos",
    "histoire",
    "geographie",
    "science",
    "gastronomie",
]

_DIFFICULTIES = ["facile", "normal", "difficile"]


_DEFAULTS: Dict[str, Any] = {
    "upstream": {
        "base_url": "https://quizzapi.jomoreschi.fr/api/v2/quiz",
        "user_agent": "KnowIt/1.0",
        "timeout_seconds": 10.0,
    },
    "session": {
        "question_count": 5,
        "categories": list(_CATEGORIES),
        "difficulties": list(_DIFFICULTIES),
    },
    "cache": {
        "max_items": 200,
        "storage_key": "knowit.correctQuestions.v1",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8000,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# KnowIt configuration

[upstream]
# Quiz provider queried by `knowit play` and proxied by `knowit serve`
base_url = "https://quizzapi.jomoreschi.fr/api/v2/quiz"
user_agent = "KnowIt/1.0"
# Seconds before a single upstream request is abandoned
timeout_seconds = 10.0

[session]
# Questions per session
question_count = 5
# Vocabularies sampled (with replacement) for each question request
categories = [
    "musique", "culture_generale", "art_litterature", "tv_cinema",
    "actu_politique", "sport", "jeux_videos", "histoire", "geographie",
    "science", "gastronomie",
]
difficulties = ["facile", "normal", "difficile"]

[cache]
# Correct answers kept for review; oldest entries are evicted first
max_items = 200
storage_key = "knowit.correctQuestions.v1"

[server]
host = "127.0.0.1"
port = 8000

[logging]
level = "INFO"
verbose = false
"""
