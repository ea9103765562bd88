"""Core shared helpers for knowit commands."""

from __future__ import annotations

from .config import (
    ConfigError,
    KnowItConfig,
    load_config,
    resolve_config_path,
    write_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    describe_layout,
    ensure_workspace,
)

__all__ = [
    "ConfigError",
    "KnowItConfig",
    "load_config",
    "resolve_config_path",
    "write_template",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "describe_layout",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
