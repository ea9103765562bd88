"""Per-command bootstrap: config, workspace, logging and answer storage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .cache import AnswerCache, JsonFileStorage
from .core.config import KnowItConfig, load_config
from .core.logging import configure_logger
from .core.workspace import WorkspaceLayout, ensure_workspace

__all__ = ["STORAGE_FILENAME", "Runtime", "bootstrap", "open_answer_cache"]

STORAGE_FILENAME = "local_storage.json"


@dataclass(frozen=True)
class Runtime:
    config: KnowItConfig
    layout: WorkspaceLayout
    logger: logging.Logger
    log_path: Path


def bootstrap(
    *,
    config_path: Optional[Path] = None,
    verbose: bool = False,
    env: Mapping[str, str] | None = None,
) -> Runtime:
    """Load configuration and wire the ``knowit`` logger into the workspace.

    Raises ``ConfigError`` or ``WorkspaceError`` for the CLI to report.
    """

    config = load_config(explicit_path=config_path, env=env)
    layout = ensure_workspace(env=env)
    logger, log_path = configure_logger(
        "knowit",
        log_dir=layout.path_for("logs"),
        level=config.logging.level,
        verbose=verbose or config.logging.verbose,
    )
    logger.debug(
        "Runtime ready",
        extra={"event": "bootstrap", "workspace": layout.home},
    )
    return Runtime(config=config, layout=layout, logger=logger, log_path=log_path)


def open_answer_cache(runtime: Runtime) -> AnswerCache:
    storage = JsonFileStorage(runtime.layout.path_for("storage") / STORAGE_FILENAME)
    return AnswerCache(
        storage,
        key=runtime.config.cache.storage_key,
        max_items=runtime.config.cache.max_items,
    )
