"""``knowit serve``: run the quiz proxy under uvicorn."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

import uvicorn

from ..core.config import ConfigError
from ..core.workspace import WorkspaceError
from ..runtime import bootstrap
from .app import create_app


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="knowit serve",
        description="Serve GET /api/quiz as a proxy to the quiz provider.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to knowit.toml (defaults to KNOWIT_CONFIG or the workspace).",
    )
    parser.add_argument("--host", help="Bind address (defaults to server.host).")
    parser.add_argument(
        "--port", type=int, help="Bind port (defaults to server.port)."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also log to stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        runtime = bootstrap(config_path=args.config, verbose=args.verbose)
    except (ConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 2

    host = args.host or runtime.config.server.host
    port = args.port if args.port is not None else runtime.config.server.port
    runtime.logger.info(
        "Serving quiz proxy on %s:%s",
        host,
        port,
        extra={"event": "serve_start"},
    )
    uvicorn.run(create_app(runtime.config.upstream), host=host, port=port)
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
