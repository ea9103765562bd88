"""Read-through proxy exposing the upstream quiz provider as ``/api/quiz``."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from ..core.config import UpstreamConfig, default_tree
from ..quiz.source import DEFAULT_LIMIT, QuizApiSource, QuizSource

__all__ = ["create_app"]

logger = logging.getLogger(__name__)


def _default_upstream() -> UpstreamConfig:
    section = default_tree()["upstream"]
    return UpstreamConfig(
        base_url=section["base_url"],
        user_agent=section["user_agent"],
        timeout_seconds=float(section["timeout_seconds"]),
    )


def create_app(
    upstream: Optional[UpstreamConfig] = None,
    *,
    source: Optional[QuizSource] = None,
) -> FastAPI:
    """Build the proxy app.

    ``source`` replaces the HTTP-backed adapter, which is otherwise opened
    for the lifetime of the app and shares one connection pool.
    """

    settings = upstream or _default_upstream()

    def _new_source() -> QuizApiSource:
        return QuizApiSource(
            settings.base_url,
            user_agent=settings.user_agent,
            timeout=settings.timeout_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.source is not None:
            yield
            return
        async with _new_source() as shared:
            app.state.source = shared
            try:
                yield
            finally:
                app.state.source = None

    app = FastAPI(title="KnowIt quiz proxy", lifespan=lifespan)
    app.state.source = source

    @app.get("/api/quiz")
    async def api_quiz(
        request: Request,
        limit: str = Query(default=str(DEFAULT_LIMIT)),
        category: Optional[str] = Query(default=None),
        difficulty: Optional[str] = Query(default=None),
    ):
        active = request.app.state.source or _new_source()
        result = await active.fetch(
            limit=limit,
            category=category or None,
            difficulty=difficulty or None,
        )
        logger.info(
            "Proxied quiz request: %s",
            result.describe(),
            extra={"event": "proxy_request", "category": category},
        )
        if result.error == "upstream_error":
            return JSONResponse(
                {"error": "upstream_error", "status": result.status},
                status_code=502,
            )
        if result.error is not None:
            return JSONResponse({"error": "fetch_failed"}, status_code=502)
        return JSONResponse(
            {"results": [q.to_dict() for q in result.questions]}
        )

    return app
