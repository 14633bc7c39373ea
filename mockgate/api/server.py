# mockgate/api/server.py
"""
Mockgate - HTTP layer

server.py responsibilities:
- Imposter loading at startup (lifespan)
- Catch-all route: first matching imposter serves its canned response
- Health endpoint

Matching rules (method, path, headers, query, schema) live in api.matching.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ..utils.load_env import load_env

# Must run before importing settings so env overrides are visible.
load_env()

from . import settings  # noqa: E402
from .imposters import Imposter, load_imposters  # noqa: E402
from .matching import ImposterRouter, SchemaCache  # noqa: E402

# --------------------------------------------------
# Logging (configured once)
# --------------------------------------------------
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("mockgate")

HEALTH_PATH = "/_mockgate/health"
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def build_response(imposter: Imposter) -> Response:
    res = imposter.response
    return Response(
        content=imposter.read_response_body(),
        status_code=res.status,
        headers=dict(res.headers),
    )


def create_app(imposters_dir: Optional[str] = None, *, schema_cache: Optional[bool] = None) -> FastAPI:
    base_dir = imposters_dir or settings.IMPOSTERS_DIR
    cache_enabled = settings.SCHEMA_CACHE_ENABLED if schema_cache is None else schema_cache

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        imposters = load_imposters(base_dir)
        cache = SchemaCache() if cache_enabled else None
        app.state.router = ImposterRouter(imposters, cache=cache)
        logger.info(
            "[startup] imposters=%d dir=%s schema_cache=%s",
            len(app.state.router),
            base_dir,
            cache_enabled,
        )
        try:
            yield
        finally:
            app.state.router = None
            logger.info("[shutdown] imposters released")

    app = FastAPI(lifespan=lifespan)

    @app.get(HEALTH_PATH)
    async def health(request: Request) -> JSONResponse:
        router = request.app.state.router
        return JSONResponse({"ok": True, "imposters": len(router) if router else 0})

    @app.api_route("/{full_path:path}", methods=ALL_METHODS)
    async def serve_imposter(request: Request, full_path: str) -> Response:
        router: Optional[ImposterRouter] = request.app.state.router
        imposter = await router.find(request) if router else None
        if imposter is None:
            logger.info("[serve] no imposter for %s %s", request.method, request.url.path)
            return PlainTextResponse("404 page not found", status_code=404)

        logger.debug("[serve] %s %s -> %s", request.method, request.url.path, imposter.label)
        return build_response(imposter)

    return app


app = create_app()
