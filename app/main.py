from __future__ import annotations

import os
import logging
import time
from typing import List
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.routes.categories import router as categories_router
from app.routes.saved import router as saved_router
from app.routes.workflow import router as workflow_router


def _setup_logging() -> None:
    # Level can be adjusted via ENV LOG_LEVEL
    logging.basicConfig(
        level=(settings.log_level or "info").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _env_list(name: str, upper: bool = False) -> List[str]:
    raw = os.getenv(name, "*").strip()
    if raw == "*":
        return ["*"]
    items = [p.strip() for p in raw.split(",") if p.strip()]
    return [p.upper() for p in items] if upper else items


def create_app() -> FastAPI:
    _setup_logging()
    app = FastAPI(title="Prompt Generator API", version="0.1.0")
    # GenerationWorkflow is created on first request (see app.deps.get_workflow)
    app.state.workflow = None

    logger = logging.getLogger("app.middleware")
    logger.info(
        "app_create env=%s model=%s store=%s",
        settings.env,
        settings.gemini_model,
        settings.resolved_store_backend(),
    )

    # The browser front end may be served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_env_list("CORS_ALLOW_ORIGINS"),
        allow_credentials=True,
        allow_methods=_env_list("CORS_ALLOW_METHODS", upper=True),
        allow_headers=_env_list("CORS_ALLOW_HEADERS"),
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            logger.info(
                "http_request method=%s path=%s status=%s duration_ms=%s",
                request.method,
                request.url.path,
                status,
                int((time.time() - start) * 1000),
            )

    app.include_router(categories_router)
    app.include_router(workflow_router)
    app.include_router(saved_router)
    return app


app = create_app()
