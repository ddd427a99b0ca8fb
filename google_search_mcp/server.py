#!/usr/bin/env python3
"""
HTTP analyze API
Page analysis over HTTP, for clients that do not speak MCP.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# FastAPI for HTTP server
from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
import uvicorn

from . import __version__
from .config.settings import Settings
from .errors import FailureKind, ToolError
from .search.fetcher import ContentFetcher

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_KIND = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.ACCESS_DENIED: 403,
    FailureKind.INVALID_ARGUMENT: 400,
}


# Request/Response models
class AnalyzeRequest(BaseModel):
    url: str = Field(..., description="URL of the webpage to analyze")


class BatchAnalyzeRequest(BaseModel):
    urls: List[str] = Field(..., min_length=1, description="URLs of the webpages to analyze")


class AnalyzeResponse(BaseModel):
    title: str
    text: str
    metadata: Dict[str, Any]


class BatchAnalyzeResponse(BaseModel):
    results: List[Dict[str, Any]]


def create_app(settings: Optional[Settings] = None, fetcher: Optional[ContentFetcher] = None) -> FastAPI:
    """Build the FastAPI application"""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for FastAPI app"""
        # Startup
        app.state.fetcher = fetcher or ContentFetcher(settings.config.fetch)
        logger.info("HTTP API Server started")

        yield

        # Shutdown
        await app.state.fetcher.close()
        logger.info("HTTP API Server stopped")

    app = FastAPI(
        title="Google Search MCP - Analyze API",
        description="Main-content extraction for arbitrary webpages",
        version=__version__,
        lifespan=lifespan
    )

    @app.get("/health")
    async def health():
        """Health check with more details"""
        return {
            "status": "healthy",
            "service": "Google Search MCP Analyze API",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze_endpoint(body: AnalyzeRequest, request: Request):
        """Analyze one webpage"""
        try:
            analysis = await request.app.state.fetcher.analyze(body.url)
        except ToolError as e:
            status_code = HTTP_STATUS_BY_KIND.get(e.kind, 500)
            logger.warning(f"Analyze error for {body.url}: {e.message}")
            raise HTTPException(status_code=status_code, detail={"error": e.message, "kind": e.kind.value})

        return AnalyzeResponse(**analysis.to_dict())

    @app.post("/batch_analyze", response_model=BatchAnalyzeResponse)
    async def batch_analyze_endpoint(body: BatchAnalyzeRequest, request: Request):
        """Analyze several webpages; per-URL failures are reported inline"""
        results = await request.app.state.fetcher.batch_analyze(body.urls)
        return BatchAnalyzeResponse(results=results)

    return app


def run_http_server(settings: Optional[Settings] = None):
    """Run HTTP server"""
    settings = settings or Settings()
    settings.setup_logging()

    if not settings.validate_config():
        logger.error("Configuration invalide, arrêt du serveur")
        raise SystemExit(1)

    logger.info(f"Starting HTTP server on {settings.config.http_host}:{settings.config.http_port}")
    uvicorn.run(
        create_app(settings),
        host=settings.config.http_host,
        port=settings.config.http_port,
        log_level=settings.config.log_level.lower()
    )


if __name__ == "__main__":
    run_http_server()
