"""
Keep-alive web server.
Exposes bot health for uptime monitors and container orchestrators.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from bot import __version__
from bot.config import Config
from utils.logger import get_logger
from utils.monitoring import Monitoring

logger = get_logger("KeepAlive")


def create_app(monitoring: Monitoring) -> FastAPI:
    """
    Build the health app around a monitoring instance.

    Args:
        monitoring: Metrics source shared with the router

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Keep-alive server starting...")
        yield
        logger.info("Keep-alive server shutting down...")

    app = FastAPI(
        title="Guild Moderation Bot",
        description="Moderation bot keep-alive server",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root():
        """Root endpoint."""
        health = monitoring.get_health_status()
        return {
            "name": "Guild Moderation Bot",
            "version": __version__,
            "status": health.status,
        }

    @app.get("/health")
    async def health():
        """Health check endpoint for monitoring."""
        status = monitoring.get_health_status()
        return JSONResponse(
            status_code=200 if status.healthy else 503,
            content=monitoring.get_full_status(status),
        )

    @app.get("/ping")
    async def ping():
        """Simple ping endpoint."""
        return {"pong": True}

    return app


async def start_server(config: Config, monitoring: Monitoring) -> None:
    """Start the keep-alive server."""
    import uvicorn

    config_uvicorn = uvicorn.Config(
        create_app(monitoring),
        host=config.HOST,
        port=config.PORT,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config_uvicorn)

    logger.info(f"Keep-alive server listening on port {config.PORT}")
    await server.serve()


def run_server(config: Config, monitoring: Monitoring) -> asyncio.Task:
    """Run server in background task."""
    return asyncio.create_task(start_server(config, monitoring), name="keep-alive")
