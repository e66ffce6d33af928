#!/usr/bin/env python3

"""
Main application entry point for the Postboard blog API.

Architecture: FastAPI application with an async SQL database, bearer-token
authentication and an interceptor-based request pipeline.
Key Features: Lifecycle management, database health checks, uniform error
envelope, request metrics, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import contextlib
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.auth import router as auth_router
from app.api.health import router as health_router
from app.api.posts import router as posts_router
from app.api.users import router as users_router
from app.config import settings
from app.db import check_db_connection, close_db, init_db
from app.middleware import (
    RequestPipelineMiddleware,
    default_interceptors,
    register_exception_handlers,
)
from app.services.metrics import RequestMetrics, run_periodic_report
from app.utils.logger import cleanup_old_logs, setup_logger

logger = setup_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Prepare the database on startup and run the periodic metrics report.
    """
    logger.info("Application startup...")
    try:
        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialization complete.")

        logger.info("Checking database connectivity...")
        if await check_db_connection():
            logger.info("Database connectivity confirmed.")
        else:
            logger.critical("Database connectivity check failed.")
            raise SystemExit("Database connection failed.")

    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    cleanup_old_logs()

    report_task = None
    interval = settings.metrics_report_interval_seconds
    if interval > 0:
        report_task = asyncio.create_task(
            run_periodic_report(app.state.metrics, interval)
        )

    logger.info(f"Postboard API startup successful ({settings.app_env}).")

    yield

    logger.info("Postboard API shutdown...")
    if report_task is not None:
        report_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await report_task
    app.state.metrics.generate_report()
    await close_db()
    logger.info("Shutdown complete.")


def create_app(metrics: RequestMetrics | None = None) -> FastAPI:
    app = FastAPI(title="Postboard API", lifespan=lifespan)
    if metrics is None:
        metrics = RequestMetrics(slow_threshold_ms=settings.slow_request_threshold_ms)
    app.state.metrics = metrics

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(posts_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    # Added last so it wraps CORS and sees every response
    app.add_middleware(
        RequestPipelineMiddleware,
        interceptors=default_interceptors(app.state.metrics),
    )

    return app


app = create_app()


def main():
    """
    Start the FastAPI application with uvicorn.
    """
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting Postboard API server on {host}:{port}")

    try:
        uvicorn.run(
            "main:app" if settings.server_workers > 1 else app,
            host=host,
            port=port,
            workers=settings.server_workers,
        )
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
