# File: server.py
# FastAPI application for the interview practice server.
# Wires configuration, logging, the interview engine and the routers together.

import logging
import logging.handlers
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interview_realtime import ConfigurationProvider, InterviewEngine
from interview_realtime.adapters.config import EnvConfigurationProvider, YAMLConfigurationProvider
from interview_realtime.core.models import utc_now
from interview_realtime.plugins.middleware import TimingMiddleware, create_logging_middleware_from_config
from routers.core import eval as eval_router, interview
from routers.management import sessions
from routers.websocket import websocket_interview

logger = logging.getLogger(__name__)

SERVICE_NAME = "interview-practice-server"
VERSION = "0.1.0"


def load_configuration() -> ConfigurationProvider:
    """YAML file named by INTERVIEW_CONFIG when set, otherwise environment variables."""
    config_path = os.environ.get("INTERVIEW_CONFIG")
    if config_path:
        return YAMLConfigurationProvider(Path(config_path))
    return EnvConfigurationProvider()


def setup_logging(server_config: Dict[str, Any]) -> None:
    """Console plus rotating file logging."""
    log_level = getattr(logging, str(server_config.get("log_level") or "INFO").upper(), logging.INFO)
    handlers = [logging.StreamHandler()]

    log_file = server_config.get("log_file")
    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                str(log_file_path),
                maxBytes=int(server_config.get("log_file_max_size_mb", 10)) * 1024 * 1024,
                backupCount=int(server_config.get("log_file_backup_count", 5)),
                encoding="utf-8",
            )
        )

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_engine(config_provider: ConfigurationProvider) -> InterviewEngine:
    """Engine with configured providers, store and the standard middleware."""
    engine = InterviewEngine.from_config(config_provider)
    server_config = config_provider.get_server_config()
    engine.add_middleware(create_logging_middleware_from_config(server_config))
    engine.add_middleware(TimingMiddleware(log_threshold_ms=server_config.get("slow_exchange_ms", 3000.0)))
    return engine


def create_app(
    config_provider: Optional[ConfigurationProvider] = None,
    engine: Optional[InterviewEngine] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config_provider: Configuration source, defaults to load_configuration()
        engine: Pre-built engine (tests); built from configuration when omitted
    """
    config_provider = config_provider or load_configuration()
    server_config = config_provider.get_server_config()
    engine = engine or create_engine(config_provider)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{SERVICE_NAME}: starting with {engine.get_status()}")
        engine.build()
        try:
            yield
        finally:
            logger.info(f"{SERVICE_NAME}: shutting down...")
            await engine.shutdown()
            logger.info(f"{SERVICE_NAME}: shutdown complete.")

    app = FastAPI(
        title="Interview Practice Server",
        description="Real-time interview practice over WebSocket and REST with pluggable STT, LLM and TTS providers.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.api_key = server_config.get("api_key")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.get("cors_origins") or ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(interview.router)
    app.include_router(eval_router.router)
    app.include_router(sessions.router)
    app.include_router(websocket_interview.router)

    @app.get("/health", tags=["System"])
    async def health_check():
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": VERSION,
            "timestamp": utc_now().isoformat(),
            "engine": engine.get_status(),
        }

    @app.get("/", tags=["System"])
    async def root():
        return {"message": f"{SERVICE_NAME} is running.", "docs": "/docs"}

    return app


def main() -> None:
    config_provider = load_configuration()
    server_config = config_provider.get_server_config()
    setup_logging(server_config)

    host = server_config.get("host", "0.0.0.0")
    port = int(server_config.get("port", 8000))
    logger.info(f"Starting {SERVICE_NAME} on http://{host}:{port}")

    uvicorn.run(
        create_app(config_provider),
        host=host,
        port=port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
