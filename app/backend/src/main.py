"""Entrypoint for the FastAPI application."""

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load .env locally only; deployed environments inject env vars.
env_path = os.path.join(os.path.dirname(__file__), "../.env")
if os.path.exists(env_path):
    load_dotenv(dotenv_path=os.path.abspath(env_path))

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import health, invoices
from .core.config import get_settings
from .core.logging import configure_logging
from .db import init_db

LOGGER = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Schema is created once per process, before requests are served.
    if get_settings().auto_create_schema:
        init_db()
        LOGGER.info("database_schema_ready")
    yield


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Invoice Billing Service", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api")
    app.include_router(invoices.router, prefix="/api")

    return app


app = create_app()
