from __future__ import annotations

import logging

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crm_api import models  # noqa: F401
from crm_api.core.config import settings
from crm_api.db import engine
from crm_api.models.base import Base

from crm_api.routes.accounts import router as accounts_router
from crm_api.routes.address import router as address_router
from crm_api.routes.individual_contacts import router as individual_contacts_router
from crm_api.routes.industries import router as industries_router

logger = logging.getLogger(__name__)

SERVICE = "survey-crm-api"
VERSION = "1.0.0"

# ============================================================
# DB table creation (DEV ONLY)
# - In production, prefer Alembic migrations.
# - Guarded so a transient DB outage doesn't prevent app startup.
# ============================================================
if settings.RUN_CREATE_ALL:
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("DB tables ensured via create_all (RUN_CREATE_ALL=1).")
    except Exception:
        logger.exception("Base.metadata.create_all failed; continuing startup without it.")

app = FastAPI(
    title="Survey CRM API",
    version=VERSION,
)

# ============================================================
# CORS
# - Include localhost for dev and FRONTEND_URL for production.
# ============================================================
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

frontend_url = settings.FRONTEND_URL
if isinstance(frontend_url, str) and frontend_url.strip():
    origins.append(frontend_url.strip())

# Deduplicate + drop empties
allow_origins = sorted({o for o in origins if o})

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"


@app.api_route("/", methods=["GET", "HEAD"], status_code=status.HTTP_200_OK)
def root():
    return {
        "status": "ok",
        "service": SERVICE,
        "version": VERSION,
    }


@app.api_route("/health", methods=["GET", "HEAD"], status_code=status.HTTP_200_OK)
def health_check():
    """Health check endpoint for uptime monitoring."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        return {
            "status": "ok",
            "service": SERVICE,
            "version": VERSION,
            "database": "connected",
        }

    except SQLAlchemyError:
        return {
            "status": "error",
            "service": SERVICE,
            "database": "disconnected",
        }


# Routers
app.include_router(accounts_router, prefix=API_PREFIX)
app.include_router(individual_contacts_router, prefix=API_PREFIX)
app.include_router(industries_router, prefix=API_PREFIX)
app.include_router(address_router, prefix=API_PREFIX)
