"""Property Admin API application.

Wires routers, error envelopes and CORS onto one FastAPI app. Run with
``python src/api/main.py`` or ``uvicorn api.main:app``.
"""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# .env must be loaded before session_service reads JWT_SECRET_KEY
load_dotenv()

_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api.errors import register_exception_handlers
from api.routes import admin, auth, health
from utils.logging import setup_structured_logging
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.indexes import ensure_all_indexes

setup_structured_logging()

logger = logging.getLogger(__name__)

SERVICE_NAME = "Property Admin API"


def _read_version() -> str:
    with open(_src_path.parent / "pyproject.toml", "rb") as f:
        return tomllib.load(f)["project"]["version"]


VERSION = _read_version()


def _cors_settings() -> tuple[list[str], bool]:
    """Allowed origins from CORS_ORIGINS and whether credentials may be sent.

    A wildcard origin cannot be combined with credentials in browsers.
    """
    raw = os.getenv("CORS_ORIGINS", "*").strip()
    if raw == "*":
        logger.warning("CORS_ORIGINS is '*'; set explicit admin origins in production")
        return ["*"], False

    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    logger.info("CORS restricted to configured origins", extra={"origins": origins})
    return origins, True


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = get_mongodb_client()
    if client is None:
        logger.warning("MongoDB unavailable at startup; indexes not verified")
    elif ensure_all_indexes(client[DATABASE_NAME]):
        logger.info("MongoDB indexes ready", extra={"database": DATABASE_NAME})
    else:
        logger.warning("Some MongoDB indexes could not be created", extra={"database": DATABASE_NAME})
    yield


app = FastAPI(
    title=SERVICE_NAME,
    description="Back-office API for the property marketplace: authentication and admin resources",
    version=VERSION,
    lifespan=lifespan,
)

register_exception_handlers(app)

_origins, _allow_credentials = _cors_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

for _router in (health.router, auth.router, admin.router):
    app.include_router(_router)


@app.get("/")
async def root():
    return {"service": SERVICE_NAME, "version": VERSION, "status": "running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        access_log=False,
    )
