"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_exception_handlers
from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.database import SessionLocal
from app.services.bootstrap import run_bootstrap
from app.services.credential_store import CredentialStore

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Ensure canonical roles and the first administrator exist before serving."""
    if settings.BOOTSTRAP_ON_STARTUP:
        db = SessionLocal()
        try:
            run_bootstrap(CredentialStore(db), settings)
        finally:
            db.close()
    yield


app = FastAPI(
    title="Altenburg Auth API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

if settings.APP_ENV == "dev" and settings.CORS_ORIGINS.strip() == "*":
    allow_origins = ["*"]
else:
    allow_origins = [o for o in settings.cors_origins_list() if o != "*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Altenburg Auth API"}
