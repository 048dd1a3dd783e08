import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.core.config import CORS_ALLOW_ORIGIN_REGEX, CORS_ORIGINS, DATABASE_URL, ENV
from storefront.core.database import Base, engine
from storefront.core.logging_setup import configure_logging
from storefront.core.startup_checks import ensure_migrations_applied, validate_database_environment
from storefront.middleware.observability import ObservabilityMiddleware
from storefront.middleware.tenant_context import TenantContextMiddleware
import storefront.models  # registra cart_snapshots no metadata antes do create_all

from storefront.routers.availability import router as availability_router
from storefront.routers.cart import cart_persistence_error_handler, router as cart_router
from storefront.services.cart_store import CartPersistenceError
from storefront.routers.checkout import router as checkout_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(Path(__file__).resolve().parents[1] / "alembic.ini"))
)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        # sqlite só existe em dev/testes; lá o schema vem do metadata
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s startup failed env=%s", STARTUP_PREFIX, ENV)
        raise
    logger.info("%s storefront ready env=%s", STARTUP_PREFIX, ENV)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(title="Storefront API", lifespan=lifespan)

# a última adicionada roda primeiro
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(TenantContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CartPersistenceError, cart_persistence_error_handler)

for router in (cart_router, availability_router, checkout_router):
    app.include_router(router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
