import os
import re
from decimal import Decimal

from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _env_text(name: str, default: str) -> str:
    return os.getenv(name, default).strip() or default


def runtime_environment() -> str:
    """Lido a cada chamada: ENVIRONMENT tem prioridade sobre ENV."""
    return os.getenv("ENVIRONMENT", os.getenv("ENV", "dev")).strip().lower()


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
ENV = runtime_environment()
IS_DEV = ENV in {"dev", "development", "local", "test"}
IS_STAGE = ENV in {"stage", "staging", "homolog"}
IS_PROD = ENV in {"prod", "production"}
PUBLIC_BASE_DOMAIN = _env_text("PUBLIC_BASE_DOMAIN", "mandarpedido.com").lower()

# Sessão do carrinho e loja
CART_SESSION_HEADER = _env_text("CART_SESSION_HEADER", "X-Cart-Session")
TENANT_HEADER = _env_text("TENANT_HEADER", "X-Tenant-Slug")
CART_STORAGE_KEY = _env_text("CART_STORAGE_KEY", "cartItems")

# Checkout
AVAILABILITY_HORIZON_DAYS = int(os.getenv("AVAILABILITY_HORIZON_DAYS", "14"))
DEFAULT_POINTS_REDEEM_RATIO = Decimal(os.getenv("DEFAULT_POINTS_REDEEM_RATIO", "1"))
ENFORCE_OPTION_BOUNDS = _env_flag("ENFORCE_OPTION_BOUNDS", "1")

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "").split(",")
    if origin.strip() and origin.strip() != "*"
]
if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

CORS_ALLOW_ORIGIN_REGEX = os.getenv("CORS_ALLOW_ORIGIN_REGEX", "").strip() or None
if CORS_ALLOW_ORIGIN_REGEX is None and not IS_DEV and PUBLIC_BASE_DOMAIN:
    # cada loja é um subdomínio da vitrine
    CORS_ALLOW_ORIGIN_REGEX = rf"^https://([a-z0-9-]+\.)?{re.escape(PUBLIC_BASE_DOMAIN)}$"
