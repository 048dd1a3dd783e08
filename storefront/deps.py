# storefront/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from storefront.core.config import CART_SESSION_HEADER
from storefront.core.database import get_db
from storefront.core.request_context import set_request_context
from storefront.services.cart_storage import SqlAlchemyCartStorage
from storefront.services.cart_store import CartStore
from storefront.services.tenant_resolver import TenantResolver
from storefront.utils.slug import normalize_session_id


def get_tenant_slug(request: Request) -> str:
    """Slug da loja já resolvido pelo middleware (ou resolvido aqui, em testes)."""
    tenant_slug = getattr(request.state, "tenant_slug", None)
    if not tenant_slug:
        tenant_slug = TenantResolver.resolve_slug_from_request(request)
    if not tenant_slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Loja não identificada")
    return tenant_slug


def get_cart_session_id(request: Request) -> str:
    raw = request.headers.get(CART_SESSION_HEADER)
    if not (raw or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sessão do carrinho ausente")
    session_id = normalize_session_id(raw)
    if not session_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sessão do carrinho inválida")
    set_request_context(cart_session=session_id)
    return session_id


def get_cart_store(
    db: Session = Depends(get_db),
    tenant_slug: str = Depends(get_tenant_slug),
    session_id: str = Depends(get_cart_session_id),
) -> CartStore:
    storage = SqlAlchemyCartStorage(db, tenant_slug=tenant_slug, session_id=session_id)
    return CartStore(storage)
