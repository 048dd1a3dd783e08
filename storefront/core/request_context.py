from __future__ import annotations

from contextvars import ContextVar


_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
_TENANT_ID_CTX: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_CART_SESSION_CTX: ContextVar[str | None] = ContextVar("cart_session", default=None)


def set_request_context(
    *, request_id: str | None = None, tenant_id: str | None = None, cart_session: str | None = None
) -> None:
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)
    if tenant_id is not None:
        _TENANT_ID_CTX.set(tenant_id)
    if cart_session is not None:
        _CART_SESSION_CTX.set(cart_session)


def get_request_id() -> str | None:
    return _REQUEST_ID_CTX.get()


def get_tenant_id() -> str | None:
    return _TENANT_ID_CTX.get()


def get_cart_session() -> str | None:
    return _CART_SESSION_CTX.get()


def clear_request_context() -> None:
    _REQUEST_ID_CTX.set(None)
    _TENANT_ID_CTX.set(None)
    _CART_SESSION_CTX.set(None)
