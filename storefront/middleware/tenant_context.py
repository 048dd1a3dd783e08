from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.request_context import set_request_context
from storefront.services.tenant_resolver import TenantResolver


class TenantContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        tenant_slug = TenantResolver.resolve_slug_from_request(request)
        request.state.tenant_slug = tenant_slug
        if tenant_slug:
            set_request_context(tenant_id=tenant_slug)
        return await call_next(request)
