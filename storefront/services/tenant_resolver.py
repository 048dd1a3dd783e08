from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Request

from storefront.core.config import PUBLIC_BASE_DOMAIN, TENANT_HEADER
from storefront.utils.slug import normalize_slug

logger = logging.getLogger(__name__)


class TenantResolutionError(Exception):
    pass


class TenantResolver:
    """Resolve o slug da loja pelo subdomínio ou pelo header ``X-Tenant-Slug``."""

    @staticmethod
    def normalize_host(host: str) -> str:
        """Primeiro host de um header (x-forwarded-host pode trazer lista), sem esquema, caminho ou porta."""
        first = (host or "").split(",")[0].strip().lower()
        if not first:
            return ""
        if "//" not in first:
            first = f"//{first}"
        return (urlsplit(first).hostname or "").lower()

    @classmethod
    def normalize_base_domain(cls, base_domain: str) -> str:
        return cls.normalize_host(base_domain).removeprefix("*.").lstrip(".")

    @classmethod
    def extract_subdomain(cls, host: str, base_domain: str = PUBLIC_BASE_DOMAIN) -> str:
        normalized_host = cls.normalize_host(host)
        if not normalized_host:
            raise TenantResolutionError("Invalid host")

        base = cls.normalize_base_domain(base_domain)
        if not base:
            raise TenantResolutionError("Invalid host")
        if normalized_host == base:
            raise TenantResolutionError("Subdomain is empty")
        if not normalized_host.endswith(f".{base}"):
            raise TenantResolutionError("Invalid host")

        subdomain = normalized_host[: -len(base) - 1]
        normalized_subdomain = normalize_slug(subdomain)
        if not normalized_subdomain:
            raise TenantResolutionError("Subdomain is empty")
        return normalized_subdomain

    @classmethod
    def resolve_slug_from_request(cls, request: Request) -> Optional[str]:
        host = request.headers.get("x-forwarded-host") or request.headers.get("host") or ""
        try:
            return cls.extract_subdomain(host)
        except TenantResolutionError:
            pass

        header_slug = normalize_slug(request.headers.get(TENANT_HEADER) or "")
        if header_slug:
            return header_slug

        logger.debug("tenant not resolved host=%s", host)
        return None
