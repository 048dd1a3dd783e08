import pytest
from starlette.requests import Request

from storefront.services.tenant_resolver import TenantResolutionError, TenantResolver
from storefront.utils.slug import normalize_session_id, normalize_slug


def _build_request(headers: dict[str, str] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/storefront/cart",
        "query_string": b"",
        "headers": [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()],
    }
    return Request(scope)


def test_normalize_slug_strips_accents_and_symbols():
    assert normalize_slug("Padaria São-João!") == "padariasaojoao"
    assert normalize_slug("") == ""


def test_extract_subdomain_from_host():
    assert TenantResolver.extract_subdomain("BurgerHouse.mandarpedido.com:443", "mandarpedido.com") == "burgerhouse"
    assert TenantResolver.extract_subdomain("https://loja.mandarpedido.com/menu", "*.mandarpedido.com") == "loja"


@pytest.mark.parametrize("host", ["", "mandarpedido.com", "loja.outrodominio.com", "fakemandarpedido.com"])
def test_extract_subdomain_rejects_invalid_hosts(host):
    with pytest.raises(TenantResolutionError):
        TenantResolver.extract_subdomain(host, "mandarpedido.com")


def test_resolve_slug_prefers_subdomain(monkeypatch):
    from storefront.services import tenant_resolver

    monkeypatch.setattr(
        tenant_resolver.TenantResolver,
        "extract_subdomain",
        classmethod(lambda cls, host, base_domain="": "daurl"),
    )
    request = _build_request({"host": "daurl.example.com", "X-Tenant-Slug": "doheader"})

    assert TenantResolver.resolve_slug_from_request(request) == "daurl"


def test_resolve_slug_falls_back_to_header():
    request = _build_request({"host": "testserver", "X-Tenant-Slug": "Burger House"})

    assert TenantResolver.resolve_slug_from_request(request) == "burgerhouse"


def test_resolve_slug_returns_none_without_hints():
    assert TenantResolver.resolve_slug_from_request(_build_request({"host": "testserver"})) is None


def test_normalize_session_id():
    assert normalize_session_id("  abc-123_X ") == "abc-123_X"
    assert normalize_session_id("abc def") == ""
    assert normalize_session_id("x" * 121) == ""
    assert normalize_session_id(None) == ""
