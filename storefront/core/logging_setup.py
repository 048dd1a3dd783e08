from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime, timezone

from storefront.core.request_context import get_cart_session, get_request_id, get_tenant_id

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Campos opcionais que os handlers podem mandar via ``extra``.
_EXTRA_FIELDS = ("endpoint", "method", "status_code", "duration_ms")

# Códigos de cupom/vale e dados de contato do cliente não vão para o log.
_MASKED_KEYS = re.compile(r"((?:barcode|coupon|voucher|email|phone|token)\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE)
_EMAIL = re.compile(r"[\w.+-]+@[\w-]+\.[\w.]+")


class RequestContextFilter(logging.Filter):
    """Copia request/tenant/sessão do contextvars para o record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        if getattr(record, "tenant_id", None) is None:
            record.tenant_id = get_tenant_id()
        if getattr(record, "cart_session", None) is None:
            record.cart_session = get_cart_session()
        return True


def mask_sensitive(value: str) -> str:
    masked = _MASKED_KEYS.sub(r"\1***", value)
    return _EMAIL.sub("***@***", masked)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "request_id": getattr(record, "request_id", None),
            "tenant": getattr(record, "tenant_id", None),
            "cart_session": getattr(record, "cart_session", None),
            "message": mask_sensitive(record.getMessage()),
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str = LOG_LEVEL) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)
