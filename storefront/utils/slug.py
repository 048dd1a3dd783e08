import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{1,120}$")

# limite de um rótulo DNS
MAX_SLUG_LENGTH = 63


def normalize_slug(value: Optional[str]) -> str:
    """Slug da loja como aparece no subdomínio: ascii minúsculo, só letras e dígitos."""
    if not value:
        return ""

    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("", ascii_value.lower())[:MAX_SLUG_LENGTH]


def normalize_session_id(value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    if not _SESSION_ID.match(cleaned):
        return ""
    return cleaned
