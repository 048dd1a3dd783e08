from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Optional

from sqlalchemy.orm import Session

from storefront.core.config import CART_STORAGE_KEY
from storefront.models.cart_snapshot import CartSnapshot

logger = logging.getLogger(__name__)


class CartStorage(ABC):
    @abstractmethod
    def load(self) -> Optional[str]:
        """Retorna o JSON salvo do carrinho ou None quando não existe."""

    @abstractmethod
    def save(self, payload: str) -> None:
        """Grava o JSON completo do carrinho, substituindo o anterior."""


class InMemoryCartStorage(CartStorage):
    """Armazenamento em memória, usado em testes e no modo quiosque."""

    def __init__(self, initial: Optional[str] = None) -> None:
        self._payload = initial
        self._lock = Lock()
        self.saves = 0

    def load(self) -> Optional[str]:
        with self._lock:
            return self._payload

    def save(self, payload: str) -> None:
        with self._lock:
            self._payload = payload
            self.saves += 1


class SqlAlchemyCartStorage(CartStorage):
    """Uma linha de ``cart_snapshots`` por tenant + sessão de carrinho."""

    def __init__(self, db: Session, *, tenant_slug: str, session_id: str, storage_key: str = CART_STORAGE_KEY) -> None:
        self.db = db
        self.tenant_slug = tenant_slug
        self.session_id = session_id
        self.storage_key = storage_key

    def _query(self):
        return self.db.query(CartSnapshot).filter(
            CartSnapshot.tenant_slug == self.tenant_slug,
            CartSnapshot.session_id == self.session_id,
        )

    def load(self) -> Optional[str]:
        snapshot = self._query().first()
        if snapshot is None:
            return None
        return snapshot.payload

    def save(self, payload: str) -> None:
        snapshot = self._query().first()
        if snapshot is None:
            snapshot = CartSnapshot(
                tenant_slug=self.tenant_slug,
                session_id=self.session_id,
                storage_key=self.storage_key,
                payload=payload,
            )
            self.db.add(snapshot)
        else:
            snapshot.payload = payload
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            "cart snapshot saved tenant=%s session=%s bytes=%s",
            self.tenant_slug,
            self.session_id,
            len(payload),
        )
