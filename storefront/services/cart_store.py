from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from decimal import Decimal
from threading import Lock
from typing import Any, Optional

from pydantic import ValidationError

from storefront.schemas.cart import CartState, LineItem, LineItemUpdate
from storefront.schemas.fulfillment import METHOD_TYPE_ALIASES, normalize_method_type
from storefront.schemas.promotions import CouponInfo, GiftVoucherInfo, PromotionState
from storefront.services.cart_storage import CartStorage, InMemoryCartStorage
from storefront.services.line_items import compute_signature, line_total, quantize_money

logger = logging.getLogger(__name__)

FULFILLMENT_TYPES = frozenset(METHOD_TYPE_ALIASES.values())


class CartIntegrityError(ValueError):
    pass


class CartPersistenceError(RuntimeError):
    pass


def ensure_line_integrity(item: LineItem) -> None:
    if not item.product_id:
        raise CartIntegrityError("Item do carrinho sem produto")
    if item.quantity is None or item.quantity < 1:
        raise CartIntegrityError(f"Quantidade inválida para {item.product_id}: {item.quantity}")


class CartStore:
    """Carrinho de uma sessão: linhas ordenadas, método de entrega e promoções.

    Toda mutação grava o estado completo no ``CartStorage`` ainda sob o lock;
    se a gravação falhar a mudança é desfeita e ``CartPersistenceError`` sobe.
    Linhas com a mesma assinatura nunca coexistem; a quantidade é somada.
    """

    def __init__(self, storage: Optional[CartStorage] = None) -> None:
        self._storage = storage or InMemoryCartStorage()
        self._lock = Lock()
        self._items: list[LineItem] = []
        self._fulfillment_method: Optional[str] = None
        self._promotion = PromotionState()
        self._restore()

    def _restore(self) -> None:
        try:
            raw = self._storage.load()
        except Exception:
            logger.warning("cart load failed, starting empty", exc_info=True)
            return
        if not raw:
            return

        try:
            data = json.loads(raw)
            # Formato antigo: apenas a lista de itens.
            if isinstance(data, list):
                data = {"items": data}
            state = CartState.model_validate(data)
        except (ValueError, ValidationError):
            logger.warning("cart payload unreadable, starting empty", exc_info=True)
            return

        for item in state.items:
            self._merge(item)
        self._fulfillment_method = state.fulfillment_method
        self._promotion = state.promotion

    def _index(self, signature: str) -> Optional[int]:
        for index, item in enumerate(self._items):
            if compute_signature(item) == signature:
                return index
        return None

    def _merge(self, item: LineItem) -> str:
        signature = compute_signature(item)
        index = self._index(signature)
        if index is None:
            self._items.append(item)
        else:
            existing = self._items[index]
            self._items[index] = existing.model_copy(update={"quantity": existing.quantity + item.quantity})
        return signature

    def _snapshot(self) -> CartState:
        return CartState(
            items=[item.model_copy(deep=True) for item in self._items],
            fulfillment_method=self._fulfillment_method,
            promotion=self._promotion.model_copy(deep=True),
        )

    def _checkpoint(self) -> tuple:
        return list(self._items), self._fulfillment_method, self._promotion

    def _persist(self, previous: tuple) -> None:
        payload = self._snapshot().model_dump_json()
        try:
            self._storage.save(payload)
        except Exception as exc:
            self._items, self._fulfillment_method, self._promotion = previous
            logger.exception("cart save failed, change discarded")
            raise CartPersistenceError("Não foi possível salvar o carrinho") from exc

    def add_item(self, item: LineItem) -> str:
        ensure_line_integrity(item)
        with self._lock:
            previous = self._checkpoint()
            signature = self._merge(item.model_copy(deep=True))
            self._persist(previous)
        logger.info("cart item added signature=%s quantity=%s", signature, item.quantity)
        return signature

    def update_item(self, signature: str, changes: Mapping[str, Any] | LineItemUpdate) -> Optional[str]:
        if isinstance(changes, LineItemUpdate):
            changes = changes.model_dump(exclude_unset=True)
        unknown = set(changes) - set(LineItem.model_fields)
        if unknown:
            raise ValueError(f"Campos desconhecidos: {', '.join(sorted(unknown))}")

        with self._lock:
            previous = self._checkpoint()
            index = self._index(signature)
            if index is None:
                return None

            current = self._items[index]
            updated = LineItem.model_validate({**current.model_dump(), **dict(changes)})
            new_signature = compute_signature(updated)

            other = None
            for position, item in enumerate(self._items):
                if position != index and compute_signature(item) == new_signature:
                    other = position
                    break

            if other is None:
                self._items[index] = updated
            else:
                absorbing = self._items[other]
                self._items[other] = absorbing.model_copy(
                    update={"quantity": absorbing.quantity + updated.quantity}
                )
                del self._items[index]
            self._persist(previous)

        logger.info(
            "cart item updated signature=%s new_signature=%s merged=%s",
            signature,
            new_signature,
            other is not None,
        )
        return new_signature

    def update_quantity(self, signature: str, quantity: int) -> None:
        with self._lock:
            previous = self._checkpoint()
            index = self._index(signature)
            if index is None:
                return
            if quantity <= 0:
                del self._items[index]
            else:
                self._items[index] = self._items[index].model_copy(update={"quantity": int(quantity)})
            self._persist(previous)

    def remove_item(self, signature: str) -> None:
        with self._lock:
            previous = self._checkpoint()
            index = self._index(signature)
            if index is None:
                return
            del self._items[index]
            self._persist(previous)
        logger.info("cart item removed signature=%s", signature)

    def clear(self) -> None:
        with self._lock:
            previous = self._checkpoint()
            self._items = []
            self._fulfillment_method = None
            self._promotion = PromotionState()
            self._persist(previous)

    @property
    def items(self) -> list[LineItem]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._items]

    def find(self, signature: str) -> Optional[LineItem]:
        with self._lock:
            index = self._index(signature)
            if index is None:
                return None
            return self._items[index].model_copy(deep=True)

    def signatures(self) -> list[str]:
        with self._lock:
            return [compute_signature(item) for item in self._items]

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def item_count(self) -> int:
        with self._lock:
            return sum(item.quantity for item in self._items)

    def subtotal(self) -> Decimal:
        with self._lock:
            total = Decimal("0")
            for item in self._items:
                ensure_line_integrity(item)
                total += line_total(item)
        return quantize_money(total)

    def snapshot(self) -> CartState:
        with self._lock:
            return self._snapshot()

    @property
    def fulfillment_method(self) -> Optional[str]:
        return self._fulfillment_method

    @property
    def promotion(self) -> PromotionState:
        with self._lock:
            return self._promotion.model_copy(deep=True)

    def set_fulfillment_method(self, method_type: Optional[str]) -> None:
        normalized = normalize_method_type(method_type) if method_type is not None else None
        if normalized is not None and normalized not in FULFILLMENT_TYPES:
            raise ValueError(f"Método de entrega inválido: {method_type}")
        with self._lock:
            previous = self._checkpoint()
            self._fulfillment_method = normalized
            self._persist(previous)

    def _replace_promotion(self, **changes: Any) -> None:
        previous = self._checkpoint()
        data = self._promotion.model_dump()
        data.update(changes)
        self._promotion = PromotionState.model_validate(data)
        self._persist(previous)

    def apply_coupon(self, coupon: CouponInfo) -> None:
        with self._lock:
            self._replace_promotion(coupon=coupon, gift_voucher=None)
        logger.info("coupon applied barcode=%s", coupon.barcode)

    def remove_coupon(self) -> None:
        with self._lock:
            self._replace_promotion(coupon=None)

    def apply_gift_voucher(self, voucher: GiftVoucherInfo) -> None:
        with self._lock:
            self._replace_promotion(gift_voucher=voucher, coupon=None)
        logger.info("gift voucher applied barcode=%s", voucher.barcode)

    def remove_gift_voucher(self) -> None:
        with self._lock:
            self._replace_promotion(gift_voucher=None)

    def apply_points(self, points: int) -> None:
        if points < 0:
            raise ValueError("Pontos não podem ser negativos")
        with self._lock:
            self._replace_promotion(points_used=int(points))

    def apply_credits(self, amount: Decimal) -> None:
        amount = Decimal(amount)
        if amount < 0:
            raise ValueError("Créditos não podem ser negativos")
        with self._lock:
            self._replace_promotion(credits_used=amount)
