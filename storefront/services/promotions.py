from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_CEILING, Decimal
from typing import Optional

from storefront.core.config import DEFAULT_POINTS_REDEEM_RATIO
from storefront.schemas.promotions import (
    CouponInfo,
    CouponValidation,
    CustomerBalances,
    GiftVoucherInfo,
    PromotionState,
    TipChoice,
    TippingConfig,
)
from storefront.services.line_items import quantize_money

ZERO = Decimal("0")


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _within_validity(valid_from: Optional[datetime], valid_until: Optional[datetime], now: datetime) -> Optional[str]:
    if valid_from is not None and _aware(valid_from) > now:
        return "Cupom ainda não está válido"
    if valid_until is not None and _aware(valid_until) < now:
        return "Cupom expirado"
    return None


def coupon_rejection(coupon: CouponInfo, order_total: Decimal, now: Optional[datetime] = None) -> Optional[str]:
    """Motivo pelo qual o cupom não vale para o pedido, ou None se vale."""
    now = _aware(now or datetime.now(timezone.utc))
    if not coupon.active:
        return "Cupom inativo"
    if coupon.used:
        return "Cupom já utilizado"
    expired = _within_validity(coupon.valid_from, coupon.valid_until, now)
    if expired:
        return expired
    if coupon.max_uses is not None and coupon.uses >= coupon.max_uses:
        return "Cupom esgotado"
    if coupon.min_order_value is not None and order_total < coupon.min_order_value:
        return "Valor mínimo do pedido não atingido"
    return None


def coupon_is_active(coupon: CouponInfo, order_total: Decimal, now: Optional[datetime] = None) -> bool:
    return coupon_rejection(coupon, order_total, now) is None


def voucher_is_active(voucher: GiftVoucherInfo, now: Optional[datetime] = None) -> bool:
    now = _aware(now or datetime.now(timezone.utc))
    if voucher.used:
        return False
    return _within_validity(voucher.valid_from, voucher.valid_until, now) is None


def coupon_discount(coupon: CouponInfo, subtotal: Decimal) -> Decimal:
    if coupon.value_type == "percentage":
        discount = subtotal * (coupon.value / Decimal("100"))
    else:
        discount = coupon.value
    return quantize_money(max(ZERO, min(discount, subtotal)))


def promotion_discount(subtotal: Decimal, promotion: Optional[PromotionState], now: Optional[datetime] = None) -> Decimal:
    if promotion is None:
        return ZERO
    if promotion.coupon is not None:
        if not coupon_is_active(promotion.coupon, subtotal, now):
            return ZERO
        return coupon_discount(promotion.coupon, subtotal)
    if promotion.gift_voucher is not None:
        if not voucher_is_active(promotion.gift_voucher, now):
            return ZERO
        return quantize_money(max(ZERO, min(promotion.gift_voucher.value, subtotal)))
    return ZERO


def validate_coupon(coupon: Optional[CouponInfo], order_total: Decimal, now: Optional[datetime] = None) -> CouponValidation:
    order_total = Decimal(str(order_total or 0))
    if coupon is None:
        return CouponValidation(valid=False, discount_amount=ZERO, new_total=order_total, message="Cupom não encontrado")
    if order_total <= 0:
        return CouponValidation(valid=False, discount_amount=ZERO, new_total=ZERO, message="Total do pedido inválido")

    reason = coupon_rejection(coupon, order_total, now)
    if reason:
        return CouponValidation(valid=False, discount_amount=ZERO, new_total=order_total, message=reason)

    discount = coupon_discount(coupon, order_total)
    return CouponValidation(
        valid=True,
        discount_amount=discount,
        new_total=order_total - discount,
        message="Cupom aplicado",
    )


def redeemable_points(requested: int, balances: Optional[CustomerBalances]) -> int:
    """Pontos efetivamente usados; sem cliente autenticado não há saldo."""
    if requested <= 0 or balances is None:
        return 0
    return min(requested, balances.points)


def redeemable_credits(requested: Decimal, balances: Optional[CustomerBalances]) -> Decimal:
    if requested <= 0 or balances is None:
        return ZERO
    return min(requested, balances.credits)


def points_to_currency(points: int, redeem_ratio: Optional[Decimal] = None) -> Decimal:
    """Valor em dinheiro de ``points`` pontos: ``points / redeem_ratio``."""
    ratio = redeem_ratio if redeem_ratio is not None else DEFAULT_POINTS_REDEEM_RATIO
    if points <= 0 or ratio <= 0:
        return ZERO
    return quantize_money(Decimal(points) / ratio)


def compute_tip(choice: Optional[TipChoice], amount_due: Decimal, config: Optional[TippingConfig] = None) -> Decimal:
    if choice is None or choice.kind == "none":
        return ZERO
    if config is not None:
        if not config.enabled:
            return ZERO
        if choice.kind == "custom" and not config.enable_custom_tip:
            return ZERO
        if choice.kind == "round_up" and not config.enable_round_up:
            return ZERO

    if choice.kind == "percentage":
        tip = amount_due * choice.value / Decimal("100")
    elif choice.kind == "round_up":
        tip = amount_due.to_integral_value(rounding=ROUND_CEILING) - amount_due
    else:
        tip = choice.value
    return quantize_money(max(ZERO, tip))
