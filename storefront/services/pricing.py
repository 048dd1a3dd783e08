from __future__ import annotations

import datetime as dt
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from storefront.schemas.checkout import CheckoutTotals, CustomerFields, SubmitBlocker
from storefront.schemas.fulfillment import FulfillmentMethod
from storefront.schemas.promotions import CustomerBalances, PromotionState, TipChoice, TippingConfig
from storefront.services.cart_store import CartStore
from storefront.services.line_items import quantize_money
from storefront.services.promotions import (
    compute_tip,
    points_to_currency,
    promotion_discount,
    redeemable_credits,
    redeemable_points,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
Distance = Union[Decimal, float, int, None]

BLOCKER_MESSAGES = {
    "cart_empty": "Seu carrinho está vazio",
    "payment_missing": "Escolha uma forma de pagamento",
    "method_missing": "Escolha entrega, retirada ou consumo no local",
    "method_unavailable": "Este método de entrega não está disponível",
    "slot_missing": "Escolha a data e o horário",
    "first_name_missing": "Informe o nome",
    "last_name_missing": "Informe o sobrenome",
    "phone_missing": "Informe o telefone",
    "email_missing": "Informe o e-mail",
    "address_missing": "Informe o endereço de entrega",
    "city_missing": "Informe a cidade",
    "postal_code_missing": "Informe o CEP",
    "out_of_radius": "Endereço fora da área de entrega",
    "below_minimum": "Valor mínimo do pedido não atingido",
}


def _distance(distance_km: Distance) -> Optional[Decimal]:
    if distance_km is None:
        return None
    return Decimal(str(distance_km))


def is_within_delivery_radius(method: Optional[FulfillmentMethod], distance_km: Distance) -> bool:
    distance = _distance(distance_km)
    if method is None or distance is None:
        return False
    if method.delivery_radius <= 0:
        return True
    return distance <= method.delivery_radius


def compute_delivery_fee(method: Optional[FulfillmentMethod], distance_km: Distance) -> Decimal:
    """Taxa de entrega; zero fora de delivery, sem distância ou fora do raio."""
    distance = _distance(distance_km)
    if method is None or not method.is_delivery or distance is None:
        return ZERO
    if not is_within_delivery_radius(method, distance):
        return ZERO
    return quantize_money(method.delivery_fee + distance * method.extra_cost_per_km)


def compute_discount(subtotal: Decimal, promotion: Optional[PromotionState], now: Optional[datetime] = None) -> Decimal:
    return promotion_discount(subtotal, promotion, now)


def compute_total(
    cart: CartStore,
    method: Optional[FulfillmentMethod] = None,
    distance_km: Distance = None,
    promotion: Optional[PromotionState] = None,
    points_used: Optional[int] = None,
    credits_used: Optional[Decimal] = None,
    *,
    balances: Optional[CustomerBalances] = None,
    tip: Optional[TipChoice] = None,
    tipping: Optional[TippingConfig] = None,
    now: Optional[datetime] = None,
) -> CheckoutTotals:
    subtotal = cart.subtotal()
    if promotion is None:
        promotion = cart.promotion
    if points_used is None:
        points_used = promotion.points_used
    if credits_used is None:
        credits_used = promotion.credits_used

    coupon_value = compute_discount(subtotal, promotion, now)
    points = redeemable_points(points_used, balances)
    points_value = points_to_currency(points, balances.redeem_ratio if balances is not None else None)
    credits = quantize_money(redeemable_credits(Decimal(credits_used), balances))
    discount = coupon_value + points_value + credits

    shipping = compute_delivery_fee(method, distance_km)
    amount_due = max(ZERO, subtotal - discount) + shipping
    tip_value = compute_tip(tip, amount_due, tipping)

    return CheckoutTotals(
        subtotal=subtotal,
        coupon_discount=coupon_value,
        points_discount=points_value,
        credits_discount=credits,
        discount=quantize_money(discount),
        shipping=shipping,
        tip=tip_value,
        total=quantize_money(amount_due + tip_value),
        points_applied=points,
        credits_applied=credits,
    )


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def submission_blockers(
    method: Optional[FulfillmentMethod],
    selected_date: Optional[dt.date],
    selected_time: Optional[str],
    payment_selected: bool,
    customer_fields: Optional[CustomerFields],
    within_radius: bool,
    total: Decimal,
    *,
    cart_empty: bool = False,
    kiosk: bool = False,
) -> list[SubmitBlocker]:
    """Condições que impedem o envio do pedido; lista vazia libera o checkout."""
    codes: list[str] = []
    if cart_empty:
        codes.append("cart_empty")
    if not payment_selected:
        codes.append("payment_missing")

    if not kiosk:
        customer = customer_fields or CustomerFields()
        if method is None:
            codes.append("method_missing")
        elif not method.enabled:
            codes.append("method_unavailable")
        if selected_date is None or _blank(selected_time):
            codes.append("slot_missing")

        if method is not None:
            if _blank(customer.first_name):
                codes.append("first_name_missing")
            if method.checkout_lastname_required and _blank(customer.last_name):
                codes.append("last_name_missing")
            if method.checkout_phone_required and _blank(customer.phone):
                codes.append("phone_missing")
            if method.checkout_email_required and _blank(customer.email):
                codes.append("email_missing")
            if method.is_delivery:
                if _blank(customer.address):
                    codes.append("address_missing")
                if _blank(customer.city):
                    codes.append("city_missing")
                if _blank(customer.postal_code):
                    codes.append("postal_code_missing")
                if not within_radius:
                    codes.append("out_of_radius")
                if Decimal(total) < method.minimum_order:
                    codes.append("below_minimum")

    return [SubmitBlocker(code=code, message=BLOCKER_MESSAGES[code]) for code in codes]


def can_submit(
    method: Optional[FulfillmentMethod],
    selected_date: Optional[dt.date],
    selected_time: Optional[str],
    payment_selected: bool,
    customer_fields: Optional[CustomerFields],
    within_radius: bool,
    total: Decimal,
    *,
    cart_empty: bool = False,
    kiosk: bool = False,
) -> bool:
    blockers = submission_blockers(
        method,
        selected_date,
        selected_time,
        payment_selected,
        customer_fields,
        within_radius,
        total,
        cart_empty=cart_empty,
        kiosk=kiosk,
    )
    if blockers:
        logger.debug("checkout blocked codes=%s", [blocker.code for blocker in blockers])
    return not blockers
