from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from storefront.deps import get_cart_store
from storefront.schemas.checkout import CheckoutTotals, QuoteRequest, SubmitCheckRequest, SubmitDecision
from storefront.services.cart_store import CartStore
from storefront.services.pricing import compute_total, is_within_delivery_radius, submission_blockers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/storefront/checkout", tags=["storefront-checkout"])


def _quote(payload: QuoteRequest, cart: CartStore) -> CheckoutTotals:
    return compute_total(
        cart,
        payload.method,
        payload.distance_km,
        balances=payload.balances,
        tip=payload.tip,
        tipping=payload.tipping,
    )


@router.post("/quote", response_model=CheckoutTotals)
def quote(payload: QuoteRequest, cart: CartStore = Depends(get_cart_store)):
    return _quote(payload, cart)


@router.post("/validate", response_model=SubmitDecision)
def validate_submission(payload: SubmitCheckRequest, cart: CartStore = Depends(get_cart_store)):
    totals = _quote(payload, cart)
    blockers = submission_blockers(
        payload.method,
        payload.selected_date,
        payload.selected_time,
        payload.payment_selected,
        payload.customer,
        is_within_delivery_radius(payload.method, payload.distance_km),
        totals.total,
        cart_empty=cart.is_empty,
        kiosk=payload.kiosk,
    )
    if blockers:
        logger.info("checkout blocked codes=%s", ",".join(blocker.code for blocker in blockers))
    return SubmitDecision(allowed=not blockers, blockers=blockers)
