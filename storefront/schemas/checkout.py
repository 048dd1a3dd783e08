from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from storefront.schemas.fulfillment import ExceptionalClosure, FulfillmentMethod, TimeWindow
from storefront.schemas.promotions import CustomerBalances, TipChoice, TippingConfig


class CustomerFields(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None


class CheckoutTotals(BaseModel):
    subtotal: Decimal
    coupon_discount: Decimal = Decimal("0.00")
    points_discount: Decimal = Decimal("0.00")
    credits_discount: Decimal = Decimal("0.00")
    discount: Decimal = Decimal("0.00")
    shipping: Decimal = Decimal("0.00")
    tip: Decimal = Decimal("0.00")
    total: Decimal
    points_applied: int = 0
    credits_applied: Decimal = Decimal("0.00")


class SubmitBlocker(BaseModel):
    code: str
    message: str


class SubmitDecision(BaseModel):
    allowed: bool
    blockers: list[SubmitBlocker] = Field(default_factory=list)


class QuoteRequest(BaseModel):
    method: Optional[FulfillmentMethod] = None
    distance_km: Optional[Decimal] = Field(default=None, ge=0)
    balances: Optional[CustomerBalances] = None
    tip: TipChoice = Field(default_factory=TipChoice)
    tipping: Optional[TippingConfig] = None


class SubmitCheckRequest(QuoteRequest):
    selected_date: Optional[dt.date] = None
    selected_time: Optional[str] = None
    payment_selected: bool = False
    customer: CustomerFields = Field(default_factory=CustomerFields)
    kiosk: bool = False


class AvailabilityRequest(BaseModel):
    method_type: str
    windows: list[TimeWindow] = Field(default_factory=list)
    closures: list[ExceptionalClosure] = Field(default_factory=list)
    horizon_days: Optional[int] = Field(default=None, ge=1, le=366)
    start: Optional[dt.date] = None


class SlotsRequest(BaseModel):
    method_type: str
    windows: list[TimeWindow] = Field(default_factory=list)
    date: dt.date
    booked_counts: dict[str, int] = Field(default_factory=dict)
