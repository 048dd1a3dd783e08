from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

FulfillmentType = Literal["delivery", "takeaway", "dine_in"]

METHOD_TYPE_ALIASES = {
    "delivery": "delivery",
    "entrega": "delivery",
    "takeaway": "takeaway",
    "take-away": "takeaway",
    "pickup": "takeaway",
    "retirada": "takeaway",
    "dine_in": "dine_in",
    "dine-in": "dine_in",
    "dinein": "dine_in",
    "mesa": "dine_in",
    "table": "dine_in",
}


def normalize_method_type(value: object) -> object:
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    return METHOD_TYPE_ALIASES.get(lowered, lowered)


class FulfillmentMethod(BaseModel):
    method_type: FulfillmentType
    enabled: bool = True
    delivery_fee: Decimal = Field(default=Decimal("0"), ge=0)
    extra_cost_per_km: Decimal = Field(default=Decimal("0"), ge=0)
    minimum_order: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_radius: Decimal = Field(default=Decimal("0"), ge=0)
    checkout_email_required: bool = False
    checkout_phone_required: bool = False
    checkout_lastname_required: bool = False

    @field_validator("method_type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> object:
        return normalize_method_type(value)

    @property
    def is_delivery(self) -> bool:
        return self.method_type == "delivery"


class TimeWindow(BaseModel):
    """Faixa semanal recorrente; ``day_of_week`` vai de 1 (segunda) a 7 (domingo)."""

    method_type: FulfillmentType
    day_of_week: int = Field(ge=1, le=7)
    start_time: str = "00:00"
    end_time: str = "23:59"
    interval_minutes: int = 15
    max_orders: Optional[int] = Field(default=None, ge=0)
    enabled: bool = True

    @field_validator("method_type", mode="before")
    @classmethod
    def normalize_type(cls, value: object) -> object:
        return normalize_method_type(value)


class ExceptionalClosure(BaseModel):
    date: dt.date
    reason: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_part(cls, value: object) -> object:
        # Datas chegam como "2025-12-24T23:00:00.000Z"; só o dia importa.
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        if isinstance(value, dt.datetime):
            return value.date()
        return value


class TimeSlot(BaseModel):
    date: dt.date
    time: str
    is_fully_booked: bool = False
    max_orders: Optional[int] = None
    booked_orders: int = 0
