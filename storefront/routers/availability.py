from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from storefront.core.config import AVAILABILITY_HORIZON_DAYS
from storefront.schemas.checkout import AvailabilityRequest, SlotsRequest
from storefront.schemas.fulfillment import TimeSlot
from storefront.services.availability import (
    available_dates,
    closure_reasons,
    first_available_slot,
    slots_for_date,
)

router = APIRouter(prefix="/api/storefront/availability", tags=["storefront-availability"])


class AvailableDatesResponse(BaseModel):
    dates: list[dt.date]
    closures: dict[dt.date, str]


class SlotsResponse(BaseModel):
    slots: list[TimeSlot]
    first_available: Optional[TimeSlot] = None


@router.post("/dates", response_model=AvailableDatesResponse)
def list_available_dates(payload: AvailabilityRequest):
    dates = available_dates(
        payload.method_type,
        payload.windows,
        payload.closures,
        horizon_days=payload.horizon_days or AVAILABILITY_HORIZON_DAYS,
        start=payload.start,
    )
    return AvailableDatesResponse(dates=dates, closures=closure_reasons(payload.closures))


@router.post("/slots", response_model=SlotsResponse)
def list_slots(payload: SlotsRequest):
    slots = slots_for_date(payload.method_type, payload.windows, payload.date, payload.booked_counts)
    return SlotsResponse(slots=slots, first_available=first_available_slot(slots))
