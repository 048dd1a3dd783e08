from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from storefront.core.config import AVAILABILITY_HORIZON_DAYS
from storefront.schemas.fulfillment import ExceptionalClosure, TimeSlot, TimeWindow, normalize_method_type

logger = logging.getLogger(__name__)

DEFAULT_CLOSURE_REASON = "Fechado"


def weekday_from_sunday_zero(native: int) -> int:
    """Converte 0=domingo..6=sábado para 1=segunda..7=domingo."""
    if native < 0 or native > 6:
        raise ValueError(f"Dia da semana inválido: {native}")
    return 7 if native == 0 else native


def sunday_zero_weekday(day: dt.date) -> int:
    return (day.weekday() + 1) % 7


def iso_weekday(day: dt.date) -> int:
    return weekday_from_sunday_zero(sunday_zero_weekday(day))


def _parse_minutes(value: str) -> Optional[int]:
    try:
        hours_raw, minutes_raw = value.strip().split(":")[:2]
        hours, minutes = int(hours_raw), int(minutes_raw)
    except (AttributeError, ValueError):
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def _format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _windows_for(method_type: str, windows: Iterable[TimeWindow], weekday: int) -> list[TimeWindow]:
    method_type = normalize_method_type(method_type)
    return [
        window
        for window in windows
        if window.enabled and window.method_type == method_type and window.day_of_week == weekday
    ]


def closed_dates(closures: Iterable[ExceptionalClosure]) -> set[dt.date]:
    return {closure.date for closure in closures}


def closure_reasons(closures: Iterable[ExceptionalClosure]) -> dict[dt.date, str]:
    return {closure.date: (closure.reason or DEFAULT_CLOSURE_REASON) for closure in closures}


def available_dates(
    method_type: str,
    windows: Iterable[TimeWindow],
    closures: Iterable[ExceptionalClosure] = (),
    horizon_days: int = AVAILABILITY_HORIZON_DAYS,
    start: Optional[dt.date] = None,
) -> list[dt.date]:
    """Datas em ``[start, start + horizon_days)`` com janela ativa e sem fechamento."""
    start = start or dt.date.today()
    windows = list(windows)
    closed = closed_dates(closures)
    dates: list[dt.date] = []
    for offset in range(max(horizon_days, 0)):
        day = start + dt.timedelta(days=offset)
        if day in closed:
            continue
        if _windows_for(method_type, windows, iso_weekday(day)):
            dates.append(day)
    return dates


def slots_for_date(
    method_type: str,
    windows: Iterable[TimeWindow],
    day: dt.date,
    booked_counts: Optional[Mapping[str, int]] = None,
) -> list[TimeSlot]:
    booked_counts = booked_counts or {}
    slots: dict[str, TimeSlot] = {}

    for window in _windows_for(method_type, windows, iso_weekday(day)):
        start = _parse_minutes(window.start_time)
        end = _parse_minutes(window.end_time)
        if start is None or end is None or start >= end or window.interval_minutes <= 0:
            logger.debug(
                "ignoring malformed time window day=%s start=%s end=%s interval=%s",
                window.day_of_week,
                window.start_time,
                window.end_time,
                window.interval_minutes,
            )
            continue

        for minute in range(start, end, window.interval_minutes):
            label = _format_minutes(minute)
            if label in slots:
                continue
            booked = int(booked_counts.get(label, 0))
            # max_orders nulo ou zero = sem limite
            slots[label] = TimeSlot(
                date=day,
                time=label,
                is_fully_booked=bool(window.max_orders) and booked >= window.max_orders,
                max_orders=window.max_orders,
                booked_orders=booked,
            )

    return [slots[label] for label in sorted(slots)]


def first_available_slot(slots: Iterable[TimeSlot]) -> Optional[TimeSlot]:
    for slot in slots:
        if not slot.is_fully_booked:
            return slot
    return None


def is_slot_bookable(
    method_type: str,
    windows: Iterable[TimeWindow],
    closures: Iterable[ExceptionalClosure],
    day: dt.date,
    time: str,
    booked_counts: Optional[Mapping[str, int]] = None,
) -> bool:
    if day in closed_dates(closures):
        return False
    for slot in slots_for_date(method_type, windows, day, booked_counts):
        if slot.time == time:
            return not slot.is_fully_booked
    return False
