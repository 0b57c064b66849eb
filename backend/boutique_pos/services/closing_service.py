"""
Cash reconciliation: opening float per day and the expected cash in drawer.

DESIGN PRINCIPLES:
- A day without a DailyClosing row implies the configured default float
- The row is created the first time a float is saved for the day
- A closed day ignores further float edits (no error, no change)
- Expected cash = opening float + that day's cash-method sales; drawer
  removals/deposits are not tracked
- Closing is always an explicit operator action
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import DailyClosing
from ..signals import closings_changed, notify
from ..validation import ValidationError
from boutique_pos.time_utils import day_key, localnow
from . import reporting_service


def default_opening_float_cents() -> int:
    return int(current_app.config.get("DEFAULT_OPENING_FLOAT_CENTS", 100000))


def normalize_day(day) -> str:
    try:
        return day_key(day)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid day: {day!r} (expected YYYY-MM-DD)")


def _require_amount(amount_cents, field: str) -> int:
    if amount_cents is None or isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise ValidationError(f"{field} must be an integer number of cents")
    if amount_cents < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount_cents


def get_closing(day) -> DailyClosing | None:
    return db.session.get(DailyClosing, normalize_day(day))


def get_opening_float(day) -> int:
    """Saved float for the day, or the configured default when none was saved."""
    closing = get_closing(day)
    if closing is None:
        return default_opening_float_cents()
    return closing.initial_cash_cents


def set_opening_float(day, amount_cents: int) -> DailyClosing:
    """
    Upsert the day's opening float.

    Returns the stored row. On a closed day the row is returned unchanged.
    """
    key = normalize_day(day)
    amount_cents = _require_amount(amount_cents, "initial_cash_cents")

    closing = db.session.get(DailyClosing, key)
    if closing is not None and closing.is_closed:
        current_app.logger.info("Opening float for %s not changed: day is closed", key)
        return closing

    if closing is None:
        closing = DailyClosing(date=key, initial_cash_cents=amount_cents, is_closed=False)
        db.session.add(closing)
    else:
        closing.initial_cash_cents = amount_cents

    db.session.commit()
    notify(closings_changed, action="float_set", date=key)
    return closing


def compute_expected_cash(day) -> int:
    return get_opening_float(day) + reporting_service.cash_sales_total_cents(normalize_day(day))


def close_day(day, final_cash_actual_cents: int) -> dict:
    """
    Record the counted drawer amount and close the day.

    Raises:
        ValidationError: already closed or bad amount
    """
    key = normalize_day(day)
    counted = _require_amount(final_cash_actual_cents, "final_cash_actual_cents")

    closing = db.session.get(DailyClosing, key)
    if closing is not None and closing.is_closed:
        raise ValidationError(f"Day {key} is already closed")

    if closing is None:
        closing = DailyClosing(date=key, initial_cash_cents=default_opening_float_cents())
        db.session.add(closing)

    expected = closing.initial_cash_cents + reporting_service.cash_sales_total_cents(key)

    closing.final_cash_actual_cents = counted
    closing.is_closed = True
    closing.closed_at = localnow()
    db.session.commit()

    variance = counted - expected
    current_app.logger.info(
        "Day %s closed: expected_cents=%d counted_cents=%d variance_cents=%d",
        key, expected, counted, variance,
    )
    notify(closings_changed, action="closed", date=key)
    return {
        "closing": closing.to_dict(),
        "expected_cash_cents": expected,
        "variance_cents": variance,
    }


def daily_summary(day) -> dict:
    key = normalize_day(day)
    closing = get_closing(key)
    opening = closing.initial_cash_cents if closing else default_opening_float_cents()
    summary = reporting_service.summarize(reporting_service.sales_in_window("day", key))
    expected = opening + summary["by_method_cents"]["cash"]
    result = {
        "date": key,
        "initial_cash_cents": opening,
        "is_default_float": closing is None,
        "summary": summary,
        "expected_cash_cents": expected,
        "closing": closing.to_dict() if closing else None,
        "variance_cents": None,
    }
    if closing is not None and closing.final_cash_actual_cents is not None:
        result["variance_cents"] = closing.final_cash_actual_cents - expected
    return result
