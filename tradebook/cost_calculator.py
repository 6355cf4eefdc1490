"""
Cost Calculator — job cost inputs to a cost breakdown.

Pure functions only: no database, no I/O. Used for the live preview while a
job is being edited and for the computed fields written on every save.

Numeric inputs arrive straight from form fields, so anything that is not a
number quietly counts as 0. That policy lives in parse_amount_or_zero() and
nowhere else.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from .models import LabourMode

VAT_RATE = 0.20
CURRENCY_SYMBOL = "£"

# Longest leading decimal literal, the way a browser's parseFloat reads it
_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

Amount = Union[float, int, str, None]


@dataclass(frozen=True)
class CostBreakdown:
    materials_total: float = 0.0
    labour_total: float = 0.0
    other_total: float = 0.0
    subtotal: float = 0.0
    vat_amount: float = 0.0
    total: float = 0.0


def parse_amount_or_zero(value: Amount) -> float:
    """
    Parse a form value as a float, falling back to 0.0.

    "12.5" -> 12.5, "12abc" -> 12.0, "abc" -> 0.0, "" -> 0.0, None -> 0.0.
    Negative values are passed through unchanged.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(1))
    if not math.isfinite(number):
        return 0.0
    return number


def resolve_labour_mode(
    stored_mode: Optional[LabourMode],
    labour_days: Optional[float],
    labour_day_rate: Optional[float],
) -> LabourMode:
    """
    Labour mode for a stored job.

    Rows saved before the mode was persisted carry no mode; for those, days
    and rate both populated means days-based, anything else is fixed. That
    also makes days win when a row carries days, rate and a fixed amount.
    """
    if stored_mode is not None:
        return LabourMode(stored_mode)
    if labour_days and labour_day_rate:
        return LabourMode.DAYS
    return LabourMode.FIXED


def compute_labour(
    labour_mode: LabourMode,
    labour_days: Amount,
    labour_day_rate: Amount,
    labour_fixed_cost: Amount,
) -> float:
    if LabourMode(labour_mode) == LabourMode.DAYS:
        return parse_amount_or_zero(labour_days) * parse_amount_or_zero(labour_day_rate)
    return parse_amount_or_zero(labour_fixed_cost)


def compute_breakdown(
    materials_cost: Amount,
    labour_mode: LabourMode,
    labour_days: Amount,
    labour_day_rate: Amount,
    labour_fixed_cost: Amount,
    other_costs: Amount,
    vat_registered: bool,
) -> CostBreakdown:
    """
    Compute materials/labour/other totals, subtotal, VAT and total.

    VAT is a flat 20% of the subtotal, only for VAT-registered businesses.
    Values are kept at full float precision; rounding is a display concern.
    """
    materials_total = parse_amount_or_zero(materials_cost)
    labour_total = compute_labour(labour_mode, labour_days, labour_day_rate, labour_fixed_cost)
    other_total = parse_amount_or_zero(other_costs)

    subtotal = materials_total + labour_total + other_total
    vat_amount = subtotal * VAT_RATE if vat_registered else 0.0

    return CostBreakdown(
        materials_total=materials_total,
        labour_total=labour_total,
        other_total=other_total,
        subtotal=subtotal,
        vat_amount=vat_amount,
        total=subtotal + vat_amount,
    )


def default_day_rate_for_new_job(settings) -> Optional[float]:
    """Day rate to pre-fill on a new job, if the business has one configured."""
    if settings is None:
        return None
    return settings.default_day_rate or None


def derive_quote_valid_until(
    quote_date: Union[date, datetime, None],
    quote_valid_until: Union[date, datetime, None],
    validity_days: Optional[int],
):
    """
    quote_date + validity_days when valid-until is still empty.

    An explicit valid-until is never overwritten; without a quote date or a
    configured window the current value comes back unchanged.
    """
    if quote_valid_until or not quote_date or not validity_days:
        return quote_valid_until
    return quote_date + timedelta(days=validity_days)


def format_money(amount: Optional[float]) -> str:
    """£X.XX — None counts as 0."""
    return f"{CURRENCY_SYMBOL}{(amount or 0):.2f}"
