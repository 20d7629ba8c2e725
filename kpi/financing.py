"""
kpi/financing.py

Financing KPI formula implementation for the sales dump.

Expected inputs
---------------
amounts : list[float]
    ``Principal_Amount`` per record, non-numeric cells already mapped to 0.
dates : list[str | None]
    Canonical ``Financed_Date`` per record (``None`` when missing or unreadable).
device_categories : list[str]
    ``Device_Category`` per record as text.
trade_in : list[float | None]
    ``TradeIn`` per record, ``None`` when not numeric.
care_plus : list[float | None]
    ``Careplus_Price`` per record, ``None`` when not numeric.

Formulas
--------
Total Applications   = number of records
Total Financed       = sum(amounts)
Average Loan Value   = total_financed / total_applications
Latest Date          = max(dates)
Latest Day Sales     = sum(amounts where date == latest_date)
Phones / Tablets     = count(device_category.lower() == "phone" / "tablet")
With Trade-In        = count(trade_in > 1)
With Care+           = count(care_plus > 1)
Without X            = total_applications - with_x

Empty inputs produce zeros and a ``None`` latest date.
"""

from __future__ import annotations

from typing import Any

from kpi.base import BaseKPIFormula

_HAS_ADD_ON_THRESHOLD = 1.0


class FinancingKPIFormula(BaseKPIFormula):
    """
    Deterministic financing KPI calculations over one filtered subset.

    All arithmetic is self-contained.  No I/O, no logging, no side effects.
    """

    def calculate(self, inputs: dict[str, Any]) -> dict[str, Any]:
        amounts: list[float] = inputs["amounts"]
        dates: list[str | None] = inputs["dates"]
        device_categories: list[str] = inputs["device_categories"]
        trade_in: list[float | None] = inputs["trade_in"]
        care_plus: list[float | None] = inputs["care_plus"]

        total_applications = len(amounts)
        total_financed = sum(amounts)
        latest_date = _latest_date(dates)
        with_trade_in = _count_above_threshold(trade_in)
        with_care_plus = _count_above_threshold(care_plus)

        return {
            "total_applications": total_applications,
            "total_amount_financed": total_financed,
            "average_loan_value": _average(total_financed, total_applications),
            "latest_date": latest_date,
            "latest_day_sales": _latest_day_sales(amounts, dates, latest_date),
            "total_phones": _count_category(device_categories, "phone"),
            "total_tablets": _count_category(device_categories, "tablet"),
            "with_trade_in": with_trade_in,
            "without_trade_in": total_applications - with_trade_in,
            "with_care_plus": with_care_plus,
            "without_care_plus": total_applications - with_care_plus,
        }


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def _average(total: float, count: int) -> float:
    """Average = total / count; 0.0 when there are no records."""
    if count == 0:
        return 0.0
    return total / count


def _latest_date(dates: list[str | None]) -> str | None:
    present = [value for value in dates if value]
    return max(present) if present else None


def _latest_day_sales(
    amounts: list[float],
    dates: list[str | None],
    latest_date: str | None,
) -> float:
    if latest_date is None:
        return 0.0
    return sum(amount for amount, value in zip(amounts, dates) if value == latest_date)


def _count_category(categories: list[str], expected: str) -> int:
    return sum(1 for category in categories if category.lower() == expected)


def _count_above_threshold(values: list[float | None]) -> int:
    """
    A record "has" the add-on when its flag is strictly greater than 1.

    0, 1, missing and non-numeric values all count as "does not have".
    """
    return sum(1 for value in values if value is not None and value > _HAS_ADD_ON_THRESHOLD)
