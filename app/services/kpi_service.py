"""
app/services/kpi_service.py

Deterministic KPI calculation engine for the financing dashboard.

The service extracts column values from already-filtered records, hands
them to the pure formulas in :mod:`kpi`, and wraps the outcome in typed
results. Every KPI has a defined zero value, so an empty subset yields
counts of 0, sums of 0.0, an average of 0.0 and no latest date.

KPIs
----
Total Applications   = number of filtered sales records
Total Amount Financed= Σ Principal_Amount   (non-numeric / NaN → 0)
Average Loan Value   = Total Amount Financed / Total Applications
Latest Day Sales     = Σ Principal_Amount on the latest canonical date
Phones / Tablets     = case-insensitive Device_Category match
Trade-In / Care+     = TradeIn > 1 / Careplus_Price > 1
Completed Purchases  = Σ Completed_Purchases over the filtered funnel rows
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from app.domain.dataset import Record, amount_value, is_canonical_date, numeric_value, text_value
from kpi.financing import FinancingKPIFormula

logger = logging.getLogger(__name__)

COLUMN_AMOUNT = "Principal_Amount"
COLUMN_DEVICE_CATEGORY = "Device_Category"
COLUMN_TRADE_IN = "TradeIn"
COLUMN_CARE_PLUS = "Careplus_Price"
COLUMN_COMPLETED_PURCHASES = "Completed_Purchases"
DEFAULT_DATE_COLUMN = "Financed_Date"

NO_DATA_LABEL = "No data"


# ---------------------------------------------------------------------------
# Output dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KPIResult:
    """
    One named KPI value in tall form, as rendered on a card or exported.
    """

    metric: str
    """Machine name of the KPI (e.g. ``"total_amount_financed"``)."""

    value: float | int | str | None
    """Computed value; ``None`` only for the latest date on empty data."""

    unit: str
    """Unit of measurement (``"count"``, ``"currency"``, ``"date"``)."""

    computed_at: datetime = field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )
    """UTC timestamp of when the result was produced."""

    error: str | None = None
    """Short description when ``value`` is ``None``."""


@dataclass(frozen=True)
class KPISummary:
    """
    Full KPI value set for one filtered subset.
    """

    total_applications: int = 0
    total_amount_financed: float = 0.0
    average_loan_value: float = 0.0
    latest_date: str | None = None
    latest_day_sales: float = 0.0
    total_phones: int = 0
    total_tablets: int = 0
    with_trade_in: int = 0
    without_trade_in: int = 0
    with_care_plus: int = 0
    without_care_plus: int = 0
    total_completed_purchases: float = 0.0

    @property
    def latest_date_label(self) -> str:
        return self.latest_date or NO_DATA_LABEL

    def to_results(self) -> list[KPIResult]:
        """
        Flatten the summary into one :class:`KPIResult` per KPI.
        """

        counts = (
            "total_applications",
            "total_phones",
            "total_tablets",
            "with_trade_in",
            "without_trade_in",
            "with_care_plus",
            "without_care_plus",
            "total_completed_purchases",
        )
        currency = ("total_amount_financed", "average_loan_value", "latest_day_sales")

        results = [KPIResult(metric=name, value=getattr(self, name), unit="count") for name in counts]
        results.extend(
            KPIResult(metric=name, value=getattr(self, name), unit="currency") for name in currency
        )
        results.append(
            KPIResult(
                metric="latest_date",
                value=self.latest_date,
                unit="date",
                error=None if self.latest_date else "No dated records in selection.",
            )
        )
        return results


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class KPIService:
    """
    Stateless KPI calculation engine.

    Usage::

        service = KPIService()
        summary = service.summarize(filtered_sales, filtered_funnel)
        print(summary.total_amount_financed)
    """

    def __init__(self, *, formula: FinancingKPIFormula | None = None) -> None:
        self._formula = formula or FinancingKPIFormula()

    def summarize(
        self,
        sales_records: Sequence[Record],
        funnel_records: Sequence[Record] = (),
        *,
        date_column: str | None = DEFAULT_DATE_COLUMN,
    ) -> KPISummary:
        """
        Compute every KPI for the filtered sales and funnel subsets.

        Parameters
        ----------
        sales_records:
            Filtered sales dump records.
        funnel_records:
            Filtered sales funnel records; only feeds completed purchases.
        date_column:
            Canonical date column of the sales dataset, or ``None`` when the
            upload had none (latest-date KPIs then degrade to no data).
        """

        metrics = self._formula.calculate(
            {
                "amounts": [amount_value(record.get(COLUMN_AMOUNT)) for record in sales_records],
                "dates": [_canonical_date(record, date_column) for record in sales_records],
                "device_categories": [
                    text_value(record.get(COLUMN_DEVICE_CATEGORY)) for record in sales_records
                ],
                "trade_in": [numeric_value(record.get(COLUMN_TRADE_IN)) for record in sales_records],
                "care_plus": [numeric_value(record.get(COLUMN_CARE_PLUS)) for record in sales_records],
            }
        )
        completed = self.total_completed_purchases(funnel_records)

        summary = KPISummary(total_completed_purchases=completed, **metrics)
        logger.debug(
            "KPI summary computed applications=%d financed=%.2f latest=%s",
            summary.total_applications,
            summary.total_amount_financed,
            summary.latest_date_label,
        )
        return summary

    def total_completed_purchases(self, funnel_records: Sequence[Record]) -> float:
        return sum(amount_value(record.get(COLUMN_COMPLETED_PURCHASES)) for record in funnel_records)


def _canonical_date(record: Record, date_column: str | None) -> str | None:
    if date_column is None:
        return None
    value = record.get(date_column)
    return value if is_canonical_date(value) else None
