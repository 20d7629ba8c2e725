"""
app/services/aggregation_service.py

Chart series aggregation for the financing dashboard.

Every series is recomputed from the filtered subset on each filter change.
Grouping preserves first-seen order and all sorts are stable, so groups
with equal totals keep the order in which they first appear in the data.

Series
------
by_date        – Financed_Date → application count, ascending by date
by_city        – City → Σ Principal_Amount, descending, top N
by_model       – Purchased_Model_Name → application count, descending, top N
funnel_stages  – seven fixed stages with stage-over-stage conversion

No filtering lives here. Empty input always yields an empty series (or
seven zero-valued stages for the funnel).
"""

from __future__ import annotations

import logging
from typing import Final, Sequence

from app.config import get_aggregation_settings
from app.domain.aggregates import CityAmount, DateCount, FunnelStage, ModelCount
from app.domain.dataset import Record, amount_value, is_blank, text_value
from kpi.funnel import FunnelKPIFormula

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column and stage constants
# ---------------------------------------------------------------------------

COLUMN_CITY: Final[str] = "City"
COLUMN_AMOUNT: Final[str] = "Principal_Amount"
COLUMN_MODEL: Final[str] = "Purchased_Model_Name"

FUNNEL_STAGES: Final[tuple[tuple[str, str], ...]] = (
    ("Purchases Started", "Purchases_Started"),
    ("Info Submitted", "Info_Submitted"),
    ("Offer Seen", "Offer_Seen"),
    ("Offer Selected", "Offer_Selected"),
    ("KYC Completed", "KYC_Completed"),
    ("Agreement Signed", "Agreement_Signed"),
    ("Completed Purchases", "Completed_Purchases"),
)
"""(display name, source column) for each funnel stage, in funnel order."""


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AggregationService:
    """
    Groups filtered records into ordered chart series.

    Parameters
    ----------
    top_n:
        Number of groups kept by :meth:`by_city` and :meth:`by_model`.
    unknown_label:
        Group label substituted for an empty or missing city/model.
    """

    def __init__(
        self,
        *,
        top_n: int = 10,
        unknown_label: str = "Unknown",
        funnel_formula: FunnelKPIFormula | None = None,
    ) -> None:
        self._top_n = max(1, top_n)
        self._unknown_label = unknown_label
        self._funnel_formula = funnel_formula or FunnelKPIFormula()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def by_date(self, records: Sequence[Record], date_column: str | None) -> list[DateCount]:
        """
        Count records per date string, ascending.

        Records without a date are left out. Dates that could not be
        normalized keep their raw text and group under it.
        """
        if date_column is None:
            return []

        counts: dict[str, int] = {}
        for record in records:
            value = record.get(date_column)
            if is_blank(value):
                continue
            key = text_value(value)
            counts[key] = counts.get(key, 0) + 1

        series = [DateCount(date=key, count=count) for key, count in sorted(counts.items())]
        logger.debug("by_date → %d points", len(series))
        return series

    def by_city(self, records: Sequence[Record]) -> list[CityAmount]:
        """
        Sum ``Principal_Amount`` per city, largest first, top N.
        """
        totals: dict[str, float] = {}
        for record in records:
            city = self._label(record.get(COLUMN_CITY))
            totals[city] = totals.get(city, 0.0) + amount_value(record.get(COLUMN_AMOUNT))

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[: self._top_n]
        series = [CityAmount(city=city, total_amount=total) for city, total in ranked]
        logger.debug("by_city → %d of %d cities", len(series), len(totals))
        return series

    def by_model(self, records: Sequence[Record]) -> list[ModelCount]:
        """
        Count records per purchased model, most financed first, top N.
        """
        counts: dict[str, int] = {}
        for record in records:
            model = self._label(record.get(COLUMN_MODEL))
            counts[model] = counts.get(model, 0) + 1

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[: self._top_n]
        series = [ModelCount(model=model, count=count) for model, count in ranked]
        logger.debug("by_model → %d of %d models", len(series), len(counts))
        return series

    def funnel_stages(self, records: Sequence[Record]) -> list[FunnelStage]:
        """
        Sum each stage column across *records* and attach conversion rates.
        """
        totals = [0.0] * len(FUNNEL_STAGES)
        for record in records:
            for index, (_, column) in enumerate(FUNNEL_STAGES):
                totals[index] += amount_value(record.get(column))

        rates = self._funnel_formula.calculate({"stage_totals": totals})["conversion_rates"]
        stages = [
            FunnelStage(name=name, column=column, value=total, conversion_rate=rate)
            for (name, column), total, rate in zip(FUNNEL_STAGES, totals, rates)
        ]
        logger.debug("funnel_stages over %d records → totals=%s", len(records), totals)
        return stages

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _label(self, value: object) -> str:
        if is_blank(value):
            return self._unknown_label
        return text_value(value)


def get_aggregation_service() -> AggregationService:
    settings = get_aggregation_settings()
    return AggregationService(top_n=settings.top_n, unknown_label=settings.unknown_label)
