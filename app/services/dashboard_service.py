"""
app/services/dashboard_service.py

Recomputes the whole dashboard for one (datasets, filter) pair.

The presentation layer owns dataset and filter state and calls
:meth:`DashboardService.compute` on every change. The call reads immutable
inputs and returns a fresh :class:`DashboardSnapshot`; nothing is cached
between calls and nothing raises on empty data.

Steps
-----
    1. Filter the sales dataset (all six constraints).
    2. Filter the funnel dataset (store and store code only).
    3. KPI summary over both subsets.
    4. Chart series: trend by date, top cities, top models, funnel stages.
    5. Dropdown options from the unfiltered sales dataset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.domain.aggregates import CityAmount, DateCount, FunnelStage, ModelCount
from app.domain.dataset import Dataset, DatasetKind, Record
from app.domain.filters import FilterSelection
from app.services import filter_service
from app.services.aggregation_service import AggregationService, get_aggregation_service
from app.services.filter_service import FilterOptions
from app.services.kpi_service import KPIService, KPISummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardSnapshot:
    """
    Every derived value the dashboard renders for one filter selection.
    """

    selection: FilterSelection
    filtered_sales: tuple[Record, ...] = ()
    filtered_funnel: tuple[Record, ...] = ()
    kpis: KPISummary = field(default_factory=KPISummary)
    trend: list[DateCount] = field(default_factory=list)
    cities: list[CityAmount] = field(default_factory=list)
    models: list[ModelCount] = field(default_factory=list)
    funnel: list[FunnelStage] = field(default_factory=list)
    options: FilterOptions = field(default_factory=FilterOptions)
    sales_loaded: bool = False
    funnel_loaded: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


class DashboardService:
    """
    Orchestrates filtering, KPI computation and series aggregation.
    """

    def __init__(
        self,
        *,
        kpi_service: KPIService | None = None,
        aggregation_service: AggregationService | None = None,
    ) -> None:
        self._kpis = kpi_service or KPIService()
        self._aggregations = aggregation_service or get_aggregation_service()

    def compute(
        self,
        sales: Dataset | None,
        funnel: Dataset | None,
        selection: FilterSelection | None = None,
    ) -> DashboardSnapshot:
        """
        Build a :class:`DashboardSnapshot` from the current datasets.

        Parameters
        ----------
        sales:
            Current sales dump dataset, or ``None`` before any upload.
        funnel:
            Current sales funnel dataset, or ``None`` before any upload.
        selection:
            Active filters; ``None`` is the same as a reset selection.
        """

        selection = selection or FilterSelection.reset()
        if sales is None:
            sales = Dataset.empty(DatasetKind.SALES)
        if funnel is None:
            funnel = Dataset.empty(DatasetKind.FUNNEL)

        filtered_sales = filter_service.apply(sales, selection)
        filtered_funnel = filter_service.apply_funnel(funnel, selection)

        kpis = self._kpis.summarize(
            filtered_sales,
            filtered_funnel,
            date_column=sales.date_column,
        )
        snapshot = DashboardSnapshot(
            selection=selection,
            filtered_sales=filtered_sales,
            filtered_funnel=filtered_funnel,
            kpis=kpis,
            trend=self._aggregations.by_date(filtered_sales, sales.date_column),
            cities=self._aggregations.by_city(filtered_sales),
            models=self._aggregations.by_model(filtered_sales),
            funnel=self._aggregations.funnel_stages(filtered_funnel),
            options=filter_service.filter_options(sales),
            sales_loaded=not sales.is_empty,
            funnel_loaded=not funnel.is_empty,
        )
        logger.info(
            "Dashboard recomputed sales=%d/%d funnel=%d/%d filters_active=%s",
            len(filtered_sales),
            len(sales),
            len(filtered_funnel),
            len(funnel),
            not selection.is_empty,
        )
        return snapshot
