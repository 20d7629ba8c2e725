"""
tests/test_dashboard_service.py

Pytest unit tests for DashboardService and the sample data generator.

Coverage
--------
- Empty state before any upload
- Filters flow into KPIs and every chart series
- Funnel filtered by store only
- Options come from the unfiltered dataset
- Sample datasets are deterministic and well-formed
"""

from __future__ import annotations

from datetime import date

import pytest

from app.domain.dataset import Dataset, DatasetKind, StoreColumn
from app.domain.filters import DateRange, FilterSelection
from app.sample_data import FUNNEL_COLUMNS, SALES_COLUMNS, sample_datasets
from app.services.aggregation_service import AggregationService
from app.services.dashboard_service import DashboardService


@pytest.fixture()
def svc() -> DashboardService:
    return DashboardService(aggregation_service=AggregationService())


class TestCompute:
    def test_nothing_loaded(self, svc: DashboardService) -> None:
        snapshot = svc.compute(None, None)
        assert not snapshot.sales_loaded
        assert not snapshot.funnel_loaded
        assert snapshot.kpis.total_applications == 0
        assert snapshot.kpis.latest_date is None
        assert snapshot.trend == []
        assert snapshot.cities == []
        assert snapshot.models == []
        assert len(snapshot.funnel) == 7
        assert snapshot.selection.is_empty

    def test_unfiltered_snapshot(
        self, svc: DashboardService, sales_dataset: Dataset, funnel_dataset: Dataset
    ) -> None:
        snapshot = svc.compute(sales_dataset, funnel_dataset)
        assert snapshot.sales_loaded and snapshot.funnel_loaded
        assert snapshot.filtered_sales == sales_dataset.records
        assert snapshot.kpis.total_applications == 5
        assert snapshot.kpis.total_completed_purchases == pytest.approx(5.0)
        assert [point.count for point in snapshot.trend] == [1, 1, 2, 1]
        assert snapshot.funnel[0].value == 200

    def test_filters_reach_every_series(
        self, svc: DashboardService, sales_dataset: Dataset, funnel_dataset: Dataset
    ) -> None:
        selection = FilterSelection(city="Manila")
        snapshot = svc.compute(sales_dataset, funnel_dataset, selection)

        assert snapshot.kpis.total_applications == 2
        assert snapshot.kpis.total_amount_financed == pytest.approx(40000.0)
        assert [point.city for point in snapshot.cities] == ["Manila"]
        assert sum(point.count for point in snapshot.models) == 2
        assert sum(point.count for point in snapshot.trend) == 2
        # city does not apply to funnel rows
        assert len(snapshot.filtered_funnel) == 2

    def test_store_filter_applies_to_funnel(
        self, svc: DashboardService, sales_dataset: Dataset, funnel_dataset: Dataset
    ) -> None:
        snapshot = svc.compute(sales_dataset, funnel_dataset, FilterSelection(store="Store Beta"))
        assert snapshot.filtered_sales == ()
        assert [stage.value for stage in snapshot.funnel][-1] == 5
        assert snapshot.kpis.total_completed_purchases == pytest.approx(5.0)

    def test_empty_result_is_not_an_error(self, svc: DashboardService, sales_dataset: Dataset) -> None:
        selection = FilterSelection(date_range=DateRange("2030-01-01", "2030-12-31"))
        snapshot = svc.compute(sales_dataset, None, selection)
        assert snapshot.kpis.total_applications == 0
        assert snapshot.kpis.average_loan_value == 0.0
        assert snapshot.trend == []

    def test_options_ignore_active_filters(
        self, svc: DashboardService, sales_dataset: Dataset
    ) -> None:
        snapshot = svc.compute(sales_dataset, None, FilterSelection(city="Manila"))
        assert snapshot.options.cities == ("Cebu City", "Davao City", "Manila")

    def test_inputs_are_not_modified(
        self, svc: DashboardService, sales_dataset: Dataset, funnel_dataset: Dataset
    ) -> None:
        before = [dict(record) for record in sales_dataset.records]
        svc.compute(sales_dataset, funnel_dataset, FilterSelection(city="Manila"))
        assert [dict(record) for record in sales_dataset.records] == before


class TestSampleData:
    def test_shapes(self) -> None:
        sales, funnel = sample_datasets(end_date=date(2024, 6, 30))
        assert sales.kind is DatasetKind.SALES
        assert funnel.kind is DatasetKind.FUNNEL
        assert len(sales) == 100
        assert len(funnel) == 15
        assert all(set(record) == set(SALES_COLUMNS) for record in sales.records)
        assert all(set(record) == set(FUNNEL_COLUMNS) for record in funnel.records)

    def test_store_columns(self) -> None:
        sales, funnel = sample_datasets(end_date=date(2024, 6, 30))
        assert sales.store_column is StoreColumn.CHANNEL_NAME
        assert funnel.store_column is StoreColumn.STORE_NAME

    def test_dates_are_canonical_and_bounded(self) -> None:
        sales, _ = sample_datasets(end_date=date(2024, 6, 30))
        dates = [record["Financed_Date"] for record in sales.records]
        assert max(dates) <= "2024-06-30"
        assert min(dates) >= "2024-04-01"

    def test_deterministic_for_seed(self) -> None:
        first, _ = sample_datasets(seed=3, end_date=date(2024, 6, 30))
        second, _ = sample_datasets(seed=3, end_date=date(2024, 6, 30))
        assert first.records == second.records

    def test_funnel_stages_never_increase(self) -> None:
        _, funnel = sample_datasets()
        for record in funnel.records:
            values = [
                record["Purchases_Started"],
                record["Info_Submitted"],
                record["Offer_Seen"],
                record["Offer_Selected"],
                record["KYC_Completed"],
                record["Agreement_Signed"],
                record["Completed_Purchases"],
            ]
            assert values == sorted(values, reverse=True)

    def test_sample_snapshot_computes(self, svc: DashboardService) -> None:
        sales, funnel = sample_datasets(end_date=date(2024, 6, 30))
        snapshot = svc.compute(sales, funnel)
        assert snapshot.kpis.total_applications == 100
        assert snapshot.kpis.latest_date is not None
        assert len(snapshot.cities) <= 10
