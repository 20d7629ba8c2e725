"""
tests/test_aggregation_service.py

Pytest unit tests for AggregationService and FunnelKPIFormula.

Coverage
--------
- Empty input produces empty series and zero-valued funnel stages
- Trend grouping by date, ascending
- City and model ranking, top-N truncation, "Unknown" bucket
- Stable ordering for ties
- Funnel totals and conversion rates, including zero predecessors and half-up rounding
"""

from __future__ import annotations

import pytest

from app.domain.aggregates import CityAmount, DateCount, FunnelStage, ModelCount
from app.domain.dataset import Dataset, freeze_record
from app.services.aggregation_service import FUNNEL_STAGES, AggregationService
from kpi.funnel import FunnelKPIFormula


@pytest.fixture()
def svc() -> AggregationService:
    """Fresh AggregationService with default settings for each test."""
    return AggregationService()


def _records(*rows: dict) -> tuple:
    return tuple(freeze_record(row) for row in rows)


# ---------------------------------------------------------------------------
# Empty input
# ---------------------------------------------------------------------------


class TestEmptyInput:
    def test_series_are_empty(self, svc: AggregationService) -> None:
        assert svc.by_date((), "Financed_Date") == []
        assert svc.by_city(()) == []
        assert svc.by_model(()) == []

    def test_funnel_has_seven_zero_stages(self, svc: AggregationService) -> None:
        stages = svc.funnel_stages(())
        assert [stage.name for stage in stages] == [name for name, _ in FUNNEL_STAGES]
        assert all(stage.value == 0 for stage in stages)
        assert all(stage.conversion_rate is None for stage in stages)

    def test_by_date_without_date_column(self, svc: AggregationService, sales_dataset: Dataset) -> None:
        assert svc.by_date(sales_dataset.records, None) == []


# ---------------------------------------------------------------------------
# Sales series
# ---------------------------------------------------------------------------


class TestByDate:
    def test_counts_per_date_ascending(self, svc: AggregationService, sales_dataset: Dataset) -> None:
        assert svc.by_date(sales_dataset.records, "Financed_Date") == [
            DateCount("2024-01-01", 1),
            DateCount("2024-01-15", 1),
            DateCount("2024-01-31", 2),
            DateCount("2024-02-01", 1),
        ]

    def test_counts_sum_to_dated_records(self, svc: AggregationService) -> None:
        records = _records(
            {"Financed_Date": "2024-01-02"},
            {"Financed_Date": ""},
            {"Financed_Date": "2024-01-01"},
            {"Financed_Date": "2024-01-02"},
        )
        series = svc.by_date(records, "Financed_Date")
        assert sum(point.count for point in series) == 3
        assert [point.date for point in series] == ["2024-01-01", "2024-01-02"]


class TestByCity:
    def test_sums_amounts_and_buckets_blank_city(
        self, svc: AggregationService, sales_dataset: Dataset
    ) -> None:
        assert svc.by_city(sales_dataset.records) == [
            CityAmount("Manila", 40000.0),
            CityAmount("Unknown", 40000.0),
            CityAmount("Cebu City", 20000.0),
            CityAmount("Davao City", 5000.0),
        ]

    def test_keeps_top_ten(self, svc: AggregationService) -> None:
        records = _records(
            *({"City": f"City {index:02d}", "Principal_Amount": index} for index in range(12))
        )
        series = svc.by_city(records)
        assert len(series) == 10
        assert series[0] == CityAmount("City 11", 11.0)
        assert series[-1] == CityAmount("City 02", 2.0)

    def test_configurable_top_n_and_label(self) -> None:
        svc = AggregationService(top_n=1, unknown_label="N/A")
        records = _records({"Principal_Amount": 5}, {"City": "Manila", "Principal_Amount": 1})
        assert svc.by_city(records) == [CityAmount("N/A", 5.0)]

    def test_non_numeric_amount_adds_zero(self, svc: AggregationService) -> None:
        records = _records(
            {"City": "Manila", "Principal_Amount": "n/a"},
            {"City": "Manila", "Principal_Amount": 10},
        )
        assert svc.by_city(records) == [CityAmount("Manila", 10.0)]


class TestByModel:
    def test_counts_descending_with_stable_ties(
        self, svc: AggregationService, sales_dataset: Dataset
    ) -> None:
        assert svc.by_model(sales_dataset.records) == [
            ModelCount("Galaxy S24", 2),
            ModelCount("Galaxy A55", 1),
            ModelCount("Galaxy Tab S9", 1),
            ModelCount("Unknown", 1),
        ]

    def test_total_count_never_exceeds_input(self, svc: AggregationService) -> None:
        records = _records(*({"Purchased_Model_Name": f"M{index}"} for index in range(15)))
        series = svc.by_model(records)
        assert len(series) == 10
        assert sum(point.count for point in series) <= len(records)


# ---------------------------------------------------------------------------
# Funnel
# ---------------------------------------------------------------------------


class TestFunnelStages:
    def test_totals_and_conversion_rates(
        self, svc: AggregationService, funnel_dataset: Dataset
    ) -> None:
        stages = svc.funnel_stages(funnel_dataset.records)
        assert [stage.value for stage in stages] == [200, 150, 100, 30, 20, 10, 5]
        assert [stage.conversion_rate for stage in stages] == [
            None,
            75.0,
            66.7,
            30.0,
            66.7,
            50.0,
            50.0,
        ]

    def test_zero_predecessor_has_no_rate(self, svc: AggregationService) -> None:
        records = _records(
            {
                "Purchases_Started": 100,
                "Info_Submitted": 80,
                "Offer_Seen": 60,
                "Offer_Selected": 0,
                "KYC_Completed": 0,
                "Agreement_Signed": 0,
                "Completed_Purchases": 0,
            }
        )
        rates = [stage.conversion_rate for stage in svc.funnel_stages(records)]
        assert rates == [None, 80.0, 75.0, 0.0, None, None, None]

    def test_conversion_label(self) -> None:
        assert FunnelStage("Offer Seen", "Offer_Seen", 10, 66.7).conversion_label == "66.7%"
        assert FunnelStage("Purchases Started", "Purchases_Started", 10).conversion_label is None

    def test_missing_stage_columns_count_as_zero(self, svc: AggregationService) -> None:
        stages = svc.funnel_stages(_records({"Store_Name": "Store A", "Purchases_Started": 5}))
        assert stages[0].value == 5
        assert stages[1].value == 0
        assert stages[1].conversion_rate == 0.0
        assert stages[2].conversion_rate is None


class TestFunnelFormula:
    def test_stage_over_stage_rates(self) -> None:
        result = FunnelKPIFormula().calculate({"stage_totals": [200, 100, 50]})
        assert result == {"conversion_rates": [None, 50.0, 50.0]}

    @pytest.mark.parametrize(
        "totals, expected",
        [
            ([16, 1], 6.3),
            ([16, 3], 18.8),
            ([8, 1], 12.5),
            ([3, 2], 66.7),
            ([3, 1], 33.3),
        ],
    )
    def test_halves_round_up(self, totals: list[int], expected: float) -> None:
        rates = FunnelKPIFormula().calculate({"stage_totals": totals})["conversion_rates"]
        assert rates[1] == expected

    def test_half_up_reaches_stage_series(self, svc: AggregationService) -> None:
        stages = svc.funnel_stages(_records({"Purchases_Started": 16, "Info_Submitted": 1}))
        assert stages[1].conversion_rate == 6.3
        assert stages[1].conversion_label == "6.3%"

    def test_empty_totals(self) -> None:
        result = FunnelKPIFormula().calculate({"stage_totals": []})
        assert result["conversion_rates"] == []
