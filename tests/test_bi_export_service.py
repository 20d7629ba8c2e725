"""
tests/test_bi_export_service.py

Pytest unit tests for BIExportService and the dashboard response schemas.

Coverage
--------
- Every export dataset flattens to deterministic fields
- Unknown dataset names are rejected
- CSV and JSON serialisation
- Snapshot document validates against DashboardSnapshotResponse
- Schema constraints reject impossible values
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from app.domain.dataset import Dataset, ParseDiagnostics
from app.domain.filters import DateRange, FilterSelection
from app.schemas.dashboard import DashboardSnapshotResponse, KPISummaryResponse
from app.services.aggregation_service import AggregationService
from app.services.bi_export_service import VALID_DATASETS, BIExportService, ExportResult
from app.services.dashboard_service import DashboardService, DashboardSnapshot


@pytest.fixture()
def exporter() -> BIExportService:
    return BIExportService()


@pytest.fixture()
def snapshot(sales_dataset: Dataset, funnel_dataset: Dataset) -> DashboardSnapshot:
    service = DashboardService(aggregation_service=AggregationService())
    return service.compute(
        sales_dataset,
        funnel_dataset,
        FilterSelection(date_range=DateRange("2024-01-01", "2024-01-31")),
    )


class TestExport:
    def test_unknown_dataset_raises(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        with pytest.raises(ValueError, match="Unknown export dataset"):
            exporter.export(snapshot, dataset="revenue")

    @pytest.mark.parametrize("dataset", sorted(VALID_DATASETS))
    def test_every_dataset_exports(
        self, exporter: BIExportService, snapshot: DashboardSnapshot, dataset: str
    ) -> None:
        result = exporter.export(snapshot, dataset=dataset)
        assert isinstance(result, ExportResult)
        assert result.rows
        for row in result.rows:
            assert set(row) <= set(result.fields)

    def test_kpis_are_tall(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        result = exporter.export(snapshot, dataset="kpis")
        assert result.fields == ["metric", "value", "unit", "computed_at"]
        values = {row["metric"]: row["value"] for row in result.rows}
        assert values["total_applications"] == 4
        assert values["latest_date"] == "2024-01-31"

    def test_funnel_rows(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        result = exporter.export(snapshot, dataset="funnel")
        assert result.fields == ["stage", "column", "value", "conversion_rate"]
        assert result.rows[0]["conversion_rate"] is None
        assert result.rows[1]["conversion_rate"] == 75.0

    def test_records_keep_source_columns(
        self, exporter: BIExportService, snapshot: DashboardSnapshot, sales_dataset: Dataset
    ) -> None:
        result = exporter.export(snapshot, dataset="records")
        assert result.fields == list(sales_dataset.columns)
        assert len(result.rows) == 4

    def test_csv_has_header_and_rows(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        text = exporter.export(snapshot, dataset="trend").to_csv()
        lines = text.strip().splitlines()
        assert lines[0] == "date,count"
        assert lines[1] == "2024-01-01,1"
        assert len(lines) == 4

    def test_json_round_trips(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        rows = json.loads(exporter.export(snapshot, dataset="cities").to_json())
        assert rows[0] == {"city": "Manila", "total_amount": 40000.0}

    def test_export_does_not_modify_snapshot(
        self, exporter: BIExportService, snapshot: DashboardSnapshot
    ) -> None:
        result = exporter.export(snapshot, dataset="records")
        result.rows[0]["City"] = "Changed"
        assert snapshot.filtered_sales[0]["City"] == "Manila"


class TestSnapshotDocument:
    def test_document_validates(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        document = exporter.snapshot_document(snapshot)
        assert isinstance(document, DashboardSnapshotResponse)
        assert document.filters.date_range is not None
        assert document.filters.date_range.start == "2024-01-01"
        assert document.filtered_sales_count == 4
        assert len(document.funnel) == 7

    def test_json_document(self, exporter: BIExportService, snapshot: DashboardSnapshot) -> None:
        payload = json.loads(exporter.snapshot_json(snapshot))
        assert payload["kpis"]["total_applications"] == 4
        assert payload["filters"]["city"] is None
        assert payload["models"][0]["model"]

    def test_diagnostics_document(self) -> None:
        document = BIExportService.diagnostics_document(
            ParseDiagnostics(rows_parsed=3, rows_skipped=1, header_columns=2)
        )
        assert document.rows_skipped == 1
        assert document.missing_date_column is False


class TestSchemaConstraints:
    def test_negative_counts_rejected(self) -> None:
        with pytest.raises(ValidationError):
            KPISummaryResponse(
                total_applications=-1,
                total_amount_financed=0.0,
                average_loan_value=0.0,
                latest_day_sales=0.0,
                total_phones=0,
                total_tablets=0,
                with_trade_in=0,
                without_trade_in=0,
                with_care_plus=0,
                without_care_plus=0,
                total_completed_purchases=0.0,
            )
