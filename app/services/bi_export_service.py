"""
app/services/bi_export_service.py

Tabular export of a dashboard snapshot.

Supports six datasets, each flat enough for spreadsheet or BI consumption:

    kpis     — one row per KPI (tall format: metric, value, unit)
    trend    — applications per date
    cities   — top cities by amount financed
    models   — top models by application count
    funnel   — funnel stages with conversion percentage
    records  — the filtered sales records themselves

The full snapshot is also available as one JSON document validated by
:class:`~app.schemas.dashboard.DashboardSnapshotResponse`.
"""

from __future__ import annotations

import io
import json
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from typing import Any

import pandas as pd

from app.domain.dataset import ParseDiagnostics
from app.schemas.dashboard import DashboardSnapshotResponse, ParseDiagnosticsResponse
from app.services.dashboard_service import DashboardSnapshot

VALID_DATASETS: frozenset[str] = frozenset(
    {"kpis", "trend", "cities", "models", "funnel", "records"}
)


# ---------------------------------------------------------------------------
# Export result container
# ---------------------------------------------------------------------------


@dataclass
class ExportResult:
    """
    Flat tabular data ready for CSV or JSON serialisation.

    Attributes
    ----------
    rows:   Flat dict per row; all values are JSON-safe scalars.
    fields: Ordered column names; deterministic across calls for the same dataset.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.fields)

    def to_csv(self) -> str:
        buffer = io.StringIO()
        self.to_dataframe().to_csv(buffer, index=False)
        return buffer.getvalue()

    def to_json(self) -> str:
        return json.dumps(self.rows, default=str, indent=2)


def _collect_fields(rows: list[dict[str, Any]]) -> list[str]:
    """
    Union all keys across rows while preserving first-seen insertion order.
    Guarantees a deterministic, stable column list for CSV headers.
    """
    seen: dict[str, None] = {}
    for row in rows:
        for k in row:
            seen.setdefault(k, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class BIExportService:
    """
    Flatten dashboard snapshots for download.

    Every method is read-only; the snapshot is never modified.
    """

    def export(self, snapshot: DashboardSnapshot, *, dataset: str = "kpis") -> ExportResult:
        """
        Flatten one part of *snapshot* into an :class:`ExportResult`.

        Raises
        ------
        ValueError
            When *dataset* is not one of :data:`VALID_DATASETS`.
        """
        if dataset not in VALID_DATASETS:
            allowed = ", ".join(sorted(VALID_DATASETS))
            raise ValueError(f"Unknown export dataset {dataset!r}. Allowed values: {allowed}.")

        rows = getattr(self, f"_export_{dataset}")(snapshot)
        return ExportResult(rows=rows, fields=_collect_fields(rows))

    def snapshot_document(self, snapshot: DashboardSnapshot) -> DashboardSnapshotResponse:
        """
        Build the validated JSON document for the whole snapshot.
        """
        return DashboardSnapshotResponse.model_validate(
            {
                "generated_at": snapshot.generated_at,
                "filters": asdict(snapshot.selection),
                "kpis": asdict(snapshot.kpis),
                "trend": [asdict(point) for point in snapshot.trend],
                "cities": [asdict(point) for point in snapshot.cities],
                "models": [asdict(point) for point in snapshot.models],
                "funnel": [asdict(stage) for stage in snapshot.funnel],
                "filtered_sales_count": len(snapshot.filtered_sales),
                "filtered_funnel_count": len(snapshot.filtered_funnel),
            }
        )

    def snapshot_json(self, snapshot: DashboardSnapshot) -> str:
        return self.snapshot_document(snapshot).model_dump_json(indent=2)

    @staticmethod
    def diagnostics_document(diagnostics: ParseDiagnostics) -> ParseDiagnosticsResponse:
        return ParseDiagnosticsResponse(
            rows_parsed=diagnostics.rows_parsed,
            rows_skipped=diagnostics.rows_skipped,
            date_failures=diagnostics.date_failures,
            ambiguous_dates=diagnostics.ambiguous_dates,
            header_columns=diagnostics.header_columns,
            missing_date_column=diagnostics.missing_date_column,
        )

    # ------------------------------------------------------------------
    # Per-dataset flatteners
    # ------------------------------------------------------------------

    def _export_kpis(self, snapshot: DashboardSnapshot) -> list[dict[str, Any]]:
        return [
            {
                "metric": result.metric,
                "value": result.value,
                "unit": result.unit,
                "computed_at": result.computed_at.isoformat(),
            }
            for result in snapshot.kpis.to_results()
        ]

    def _export_trend(self, snapshot: DashboardSnapshot) -> list[dict[str, Any]]:
        return [asdict(point) for point in snapshot.trend]

    def _export_cities(self, snapshot: DashboardSnapshot) -> list[dict[str, Any]]:
        return [asdict(point) for point in snapshot.cities]

    def _export_models(self, snapshot: DashboardSnapshot) -> list[dict[str, Any]]:
        return [asdict(point) for point in snapshot.models]

    def _export_funnel(self, snapshot: DashboardSnapshot) -> list[dict[str, Any]]:
        return [
            {
                "stage": stage.name,
                "column": stage.column,
                "value": stage.value,
                "conversion_rate": stage.conversion_rate,
            }
            for stage in snapshot.funnel
        ]

    def _export_records(self, snapshot: DashboardSnapshot) -> list[dict[str, Any]]:
        return [dict(record) for record in snapshot.filtered_sales]


@lru_cache(maxsize=1)
def get_bi_export_service() -> BIExportService:
    return BIExportService()
