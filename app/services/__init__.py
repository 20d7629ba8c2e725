"""
app/services package marker.
"""

from app.services import filter_service
from app.services.aggregation_service import AggregationService, get_aggregation_service
from app.services.bi_export_service import BIExportService, ExportResult, get_bi_export_service
from app.services.csv_ingestion_service import (
    CSVDecodeError,
    CSVNormalizer,
    ParseResult,
    classify_file,
    get_csv_normalizer,
)
from app.services.dashboard_service import DashboardService, DashboardSnapshot
from app.services.dataset_store import DatasetLoadError, DatasetStore
from app.services.kpi_service import KPIResult, KPIService, KPISummary

__all__ = [
    "AggregationService",
    "BIExportService",
    "CSVDecodeError",
    "CSVNormalizer",
    "DashboardService",
    "DashboardSnapshot",
    "DatasetLoadError",
    "DatasetStore",
    "ExportResult",
    "KPIResult",
    "KPIService",
    "KPISummary",
    "ParseResult",
    "classify_file",
    "filter_service",
    "get_aggregation_service",
    "get_bi_export_service",
    "get_csv_normalizer",
]
