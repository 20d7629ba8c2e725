"""
app/domain package marker.
"""

from app.domain.aggregates import CityAmount, DateCount, FunnelStage, ModelCount
from app.domain.dataset import (
    CellValue,
    Dataset,
    DatasetKind,
    ParseDiagnostics,
    Record,
    RowIssue,
    StoreColumn,
)
from app.domain.filters import DateRange, FilterSelection

__all__ = [
    "CellValue",
    "CityAmount",
    "Dataset",
    "DatasetKind",
    "DateCount",
    "DateRange",
    "FilterSelection",
    "FunnelStage",
    "ModelCount",
    "ParseDiagnostics",
    "Record",
    "RowIssue",
    "StoreColumn",
]
