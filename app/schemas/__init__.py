"""
app/schemas package marker.
"""

from app.schemas.dashboard import (
    CityAmountResponse,
    DashboardSnapshotResponse,
    DateCountResponse,
    FilterSelectionResponse,
    FunnelStageResponse,
    KPISummaryResponse,
    ModelCountResponse,
    ParseDiagnosticsResponse,
)

__all__ = [
    "CityAmountResponse",
    "DashboardSnapshotResponse",
    "DateCountResponse",
    "FilterSelectionResponse",
    "FunnelStageResponse",
    "KPISummaryResponse",
    "ModelCountResponse",
    "ParseDiagnosticsResponse",
]
