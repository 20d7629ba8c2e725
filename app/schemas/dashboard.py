"""
app/schemas/dashboard.py

Serialized shapes of a dashboard snapshot for JSON export.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DateRangeResponse(BaseModel):
    start: str
    end: str


class FilterSelectionResponse(BaseModel):
    """
    Active filters; ``None`` means the filter is not set.
    """

    date_range: DateRangeResponse | None = None
    city: str | None = None
    financer: str | None = None
    store: str | None = None
    store_code: str | None = None
    model: str | None = None


class KPISummaryResponse(BaseModel):
    total_applications: int = Field(..., ge=0)
    total_amount_financed: float
    average_loan_value: float
    latest_date: str | None = None
    latest_day_sales: float
    total_phones: int = Field(..., ge=0)
    total_tablets: int = Field(..., ge=0)
    with_trade_in: int = Field(..., ge=0)
    without_trade_in: int = Field(..., ge=0)
    with_care_plus: int = Field(..., ge=0)
    without_care_plus: int = Field(..., ge=0)
    total_completed_purchases: float


class DateCountResponse(BaseModel):
    date: str
    count: int = Field(..., ge=0)


class CityAmountResponse(BaseModel):
    city: str
    total_amount: float


class ModelCountResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model: str
    count: int = Field(..., ge=0)


class FunnelStageResponse(BaseModel):
    name: str
    column: str
    value: float
    conversion_rate: float | None = None


class ParseDiagnosticsResponse(BaseModel):
    """
    Normalization counters reported next to an uploaded dataset.
    """

    rows_parsed: int = Field(..., ge=0)
    rows_skipped: int = Field(..., ge=0)
    date_failures: int = Field(..., ge=0)
    ambiguous_dates: int = Field(0, ge=0)
    header_columns: int = Field(..., ge=0)
    missing_date_column: bool


class DashboardSnapshotResponse(BaseModel):
    """
    Whole-dashboard export: filters, KPIs and every chart series.
    """

    generated_at: datetime
    filters: FilterSelectionResponse
    kpis: KPISummaryResponse
    trend: list[DateCountResponse] = Field(default_factory=list)
    cities: list[CityAmountResponse] = Field(default_factory=list)
    models: list[ModelCountResponse] = Field(default_factory=list)
    funnel: list[FunnelStageResponse] = Field(default_factory=list)
    filtered_sales_count: int = Field(..., ge=0)
    filtered_funnel_count: int = Field(..., ge=0)
