"""Streamlit frontend for the Finance+ sales dashboard."""

from __future__ import annotations

import logging
from typing import Any, Optional

import pandas as pd
import streamlit as st

from app.config import get_logging_settings
from app.domain.dataset import Dataset, DatasetKind
from app.domain.filters import DateRange, FilterSelection
from app.sample_data import sample_datasets
from app.services import filter_service
from app.services.bi_export_service import get_bi_export_service
from app.services.csv_ingestion_service import classify_file
from app.services.dashboard_service import DashboardService, DashboardSnapshot
from app.services.dataset_store import DatasetLoadError, DatasetStore

st.set_page_config(page_title="Finance+ Dashboard", page_icon="F+", layout="wide")

logging.basicConfig(
    level=getattr(logging, get_logging_settings().level, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("streamlit_app")

_UPLOAD_SLOTS: tuple[tuple[DatasetKind, str], ...] = (
    (DatasetKind.SALES, "Daily_Sales_Dump.csv"),
    (DatasetKind.FUNNEL, "Daily_SalesFunnel.csv"),
)
_ALL = "All"


@st.cache_resource(show_spinner=False)
def _dashboard_service() -> DashboardService:
    return DashboardService()


def _format_peso(value: float) -> str:
    return f"P {value:,.0f}"


def _ingest_upload(store: DatasetStore, expected: DatasetKind, uploaded: Any) -> Optional[str]:
    """Load one uploaded file into the store; return an error message on failure."""
    kind = classify_file(uploaded.name) or expected
    if kind is not expected:
        logger.warning("Rejected upload %r in %s slot", uploaded.name, expected.value)
        return f"{uploaded.name} looks like a {kind.value} export, not {expected.value}."
    try:
        dataset = store.ingest_bytes(kind, uploaded.getvalue(), source_name=uploaded.name)
    except DatasetLoadError:
        return f"Could not load {uploaded.name}. The previous data is still shown."
    diagnostics = dataset.diagnostics
    if diagnostics.rows_skipped:
        st.warning(f"{uploaded.name}: skipped {diagnostics.rows_skipped} malformed row(s).")
    if diagnostics.date_failures:
        st.warning(f"{uploaded.name}: {diagnostics.date_failures} date value(s) could not be read.")
    if diagnostics.ambiguous_dates:
        st.info(
            f"{uploaded.name}: {diagnostics.ambiguous_dates} date(s) could be read as month/day or day/month."
        )
    return None


def _select(label: str, values: tuple[str, ...], key: str) -> Optional[str]:
    choice = st.selectbox(label, options=[_ALL, *values], key=key)
    return None if choice == _ALL else choice


def _date_range_input(snapshot_options: Any) -> Optional[DateRange]:
    if not snapshot_options.dates:
        return None
    lower = pd.Timestamp(snapshot_options.min_date).date()
    upper = pd.Timestamp(snapshot_options.max_date).date()
    picked = st.date_input(
        "Date Range",
        value=(),
        min_value=lower,
        max_value=upper,
        key="filter_date_range",
    )
    if isinstance(picked, (list, tuple)) and len(picked) == 2:
        return DateRange(start=picked[0].isoformat(), end=picked[1].isoformat())
    return None


def _reset_filters() -> None:
    for key in list(st.session_state.keys()):
        if str(key).startswith("filter_"):
            del st.session_state[key]


def _render_kpis(snapshot: DashboardSnapshot) -> None:
    kpis = snapshot.kpis
    cards = [
        ("Total Applications", f"{kpis.total_applications:,}", None),
        ("Total Amount Financed", _format_peso(kpis.total_amount_financed), "Sum of Principal_Amount"),
        ("Financing Approval", _format_peso(kpis.average_loan_value), "Average of Principal_Amount"),
        ("Latest Day Sales", _format_peso(kpis.latest_day_sales), f"Total sales on {kpis.latest_date_label}"),
        ("Total Phones", f"{kpis.total_phones:,}", None),
        ("Total Tablets", f"{kpis.total_tablets:,}", None),
        ("With Trade-In", f"{kpis.with_trade_in:,}", None),
        ("Without Trade-In", f"{kpis.without_trade_in:,}", None),
        ("With Care Plus", f"{kpis.with_care_plus:,}", None),
        ("Without Care Plus", f"{kpis.without_care_plus:,}", None),
    ]
    if snapshot.funnel_loaded:
        cards.append(("Completed Purchases", f"{kpis.total_completed_purchases:,.0f}", "Sales funnel"))

    for start in range(0, len(cards), 4):
        columns = st.columns(4)
        for column, (title, value, caption) in zip(columns, cards[start : start + 4]):
            with column:
                st.metric(title, value)
                if caption:
                    st.caption(caption)


def _render_charts(snapshot: DashboardSnapshot) -> None:
    left, right = st.columns(2)
    with left:
        st.markdown("**Financing Trend Over Time**")
        if snapshot.trend:
            trend_df = pd.DataFrame([{"date": p.date, "applications": p.count} for p in snapshot.trend])
            st.line_chart(trend_df, x="date", y="applications")
        else:
            st.info("No data available for the selected filters")
    with right:
        st.markdown("**Sales by City**")
        if snapshot.cities:
            city_df = pd.DataFrame([{"city": p.city, "amount": p.total_amount} for p in snapshot.cities])
            st.bar_chart(city_df, x="city", y="amount", horizontal=True)
        else:
            st.info("No data available for the selected filters")

    left, right = st.columns(2)
    with left:
        st.markdown("**Top Financed Models**")
        if snapshot.models:
            model_df = pd.DataFrame([{"model": p.model, "applications": p.count} for p in snapshot.models])
            st.bar_chart(model_df, x="model", y="applications")
        else:
            st.info("No data available for the selected filters")
    with right:
        st.markdown("**Sales Funnel**")
        if snapshot.funnel_loaded:
            funnel_df = pd.DataFrame(
                [
                    {"stage": s.name, "value": s.value, "conversion": s.conversion_label or "-"}
                    for s in snapshot.funnel
                ]
            )
            st.dataframe(funnel_df, use_container_width=True, hide_index=True)
            if snapshot.kpis.latest_date:
                st.caption(f"Data as of {snapshot.kpis.latest_date}")
        else:
            st.info("Upload Daily_SalesFunnel.csv to view the funnel.")


def _render_downloads(snapshot: DashboardSnapshot) -> None:
    exporter = get_bi_export_service()
    dcol1, dcol2, dcol3 = st.columns(3)
    with dcol1:
        st.download_button(
            label="Download Snapshot JSON",
            data=exporter.snapshot_json(snapshot).encode("utf-8"),
            file_name="dashboard_snapshot.json",
            mime="application/json",
            use_container_width=True,
        )
    with dcol2:
        st.download_button(
            label="Download KPIs CSV",
            data=exporter.export(snapshot, dataset="kpis").to_csv().encode("utf-8"),
            file_name="dashboard_kpis.csv",
            mime="text/csv",
            use_container_width=True,
        )
    with dcol3:
        st.download_button(
            label="Download Filtered Records CSV",
            data=exporter.export(snapshot, dataset="records").to_csv().encode("utf-8"),
            file_name="filtered_sales.csv",
            mime="text/csv",
            use_container_width=True,
        )


if "dataset_store" not in st.session_state:
    st.session_state.dataset_store = DatasetStore()
if "load_error" not in st.session_state:
    st.session_state.load_error = None

store: DatasetStore = st.session_state.dataset_store

st.title("Samsung Finance+ Dashboard")
st.caption("Overview of financing sales performance with visualizations")

st.subheader("Data Files")
upload_columns = st.columns(2)
for column, (kind, label) in zip(upload_columns, _UPLOAD_SLOTS):
    with column:
        uploaded = st.file_uploader(label, type=["csv"], key=f"upload_{kind.value}")
        if uploaded is not None and store.is_new_upload(kind, uploaded.file_id):
            st.session_state.load_error = _ingest_upload(store, kind, uploaded)
        if store.loaded(kind):
            st.caption(f"Loaded {len(store.get(kind)):,} rows")

if st.session_state.load_error:
    st.error(st.session_state.load_error)

sales: Dataset = store.get(DatasetKind.SALES)
funnel: Dataset = store.get(DatasetKind.FUNNEL)

if not (store.loaded(DatasetKind.SALES) or store.loaded(DatasetKind.FUNNEL)):
    st.info("Please upload the required CSV files to view the dashboard.")
    st.markdown(
        "- **Daily_Sales_Dump.csv**: financed applications\n"
        "- **Daily_SalesFunnel.csv**: sales funnel steps"
    )
    if st.button("Load Sample Data", type="primary"):
        sample_sales, sample_funnel = sample_datasets()
        store.replace(sample_sales)
        store.replace(sample_funnel)
        st.rerun()
    st.stop()

options = filter_service.filter_options(sales)

with st.sidebar:
    st.header("Filters")
    selection = FilterSelection(
        date_range=_date_range_input(options),
        city=_select("City", options.cities, "filter_city"),
        financer=_select("Financer", options.financers, "filter_financer"),
        store=_select("Store", options.stores, "filter_store"),
        store_code=_select("Store Code", options.store_codes, "filter_store_code"),
        model=_select("Model", options.models, "filter_model"),
    )
    if st.button("Reset Filters", use_container_width=True):
        _reset_filters()
        st.rerun()

snapshot = _dashboard_service().compute(sales, funnel, selection)

st.subheader("Overview KPIs")
if snapshot.sales_loaded:
    _render_kpis(snapshot)
else:
    st.info("Upload Daily_Sales_Dump.csv to view KPIs.")

st.subheader("Sales Trends")
_render_charts(snapshot)

st.subheader("Export")
_render_downloads(snapshot)
