"""
app/sample_data.py

Deterministic sample exports so the dashboard can be explored without files.
"""

from __future__ import annotations

import random
from datetime import date, timedelta

from app.domain.dataset import (
    Dataset,
    DatasetKind,
    ParseDiagnostics,
    Record,
    classify_store_column,
    freeze_record,
)

CITIES = ("Manila", "Quezon City", "Makati", "Cebu City", "Davao City", "Pasig", "Taguig", "Iloilo City")
FINANCERS = ("Home Credit", "BillEase", "Atome", "TendoPay", "Cashalo", "Skyro")
STORE_NAMES = ("Store Alpha", "Store Beta", "Store Gamma", "Store Delta", "Store Epsilon")
CHANNEL_NAMES = ("Online", "Retail", "Partner", "Direct Sales")
MODEL_NAMES = (
    "Galaxy S24", "Galaxy S24+", "Galaxy S24 Ultra",
    "Galaxy A55", "Galaxy A35", "Galaxy A25",
    "Galaxy Z Flip6", "Galaxy Z Fold6",
    "Galaxy Tab S9", "Galaxy Tab S9 FE", "Galaxy Tab A9",
)

SALES_COLUMNS: tuple[str, ...] = (
    "Loan_Number",
    "Principal_Amount",
    "Financed_Date",
    "City",
    "Financer",
    "Channel_Name",
    "Channel_Code",
    "Purchased_Model_Name",
    "Device_Category",
    "TradeIn",
    "Careplus_Price",
)
FUNNEL_COLUMNS: tuple[str, ...] = (
    "Store_Name",
    "Channel_Name",
    "Purchases_Started",
    "Info_Submitted",
    "Offer_Seen",
    "Offer_Selected",
    "KYC_Completed",
    "Agreement_Signed",
    "Completed_Purchases",
)


def generate_sales_records(
    count: int = 100,
    *,
    seed: int = 7,
    end_date: date | None = None,
) -> tuple[Record, ...]:
    """
    Build *count* loan records spread over the ~90 days before *end_date*.
    """

    rng = random.Random(seed)
    end = end_date or date.today()
    records: list[Record] = []
    for index in range(count):
        model = rng.choice(MODEL_NAMES)
        channel_index = rng.randrange(len(CHANNEL_NAMES))
        records.append(
            freeze_record(
                {
                    "Loan_Number": f"LOAN{100000 + index}",
                    "Principal_Amount": rng.randint(10_000, 150_000),
                    "Financed_Date": (end - timedelta(days=rng.randint(0, 90))).isoformat(),
                    "City": rng.choice(CITIES),
                    "Financer": rng.choice(FINANCERS),
                    "Channel_Name": CHANNEL_NAMES[channel_index],
                    "Channel_Code": 1001 + channel_index,
                    "Purchased_Model_Name": model,
                    "Device_Category": "Tablet" if "Tab" in model else "Phone",
                    "TradeIn": rng.choice((0, 0, 0, rng.randint(2_000, 15_000))),
                    "Careplus_Price": rng.choice((0, 0, rng.randint(1_500, 6_000))),
                }
            )
        )
    return tuple(records)


def generate_funnel_records(count: int = 15, *, seed: int = 7) -> tuple[Record, ...]:
    """
    Build *count* funnel rows, alternating between store and channel rows.
    """

    rng = random.Random(seed)
    records: list[Record] = []
    for index in range(count):
        if index % 2 == 0:
            store = {"Store_Name": STORE_NAMES[index % len(STORE_NAMES)], "Channel_Name": ""}
        else:
            store = {"Store_Name": "", "Channel_Name": CHANNEL_NAMES[index % len(CHANNEL_NAMES)]}

        started = rng.randint(80, 150)
        submitted = rng.randint(int(started * 0.7), started)
        seen = rng.randint(int(submitted * 0.8), submitted)
        selected = rng.randint(int(seen * 0.7), seen)
        kyc = rng.randint(int(selected * 0.7), selected)
        signed = rng.randint(int(kyc * 0.8), kyc)
        completed = rng.randint(int(signed * 0.9), signed)

        records.append(
            freeze_record(
                {
                    **store,
                    "Purchases_Started": started,
                    "Info_Submitted": submitted,
                    "Offer_Seen": seen,
                    "Offer_Selected": selected,
                    "KYC_Completed": kyc,
                    "Agreement_Signed": signed,
                    "Completed_Purchases": completed,
                }
            )
        )
    return tuple(records)


def sample_datasets(
    *,
    sales_count: int = 100,
    funnel_count: int = 15,
    seed: int = 7,
    end_date: date | None = None,
) -> tuple[Dataset, Dataset]:
    """
    Return ``(sales, funnel)`` sample datasets.
    """

    sales_records = generate_sales_records(sales_count, seed=seed, end_date=end_date)
    funnel_records = generate_funnel_records(funnel_count, seed=seed)
    sales = Dataset(
        kind=DatasetKind.SALES,
        records=sales_records,
        columns=SALES_COLUMNS,
        date_column="Financed_Date",
        store_column=classify_store_column(SALES_COLUMNS, sales_records),
        diagnostics=ParseDiagnostics(rows_parsed=len(sales_records), header_columns=len(SALES_COLUMNS)),
        source_name="sample_sales",
    )
    funnel = Dataset(
        kind=DatasetKind.FUNNEL,
        records=funnel_records,
        columns=FUNNEL_COLUMNS,
        store_column=classify_store_column(FUNNEL_COLUMNS, funnel_records),
        diagnostics=ParseDiagnostics(
            rows_parsed=len(funnel_records),
            header_columns=len(FUNNEL_COLUMNS),
            missing_date_column=True,
        ),
        source_name="sample_funnel",
    )
    return sales, funnel
