"""
tests/conftest.py

Shared dataset fixtures for dashboard tests.
"""

from __future__ import annotations

import pytest

from app.domain.dataset import Dataset, DatasetKind
from app.services.csv_ingestion_service import CSVNormalizer
from csv_samples import FUNNEL_CSV, SALES_CSV


@pytest.fixture()
def normalizer() -> CSVNormalizer:
    """Fresh normalizer with default settings for each test."""
    return CSVNormalizer()


@pytest.fixture()
def sales_dataset(normalizer: CSVNormalizer) -> Dataset:
    return normalizer.load_dataset(SALES_CSV, DatasetKind.SALES, source_name="Daily_Sales_Dump.csv")


@pytest.fixture()
def funnel_dataset(normalizer: CSVNormalizer) -> Dataset:
    return normalizer.load_dataset(FUNNEL_CSV, DatasetKind.FUNNEL, source_name="Daily_SalesFunnel.csv")
