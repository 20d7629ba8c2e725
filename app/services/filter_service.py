"""
app/services/filter_service.py

Applies a FilterSelection to a Dataset.

All predicates are AND-combined and an absent (``None``) field imposes no
constraint. Date ranges compare canonical ``YYYY-MM-DD`` strings
lexicographically, which matches chronological order because the format is
zero-padded and fixed-width.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from app.domain.dataset import Dataset, Record, is_blank, is_canonical_date, text_value
from app.domain.filters import FilterSelection

logger = logging.getLogger(__name__)

COLUMN_CITY = "City"
COLUMN_FINANCER = "Financer"
COLUMN_MODEL = "Purchased_Model_Name"
COLUMN_STORE_CODE = "Channel_Code"

Predicate = Callable[[Record], bool]


@dataclass(frozen=True)
class FilterOptions:
    """
    Distinct, sorted, non-empty values offered by each filter control.
    """

    dates: tuple[str, ...] = ()
    cities: tuple[str, ...] = ()
    financers: tuple[str, ...] = ()
    stores: tuple[str, ...] = ()
    store_codes: tuple[str, ...] = ()
    models: tuple[str, ...] = ()

    @property
    def min_date(self) -> str | None:
        return self.dates[0] if self.dates else None

    @property
    def max_date(self) -> str | None:
        return self.dates[-1] if self.dates else None


def apply(dataset: Dataset, selection: FilterSelection) -> tuple[Record, ...]:
    """
    Return the records of *dataset* that satisfy every active constraint.

    Record order is preserved. An empty selection returns every record.
    """

    predicates = _build_predicates(dataset, selection, include_sales_fields=True)
    return _filter(dataset, predicates)


def apply_funnel(dataset: Dataset, selection: FilterSelection) -> tuple[Record, ...]:
    """
    Filter a funnel dataset. Only store and store code apply to funnel rows.
    """

    predicates = _build_predicates(dataset, selection, include_sales_fields=False)
    return _filter(dataset, predicates)


def filter_options(dataset: Dataset) -> FilterOptions:
    """
    Collect dropdown values for every filter control from *dataset*.
    """

    if dataset.is_empty:
        return FilterOptions()

    records = dataset.records
    store_codes: tuple[str, ...] = ()
    if COLUMN_STORE_CODE in records[0]:
        store_codes = _distinct(records, COLUMN_STORE_CODE)

    return FilterOptions(
        dates=_canonical_dates(records, dataset.date_column),
        cities=_distinct(records, COLUMN_CITY),
        financers=_distinct(records, COLUMN_FINANCER),
        stores=(
            _distinct(records, dataset.store_column.value) if dataset.store_column else ()
        ),
        store_codes=store_codes,
        models=_distinct(records, COLUMN_MODEL),
    )


def _filter(dataset: Dataset, predicates: list[Predicate]) -> tuple[Record, ...]:
    if not predicates:
        return dataset.records
    filtered = tuple(
        record for record in dataset.records if all(check(record) for check in predicates)
    )
    logger.debug(
        "Filtered %s dataset %d → %d rows with %d predicates",
        dataset.kind.value,
        len(dataset.records),
        len(filtered),
        len(predicates),
    )
    return filtered


def _build_predicates(
    dataset: Dataset,
    selection: FilterSelection,
    *,
    include_sales_fields: bool,
) -> list[Predicate]:
    predicates: list[Predicate] = []

    if include_sales_fields:
        if selection.date_range is not None:
            date_range = selection.date_range
            date_column = dataset.date_column

            def in_range(record: Record) -> bool:
                if date_column is None:
                    return False
                value = record.get(date_column)
                return isinstance(value, str) and date_range.contains(value)

            predicates.append(in_range)

        predicates.extend(
            _equals(column, value)
            for column, value in (
                (COLUMN_CITY, selection.city),
                (COLUMN_FINANCER, selection.financer),
                (COLUMN_MODEL, selection.model),
            )
            if value is not None
        )

    if selection.store is not None:
        store_column = dataset.store_column
        if store_column is None:
            predicates.append(lambda record: False)
        else:
            predicates.append(_equals(store_column.value, selection.store))

    if selection.store_code is not None:
        store_code = selection.store_code
        predicates.append(
            lambda record: COLUMN_STORE_CODE in record
            and text_value(record[COLUMN_STORE_CODE]) == store_code
        )

    return predicates


def _equals(column: str, expected: str) -> Predicate:
    def check(record: Record) -> bool:
        return column in record and text_value(record[column]) == expected

    return check


def _distinct(records: Iterable[Record], column: str) -> tuple[str, ...]:
    values = {
        text_value(record.get(column))
        for record in records
        if not is_blank(record.get(column))
    }
    return tuple(sorted(values))


def _canonical_dates(records: Iterable[Record], date_column: str | None) -> tuple[str, ...]:
    # Unreadable dates stay in the data but cannot bound a date picker.
    if date_column is None:
        return ()
    values = {record.get(date_column) for record in records}
    return tuple(sorted(value for value in values if is_canonical_date(value)))
