"""
app/validators package marker.
"""

from app.validators.csv_validator import (
    DATE_COLUMN_SYNONYMS,
    CSVCellCoercer,
    find_date_column,
)

__all__ = [
    "CSVCellCoercer",
    "DATE_COLUMN_SYNONYMS",
    "find_date_column",
]
