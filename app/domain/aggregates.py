"""
app/domain/aggregates.py

Derived chart series. Recomputed on every filter change, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DateCount:
    date: str
    count: int


@dataclass(frozen=True)
class CityAmount:
    city: str
    total_amount: float


@dataclass(frozen=True)
class ModelCount:
    model: str
    count: int


@dataclass(frozen=True)
class FunnelStage:
    """
    One step of the purchase funnel.

    ``conversion_rate`` is the percentage of the previous stage's total,
    rounded to one decimal place. It stays ``None`` for the first stage and
    whenever the previous total is zero.
    """

    name: str
    column: str
    value: float
    conversion_rate: float | None = None

    @property
    def conversion_label(self) -> str | None:
        if self.conversion_rate is None:
            return None
        return f"{self.conversion_rate:.1f}%"
