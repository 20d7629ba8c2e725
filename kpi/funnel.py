"""
kpi/funnel.py

Sales funnel formula implementation.

Expected inputs
---------------
stage_totals : list[float]
    Summed value of each funnel stage, in funnel order.

Formulas
--------
Conversion[i] = (stage_totals[i] / stage_totals[i - 1]) * 100, one decimal, halves up

The first stage has no conversion rate. A stage whose predecessor total is
zero has no conversion rate either (never NaN or infinity).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from kpi.base import BaseKPIFormula

_SENTINEL = None  # value stored when a conversion cannot be computed
_ONE_DECIMAL = Decimal("0.1")


class FunnelKPIFormula(BaseKPIFormula):
    """
    Stage-over-stage conversion percentages for the purchase funnel.
    """

    def calculate(self, inputs: dict[str, Any]) -> dict[str, Any]:
        stage_totals: list[float] = inputs["stage_totals"]
        conversion_rates: list[float | None] = [_SENTINEL]
        for previous, current in zip(stage_totals, stage_totals[1:]):
            conversion_rates.append(_conversion_rate(current, previous))
        return {"conversion_rates": conversion_rates[: len(stage_totals)]}


def _conversion_rate(current: float, previous: float) -> float | None:
    if previous == 0:
        return _SENTINEL
    # halves round up: 6.25 -> 6.3
    rate = Decimal((current / previous) * 100)
    return float(rate.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))
