"""
kpi/base.py

Abstract base class for dashboard KPI formula implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseKPIFormula(ABC):
    """
    Contract for KPI formula implementations.

    Subclasses receive a plain dictionary of pre-extracted column values
    and must return a plain dictionary of computed metric values.

    No I/O, no logging, and no side effects are permitted inside
    :meth:`calculate`. Empty inputs must yield well-defined zero values.
    """

    @abstractmethod
    def calculate(self, inputs: dict[str, Any]) -> dict[str, Any]:
        """
        Compute KPI metrics from *inputs* and return a result dictionary.

        Parameters
        ----------
        inputs:
            Column values extracted from the filtered records.

        Returns
        -------
        dict[str, Any]
            Computed metrics keyed by metric name.
        """
