# cm_dashboard/boq_query/metrics.py
"""
Metrics Calculator for BOQ Query Explorer

Running totals over the filtered view (after facet filters, before paging).
Rows marked for removal still count until the removal is applied.

VERSION: 1.0.0
"""

import logging
from typing import AbstractSet, Dict, List

import pandas as pd

from .constants import LEVEL_COLUMNS, ROW_ID_COLUMN, UNIT_COLUMN
from .models import normalize_unit

logger = logging.getLogger(__name__)


def _numeric(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        return pd.Series(0.0, index=df.index)
    return pd.to_numeric(df[column], errors='coerce').fillna(0.0)


class BoqMetrics:
    """Calculate summary metrics from a filtered row table."""

    def __init__(self, filtered_df: pd.DataFrame):
        self.df = filtered_df

    def total_amount(self) -> float:
        if self.df.empty:
            return 0.0
        return float(_numeric(self.df, 'amount').sum())

    def qty_by_unit(self) -> List[Dict]:
        """
        Sum of qty per normalized unit, sorted by unit label.

        Returns:
            [{'unit': 'm2', 'qty': 8.0}, {'unit': 'm3', 'qty': 1.0}, ...]
        """
        if self.df.empty:
            return []

        units = (
            self.df[UNIT_COLUMN].map(normalize_unit)
            if UNIT_COLUMN in self.df.columns
            else pd.Series('-', index=self.df.index)
        )
        grouped = (
            pd.DataFrame({'unit': units, 'qty': _numeric(self.df, 'qty')})
            .groupby('unit', sort=False)['qty']
            .sum()
        )
        return [
            {'unit': unit, 'qty': float(grouped[unit])}
            for unit in sorted(grouped.index)
        ]

    def amount_by_level(self, level: str = 'wbs1') -> pd.DataFrame:
        """Sum of amount per value of one WBS level, largest first."""
        if level not in LEVEL_COLUMNS:
            raise KeyError(f"Unknown level: {level!r}")
        if self.df.empty or level not in self.df.columns:
            return pd.DataFrame(columns=[level, 'amount'])

        frame = pd.DataFrame({
            level: self.df[level].fillna('').astype(str),
            'amount': _numeric(self.df, 'amount'),
        })
        result = (
            frame[frame[level] != '']
            .groupby(level, as_index=False)['amount']
            .sum()
            .sort_values(['amount', level], ascending=[False, True])
            .reset_index(drop=True)
        )
        return result

    def calculate_summary(self, pending: AbstractSet[str] = frozenset()) -> Dict:
        """Top-level numbers for the summary cards."""
        if self.df.empty:
            return self._empty_summary()

        pending_count = 0
        if pending and ROW_ID_COLUMN in self.df.columns:
            pending_count = int(self.df[ROW_ID_COLUMN].isin(pending).sum())

        return {
            'total_rows': len(self.df),
            'total_amount': self.total_amount(),
            'qty_by_unit': self.qty_by_unit(),
            'pending_in_view': pending_count,
        }

    def _empty_summary(self) -> Dict:
        return {
            'total_rows': 0,
            'total_amount': 0.0,
            'qty_by_unit': [],
            'pending_in_view': 0,
        }
