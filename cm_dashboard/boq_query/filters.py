# cm_dashboard/boq_query/filters.py
"""
Facet Filter Engine - cascading multi-select filters over the working set.

Five facets: WBS-1..WBS-4 (hierarchy) and Unit (independent).
- Empty selection = accept all values
- Changing WBS-k clears WBS-(k+1)..WBS-4
- Options for WBS-k only list values reachable under the active WBS-1..WBS-(k-1)
  selections; Unit options always come from the full working set
- Selections that no longer exist in the options are pruned on every recompute

VERSION: 1.0.0
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List

import pandas as pd

from .constants import LEVEL_COLUMNS, UNIT_COLUMN, FACET_COLUMNS, FACET_LABELS
from .models import normalize_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacetFilters:
    """Accepted values per facet (empty frozenset = no filter)."""
    wbs1: FrozenSet[str] = field(default_factory=frozenset)
    wbs2: FrozenSet[str] = field(default_factory=frozenset)
    wbs3: FrozenSet[str] = field(default_factory=frozenset)
    wbs4: FrozenSet[str] = field(default_factory=frozenset)
    unit: FrozenSet[str] = field(default_factory=frozenset)

    def get(self, facet: str) -> FrozenSet[str]:
        _check_facet(facet)
        return getattr(self, facet)

    @property
    def is_empty(self) -> bool:
        return not any(self.get(f) for f in FACET_COLUMNS)

    def active(self) -> Dict[str, FrozenSet[str]]:
        return {f: self.get(f) for f in FACET_COLUMNS if self.get(f)}

    def with_selection(self, facet: str, values: Iterable[str]) -> "FacetFilters":
        """Replace one facet's selection, clearing deeper hierarchy levels."""
        _check_facet(facet)
        changes = {facet: frozenset(values)}
        if facet in LEVEL_COLUMNS:
            depth = LEVEL_COLUMNS.index(facet)
            for deeper in LEVEL_COLUMNS[depth + 1:]:
                changes[deeper] = frozenset()
        return replace(self, **changes)

    def reset(self) -> "FacetFilters":
        return FacetFilters()

    def summary(self) -> str:
        """Human-readable summary, e.g. 'WBS-1: 2 | Unit: 1'."""
        parts = [f"{FACET_LABELS[f]}: {len(v)}" for f, v in self.active().items()]
        return " | ".join(parts) if parts else "No filters"


def _check_facet(facet: str):
    if facet not in FACET_COLUMNS:
        raise KeyError(f"Unknown facet: {facet!r}")


def set_facet(filters: FacetFilters, facet: str, values: Iterable[str]) -> FacetFilters:
    return filters.with_selection(facet, values)


# =============================================================================
# MASKS
# =============================================================================

def _facet_values(df: pd.DataFrame, facet: str) -> pd.Series:
    if facet not in df.columns:
        return pd.Series([''] * len(df), index=df.index, dtype=object)
    if facet == UNIT_COLUMN:
        return df[facet].map(normalize_unit)
    return df[facet].fillna('').astype(str)


def _mask(df: pd.DataFrame, filters: FacetFilters, facets: List[str]) -> pd.Series:
    mask = pd.Series(True, index=df.index)
    for facet in facets:
        selected = filters.get(facet)
        if selected:
            mask &= _facet_values(df, facet).isin(selected)
    return mask


def apply_facet_filters(df: pd.DataFrame, filters: FacetFilters) -> pd.DataFrame:
    """Rows of df accepted by every non-empty facet selection."""
    if df.empty or filters.is_empty:
        return df
    return df[_mask(df, filters, FACET_COLUMNS)]


# =============================================================================
# OPTIONS
# =============================================================================

def _distinct_sorted(values: pd.Series) -> List[str]:
    return sorted(v for v in values.unique().tolist() if v)


def level_options(df: pd.DataFrame, filters: FacetFilters, facet: str) -> List[str]:
    """Options for one hierarchy level under the shallower selections."""
    depth = LEVEL_COLUMNS.index(facet)
    if df.empty:
        return []
    scoped = df[_mask(df, filters, LEVEL_COLUMNS[:depth])]
    return _distinct_sorted(_facet_values(scoped, facet))


def unit_options(df: pd.DataFrame) -> List[str]:
    if df.empty:
        return []
    return _distinct_sorted(_facet_values(df, UNIT_COLUMN))


def facet_options(df: pd.DataFrame, filters: FacetFilters) -> Dict[str, List[str]]:
    """Picklist for every facet, narrowed by ancestor selections."""
    options = {facet: level_options(df, filters, facet) for facet in LEVEL_COLUMNS}
    options[UNIT_COLUMN] = unit_options(df)
    return options


def reconcile_filters(df: pd.DataFrame, filters: FacetFilters) -> FacetFilters:
    """
    Drop selected values that are no longer offered as options.

    Levels are pruned top-down, so a pruned ancestor also narrows the options
    its descendants are checked against.
    """
    reconciled = filters
    for facet in LEVEL_COLUMNS:
        selected = reconciled.get(facet)
        if not selected:
            continue
        allowed = set(level_options(df, reconciled, facet))
        kept = frozenset(v for v in selected if v in allowed)
        if kept != selected:
            logger.debug(f"Pruned stale {facet} selections: {sorted(selected - kept)}")
            reconciled = replace(reconciled, **{facet: kept})

    selected_units = reconciled.get(UNIT_COLUMN)
    if selected_units:
        allowed = set(unit_options(df))
        kept = frozenset(v for v in selected_units if v in allowed)
        if kept != selected_units:
            logger.debug(f"Pruned stale unit selections: {sorted(selected_units - kept)}")
            reconciled = replace(reconciled, unit=kept)

    return reconciled
