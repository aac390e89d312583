# cm_dashboard/boq_query/working_set.py
"""
Working-Set Builder

Produces the row table every downstream step works on:
- rows with amount <= 0 (or no numeric amount) are dropped as noise
- no committed search  → first DEFAULT_LIMIT rows ("Top N" preview)
- committed search     → every row whose description matches (unbounded)
- ids assigned here, then committed (removed) ids excluded

This is the only place row ids are computed.

VERSION: 1.0.0
"""

import logging
from typing import AbstractSet, Optional, Pattern

import pandas as pd

from .constants import DEFAULT_LIMIT, ROW_ID_COLUMN
from .query import description_matches
from .row_identity import assign_row_ids

logger = logging.getLogger(__name__)


def positive_amount_rows(source_df: pd.DataFrame) -> pd.DataFrame:
    """Source rows whose amount is strictly positive."""
    if source_df.empty or 'amount' not in source_df.columns:
        return source_df.iloc[0:0].reset_index(drop=True)
    amounts = pd.to_numeric(source_df['amount'], errors='coerce').fillna(0)
    return source_df[amounts > 0].reset_index(drop=True)


def build_working_set(
    source_df: pd.DataFrame,
    pattern: Optional[Pattern] = None,
    committed: AbstractSet[str] = frozenset(),
    default_limit: int = DEFAULT_LIMIT,
) -> pd.DataFrame:
    """
    Build the working set.

    Args:
        source_df: Source row table (never modified)
        pattern: Compiled search pattern, or None for the Top-N preview
        committed: Ids already removed this session
        default_limit: Size of the preview when no search is committed

    Returns:
        Row table with a row_id column, in source order
    """
    base = positive_amount_rows(source_df)

    if pattern is None:
        selected = base.head(default_limit)
    else:
        if 'description' in base.columns:
            mask = description_matches(pattern, base['description'])
            selected = base[mask.values]
        else:
            selected = base.iloc[0:0]

    working = assign_row_ids(selected)

    if committed and not working.empty:
        working = working[~working[ROW_ID_COLUMN].isin(committed)].reset_index(drop=True)

    logger.debug(
        f"Working set: {len(working):,} rows "
        f"(base {len(base):,}, search={'on' if pattern is not None else 'off'}, "
        f"committed {len(committed):,})"
    )
    return working

