# cm_dashboard/boq_query/engine.py
"""
BOQ Query Engine - state snapshot + pure recompute.

All user actions are transitions BoqQueryState -> BoqQueryState; every
derived table (working set, filtered view, options, totals, page window) is
computed from the current snapshot by compute(). A transition that raises
leaves the caller's previous state untouched.

Usage:
    engine = BoqQueryEngine(source_df)
    state = engine.initial_state()

    state = engine.set_draft(state, "ผนัง 100mm", MATCH_ALL)
    state = engine.submit_search(state)
    state = engine.set_facet(state, 'wbs1', ['Architecture'])

    view = engine.compute(state)
    view.page_df, view.total_amount, view.qty_by_unit, view.page_count

VERSION: 1.0.0
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

import pandas as pd

from .constants import (
    PAGE_SIZE,
    DEFAULT_LIMIT,
    MATCH_ALL,
    MATCH_MODES,
    ROW_ID_COLUMN,
    INVALID_QUERY_MESSAGE,
    DEBUG_TIMING,
)
from .exceptions import InvalidQueryError
from .filters import FacetFilters, apply_facet_filters, facet_options, reconcile_filters
from .ledger import MutationLedger
from .metrics import BoqMetrics
from .models import BoqQuery
from .pager import page_count, clamp_page, next_page, prev_page, page_slice
from .query import compile_query, split_keywords
from .working_set import build_working_set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoqQueryState:
    """Everything the user has done so far, as one immutable snapshot."""
    draft_text: str = ""
    draft_mode: str = MATCH_ALL
    query: Optional[BoqQuery] = None
    filters: FacetFilters = field(default_factory=FacetFilters)
    ledger: MutationLedger = field(default_factory=MutationLedger)
    page: int = 1
    error: str = ""


@dataclass
class BoqQueryView:
    """Derived tables for one state snapshot."""
    working_df: pd.DataFrame
    filtered_df: pd.DataFrame
    page_df: pd.DataFrame
    filters: FacetFilters
    options: Dict[str, List[str]]
    total_amount: float
    qty_by_unit: List[Dict]
    page: int
    page_count: int
    pending_in_view: FrozenSet[str]
    keywords: List[str]
    error: str = ""

    @property
    def row_count(self) -> int:
        return len(self.filtered_df)

    @property
    def visible_ids(self) -> List[str]:
        if self.filtered_df.empty:
            return []
        return self.filtered_df[ROW_ID_COLUMN].tolist()


class BoqQueryEngine:
    """
    Query/filter/mutation engine over one in-memory source row table.

    The working set is cached per (committed query, committed removals), so
    facet changes, marks and paging never re-run the description search.
    """

    def __init__(
        self,
        source_df: pd.DataFrame,
        page_size: int = PAGE_SIZE,
        default_limit: int = DEFAULT_LIMIT,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1 (got {page_size})")
        if default_limit < 1:
            raise ValueError(f"default_limit must be >= 1 (got {default_limit})")
        self.source_df = source_df
        self.page_size = page_size
        self.default_limit = default_limit
        self._working_key: Optional[Tuple] = None
        self._working_df: Optional[pd.DataFrame] = None
        self._working_error: str = ""

    def initial_state(self) -> BoqQueryState:
        return BoqQueryState()

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    def working_set(self, state: BoqQueryState) -> Tuple[pd.DataFrame, str]:
        """(working set, error message) for the committed query and removals."""
        key = (state.query, state.ledger.committed)
        if key == self._working_key and self._working_df is not None:
            return self._working_df, self._working_error

        start = time.perf_counter()
        error = ""
        try:
            pattern = None
            if state.query is not None and not state.query.is_blank:
                pattern = compile_query(state.query.text, state.query.mode)
            working = build_working_set(
                self.source_df,
                pattern=pattern,
                committed=state.ledger.committed,
                default_limit=self.default_limit,
            )
        except InvalidQueryError as e:
            logger.warning(f"Search rejected: {e}")
            working = build_working_set(self.source_df.iloc[0:0])
            error = INVALID_QUERY_MESSAGE

        self._working_key = key
        self._working_df = working
        self._working_error = error

        if DEBUG_TIMING:
            print(f"⏱️ [build_working_set] {len(working):,} rows in {time.perf_counter() - start:.3f}s")
        return working, error

    def compute(self, state: BoqQueryState) -> BoqQueryView:
        """Derive every view from the state snapshot."""
        working, working_error = self.working_set(state)

        filters = reconcile_filters(working, state.filters)
        filtered = apply_facet_filters(working, filters)
        options = facet_options(working, filters)

        summary = BoqMetrics(filtered).calculate_summary(state.ledger.pending)
        total_pages = page_count(summary['total_rows'], self.page_size)
        page = clamp_page(state.page, total_pages)

        visible = filtered[ROW_ID_COLUMN].tolist() if not filtered.empty else []

        return BoqQueryView(
            working_df=working,
            filtered_df=filtered,
            page_df=page_slice(filtered, page, self.page_size),
            filters=filters,
            options=options,
            total_amount=summary['total_amount'],
            qty_by_unit=summary['qty_by_unit'],
            page=page,
            page_count=total_pages,
            pending_in_view=state.ledger.pending_in(visible),
            keywords=split_keywords(state.draft_text),
            error=state.error or working_error,
        )

    # =========================================================================
    # SEARCH
    # =========================================================================

    def set_draft(self, state: BoqQueryState, text: str, mode: Optional[str] = None) -> BoqQueryState:
        """Update the search box; nothing is recomputed until submit_search."""
        mode = state.draft_mode if mode is None else mode
        if mode not in MATCH_MODES:
            raise ValueError(f"Unknown match mode: {mode!r}")
        return replace(state, draft_text=text or "", draft_mode=mode)

    def submit_search(self, state: BoqQueryState) -> BoqQueryState:
        """
        Adopt the draft as the committed query.

        Resets facet filters, pending marks and the page. Blank text goes back
        to the Top-N preview. An invalid pattern leaves an error and an empty
        working set.
        """
        text = state.draft_text.strip()
        base = replace(
            state,
            filters=FacetFilters(),
            ledger=state.ledger.clear_pending(),
            page=1,
            error="",
        )

        if not text:
            logger.info("Search cleared: showing default preview")
            return replace(base, query=None)

        query = BoqQuery(text=text, mode=state.draft_mode)
        try:
            compile_query(query.text, query.mode)
        except InvalidQueryError as e:
            logger.warning(f"Invalid search {text!r}: {e.reason}")
            return replace(base, query=query, error=INVALID_QUERY_MESSAGE)

        logger.info(f"Search submitted: {text!r} ({query.mode})")
        return replace(base, query=query)

    # =========================================================================
    # FACET FILTERS
    # =========================================================================

    def set_facet(self, state: BoqQueryState, facet: str, values: Iterable[str]) -> BoqQueryState:
        filters = state.filters.with_selection(facet, values)
        return replace(state, filters=filters, page=1)

    def reset_filters(self, state: BoqQueryState) -> BoqQueryState:
        return replace(state, filters=FacetFilters(), page=1)

    # =========================================================================
    # STAGED REMOVALS
    # =========================================================================

    def toggle_pending(self, state: BoqQueryState, row_id: str) -> BoqQueryState:
        return replace(state, ledger=state.ledger.toggle_pending(row_id))

    def clear_pending(self, state: BoqQueryState) -> BoqQueryState:
        return replace(state, ledger=state.ledger.clear_pending())

    def apply_pending(self, state: BoqQueryState) -> BoqQueryState:
        """Commit the marked rows that are visible in the filtered view."""
        if not state.ledger.pending:
            return state

        view = self.compute(state)
        ledger, applied = state.ledger.apply_pending(view.visible_ids)
        if not applied:
            return state

        remaining = view.row_count - len(applied)
        page = min(view.page, page_count(remaining, self.page_size))
        logger.info(f"Removed {len(applied):,} row(s); {remaining:,} left in view")
        return replace(state, ledger=ledger, page=page)

    # =========================================================================
    # PAGING
    # =========================================================================

    def go_to_page(self, state: BoqQueryState, page: int) -> BoqQueryState:
        total = self.compute(state).page_count
        return replace(state, page=clamp_page(page, total))

    def next_page(self, state: BoqQueryState) -> BoqQueryState:
        view = self.compute(state)
        return replace(state, page=next_page(view.page, view.page_count))

    def prev_page(self, state: BoqQueryState) -> BoqQueryState:
        view = self.compute(state)
        return replace(state, page=prev_page(view.page, view.page_count))
