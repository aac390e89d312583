# cm_dashboard/boq_query/fragments.py
"""
Streamlit Fragments for the BOQ Query Explorer.

Contains:
- boq_query_section: whole explorer (search, facets, table, staging, paging, export)
- search_bar, facet_filter_row, summary_cards, results_table,
  staging_controls, pagination_controls: its parts

Engine state lives in st.session_state as one BoqQueryState snapshot; widget
callbacks replace it through BoqQueryEngine transitions, so the fragment
rerun after a click always renders a consistent view.

VERSION: 1.0.0
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict

import pandas as pd
import streamlit as st

from ..formatters import format_quantity, format_qty_by_unit
from .constants import (
    CACHE_KEY_STATE,
    CACHE_KEY_ENGINE,
    CACHE_KEY_FLASH,
    CACHE_KEY_TIMING,
    DEBUG_TIMING,
    DEFAULT_LIMIT,
    FACET_COLUMNS,
    FACET_LABELS,
    LEVEL_COLUMNS,
    MATCH_MODES,
    MATCH_MODE_LABELS,
    MAX_EXPORT_ROWS,
    PAGE_SIZE,
    ROW_ID_COLUMN,
    THEMES,
)
from .engine import BoqQueryEngine, BoqQueryState, BoqQueryView
from .exceptions import BoqQueryError
from .export_utils import BoqExport
from .metrics import BoqMetrics
from .models import normalize_unit, safe_num
from .pager import page_bounds
from .query import highlight_html

logger = logging.getLogger(__name__)

DRAFT_TEXT_KEY = 'boq_draft_text'
DRAFT_MODE_KEY = 'boq_draft_mode'


# =============================================================================
# TIMING
# =============================================================================

@contextmanager
def timer(name: str):
    """Record the wall time of a step under CACHE_KEY_TIMING (printed when DEBUG_TIMING)."""
    if CACHE_KEY_TIMING not in st.session_state:
        st.session_state[CACHE_KEY_TIMING] = []
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if DEBUG_TIMING:
            print(f"⏱️ [{name}] {elapsed:.3f}s")
        st.session_state[CACHE_KEY_TIMING].append({'name': name, 'time': elapsed})


# =============================================================================
# STATE MANAGEMENT
# =============================================================================

def get_engine(
    source_df: pd.DataFrame,
    source_key: str,
    page_size: int = PAGE_SIZE,
    default_limit: int = DEFAULT_LIMIT,
    source_name: str = "",
) -> BoqQueryEngine:
    """
    Engine for the current source; a new source starts a fresh session state.

    source_key identifies the upload content, so re-uploading an edited file
    under the same name still replaces the engine.
    """
    cached = st.session_state.get(CACHE_KEY_ENGINE)
    key = (source_key, page_size, default_limit)
    if cached is not None and cached[0] == key:
        return cached[1]

    engine = BoqQueryEngine(source_df, page_size=page_size, default_limit=default_limit)
    st.session_state[CACHE_KEY_ENGINE] = (key, engine)
    st.session_state[CACHE_KEY_STATE] = engine.initial_state()
    logger.info(f"BOQ engine created for {source_name or source_key}: {len(source_df):,} source rows")
    return engine


def _get_state() -> BoqQueryState:
    state = st.session_state.get(CACHE_KEY_STATE)
    if state is None:
        state = BoqQueryState()
        st.session_state[CACHE_KEY_STATE] = state
    return state


def _engine() -> BoqQueryEngine:
    return st.session_state[CACHE_KEY_ENGINE][1]


def _transition(action: Callable[..., BoqQueryState], *args):
    """Run one engine transition; on failure keep the previous state."""
    state = _get_state()
    try:
        st.session_state[CACHE_KEY_STATE] = action(state, *args)
    except (BoqQueryError, ValueError, KeyError) as e:
        logger.error(f"BOQ action {getattr(action, '__name__', action)} failed: {e}")
        st.session_state[CACHE_KEY_FLASH] = str(e)


# =============================================================================
# CALLBACKS
# =============================================================================

def _on_search():
    engine = _engine()
    text = st.session_state.get(DRAFT_TEXT_KEY, "")
    mode = st.session_state.get(DRAFT_MODE_KEY, MATCH_MODES[0])
    _transition(lambda s: engine.submit_search(engine.set_draft(s, text, mode)))


def _on_facet_change(facet: str):
    values = st.session_state.get(f"boq_facet_{facet}", [])
    _transition(_engine().set_facet, facet, values)


def _on_reset_filters():
    _transition(_engine().reset_filters)


def _on_toggle(row_id: str):
    _transition(_engine().toggle_pending, row_id)


def _on_apply():
    _transition(_engine().apply_pending)


def _on_undo():
    _transition(_engine().clear_pending)


def _on_prev():
    _transition(_engine().prev_page)


def _on_next():
    _transition(_engine().next_page)


# =============================================================================
# SEARCH BAR
# =============================================================================

def search_bar():
    """Draft search text + match mode; only the Search button commits."""
    col_q, col_mode, col_btn = st.columns([6, 2, 1])

    with col_q:
        st.text_input(
            "Search description",
            key=DRAFT_TEXT_KEY,
            placeholder="e.g. ผนัง 100mm",
            label_visibility="collapsed",
        )
    with col_mode:
        st.radio(
            "Match",
            options=MATCH_MODES,
            format_func=lambda m: MATCH_MODE_LABELS[m],
            key=DRAFT_MODE_KEY,
            horizontal=True,
            label_visibility="collapsed",
        )
    with col_btn:
        st.button("🔍 Search", type="primary", on_click=_on_search,
                  use_container_width=True, key="boq_search_btn")


# =============================================================================
# FACET FILTERS
# =============================================================================

def facet_filter_row(view: BoqQueryView):
    """Five multiselects; options narrow with the WBS levels above them."""
    cols = st.columns(len(FACET_COLUMNS) + 1)

    for col, facet in zip(cols, FACET_COLUMNS):
        widget_key = f"boq_facet_{facet}"
        # keep the widget in sync with cascades/pruning done by the engine
        st.session_state[widget_key] = sorted(view.filters.get(facet))
        with col:
            st.multiselect(
                FACET_LABELS[facet],
                options=view.options.get(facet, []),
                key=widget_key,
                on_change=_on_facet_change,
                args=(facet,),
                placeholder="All",
            )

    with cols[-1]:
        st.markdown("&nbsp;", unsafe_allow_html=True)
        st.button("↺ Reset", on_click=_on_reset_filters, disabled=view.filters.is_empty,
                  use_container_width=True, key="boq_reset_filters")

    if not view.filters.is_empty:
        st.caption(f"🔍 Active filters: {view.filters.summary()}")


# =============================================================================
# SUMMARY
# =============================================================================

def summary_cards(view: BoqQueryView, state: BoqQueryState):
    col1, col2, col3, col4 = st.columns([1, 1, 2, 1])

    with col1:
        st.metric("📋 Rows", f"{view.row_count:,}",
                  delta=f"of {len(view.working_df):,} in working set", delta_color="off")
    with col2:
        st.metric("💰 Sum Amount", format_quantity(view.total_amount))
    with col3:
        st.metric("📦 Sum Qty (by Unit)", format_qty_by_unit(view.qty_by_unit))
    with col4:
        st.metric("🗑️ Marked", f"{len(view.pending_in_view):,}",
                  delta=f"{len(state.ledger.pending):,} total", delta_color="off")

    with st.expander("📊 Amount by WBS-1", expanded=False):
        breakdown = BoqMetrics(view.filtered_df).amount_by_level(LEVEL_COLUMNS[0])
        if breakdown.empty:
            st.caption("No data")
        else:
            st.dataframe(
                breakdown,
                column_config={
                    'wbs1': st.column_config.TextColumn("WBS-1"),
                    'amount': st.column_config.NumberColumn("Amount", format="%.2f"),
                },
                hide_index=True,
                use_container_width=True,
            )


# =============================================================================
# RESULTS TABLE
# =============================================================================

_TABLE_WIDTHS = [0.5, 1, 1, 1, 1, 4, 0.8, 1, 1.2]
_TABLE_HEADERS = ["", "WBS-1", "WBS-2", "WBS-3", "WBS-4", "Description", "Unit", "Qty", "Amount"]


def _cell(text: str, theme: Dict, pending: bool, align: str = "left") -> str:
    style = f"color:{theme['text']};text-align:{align};"
    if pending:
        style += f"background:{theme['pending_row']};text-decoration:line-through;"
    return f'<div style="{style}">{text}</div>'


def results_table(view: BoqQueryView, state: BoqQueryState, theme: Dict):
    """Current page with a remove-mark checkbox per row."""
    if view.page_df.empty:
        st.info("No rows match the current search and filters")
        return

    header = st.columns(_TABLE_WIDTHS)
    for col, label in zip(header, _TABLE_HEADERS):
        col.markdown(f"**{label}**")

    for rec in view.page_df.to_dict('records'):
        row_id = rec[ROW_ID_COLUMN]
        pending = state.ledger.is_pending(row_id)
        mark_key = f"boq_mark_{row_id}"
        st.session_state[mark_key] = pending

        cols = st.columns(_TABLE_WIDTHS)
        with cols[0]:
            st.checkbox("Remove", key=mark_key, on_change=_on_toggle, args=(row_id,),
                        label_visibility="collapsed", help="Mark for removal")
        for col, field in zip(cols[1:5], LEVEL_COLUMNS):
            col.markdown(_cell(str(rec.get(field) or ''), theme, pending), unsafe_allow_html=True)
        cols[5].markdown(
            _cell(highlight_html(rec.get('description'), view.keywords, theme['highlight']), theme, pending),
            unsafe_allow_html=True,
        )
        cols[6].markdown(_cell(normalize_unit(rec.get('unit')), theme, pending), unsafe_allow_html=True)
        cols[7].markdown(_cell(format_quantity(safe_num(rec.get('qty'))), theme, pending, "right"),
                         unsafe_allow_html=True)
        cols[8].markdown(_cell(format_quantity(safe_num(rec.get('amount'))), theme, pending, "right"),
                         unsafe_allow_html=True)


# =============================================================================
# STAGING + PAGING
# =============================================================================

def staging_controls(view: BoqQueryView, state: BoqQueryState):
    in_view = len(view.pending_in_view)
    total = len(state.ledger.pending)

    col1, col2, col3 = st.columns([1, 1, 3])
    with col1:
        st.button(f"✅ Apply removal ({in_view:,})", on_click=_on_apply, disabled=in_view == 0,
                  type="primary", use_container_width=True, key="boq_apply_btn")
    with col2:
        st.button("↩️ Undo marks", on_click=_on_undo, disabled=total == 0,
                  use_container_width=True, key="boq_undo_btn")
    with col3:
        if total > in_view:
            st.caption(f"ℹ️ {total - in_view:,} marked row(s) are hidden by filters and will stay marked")
        elif state.ledger.committed:
            st.caption(f"🗑️ {len(state.ledger.committed):,} row(s) removed this session")


def pagination_controls(view: BoqQueryView):
    first, last = page_bounds(view.row_count, view.page, _engine().page_size)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        st.button("← Previous", on_click=_on_prev, disabled=view.page <= 1,
                  use_container_width=True, key="boq_prev_btn")
    with col2:
        st.markdown(
            f"<center>Page <b>{view.page}</b> of <b>{view.page_count}</b> "
            f"(rows {first:,}–{last:,} of {view.row_count:,})</center>",
            unsafe_allow_html=True
        )
    with col3:
        st.button("Next →", on_click=_on_next, disabled=view.page >= view.page_count,
                  use_container_width=True, key="boq_next_btn")


# =============================================================================
# SECTION
# =============================================================================

@st.fragment
def boq_query_section(
    source_df: pd.DataFrame,
    source_key: str,
    source_name: str = "",
    theme: str = "light",
    page_size: int = PAGE_SIZE,
    default_limit: int = DEFAULT_LIMIT,
    max_export_rows: int = MAX_EXPORT_ROWS,
    enable_excel: bool = True,
    enable_pdf: bool = True,
):
    """
    BOQ explorer over an in-memory row table.

    source_key is the upload fingerprint that scopes the engine cache.
    theme is read-only display input ('light' / 'dark'); it never reaches
    the engine.
    """
    engine = get_engine(source_df, source_key, page_size, default_limit, source_name)
    colors = THEMES.get(theme, THEMES["light"])

    search_bar()

    flash = st.session_state.pop(CACHE_KEY_FLASH, None)
    if flash:
        st.error(f"⚠️ {flash}")

    # draft text feeds highlighting only
    state = engine.set_draft(
        _get_state(),
        st.session_state.get(DRAFT_TEXT_KEY, ""),
        st.session_state.get(DRAFT_MODE_KEY, MATCH_MODES[0]),
    )
    st.session_state[CACHE_KEY_STATE] = state

    with timer("Compute BOQ view"):
        view = engine.compute(state)

    if view.error:
        st.error(f"❌ {view.error}")
    elif state.query is None:
        st.caption(f"Showing the first {engine.default_limit:,} rows with amount > 0. Search to see more.")
    else:
        st.caption(f"Search: '{state.query.text}' ({MATCH_MODE_LABELS[state.query.mode]})")

    facet_filter_row(view)
    st.divider()
    summary_cards(view, state)
    st.divider()
    results_table(view, state, colors)
    pagination_controls(view)
    staging_controls(view, state)

    st.divider()
    st.markdown("**📥 Export filtered view**")
    BoqExport.render_download_buttons(
        view.filtered_df,
        max_rows=max_export_rows,
        enable_excel=enable_excel,
        enable_pdf=enable_pdf,
        key="boq_export",
    )
