# cm_dashboard/boq_query/__init__.py
"""
BOQ Query Explorer Module

Free-text search, cascading WBS/unit filters, mark-then-apply row removal,
running totals and paging over an in-memory Bill-of-Quantities row table.

VERSION: 1.0.0
"""

# Core engine
from .engine import BoqQueryEngine, BoqQueryState, BoqQueryView
from .models import BoqRow, BoqQuery, rows_to_frame, normalize_unit, safe_num
from .row_identity import make_row_id, assign_row_ids
from .query import compile_query, description_matches, split_keywords, highlight_segments, highlight_html
from .working_set import build_working_set, positive_amount_rows
from .filters import FacetFilters, set_facet, apply_facet_filters, facet_options, reconcile_filters
from .ledger import MutationLedger
from .metrics import BoqMetrics
from .pager import page_count, clamp_page, next_page, prev_page, page_slice, page_bounds
from .data_loader import load_boq_rows, normalize_boq_frame, upload_fingerprint
from .export_utils import BoqExport, check_export_size, pdf_column_widths, summary_lines
from .exceptions import BoqQueryError, InvalidQueryError, ExportTooLargeError, SourceDataError

# UI
from .fragments import boq_query_section, get_engine, timer

# Constants
from .constants import (
    PAGE_SIZE,
    DEFAULT_LIMIT,
    MAX_EXPORT_ROWS,
    MATCH_ALL,
    MATCH_ANY,
    FACET_COLUMNS,
    LEVEL_COLUMNS,
    ROW_COLUMNS,
    ROW_ID_COLUMN,
    CACHE_KEY_SOURCE,
    CACHE_KEY_SOURCE_NAME,
    CACHE_KEY_SOURCE_FINGERPRINT,
    CACHE_KEY_TIMING,
    DEBUG_TIMING,
)

__all__ = [
    # Engine
    'BoqQueryEngine', 'BoqQueryState', 'BoqQueryView',
    'BoqRow', 'BoqQuery', 'rows_to_frame', 'normalize_unit', 'safe_num',
    'make_row_id', 'assign_row_ids',
    'compile_query', 'description_matches', 'split_keywords', 'highlight_segments', 'highlight_html',
    'build_working_set', 'positive_amount_rows',
    'FacetFilters', 'set_facet', 'apply_facet_filters', 'facet_options', 'reconcile_filters',
    'MutationLedger',
    'BoqMetrics',
    'page_count', 'clamp_page', 'next_page', 'prev_page', 'page_slice', 'page_bounds',
    'load_boq_rows', 'normalize_boq_frame', 'upload_fingerprint',
    'BoqExport', 'check_export_size', 'pdf_column_widths', 'summary_lines',
    'BoqQueryError', 'InvalidQueryError', 'ExportTooLargeError', 'SourceDataError',

    # UI
    'boq_query_section', 'get_engine', 'timer',

    # Constants
    'PAGE_SIZE', 'DEFAULT_LIMIT', 'MAX_EXPORT_ROWS',
    'MATCH_ALL', 'MATCH_ANY',
    'FACET_COLUMNS', 'LEVEL_COLUMNS', 'ROW_COLUMNS', 'ROW_ID_COLUMN',
    'CACHE_KEY_SOURCE', 'CACHE_KEY_SOURCE_NAME', 'CACHE_KEY_SOURCE_FINGERPRINT', 'CACHE_KEY_TIMING',
    'DEBUG_TIMING',
]

__version__ = '1.0.0'
