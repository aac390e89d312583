# cm_dashboard/boq_query/constants.py
"""
Constants for BOQ Query Explorer

VERSION: 1.0.0
"""

# =============================================================================
# ENGINE SETTINGS
# =============================================================================
PAGE_SIZE = 20            # rows per table page
DEFAULT_LIMIT = 200       # "Top N" preview before any search is submitted
MAX_EXPORT_ROWS = 2000    # PDF export hard cap

# =============================================================================
# ROW TABLE COLUMNS
# =============================================================================
LEVEL_COLUMNS = ['wbs1', 'wbs2', 'wbs3', 'wbs4']
UNIT_COLUMN = 'unit'
FACET_COLUMNS = LEVEL_COLUMNS + [UNIT_COLUMN]

TEXT_COLUMNS = LEVEL_COLUMNS + ['description', UNIT_COLUMN]
NUMERIC_COLUMNS = ['qty', 'material', 'labor', 'amount']
ROW_COLUMNS = TEXT_COLUMNS + NUMERIC_COLUMNS

ROW_ID_COLUMN = 'row_id'

# Fields that feed the row id (material/labor excluded: amount already covers them)
ROW_ID_FIELDS = LEVEL_COLUMNS + ['description', UNIT_COLUMN, 'qty', 'amount']
ROW_ID_SEPARATOR = '||'

# Blank unit label used for grouping, filtering and display
UNSPECIFIED_UNIT = '-'

# =============================================================================
# MATCH MODES
# =============================================================================
MATCH_ALL = 'all'
MATCH_ANY = 'any'
MATCH_MODES = [MATCH_ALL, MATCH_ANY]
MATCH_MODE_LABELS = {
    MATCH_ALL: 'All words (AND)',
    MATCH_ANY: 'Any word (OR)',
}

INVALID_QUERY_MESSAGE = 'Invalid search pattern'

# =============================================================================
# SESSION STATE KEYS (prefixed _boq_ to avoid collision with other pages)
# =============================================================================
CACHE_KEY_SOURCE = '_boq_source_df'
CACHE_KEY_SOURCE_NAME = '_boq_source_name'
CACHE_KEY_SOURCE_FINGERPRINT = '_boq_source_fingerprint'
CACHE_KEY_STATE = '_boq_query_state'
CACHE_KEY_EXPORTING = '_boq_exporting'
CACHE_KEY_ENGINE = '_boq_engine'
CACHE_KEY_FLASH = '_boq_flash_message'
CACHE_KEY_TIMING = '_boq_timing_data'

# =============================================================================
# EXPORT SETTINGS
# =============================================================================
EXPORT_COLUMNS = {
    'wbs1': 'WBS-1',
    'wbs2': 'WBS-2',
    'wbs3': 'WBS-3',
    'wbs4': 'WBS-4',
    'description': 'Description',
    'unit': 'Unit',
    'qty': 'Qty',
    'material': 'Material',
    'labor': 'Labor',
    'amount': 'Amount',
}
EXPORT_FILENAME = 'boq_query_result'

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
    "number_format": '#,##0.00',
}

# PDF layout (points, A4 landscape)
PDF_MARGIN_X = 40
PDF_COLUMN_WIDTHS = {
    'wbs': 42,
    'unit': 40,
    'qty': 48,
    'money': 62,
}
PDF_MIN_DESCRIPTION_WIDTH = 180
PDF_FONT_NAME = 'Helvetica'
PDF_FONT_PATH_ENV = 'BOQ_PDF_FONT_PATH'

# =============================================================================
# DISPLAY
# =============================================================================
FACET_LABELS = {
    'wbs1': 'WBS-1',
    'wbs2': 'WBS-2',
    'wbs3': 'WBS-3',
    'wbs4': 'WBS-4',
    'unit': 'Unit',
}

THEMES = {
    "light": {
        "pending_row": "#fde2e1",
        "highlight": "#fff3a3",
        "text": "#333333",
    },
    "dark": {
        "pending_row": "#5c1f1f",
        "highlight": "#7a6a00",
        "text": "#e6e6e6",
    },
}

# =============================================================================
# DEBUG SETTINGS
# Use environment variable to enable: BOQ_DEBUG_TIMING=true
# =============================================================================
import os as _os
DEBUG_TIMING = _os.getenv('BOQ_DEBUG_TIMING', 'false').lower() == 'true'
