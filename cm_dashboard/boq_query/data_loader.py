# cm_dashboard/boq_query/data_loader.py
"""
Source loader for BOQ rows.

Reads an already-tabular upload (CSV / XLSX) and normalizes it into the row
table the engine expects. Workbook layout detection (header rows, multiple
sheets) is the job of the ingestion tool, not this module.

VERSION: 1.0.0
"""

import hashlib
import io
import logging
import re
from typing import Dict, Optional

import pandas as pd

from .constants import ROW_COLUMNS, TEXT_COLUMNS, NUMERIC_COLUMNS
from .exceptions import SourceDataError

logger = logging.getLogger(__name__)

# normalized header → canonical column
COLUMN_ALIASES: Dict[str, str] = {
    'wbs1': 'wbs1', 'wbs-1': 'wbs1', 'wbs 1': 'wbs1', 'level1': 'wbs1', 'level 1': 'wbs1',
    'wbs2': 'wbs2', 'wbs-2': 'wbs2', 'wbs 2': 'wbs2', 'level2': 'wbs2', 'level 2': 'wbs2',
    'wbs3': 'wbs3', 'wbs-3': 'wbs3', 'wbs 3': 'wbs3', 'level3': 'wbs3', 'level 3': 'wbs3',
    'wbs4': 'wbs4', 'wbs-4': 'wbs4', 'wbs 4': 'wbs4', 'level4': 'wbs4', 'level 4': 'wbs4',
    'description': 'description', 'desc': 'description', 'item': 'description',
    'unit': 'unit', 'uom': 'unit',
    'qty': 'qty', 'quantity': 'qty',
    'material': 'material', 'material cost': 'material',
    'labor': 'labor', 'labour': 'labor', 'labor cost': 'labor', 'labour cost': 'labor',
    'amount': 'amount', 'total': 'amount', 'total amount': 'amount',
}

REQUIRED_COLUMNS = ['description', 'amount']


def _normalize_header(name) -> str:
    text = str(name).strip().lower()
    return re.sub(r'[\s_]+', ' ', text)


def normalize_boq_frame(raw_df: pd.DataFrame) -> pd.DataFrame:
    """
    Map headers to canonical columns, fill blanks and coerce numerics.

    Raises:
        SourceDataError: description or amount column missing.
    """
    rename = {}
    for col in raw_df.columns:
        key = _normalize_header(col)
        canonical = COLUMN_ALIASES.get(key) or COLUMN_ALIASES.get(key.replace(' ', ''))
        if canonical and canonical not in rename.values():
            rename[col] = canonical

    df = raw_df.rename(columns=rename)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise SourceDataError(f"Missing required column(s): {', '.join(missing)}")

    out = pd.DataFrame(index=df.index)
    for col in TEXT_COLUMNS:
        if col in df.columns:
            out[col] = df[col].fillna('').astype(str).str.strip()
        else:
            out[col] = ''
    for col in NUMERIC_COLUMNS:
        if col in df.columns:
            out[col] = pd.to_numeric(df[col], errors='coerce').fillna(0.0).astype(float)
        else:
            out[col] = 0.0

    logger.info(f"Normalized BOQ source: {len(out):,} rows, mapped columns {sorted(rename.values())}")
    return out[ROW_COLUMNS].reset_index(drop=True)


def upload_fingerprint(uploaded_file) -> str:
    """Content hash of an upload (UploadedFile or path); cache key for the parsed table."""
    if hasattr(uploaded_file, 'getvalue'):
        data = uploaded_file.getvalue()
    else:
        with open(uploaded_file, 'rb') as fh:
            data = fh.read()
    return hashlib.md5(data).hexdigest()


def load_boq_rows(uploaded_file, sheet_name: Optional[str] = None) -> pd.DataFrame:
    """
    Read a CSV or XLSX upload (Streamlit UploadedFile or path) into a row table.

    Raises:
        SourceDataError: unreadable file or missing columns.
    """
    name = getattr(uploaded_file, 'name', str(uploaded_file))
    try:
        if name.lower().endswith('.csv'):
            data = uploaded_file.getvalue() if hasattr(uploaded_file, 'getvalue') else None
            source = io.BytesIO(data) if data is not None else uploaded_file
            raw = pd.read_csv(source, encoding='utf-8-sig')
        elif name.lower().endswith(('.xlsx', '.xlsm')):
            raw = pd.read_excel(uploaded_file, sheet_name=sheet_name or 0, engine='openpyxl')
        else:
            raise SourceDataError(f"Unsupported file type: {name}")
    except SourceDataError:
        raise
    except (ValueError, OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        logger.error(f"Could not read {name}: {e}")
        raise SourceDataError(f"Could not read {name}: {e}") from e

    return normalize_boq_frame(raw)
