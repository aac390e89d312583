# cm_dashboard/boq_query/row_identity.py
"""
Row Identity - stable, content-derived ids for working-set rows.

An id is a pure function of the row's classification, description, unit,
qty, amount and its ordinal within the materialization pass, so two identical
BOQ lines still get different ids. Ids are only (re)assigned by the
working-set builder; everything downstream treats them as opaque.
"""

import hashlib
import math
from typing import Any, List, Mapping

import pandas as pd

from .constants import ROW_ID_FIELDS, ROW_ID_SEPARATOR, ROW_ID_COLUMN


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        number = float(value)
        if math.isnan(number):
            return ""
        if number.is_integer():
            return str(int(number))
        return repr(number)
    return str(value)


def _digest(parts: List[str]) -> str:
    key = ROW_ID_SEPARATOR.join(parts)
    return hashlib.sha1(key.encode('utf-8')).hexdigest()


def make_row_id(row: Mapping[str, Any], ordinal: int) -> str:
    """Id for one row at the given position in the current pass."""
    parts = [_format_value(row.get(field)) for field in ROW_ID_FIELDS]
    parts.append(str(int(ordinal)))
    return _digest(parts)


def assign_row_ids(df: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of df with a row_id column, ordinals counted from 0 in
    positional order. The input index is discarded.
    """
    out = df.reset_index(drop=True).copy()
    if out.empty:
        out[ROW_ID_COLUMN] = pd.Series(dtype=object)
        return out

    columns = [
        out[field].tolist() if field in out.columns else [None] * len(out)
        for field in ROW_ID_FIELDS
    ]
    ids = []
    for ordinal, values in enumerate(zip(*columns)):
        parts = [_format_value(v) for v in values]
        parts.append(str(ordinal))
        ids.append(_digest(parts))

    out[ROW_ID_COLUMN] = ids
    return out
