# cm_dashboard/boq_query/models.py
"""
Row and query models for the BOQ Query Explorer.

Rows travel through the engine as a pandas DataFrame (the "row table") with
the columns in ROW_COLUMNS. BoqRow is the typed single-row view used where a
record is handier than a frame row (tests, export summaries).

VERSION: 1.0.0
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .constants import (
    ROW_COLUMNS,
    TEXT_COLUMNS,
    NUMERIC_COLUMNS,
    UNSPECIFIED_UNIT,
    MATCH_ALL,
    MATCH_MODES,
)


def safe_num(value: Any) -> float:
    """Numeric value or 0.0 for None/NaN/non-numeric input."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def normalize_unit(unit: Any) -> str:
    """Trimmed unit label, or the '-' marker when blank."""
    if unit is None:
        return UNSPECIFIED_UNIT
    if isinstance(unit, float) and math.isnan(unit):
        return UNSPECIFIED_UNIT
    text = str(unit).strip()
    return text or UNSPECIFIED_UNIT


@dataclass(frozen=True)
class BoqRow:
    """One Bill-of-Quantities line as delivered by the source."""
    wbs1: str = ""
    wbs2: str = ""
    wbs3: str = ""
    wbs4: str = ""
    description: str = ""
    unit: str = ""
    qty: float = 0.0
    material: float = 0.0
    labor: float = 0.0
    amount: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "BoqRow":
        values = {}
        for col in TEXT_COLUMNS:
            raw = data.get(col)
            values[col] = "" if raw is None or (isinstance(raw, float) and math.isnan(raw)) else str(raw)
        for col in NUMERIC_COLUMNS:
            values[col] = safe_num(data.get(col))
        return cls(**values)


def rows_to_frame(rows: Iterable[Any]) -> pd.DataFrame:
    """Build a row table from BoqRow objects or plain dicts."""
    records = []
    for row in rows:
        if isinstance(row, BoqRow):
            records.append(row.to_dict())
        else:
            records.append(BoqRow.from_mapping(row).to_dict())
    if not records:
        return empty_row_frame()
    return pd.DataFrame.from_records(records, columns=ROW_COLUMNS)


def empty_row_frame(extra_columns: Optional[List[str]] = None) -> pd.DataFrame:
    columns = ROW_COLUMNS + (extra_columns or [])
    return pd.DataFrame(columns=columns)


@dataclass(frozen=True)
class BoqQuery:
    """
    Committed search: the text the user submitted and how its words combine.

    The draft text in the search box is kept separately and only becomes a
    BoqQuery when the user presses Search.
    """
    text: str
    mode: str = MATCH_ALL

    def __post_init__(self):
        if self.mode not in MATCH_MODES:
            raise ValueError(f"Unknown match mode: {self.mode!r}")

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()
