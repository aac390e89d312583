# cm_dashboard/formatters.py
"""
Formatting utilities shared by dashboard pages
"""
import pandas as pd
from typing import Union, List, Dict
import logging

logger = logging.getLogger(__name__)


def format_quantity(value: Union[int, float, None], max_decimals: int = 2) -> str:
    """
    Format a quantity/amount with up to max_decimals places, dropping
    trailing zeros (1234.5 → '1,234.5', 8.0 → '8').
    """
    try:
        if value is None or pd.isna(value):
            return "0"
        text = f"{float(value):,.{max_decimals}f}"
    except (ValueError, TypeError):
        return "0"

    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_qty_by_unit(qty_by_unit: List[Dict], separator: str = " | ") -> str:
    """'8 m2 | 1 m3' from [{'unit': 'm2', 'qty': 8}, ...]; '-' when empty"""
    if not qty_by_unit:
        return "-"
    return separator.join(
        f"{format_quantity(item.get('qty'))} {item.get('unit', '-')}"
        for item in qty_by_unit
    )
