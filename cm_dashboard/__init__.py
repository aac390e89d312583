# cm_dashboard/__init__.py
"""
Shared Utilities Package for the Construction-Management Dashboard

This package contains utilities shared across all pages:
- config: Configuration management (local .env + Streamlit Cloud)
- formatters: Number formatting for tables, cards and exports
- boq_query: BOQ Query Explorer engine and fragments

Usage:
    from cm_dashboard.config import get_config
    from cm_dashboard.boq_query import BoqQueryEngine, boq_query_section
"""

from .config import (
    Config,
    BoqConfig,
    get_config,
)

from .formatters import (
    format_quantity,
    format_qty_by_unit,
)

__all__ = [
    # Config
    'Config',
    'BoqConfig',
    'get_config',

    # Formatters
    'format_quantity',
    'format_qty_by_unit',
]

__version__ = '1.0.0'
