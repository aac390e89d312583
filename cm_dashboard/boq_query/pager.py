# cm_dashboard/boq_query/pager.py
"""Pager - fixed-size windows over the filtered view (pages are 1-based)."""

import math

import pandas as pd

from .constants import PAGE_SIZE


def page_count(row_count: int, page_size: int = PAGE_SIZE) -> int:
    """max(1, ceil(row_count / page_size))"""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1 (got {page_size})")
    return max(1, math.ceil(max(0, row_count) / page_size))


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, int(page)), max(1, int(total_pages)))


def next_page(page: int, total_pages: int) -> int:
    """Next page, or the same page when already on the last one."""
    return clamp_page(page + 1, total_pages)


def prev_page(page: int, total_pages: int) -> int:
    """Previous page, or the same page when already on the first one."""
    return clamp_page(page - 1, total_pages)


def page_slice(df: pd.DataFrame, page: int, page_size: int = PAGE_SIZE) -> pd.DataFrame:
    """Rows shown on the given page (page is clamped first)."""
    page = clamp_page(page, page_count(len(df), page_size))
    start = (page - 1) * page_size
    return df.iloc[start:start + page_size]


def page_bounds(row_count: int, page: int, page_size: int = PAGE_SIZE):
    """(first, last) 1-based row numbers on the page; (0, 0) when empty."""
    if row_count <= 0:
        return 0, 0
    page = clamp_page(page, page_count(row_count, page_size))
    first = (page - 1) * page_size + 1
    last = min(row_count, page * page_size)
    return first, last
