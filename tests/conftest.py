# tests/conftest.py
"""Shared fixtures: small BOQ row tables."""

import pytest

from cm_dashboard.boq_query import rows_to_frame, BoqQueryEngine
from cm_dashboard.boq_query.models import BoqRow


@pytest.fixture
def sample_rows():
    return [
        BoqRow('Architecture', 'Walls', 'Masonry', 'Brick', 'ผนังอิฐมอญ 100mm', 'm2', 5, 60, 40, 100),
        BoqRow('Architecture', 'Walls', 'Masonry', 'Block', 'ผนังบล็อก 200mm', 'm2', 3, 30, 20, 50),
        BoqRow('Architecture', 'Floors', 'Tiles', 'Ceramic', 'กระเบื้อง 60x60 C+M', 'm2', 12, 500, 100, 600),
        BoqRow('Structure', 'Concrete', 'Slab', '', 'คอนกรีต 240 ksc', 'm3', 1, 20, 5, 25),
        BoqRow('Structure', 'Concrete', 'Beam', '', 'Concrete beam C+M', 'm3', 2, 0, 0, 0),
        BoqRow('MEP', 'Electrical', 'Lighting', '', 'LED downlight', '', 4, 10, 2, 12),
    ]


@pytest.fixture
def source_df(sample_rows):
    return rows_to_frame(sample_rows)


@pytest.fixture
def engine(source_df):
    return BoqQueryEngine(source_df, page_size=2, default_limit=200)


@pytest.fixture
def make_frame():
    """Build a row table from dicts (missing fields default)."""
    def _make(records):
        return rows_to_frame(records)
    return _make
