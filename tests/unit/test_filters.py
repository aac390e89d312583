import pytest

from cm_dashboard.boq_query.filters import (
    FacetFilters,
    apply_facet_filters,
    facet_options,
    reconcile_filters,
    set_facet,
)
from cm_dashboard.boq_query.working_set import build_working_set


@pytest.fixture
def working(source_df):
    return build_working_set(source_df)


class TestFacetFilters:

    def test_empty_accepts_everything(self, working):
        assert len(apply_facet_filters(working, FacetFilters())) == len(working)

    def test_changing_a_level_clears_deeper_levels(self):
        filters = FacetFilters(
            wbs1=frozenset({'Architecture'}),
            wbs2=frozenset({'Walls'}),
            wbs3=frozenset({'Masonry'}),
            unit=frozenset({'m2'}),
        )
        changed = set_facet(filters, 'wbs1', ['Structure'])
        assert changed.wbs1 == frozenset({'Structure'})
        assert changed.wbs2 == frozenset()
        assert changed.wbs3 == frozenset()
        assert changed.unit == frozenset({'m2'})

    def test_changing_unit_does_not_cascade(self):
        filters = FacetFilters(wbs1=frozenset({'Architecture'}), wbs2=frozenset({'Walls'}))
        changed = filters.with_selection('unit', ['m2'])
        assert changed.wbs2 == frozenset({'Walls'})

    def test_unknown_facet(self):
        with pytest.raises(KeyError):
            FacetFilters().with_selection('wbs9', ['x'])

    def test_summary(self):
        filters = FacetFilters(wbs1=frozenset({'A', 'B'}), unit=frozenset({'m2'}))
        assert filters.summary() == "WBS-1: 2 | Unit: 1"
        assert FacetFilters().summary() == "No filters"


def test_filters_combine_across_facets(working):
    filters = FacetFilters(wbs1=frozenset({'Architecture'}), unit=frozenset({'m2'}))
    filtered = apply_facet_filters(working, filters)
    assert len(filtered) == 3

    filters = filters.with_selection('wbs2', ['Floors'])
    assert apply_facet_filters(working, filters)['description'].tolist() == ['กระเบื้อง 60x60 C+M']


def test_blank_unit_filters_as_dash(working):
    filtered = apply_facet_filters(working, FacetFilters(unit=frozenset({'-'})))
    assert filtered['description'].tolist() == ['LED downlight']


class TestOptions:

    def test_top_level_lists_everything(self, working):
        options = facet_options(working, FacetFilters())
        assert options['wbs1'] == ['Architecture', 'MEP', 'Structure']
        assert options['unit'] == ['-', 'm2', 'm3']

    def test_options_narrow_under_ancestors(self, working):
        options = facet_options(working, FacetFilters(wbs1=frozenset({'Architecture'})))
        assert options['wbs1'] == ['Architecture', 'MEP', 'Structure']
        assert options['wbs2'] == ['Floors', 'Walls']
        assert options['wbs4'] == ['Block', 'Brick', 'Ceramic']

    def test_blank_levels_are_not_options(self, working):
        options = facet_options(working, FacetFilters(wbs1=frozenset({'Structure'})))
        assert options['wbs4'] == []

    def test_unit_options_ignore_level_selection(self, working):
        options = facet_options(working, FacetFilters(wbs1=frozenset({'Structure'})))
        assert options['unit'] == ['-', 'm2', 'm3']


class TestReconcile:

    def test_stale_values_are_pruned(self, working):
        filters = FacetFilters(wbs1=frozenset({'Architecture', 'Gone'}), unit=frozenset({'kg'}))
        reconciled = reconcile_filters(working, filters)
        assert reconciled.wbs1 == frozenset({'Architecture'})
        assert reconciled.unit == frozenset()

    def test_pruned_ancestor_narrows_descendants(self, working):
        # wbs2 'Concrete' sits under Structure only, which is no longer selected
        filters = FacetFilters(wbs1=frozenset({'Architecture'}), wbs2=frozenset({'Concrete', 'Walls'}))
        reconciled = reconcile_filters(working, filters)
        assert reconciled.wbs2 == frozenset({'Walls'})

    def test_valid_filters_are_unchanged(self, working):
        filters = FacetFilters(wbs1=frozenset({'MEP'}))
        assert reconcile_filters(working, filters) == filters
