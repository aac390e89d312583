import pytest

import cm_dashboard.boq_query.engine as engine_module
from cm_dashboard.boq_query import BoqQueryEngine, BoqQueryState, InvalidQueryError
from cm_dashboard.boq_query.constants import MATCH_ANY, INVALID_QUERY_MESSAGE
from cm_dashboard.boq_query.metrics import BoqMetrics


def _search(engine, state, text, mode=None):
    return engine.submit_search(engine.set_draft(state, text, mode))


def _row_id(view, description):
    match = view.filtered_df[view.filtered_df['description'] == description]
    return match['row_id'].iloc[0]


class TestInitialView:

    def test_preview_excludes_zero_amount(self, engine):
        view = engine.compute(engine.initial_state())
        assert view.row_count == 5
        assert view.total_amount == 787
        assert view.page == 1
        assert view.page_count == 3
        assert len(view.page_df) == 2

    def test_preview_respects_default_limit(self, source_df):
        engine = BoqQueryEngine(source_df, page_size=20, default_limit=2)
        assert engine.compute(engine.initial_state()).row_count == 2

    @pytest.mark.parametrize("kwargs", [{'page_size': 0}, {'default_limit': 0}])
    def test_rejects_bad_settings(self, source_df, kwargs):
        with pytest.raises(ValueError):
            BoqQueryEngine(source_df, **kwargs)

    def test_totals_match_metrics_summary(self, engine):
        state = engine.set_facet(engine.initial_state(), 'wbs1', ['Architecture'])
        view = engine.compute(state)
        summary = BoqMetrics(view.filtered_df).calculate_summary()
        assert view.total_amount == summary['total_amount'] == 750
        assert view.qty_by_unit == summary['qty_by_unit']
        assert view.row_count == summary['total_rows']


class TestSearch:

    def test_draft_does_not_filter_until_submitted(self, engine):
        state = engine.set_draft(engine.initial_state(), "ผนัง")
        view = engine.compute(state)
        assert view.row_count == 5
        assert view.keywords == ["ผนัง"]

    def test_submit_filters_descriptions(self, engine):
        view = engine.compute(_search(engine, engine.initial_state(), "ผนัง"))
        assert view.row_count == 2
        assert view.total_amount == 150
        assert view.qty_by_unit == [{'unit': 'm2', 'qty': 8.0}]

    def test_all_and_any_modes(self, engine):
        state = engine.initial_state()
        assert engine.compute(_search(engine, state, "ผนัง 200mm")).row_count == 1
        assert engine.compute(_search(engine, state, "ผนัง 200mm", MATCH_ANY)).row_count == 2

    def test_submit_resets_filters_marks_and_page(self, engine):
        state = engine.set_facet(engine.initial_state(), 'wbs1', ['Architecture'])
        view = engine.compute(state)
        state = engine.toggle_pending(state, view.visible_ids[0])
        state = engine.go_to_page(state, 2)

        state = _search(engine, state, "ผนัง")
        assert state.filters.is_empty
        assert state.ledger.pending == frozenset()
        assert state.page == 1

    def test_blank_search_returns_to_preview(self, engine):
        state = _search(engine, engine.initial_state(), "ผนัง")
        state = _search(engine, state, "   ")
        assert state.query is None
        assert engine.compute(state).row_count == 5

    def test_invalid_pattern_gives_error_and_empty_set(self, engine, monkeypatch):
        def _raise(text, mode='all'):
            raise InvalidQueryError(text, "bad pattern")

        monkeypatch.setattr(engine_module, 'compile_query', _raise)
        state = _search(engine, engine.initial_state(), "wall")
        view = engine.compute(state)
        assert state.error == INVALID_QUERY_MESSAGE
        assert view.error == INVALID_QUERY_MESSAGE
        assert view.row_count == 0
        assert view.page_count == 1


class TestFacets:

    def test_facet_narrows_view_and_options(self, engine):
        state = engine.set_facet(engine.initial_state(), 'wbs1', ['Architecture'])
        view = engine.compute(state)
        assert view.row_count == 3
        assert view.options['wbs2'] == ['Floors', 'Walls']
        assert view.options['unit'] == ['-', 'm2', 'm3']

    def test_facet_change_resets_page(self, engine):
        state = engine.go_to_page(engine.initial_state(), 3)
        assert state.page == 3
        state = engine.set_facet(state, 'unit', ['m2'])
        assert state.page == 1

    def test_reset_filters(self, engine):
        state = engine.set_facet(engine.initial_state(), 'wbs1', ['MEP'])
        state = engine.reset_filters(state)
        assert engine.compute(state).row_count == 5

    def test_unknown_facet(self, engine):
        with pytest.raises(KeyError):
            engine.set_facet(engine.initial_state(), 'colour', ['red'])


class TestStagedRemoval:

    def test_marked_rows_still_count_until_applied(self, engine):
        state = engine.initial_state()
        view = engine.compute(state)
        state = engine.toggle_pending(state, _row_id(view, 'LED downlight'))
        view = engine.compute(state)
        assert view.row_count == 5
        assert len(view.pending_in_view) == 1

    def test_apply_removes_rows(self, engine):
        state = engine.initial_state()
        view = engine.compute(state)
        removed = _row_id(view, 'LED downlight')
        state = engine.apply_pending(engine.toggle_pending(state, removed))

        view = engine.compute(state)
        assert view.row_count == 4
        assert view.total_amount == 775
        assert removed in state.ledger.committed
        assert state.ledger.pending == frozenset()

    def test_apply_is_scoped_to_visible_rows(self, engine):
        state = engine.initial_state()
        view = engine.compute(state)
        brick = _row_id(view, 'ผนังอิฐมอญ 100mm')
        slab = _row_id(view, 'คอนกรีต 240 ksc')
        state = engine.toggle_pending(engine.toggle_pending(state, brick), slab)

        state = engine.set_facet(state, 'wbs1', ['Structure'])
        state = engine.apply_pending(state)
        assert state.ledger.committed == frozenset({slab})
        assert state.ledger.pending == frozenset({brick})

    def test_apply_without_marks_is_noop(self, engine):
        state = engine.initial_state()
        assert engine.apply_pending(state) is state

    def test_apply_clamps_page(self, engine):
        state = engine.go_to_page(engine.initial_state(), 3)
        view = engine.compute(state)
        assert len(view.page_df) == 1
        state = engine.toggle_pending(state, view.page_df['row_id'].iloc[0])
        state = engine.apply_pending(state)
        assert state.page == 2
        assert engine.compute(state).page_count == 2

    def test_undo_marks(self, engine):
        state = engine.initial_state()
        view = engine.compute(state)
        state = engine.clear_pending(engine.toggle_pending(state, view.visible_ids[0]))
        assert state.ledger.pending == frozenset()

    def test_removals_survive_a_new_search(self, engine):
        state = engine.initial_state()
        view = engine.compute(state)
        removed = _row_id(view, 'ผนังอิฐมอญ 100mm')
        state = engine.apply_pending(engine.toggle_pending(state, removed))

        view = engine.compute(_search(engine, state, "ผนัง"))
        # ids are reassigned per pass, so compare by description
        assert view.filtered_df['description'].tolist() == ['ผนังบล็อก 200mm']

    def test_stale_facet_selection_is_pruned(self, engine):
        state = engine.set_facet(engine.initial_state(), 'wbs1', ['MEP'])
        view = engine.compute(state)
        state = engine.apply_pending(engine.toggle_pending(state, view.visible_ids[0]))

        view = engine.compute(state)
        assert view.filters.is_empty
        assert view.row_count == 4


class TestPaging:

    def test_next_and_prev(self, engine):
        state = engine.initial_state()
        state = engine.next_page(engine.next_page(engine.next_page(state)))
        assert state.page == 3
        state = engine.prev_page(state)
        assert state.page == 2

    def test_go_to_page_clamps(self, engine):
        assert engine.go_to_page(engine.initial_state(), 99).page == 3
        assert engine.go_to_page(engine.initial_state(), -1).page == 1


def test_state_is_immutable():
    state = BoqQueryState()
    with pytest.raises(AttributeError):
        state.page = 2
