from cm_dashboard.boq_query.query import compile_query
from cm_dashboard.boq_query.working_set import build_working_set, positive_amount_rows


def test_zero_amount_rows_are_dropped(source_df):
    base = positive_amount_rows(source_df)
    assert len(base) == 5
    assert 'Concrete beam C+M' not in base['description'].tolist()


def test_preview_is_limited(source_df):
    working = build_working_set(source_df, default_limit=3)
    assert len(working) == 3
    assert working['description'].iloc[0] == 'ผนังอิฐมอญ 100mm'


def test_search_is_not_limited(make_frame):
    records = [{'description': f'wall {i}', 'amount': 1} for i in range(300)]
    working = build_working_set(make_frame(records), pattern=compile_query('wall'), default_limit=200)
    assert len(working) == 300


def test_search_filters_descriptions(source_df):
    working = build_working_set(source_df, pattern=compile_query('C+M'))
    # the zero-amount beam also matches but is dropped
    assert working['description'].tolist() == ['กระเบื้อง 60x60 C+M']


def test_committed_ids_are_excluded(source_df):
    working = build_working_set(source_df)
    removed = working['row_id'].iloc[1]
    after = build_working_set(source_df, committed=frozenset({removed}))
    assert removed not in after['row_id'].tolist()
    assert len(after) == len(working) - 1
    # ids of the other rows are unchanged
    assert set(after['row_id']) == set(working['row_id']) - {removed}


def test_source_is_not_modified(source_df):
    before = source_df.copy()
    build_working_set(source_df, pattern=compile_query('ผนัง'))
    assert source_df.equals(before)
