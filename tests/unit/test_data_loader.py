import io

import pandas as pd
import pytest
from openpyxl import Workbook

from cm_dashboard.boq_query.constants import ROW_COLUMNS
from cm_dashboard.boq_query.data_loader import load_boq_rows, normalize_boq_frame, upload_fingerprint
from cm_dashboard.boq_query.exceptions import SourceDataError


def _upload(text: str, name: str = "boq.csv"):
    buf = io.BytesIO(text.encode('utf-8-sig'))
    buf.name = name
    return buf


def test_header_aliases_are_mapped():
    raw = pd.DataFrame({
        'WBS-1': ['Architecture'],
        'Level 2': ['Walls'],
        'Item': ['  Brick wall  '],
        'UOM': ['m2'],
        'Quantity': ['5'],
        'Total Amount': [100],
    })
    df = normalize_boq_frame(raw)
    assert list(df.columns) == ROW_COLUMNS
    row = df.iloc[0]
    assert row['wbs1'] == 'Architecture'
    assert row['wbs2'] == 'Walls'
    assert row['description'] == 'Brick wall'
    assert row['qty'] == 5.0
    assert row['labor'] == 0.0
    assert row['wbs4'] == ''


def test_missing_required_column():
    with pytest.raises(SourceDataError, match="amount"):
        normalize_boq_frame(pd.DataFrame({'Description': ['x']}))


def test_non_numeric_values_become_zero():
    df = normalize_boq_frame(pd.DataFrame({'description': ['x', 'y'], 'amount': ['abc', '12.5']}))
    assert df['amount'].tolist() == [0.0, 12.5]


def test_load_csv():
    df = load_boq_rows(_upload("WBS-1,Description,Unit,Qty,Amount\nA,ผนังอิฐ,m2,5,100\n"))
    assert len(df) == 1
    assert df['description'].iloc[0] == 'ผนังอิฐ'
    assert df['amount'].iloc[0] == 100.0


def test_load_xlsx(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(['WBS-1', 'Description', 'Unit', 'Qty', 'Amount'])
    ws.append(['A', 'Slab', 'm3', 1, 25])
    path = tmp_path / "boq.xlsx"
    wb.save(path)

    df = load_boq_rows(str(path))
    assert df['description'].tolist() == ['Slab']
    assert df['qty'].iloc[0] == 1.0


def test_unsupported_type():
    with pytest.raises(SourceDataError):
        load_boq_rows(_upload("x", name="boq.txt"))


def test_unreadable_csv_is_wrapped():
    with pytest.raises(SourceDataError):
        load_boq_rows(_upload("", name="empty.csv"))


def test_fingerprint_follows_content_not_name():
    first = _upload("Description,Amount\nWall,100\n", name="boq.csv")
    edited = _upload("Description,Amount\nWall,120\n", name="boq.csv")
    renamed = _upload("Description,Amount\nWall,100\n", name="copy.csv")

    assert upload_fingerprint(first) != upload_fingerprint(edited)
    assert upload_fingerprint(first) == upload_fingerprint(renamed)


def test_fingerprint_of_path(tmp_path):
    path = tmp_path / "boq.csv"
    path.write_bytes(b"Description,Amount\nWall,100\n")
    assert upload_fingerprint(str(path)) == upload_fingerprint(_upload("Description,Amount\nWall,100\n"))
