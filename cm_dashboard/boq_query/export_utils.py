# cm_dashboard/boq_query/export_utils.py
"""
Export Utilities for BOQ Query Explorer

VERSION: 1.0.0
- CSV export: ten named columns, every field quoted, quotes doubled
- openpyxl formatted Excel export
- reportlab landscape PDF with totals footer (capped at MAX_EXPORT_ROWS)

All exporters take the filtered view and drop the internal row id.
"""

import csv
import html
import io
import logging
import os
from datetime import datetime
from typing import Callable, List, Optional

import pandas as pd
import streamlit as st

from ..formatters import format_quantity, format_qty_by_unit
from .constants import (
    EXPORT_COLUMNS,
    EXPORT_FILENAME,
    EXCEL_STYLES,
    MAX_EXPORT_ROWS,
    NUMERIC_COLUMNS,
    PDF_MARGIN_X,
    PDF_COLUMN_WIDTHS,
    PDF_MIN_DESCRIPTION_WIDTH,
    PDF_FONT_NAME,
    PDF_FONT_PATH_ENV,
    CACHE_KEY_EXPORTING,
)
from .exceptions import ExportTooLargeError
from .metrics import BoqMetrics
from .models import normalize_unit, safe_num

logger = logging.getLogger(__name__)


def _format_cell_number(value) -> str:
    number = safe_num(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def check_export_size(row_count: int, limit: int = MAX_EXPORT_ROWS):
    """Raise ExportTooLargeError when row_count exceeds limit."""
    if row_count > limit:
        raise ExportTooLargeError(row_count, limit)


def pdf_column_widths(available_width: float) -> List[float]:
    """
    Column widths for the PDF table: fixed widths for WBS/unit/qty/money
    columns, the description takes the rest (at least PDF_MIN_DESCRIPTION_WIDTH).
    """
    w = PDF_COLUMN_WIDTHS
    fixed = w['wbs'] * 4 + w['unit'] + w['qty'] + w['money'] * 3
    description = max(PDF_MIN_DESCRIPTION_WIDTH, available_width - fixed)
    return [w['wbs']] * 4 + [description, w['unit'], w['qty']] + [w['money']] * 3


def summary_lines(df: pd.DataFrame) -> List[str]:
    """Trailing totals printed under the exported table."""
    metrics = BoqMetrics(df)
    return [
        f"Sum Amount: {format_quantity(metrics.total_amount())}",
        f"Sum Qty (by Unit): {format_qty_by_unit(metrics.qty_by_unit())}",
    ]


class BoqExport:
    """Handle CSV/Excel/PDF exports of the filtered view."""

    @staticmethod
    def export_frame(df: pd.DataFrame) -> pd.DataFrame:
        """Export columns only, renamed to their header labels."""
        out = pd.DataFrame(index=df.index)
        for col in EXPORT_COLUMNS:
            out[col] = df[col] if col in df.columns else ""
        return out.rename(columns=EXPORT_COLUMNS).reset_index(drop=True)

    # =========================================================================
    # CSV
    # =========================================================================

    @staticmethod
    def to_csv_text(df: pd.DataFrame) -> str:
        out = BoqExport.export_frame(df)
        for col in NUMERIC_COLUMNS:
            label = EXPORT_COLUMNS[col]
            out[label] = out[label].map(_format_cell_number)
        text_labels = [EXPORT_COLUMNS[c] for c in EXPORT_COLUMNS if c not in NUMERIC_COLUMNS]
        out[text_labels] = out[text_labels].fillna('').astype(str)
        return out.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator='\n')

    @staticmethod
    def to_csv(df: pd.DataFrame) -> bytes:
        return BoqExport.to_csv_text(df).encode('utf-8-sig')

    # =========================================================================
    # EXCEL
    # =========================================================================

    @staticmethod
    def to_excel(df: pd.DataFrame, sheet_name: str = 'BOQ Query') -> bytes:
        """Convert the filtered view to formatted Excel bytes using openpyxl."""
        from openpyxl import Workbook
        from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
        from openpyxl.utils import get_column_letter

        out = BoqExport.export_frame(df)

        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name

        header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )
        header_font = Font(bold=True, color=EXCEL_STYLES['header_font_color'], size=11)
        thin_border = Side(style='thin', color='000000')
        cell_border = Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border)
        numeric_labels = {EXPORT_COLUMNS[c] for c in NUMERIC_COLUMNS}

        for col_idx, col_name in enumerate(out.columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=col_name)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')
            cell.border = cell_border
            width = 60 if col_name == EXPORT_COLUMNS['description'] else max(len(col_name) + 4, 12)
            ws.column_dimensions[get_column_letter(col_idx)].width = width

        for row_idx, row in enumerate(out.itertuples(index=False), 2):
            for col_idx, value in enumerate(row, 1):
                col_name = out.columns[col_idx - 1]
                if col_name in numeric_labels:
                    value = safe_num(value)
                elif value is None or (isinstance(value, float) and pd.isna(value)):
                    value = ""
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = cell_border
                if col_name in numeric_labels:
                    cell.number_format = EXCEL_STYLES['number_format']
                    cell.alignment = Alignment(horizontal='right')

        ws.freeze_panes = 'A2'

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer.getvalue()

    # =========================================================================
    # PDF
    # =========================================================================

    @staticmethod
    def _register_font() -> str:
        """Register the TTF named by BOQ_PDF_FONT_PATH (e.g. a Thai font)."""
        font_path = os.getenv(PDF_FONT_PATH_ENV)
        if not font_path:
            return PDF_FONT_NAME
        from reportlab.pdfbase import pdfmetrics
        from reportlab.pdfbase.ttfonts import TTFont

        name = os.path.splitext(os.path.basename(font_path))[0]
        if name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(name, font_path))
        return name

    @staticmethod
    def _ellipsize(text: str, width: float, font: str, size: float) -> str:
        from reportlab.pdfbase.pdfmetrics import stringWidth

        if stringWidth(text, font, size) <= width:
            return text
        ellipsis = "…" if font != PDF_FONT_NAME else "..."
        while text and stringWidth(text + ellipsis, font, size) > width:
            text = text[:-1]
        return text + ellipsis

    @staticmethod
    def to_pdf(df: pd.DataFrame, max_rows: int = MAX_EXPORT_ROWS) -> bytes:
        """
        Landscape A4 table of the filtered view with totals footer.

        Raises:
            ExportTooLargeError: more than max_rows rows.
        """
        check_export_size(len(df), max_rows)

        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4, landscape
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

        font = BoqExport._register_font()
        page_width, page_height = landscape(A4)
        available = page_width - PDF_MARGIN_X * 2
        widths = pdf_column_widths(available)
        cell_padding = 3
        font_size = 8

        head = list(EXPORT_COLUMNS.values())
        body = []
        for rec in df.to_dict('records'):
            description = BoqExport._ellipsize(
                str(rec.get('description') or ''),
                widths[4] - cell_padding * 2, font, font_size,
            )
            body.append([
                str(rec.get('wbs1') or ''),
                str(rec.get('wbs2') or ''),
                str(rec.get('wbs3') or ''),
                str(rec.get('wbs4') or ''),
                description,
                normalize_unit(rec.get('unit')),
                format_quantity(safe_num(rec.get('qty'))),
                format_quantity(safe_num(rec.get('material'))),
                format_quantity(safe_num(rec.get('labor'))),
                format_quantity(safe_num(rec.get('amount'))),
            ])

        styles = getSampleStyleSheet()
        title_style = styles['Title'].clone('boq_title', fontName=font, fontSize=14, alignment=0)
        small_style = styles['Normal'].clone('boq_small', fontName=font, fontSize=9)
        summary_style = styles['Normal'].clone('boq_summary', fontName=font, fontSize=10)

        table = Table([head] + body, colWidths=widths, repeatRows=1)
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, -1), font),
            ('FONTSIZE', (0, 0), (-1, -1), font_size),
            ('BACKGROUND', (0, 0), (-1, 0), colors.Color(230 / 255, 230 / 255, 230 / 255)),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.Color(30 / 255, 30 / 255, 30 / 255)),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('ALIGN', (6, 1), (9, -1), 'RIGHT'),
            ('LEFTPADDING', (0, 0), (-1, -1), cell_padding),
            ('RIGHTPADDING', (0, 0), (-1, -1), cell_padding),
            ('TOPPADDING', (0, 0), (-1, -1), cell_padding),
            ('BOTTOMPADDING', (0, 0), (-1, -1), cell_padding),
            ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ]))

        def _page_number(canvas, doc):
            canvas.saveState()
            canvas.setFont(font, 9)
            canvas.drawRightString(page_width - PDF_MARGIN_X, 18, f"Page {doc.page}")
            canvas.restoreState()

        story = [
            Paragraph(f"BOQ Query Result ({len(df):,} rows)", title_style),
            Paragraph(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}", small_style),
            Spacer(1, 6),
            table,
            Spacer(1, 12),
        ]
        story.extend(Paragraph(html.escape(line), summary_style) for line in summary_lines(df))

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=(page_width, page_height),
            leftMargin=PDF_MARGIN_X,
            rightMargin=PDF_MARGIN_X,
            topMargin=24,
            bottomMargin=32,
            title="BOQ Query Result",
        )
        doc.build(story, onFirstPage=_page_number, onLaterPages=_page_number)

        logger.info(f"PDF export built: {len(df):,} rows")
        return buffer.getvalue()

    # =========================================================================
    # STREAMLIT
    # =========================================================================

    @staticmethod
    def render_download_buttons(
        df: pd.DataFrame,
        filename: str = EXPORT_FILENAME,
        max_rows: int = MAX_EXPORT_ROWS,
        enable_excel: bool = True,
        enable_pdf: bool = True,
        key: Optional[str] = None,
    ):
        """
        Render download buttons for CSV, Excel and PDF.

        CSV is built on every rerun; Excel and PDF are only built when their
        button is pressed, so marking rows never re-renders a workbook.
        """
        if df.empty:
            st.info("No data to export")
            return

        col1, col2, col3 = st.columns(3)

        with col1:
            st.download_button(
                label="📥 CSV",
                data=BoqExport.to_csv(df),
                file_name=f"{filename}.csv",
                mime="text/csv",
                key=f"{key}_csv" if key else None,
                use_container_width=True,
            )

        if enable_excel:
            with col2:
                BoqExport._render_on_demand_button(
                    build=lambda: BoqExport.to_excel(df),
                    build_label="📊 Build Excel",
                    download_label="⬇️ Download Excel",
                    file_name=f"{filename}.xlsx",
                    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                    key=f"{key}_xlsx" if key else None,
                )

        if enable_pdf:
            with col3:
                BoqExport._render_on_demand_button(
                    build=lambda: BoqExport.to_pdf(df, max_rows=max_rows),
                    build_label="📄 Build PDF",
                    download_label="⬇️ Download PDF",
                    file_name=f"{filename}.pdf",
                    mime="application/pdf",
                    key=f"{key}_pdf" if key else None,
                )

    @staticmethod
    def _render_on_demand_button(
        build: Callable[[], bytes],
        build_label: str,
        download_label: str,
        file_name: str,
        mime: str,
        key: Optional[str],
    ):
        exporting = st.session_state.get(CACHE_KEY_EXPORTING, False)
        if not st.button(build_label, key=f"{key}_build" if key else None,
                         disabled=exporting, use_container_width=True):
            return

        st.session_state[CACHE_KEY_EXPORTING] = True
        try:
            with st.spinner(f"Building {file_name}..."):
                data = build()
        except ExportTooLargeError as e:
            logger.warning(f"Export of {file_name} skipped: {e}")
            st.warning(f"⚠️ {e}")
            return
        finally:
            st.session_state[CACHE_KEY_EXPORTING] = False

        st.download_button(
            label=download_label,
            data=data,
            file_name=file_name,
            mime=mime,
            key=key,
            use_container_width=True,
        )
