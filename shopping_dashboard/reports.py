"""
Summary Workbook Export
Builds a formatted Excel workbook of the dashboard's numbers for download:
key statistics, the gender -> age bracket -> category hierarchy and the
records that were left out at load time.

The workbook is built in memory and handed to the browser; nothing is saved
on the server.
"""

import logging
from datetime import datetime
from io import BytesIO

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils.dataframe import dataframe_to_rows

# Setup logging
logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True, color="FFFFFF", size=12)
HEADER_FILL = PatternFill(start_color="667EEA", end_color="667EEA", fill_type="solid")
MONEY_FILL = PatternFill(start_color="EEF0FC", end_color="EEF0FC", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)


def format_currency(value) -> str:
    return "No data" if value is None else f"${value:,.2f}"


def _write_table(ws, df: pd.DataFrame, money_columns=(), width: int = 18):
    """Write a DataFrame with a styled header row."""
    money_idx = {df.columns.get_loc(col) + 1 for col in money_columns if col in df.columns}

    for r_idx, row in enumerate(dataframe_to_rows(df, index=False, header=True), 1):
        for c_idx, value in enumerate(row, 1):
            cell = ws.cell(row=r_idx, column=c_idx, value=value)
            cell.border = THIN_BORDER

            if r_idx == 1:
                cell.font = HEADER_FONT
                cell.fill = HEADER_FILL
                cell.alignment = Alignment(horizontal='center', wrap_text=True)
            elif c_idx in money_idx:
                cell.fill = MONEY_FILL
                if isinstance(value, (int, float)):
                    cell.number_format = '$#,##0.00'

    for col_idx in range(1, len(df.columns) + 1):
        ws.column_dimensions[ws.cell(row=1, column=col_idx).column_letter].width = width


def create_summary_workbook(summary: dict, hierarchy: pd.DataFrame, issues: pd.DataFrame,
                            skipped_rows: int = 0) -> Workbook:
    """Create the three-sheet summary workbook."""
    wb = Workbook()

    # === Sheet 1: Executive Summary ===
    ws1 = wb.active
    ws1.title = "Executive Summary"

    ws1['A1'] = "SHOPPING MALL SALES - EXECUTIVE SUMMARY"
    ws1['A1'].font = Font(bold=True, size=18, color="667EEA")
    ws1.merge_cells('A1:D1')

    ws1['A2'] = f"Generated: {datetime.now().strftime('%B %d, %Y')}"
    ws1['A2'].font = Font(italic=True, size=10)

    metrics = [
        ("Total Customers", f"{summary['total_customers']:,}"),
        ("Total Revenue", format_currency(summary['total_revenue'])),
        ("Average Purchase", format_currency(summary['avg_purchase'])),
        ("Top Category", summary['top_category'] or "No data"),
        ("Skipped Records", f"{skipped_rows:,}"),
    ]

    for i, (label, value) in enumerate(metrics, start=4):
        ws1[f'A{i}'] = label
        ws1[f'A{i}'].font = Font(bold=True)
        ws1[f'B{i}'] = value
        ws1[f'B{i}'].alignment = Alignment(horizontal='right')

    ws1.column_dimensions['A'].width = 30
    ws1.column_dimensions['B'].width = 25

    # === Sheet 2: Hierarchy ===
    ws2 = wb.create_sheet("Hierarchy")
    _write_table(ws2, hierarchy, money_columns=['Value'])
    ws2.column_dimensions['A'].width = 40

    # === Sheet 3: Skipped Records ===
    ws3 = wb.create_sheet("Skipped Records")
    _write_table(ws3, issues, width=22)

    return wb


def build_summary_workbook(summary: dict, hierarchy: pd.DataFrame, issues: pd.DataFrame,
                           skipped_rows: int = 0) -> bytes:
    """Workbook bytes for st.download_button."""
    wb = create_summary_workbook(summary, hierarchy, issues, skipped_rows)
    buffer = BytesIO()
    wb.save(buffer)
    logger.info(f"Built summary workbook ({len(hierarchy):,} hierarchy rows, {len(issues):,} issues)")
    return buffer.getvalue()
