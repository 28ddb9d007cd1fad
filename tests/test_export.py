"""
HSMS VPC Reports - Spreadsheet Export Tests
============================================
Tests: XLSX summary export layout and metadata
"""

import io

from openpyxl import load_workbook

from hsms.vpc_reports.export import XLSX_MEDIA_TYPE, export_summary_xlsx
from hsms.vpc_reports.options import parse_summary_options
from tests.conftest import TEST_BRANDING


def export(aggregator, **params):
    opts = parse_summary_options(params, output_format="xlsx")
    data = aggregator.aggregate_summary(opts)
    rendered = export_summary_xlsx(data, TEST_BRANDING)
    return rendered, load_workbook(io.BytesIO(rendered.content))


def column_values(ws, col=1):
    return [c.value for c in ws[chr(ord("A") + col - 1)] if c.value is not None]


class TestSummaryExport:

    def test_metadata(self, aggregator):
        rendered, _ = export(aggregator)
        assert rendered.media_type == XLSX_MEDIA_TYPE
        assert rendered.filename == "vpc-summary-report-20240615-120000.xlsx"
        assert rendered.headers()["Content-Disposition"].startswith("attachment;")

    def test_sheets(self, aggregator):
        _, wb = export(aggregator)
        assert wb.sheetnames == ["Summary", "Summary Stats"]

    def test_title_and_filters(self, aggregator):
        _, wb = export(aggregator, department="Engineering", vpcType="unsafe")
        ws = wb["Summary"]
        assert ws["A1"].value == (
            "Acme Safety Ltd - VPC Summary Report for Dept: Engineering (Type: unsafe)"
        )
        assert ws["A2"].value == "Generated: June 15, 2024 12:00:00"
        labels = column_values(ws)
        assert "Department" in labels
        assert "VPC Type" in labels

    def test_count_tables(self, aggregator):
        _, wb = export(aggregator, aggregation="monthly")
        ws = wb["Summary"]
        rows = {row[0]: row[1] for row in ws.iter_rows(values_only=True) if row[0]}
        assert rows["Total VPCs"] == 7
        assert rows["safe"] == 4
        assert rows["Engineering"] == 3
        assert rows["2024-06"] == 3

    def test_stats_sheet(self, aggregator):
        _, wb = export(aggregator)
        ws = wb["Summary Stats"]
        rows = {row[0]: row[1] for row in ws.iter_rows(min_row=2, values_only=True)}
        assert rows["Total VPCs"] == 7
        assert rows["Type: unsafe"] == 3
        assert rows["Department: Warehouse"] == 1
        assert rows["Date Range"] == "All time"
