# ============================================================================
# HSMS - VPC Summary Spreadsheet Export
# ============================================================================
# Writes a SummaryReportData to an XLSX workbook (openpyxl):
#
#   Sheet "Summary"        title, generated timestamp, applied filters and
#                          the by-type / by-department / per-period tables
#   Sheet "Summary Stats"  flat metric/value rows
#
# Separate from the renderer dispatch, which only knows pdf|html|preview.
# ============================================================================

import io
import logging
from typing import Dict, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .errors import RenderFailure
from .models import SummaryReportData
from .renderer import Branding, RenderedReport, _display_ts, _stamp

logger = logging.getLogger("vpc_reports.export")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
_HEADER_FILL = PatternFill(start_color="1E293B", end_color="1E293B", fill_type="solid")
_TITLE_FONT = Font(bold=True, size=14, color="1E293B")
_MUTED_FONT = Font(italic=True, color="64748B")


def _write_count_table(ws, start_row: int, heading: str, counts: Dict[str, int]) -> int:
    """Styled two-column table; returns the next free row."""
    for col_idx, label in enumerate((heading, "Count"), 1):
        cell = ws.cell(row=start_row, column=col_idx, value=label)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
    row = start_row + 1
    for key, count in counts.items():
        ws.cell(row=row, column=1, value=key)
        ws.cell(row=row, column=2, value=count)
        row += 1
    return row + 1


def export_summary_xlsx(data: SummaryReportData, branding: Optional[Branding] = None) -> RenderedReport:
    """Render a summary to an XLSX attachment."""
    branding = branding or Branding.from_config()
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = "Summary"

        current_row = 1
        ws.cell(row=current_row, column=1, value=f"{branding.company_name} - {data.title}")
        ws.cell(row=current_row, column=1).font = _TITLE_FONT
        current_row += 1

        ws.cell(row=current_row, column=1, value=f"Generated: {_display_ts(data.generated_at)}")
        ws.cell(row=current_row, column=1).font = _MUTED_FONT
        current_row += 1

        ws.cell(row=current_row, column=1, value=data.data_completeness)
        ws.cell(row=current_row, column=1).font = _MUTED_FONT
        current_row += 2

        # -- Filter summary --
        for label, value in data.applied_filters():
            ws.cell(row=current_row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=current_row, column=2, value=value)
            current_row += 1
        current_row += 1

        ws.cell(row=current_row, column=1, value="Total VPCs").font = Font(bold=True)
        ws.cell(row=current_row, column=2, value=data.total)
        current_row += 2

        if data.by_type:
            current_row = _write_count_table(ws, current_row, "VPC Type", data.by_type)
        if data.by_department:
            current_row = _write_count_table(ws, current_row, "Department", data.by_department)
        if data.by_period:
            current_row = _write_count_table(
                ws, current_row, f"Period ({data.filters.aggregation.title()})", data.by_period
            )

        ws.column_dimensions[get_column_letter(1)].width = 40
        ws.column_dimensions[get_column_letter(2)].width = 30

        # -- Stats sheet --
        ws_stats = wb.create_sheet(title="Summary Stats")
        for col_idx, label in enumerate(("Metric", "Value"), 1):
            cell = ws_stats.cell(row=1, column=col_idx, value=label)
            cell.font = _HEADER_FONT
            cell.fill = _HEADER_FILL
        metrics = [("Total VPCs", data.total), ("Date Range", data.date_range)]
        metrics += [(f"Type: {k}", v) for k, v in data.by_type.items()]
        metrics += [(f"Department: {k}", v) for k, v in data.by_department.items()]
        metrics += [(f"Period: {k}", v) for k, v in data.by_period.items()]
        for r, (metric, value) in enumerate(metrics, 2):
            ws_stats.cell(row=r, column=1, value=metric)
            ws_stats.cell(row=r, column=2, value=value)
        ws_stats.column_dimensions["A"].width = 35
        ws_stats.column_dimensions["B"].width = 20

        buf = io.BytesIO()
        wb.save(buf)
    except Exception as exc:
        logger.error("XLSX export failed for '%s': %s", data.title, exc)
        raise RenderFailure(f"Failed to generate spreadsheet: {exc}") from exc

    content = buf.getvalue()
    logger.info("XLSX summary export built (%d bytes, %d records)", len(content), data.record_count)
    return RenderedReport(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        filename=f"vpc-summary-report-{_stamp(data.generated_at)}.xlsx",
        disposition="attachment",
    )
