# ============================================================================
# HSMS - VPC PDF Renderer
# ============================================================================
# Reuses the shared ReportDocument section builders with a print
# stylesheet and converts the result with WeasyPrint.  The print
# stylesheet adds:
#
#   - A4 pages with a running header (report title) and footer
#     ("Page X of Y", generation timestamp)
#   - a fixed diagonal watermark, which WeasyPrint repeats on every page
#   - page-break-inside: avoid on each section
# ============================================================================

import logging
from typing import Optional

from .errors import RenderFailure
from .models import VPCReportData, SummaryReportData, ReportOptions
from .renderer import (
    Branding, RenderedReport, ReportDocument, ReportRenderer,
    report_filename, summary_filename, _BASE_CSS, _GRAY_500,
)

logger = logging.getLogger("vpc_reports.pdf")


def _css_string(text: str) -> str:
    """Quote text for use inside a CSS content: "..." value."""
    cleaned = " ".join(str(text).split())
    cleaned = cleaned.replace("\\", "\\\\").replace('"', '\\"').replace("<", "\\3C ")
    return f'"{cleaned}"'


_PRINT_CSS = f"""
    body {{ background: #fff; font-size: 11px; }}
    .page-wrap {{ padding: 0; max-width: 100%; }}
    .card {{ box-shadow: none; border: none; border-radius: 0; background: transparent; }}
    .header {{ border-radius: 0; }}
    .report-section {{ page-break-inside: avoid; }}
    table, .stat-grid, .attachment {{ page-break-inside: avoid; }}
    .stat-grid {{ display: block; }}
    .stat-box {{ display: inline-block; width: 23%; margin: 0 1% 8px 0; }}
    .filter-bar {{ display: block; }}
    .filter-chip {{ display: inline-block; margin: 0 6px 6px 0; }}
    .watermark {{
        position: fixed;
        top: 38%;
        left: 0;
        right: 0;
        text-align: center;
        transform: rotate(-45deg);
        font-size: 110px;
    }}
"""

_PAGE_CSS = """
    @page {{
        size: A4;
        margin: 22mm 14mm 20mm;
        @top-center {{
            content: {title};
            font-size: 9px;
            color: {muted};
        }}
        @bottom-center {{
            content: "Page " counter(page) " of " counter(pages);
            font-size: 9px;
            color: {muted};
        }}
        @bottom-right {{
            content: {generated};
            font-size: 9px;
            color: {muted};
        }}
    }}
"""


def print_stylesheet(running_title: str, generated: str) -> str:
    page = _PAGE_CSS.format(
        title=_css_string(running_title),
        generated=_css_string(f"Generated {generated}"),
        muted=_GRAY_500,
    )
    return _BASE_CSS + _PRINT_CSS + page


class PDFRenderer(ReportRenderer):
    """Print-ready PDF, downloaded as an attachment."""

    media_type = "application/pdf"

    def __init__(self, branding: Optional[Branding] = None):
        super().__init__(branding)
        self.document = ReportDocument(self.branding, stylesheet=print_stylesheet)

    def build_document(self, data, options: ReportOptions) -> str:
        """The print HTML handed to WeasyPrint."""
        if isinstance(data, SummaryReportData):
            return self.document.build_summary_document(data, options)
        return self.document.build_report_document(data, options)

    def render_report(self, data: VPCReportData, options: ReportOptions) -> RenderedReport:
        return self._convert(self.build_document(data, options), report_filename(data, "pdf"))

    def render_summary(self, data: SummaryReportData, options: ReportOptions) -> RenderedReport:
        return self._convert(self.build_document(data, options), summary_filename(data, "pdf"))

    def _convert(self, html: str, filename: str) -> RenderedReport:
        from weasyprint import HTML as WeasyprintHTML

        try:
            pdf_bytes = WeasyprintHTML(string=html).write_pdf()
        except Exception as exc:
            logger.error("PDF conversion failed for %s: %s", filename, exc)
            raise RenderFailure(f"Failed to generate PDF: {exc}") from exc

        logger.debug("Rendered PDF %s (%d bytes)", filename, len(pdf_bytes))
        return RenderedReport(
            content=pdf_bytes,
            media_type=self.media_type,
            filename=filename,
            disposition="attachment",
        )
