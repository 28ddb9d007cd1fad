# ============================================================================
# HSMS - VPC Report Renderer Base
# ============================================================================
# One interface, three encoders (PDF, HTML, preview) over the same
# view-models.  This module holds the interface, the HTML section builders
# shared by the HTML and PDF encoders, the HTML encoder and the format
# dispatch.  A renderer is a pure formatter: given the same data and
# options it returns the same bytes.  Timestamps always come from the
# view-model, never from the wall clock.
# ============================================================================

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from html import escape as html_escape
from typing import Any, Callable, Dict, List, Optional, Union

from .config import get_config, format_display_ts
from .errors import UnsupportedFormat
from .models import VPCReportData, SummaryReportData, ReportOptions
from .sections import (
    SECTION_ORDER, action_steps, attachment_icon, escalation_levels, file_size_mb,
    person_with_position, person_with_role, role_narrative, shows_image_preview,
    uploader_name, watermark_for,
)

logger = logging.getLogger("vpc_reports.renderer")

ReportData = Union[VPCReportData, SummaryReportData]

# ---------------------------------------------------------------------------
# Palette shared by the HTML and PDF stylesheets
# ---------------------------------------------------------------------------

_BRAND_RED = "#d32f2f"
_BRAND_GREEN = "#388e3c"
_BRAND_DARK = "#1e293b"
_GRAY_50 = "#f8fafc"
_GRAY_100 = "#f1f5f9"
_GRAY_200 = "#e2e8f0"
_GRAY_500 = "#64748b"
_GRAY_700 = "#334155"


# ============================================================================
# Helper utilities
# ============================================================================

def _safe(val: Any) -> str:
    """Return a safe, HTML-escaped string representation of a value."""
    if val is None:
        return ""
    return html_escape(str(val))


def _display_ts(dt: Optional[datetime]) -> str:
    return format_display_ts(dt) if dt is not None else "N/A"


def _stamp(dt: Optional[datetime]) -> str:
    """Compact timestamp used in download filenames."""
    return (dt or datetime.min).strftime("%Y%m%d-%H%M%S")


def report_filename(data: VPCReportData, ext: str) -> str:
    return f"{data.report.vpc_number}-report.{ext}"


def summary_filename(data: SummaryReportData, ext: str) -> str:
    return f"vpc-summary-report-{_stamp(data.generated_at)}.{ext}"


@dataclass(frozen=True)
class Branding:
    """Organisation details printed in report headers."""
    company_name: str
    company_address: str
    company_contact: str

    @classmethod
    def from_config(cls) -> "Branding":
        return cls(
            company_name=get_config("company_name"),
            company_address=get_config("company_address"),
            company_contact=get_config("company_contact"),
        )


@dataclass
class RenderedReport:
    """Renderer output plus the response metadata the HTTP layer needs."""
    content: bytes
    media_type: str
    filename: Optional[str] = None
    disposition: str = "inline"

    def headers(self) -> Dict[str, str]:
        if not self.filename:
            return {}
        return {"Content-Disposition": f'{self.disposition}; filename="{self.filename}"'}


# ============================================================================
# ReportRenderer
# ============================================================================

class ReportRenderer(ABC):
    """Renders VPCReportData or SummaryReportData into one output format."""

    def __init__(self, branding: Optional[Branding] = None):
        self.branding = branding or Branding.from_config()

    def render(self, data: ReportData, options: ReportOptions) -> RenderedReport:
        if isinstance(data, SummaryReportData):
            return self.render_summary(data, options)
        if isinstance(data, VPCReportData):
            return self.render_report(data, options)
        raise TypeError(f"Cannot render {type(data).__name__}")

    @abstractmethod
    def render_report(self, data: VPCReportData, options: ReportOptions) -> RenderedReport:
        """Render a single VPC report."""

    @abstractmethod
    def render_summary(self, data: SummaryReportData, options: ReportOptions) -> RenderedReport:
        """Render a multi-record summary."""


# ---------------------------------------------------------------------------
# Screen stylesheet  (inline for self-contained output)
# ---------------------------------------------------------------------------

_BASE_CSS = f"""
    * {{ box-sizing: border-box; }}
    body {{
        font-family: Arial, Helvetica, sans-serif;
        margin: 0;
        padding: 0;
        background: {_GRAY_50};
        color: #111827;
        font-size: 13px;
        line-height: 1.5;
    }}
    .page-wrap {{
        max-width: 960px;
        margin: 0 auto;
        padding: 20px;
        position: relative;
        z-index: 1;
    }}
    .card {{
        background: rgba(255, 255, 255, 0.92);
        border-radius: 12px;
        box-shadow: 0 2px 8px rgba(0,0,0,0.08);
        overflow: hidden;
        margin-bottom: 24px;
    }}
    .header {{
        background: {_BRAND_DARK};
        color: #fff;
        padding: 24px 28px;
    }}
    .header h1 {{ margin: 0; font-size: 22px; }}
    .header .subtitle {{ margin: 4px 0 0; opacity: 0.9; font-size: 15px; }}
    .header .company {{ margin-top: 8px; font-size: 11px; opacity: 0.8; }}
    .header .meta {{ margin-top: 10px; font-size: 11px; opacity: 0.85; }}
    .body {{ padding: 24px 28px; }}
    .report-section {{ margin-bottom: 22px; page-break-inside: avoid; }}
    .section-title {{
        color: {_GRAY_700};
        border-bottom: 2px solid {_GRAY_200};
        padding-bottom: 8px;
        margin: 0 0 14px;
        font-size: 16px;
    }}
    .filter-bar {{
        display: flex;
        flex-wrap: wrap;
        gap: 12px;
        margin-bottom: 20px;
    }}
    .filter-chip {{
        background: {_GRAY_100};
        padding: 6px 14px;
        border-radius: 6px;
        font-size: 12px;
    }}
    .filter-chip strong {{ color: {_BRAND_DARK}; }}
    table {{
        width: 100%;
        border-collapse: collapse;
        margin-bottom: 16px;
        font-size: 12px;
    }}
    th {{
        background: {_BRAND_DARK};
        color: #fff;
        padding: 8px 10px;
        text-align: left;
        font-weight: 600;
        font-size: 11px;
        text-transform: uppercase;
        letter-spacing: 0.3px;
    }}
    td {{
        padding: 7px 10px;
        border-bottom: 1px solid {_GRAY_200};
    }}
    table.details th {{ width: 32%; }}
    tr.current-dept {{ font-weight: 700; background: #fff7ed; }}
    .stat-grid {{
        display: grid;
        grid-template-columns: repeat(auto-fill, minmax(160px, 1fr));
        gap: 14px;
        margin-bottom: 18px;
    }}
    .stat-box {{
        border: 1px solid {_GRAY_200};
        border-radius: 8px;
        padding: 14px;
        text-align: center;
    }}
    .stat-box .value {{ font-size: 26px; font-weight: 700; color: {_BRAND_DARK}; }}
    .stat-box .label {{ font-size: 11px; color: {_GRAY_500}; margin-top: 2px; }}
    .badge {{
        display: inline-block;
        padding: 4px 12px;
        border-radius: 4px;
        font-size: 12px;
        font-weight: 700;
        letter-spacing: 1px;
        color: #fff;
    }}
    .badge-unsafe {{ background: {_BRAND_RED}; }}
    .badge-safe {{ background: {_BRAND_GREEN}; }}
    .watermark {{
        position: fixed;
        top: 45%;
        left: 50%;
        transform: translate(-50%, -50%) rotate(-45deg);
        font-size: 140px;
        font-weight: 900;
        letter-spacing: 12px;
        z-index: 0;
        pointer-events: none;
    }}
    .watermark.watermark-unsafe {{ color: rgba(211, 47, 47, 0.10); }}
    .watermark.watermark-safe {{ color: rgba(56, 142, 60, 0.10); }}
    .description {{ white-space: pre-wrap; }}
    ol.action-steps {{ margin: 0; padding-left: 22px; }}
    .attachment {{
        border: 1px solid {_GRAY_200};
        border-radius: 8px;
        padding: 10px 14px;
        margin-bottom: 10px;
    }}
    .attachment .icon {{ font-size: 18px; margin-right: 6px; }}
    .attachment .file-meta {{ color: {_GRAY_500}; font-size: 11px; }}
    .image-preview {{
        margin-top: 8px;
        padding: 18px;
        border: 1px dashed {_GRAY_200};
        text-align: center;
        color: {_GRAY_500};
        font-size: 11px;
    }}
    .role-narrative {{
        border-left: 4px solid {_BRAND_DARK};
        background: {_GRAY_100};
        padding: 12px 16px;
    }}
    .role-safety-officer {{ border-left-color: {_BRAND_RED}; }}
    .role-manager {{ border-left-color: #ca8a04; }}
    .generation-notes {{
        border-left: 4px solid #ca8a04;
        background: #fef9c3;
        padding: 12px 16px;
    }}
    .muted {{ color: {_GRAY_500}; }}
    .footer {{
        text-align: center;
        color: {_GRAY_500};
        font-size: 11px;
        padding: 16px 28px;
        border-top: 1px solid {_GRAY_200};
    }}
    @media print {{
        body {{ background: #fff; }}
        .page-wrap {{ padding: 0; max-width: 100%; }}
        .card {{ box-shadow: none; border: 1px solid #ccc; }}
    }}
"""

LARGE_REPORT_NOTE = (
    "This report covers {count} records, which is a large result set. "
    "Generation may take longer than usual. Narrow the date range or add a "
    "department or type filter for a more focused report."
)


def _section(name: str, title: str, inner: str) -> str:
    return (
        f"<section class=\"report-section\" data-section=\"{name}\">\n"
        f"  <h2 class=\"section-title\">{_safe(title)}</h2>\n"
        f"  {inner}\n"
        "</section>\n"
    )


def _details_table(rows) -> str:
    trs = "".join(f"<tr><th>{_safe(label)}</th><td>{_safe(value)}</td></tr>" for label, value in rows)
    return f"<table class=\"details\"><tbody>{trs}</tbody></table>"


def _count_table(heading: str, counts: Dict[str, int]) -> str:
    trs = "".join(f"<tr><td>{_safe(key)}</td><td>{count}</td></tr>" for key, count in counts.items())
    return (
        f"<table><thead><tr><th>{_safe(heading)}</th><th>Count</th></tr></thead>"
        f"<tbody>{trs}</tbody></table>"
    )


def _stat_boxes(items) -> str:
    boxes = "".join(
        "<div class=\"stat-box\">"
        f"<div class=\"value\">{_safe(value)}</div>"
        f"<div class=\"label\">{_safe(label)}</div>"
        "</div>"
        for label, value in items
    )
    return f"<div class=\"stat-grid\">{boxes}</div>"


def screen_stylesheet(running_title: str, generated: str) -> str:
    return _BASE_CSS


# ============================================================================
# ReportDocument  (section markup shared by the HTML and PDF renderers)
# ============================================================================

class ReportDocument:
    """
    Builds full HTML documents for both report kinds.

    The stylesheet callable receives the running title and the generation
    timestamp so print stylesheets can place them in page margins.
    """

    def __init__(self, branding: Branding, stylesheet: Callable[[str, str], str] = screen_stylesheet):
        self.branding = branding
        self.stylesheet = stylesheet

    # ------------------------------------------------------------------
    # Document shells
    # ------------------------------------------------------------------

    def _document(self, title: str, generated: str, body: str,
                  body_class: str = "", watermark: str = "") -> str:
        css = self.stylesheet(title, generated)
        return (
            "<!DOCTYPE html>\n"
            "<html lang=\"en\">\n"
            "<head>\n"
            "  <meta charset=\"utf-8\">\n"
            f"  <title>{_safe(title)} - {_safe(self.branding.company_name)}</title>\n"
            f"  <style>{css}</style>\n"
            "</head>\n"
            f"<body class=\"{body_class}\">\n"
            f"{watermark}"
            "<div class=\"page-wrap\">\n"
            "  <div class=\"card\">\n"
            f"    {body}\n"
            f"    {self._footer(generated)}\n"
            "  </div>\n"
            "</div>\n"
            "</body>\n"
            "</html>"
        )

    def _header(self, subtitle: str, meta_lines: List[str]) -> str:
        b = self.branding
        meta = "<br>".join(_safe(line) for line in meta_lines)
        return (
            "<div class=\"header\">\n"
            f"  <h1>{_safe(b.company_name)}</h1>\n"
            f"  <div class=\"subtitle\">{_safe(subtitle)}</div>\n"
            f"  <div class=\"company\">{_safe(b.company_address)} &middot; {_safe(b.company_contact)}</div>\n"
            f"  <div class=\"meta\">{meta}</div>\n"
            "</div>\n"
        )

    def _footer(self, generated: str) -> str:
        return (
            "<div class=\"footer\">\n"
            f"  Generated: {_safe(generated)} &nbsp;|&nbsp; "
            f"{_safe(self.branding.company_name)} Safety Management System\n"
            "</div>\n"
        )

    # ------------------------------------------------------------------
    # Single report
    # ------------------------------------------------------------------

    def build_report_document(self, data: VPCReportData, options: ReportOptions) -> str:
        report = data.report
        wm = watermark_for(report.vpc_type)
        generated = _display_ts(data.generated_at)

        builders = {
            "identification": self._section_identification,
            "classification": self._section_classification,
            "narrative": self._section_narrative,
            "attachments": self._section_attachments,
            "personnel": self._section_personnel,
            "statistics": self._section_statistics,
            "role_narrative": self._section_role_narrative,
            "escalation": self._section_escalation,
        }
        sections = "".join(builders[name](data, options) for name in SECTION_ORDER)

        header = self._header(
            "VPC Safety Report",
            [f"Report ID: {data.report_instance_id}", f"Generated on: {generated}"],
        )
        watermark = f"<div class=\"watermark {wm.css_class}\">{_safe(wm.text)}</div>\n"
        return self._document(
            f"VPC Report {report.vpc_number}",
            generated,
            f"{header}<div class=\"body\">\n{sections}</div>",
            body_class=wm.css_class,
            watermark=watermark,
        )

    def _section_identification(self, data: VPCReportData, options: ReportOptions) -> str:
        r = data.report
        return _section("identification", "Incident Summary", _details_table([
            ("VPC Number", r.vpc_number),
            ("Reported Date", _display_ts(r.reported_date)),
            ("Department", r.department),
            ("Incident Relates To", r.incident_relates_to),
            ("Reported By (Code)", r.reported_by),
        ]))

    def _section_classification(self, data: VPCReportData, options: ReportOptions) -> str:
        wm = watermark_for(data.report.vpc_type)
        badge = f"<span class=\"badge badge-{_safe(data.report.vpc_type)}\">{_safe(wm.text)}</span>"
        return _section("classification", "Safety Classification", f"<p>{badge}</p>")

    def _section_narrative(self, data: VPCReportData, options: ReportOptions) -> str:
        steps = action_steps(data.report.action_taken)
        if steps:
            actions = "<ol class=\"action-steps\">" + "".join(
                f"<li>{_safe(step)}</li>" for step in steps
            ) + "</ol>"
        else:
            actions = "<p class=\"muted\">No action recorded.</p>"
        return _section(
            "narrative",
            "Description & Action Taken",
            f"<h3>Description</h3><p class=\"description\">{_safe(data.report.description)}</p>"
            f"<h3>Action Taken</h3>{actions}",
        )

    def _section_attachments(self, data: VPCReportData, options: ReportOptions) -> str:
        if not data.attachments:
            return ""
        items = []
        for att in data.attachments:
            icon = attachment_icon(att.file_type)
            preview = ""
            if shows_image_preview(att):
                preview = f"<div class=\"image-preview\">Image preview: {_safe(att.file_name)}</div>"
            items.append(
                "<div class=\"attachment\">"
                f"<span class=\"icon\" title=\"{icon.label}\">{icon.glyph}</span>"
                f"<strong>{_safe(att.file_name)}</strong>"
                f"<div class=\"file-meta\">{_safe(att.file_type)} &middot; {file_size_mb(att.file_size)}"
                f" &middot; Uploaded by {_safe(uploader_name(att))}</div>"
                f"{preview}"
                "</div>"
            )
        return _section("attachments", f"Attachments ({len(data.attachments)})", "".join(items))

    def _section_personnel(self, data: VPCReportData, options: ReportOptions) -> str:
        return _section("personnel", "Personnel", _details_table([
            ("Reported By", person_with_position(data.reporter)),
            ("Created By", person_with_role(data.creator)),
        ]))

    def _section_statistics(self, data: VPCReportData, options: ReportOptions) -> str:
        if not options.include_stats:
            return ""
        dept = data.report.department
        ds = data.department_stats
        parts = [_stat_boxes([
            ("Total VPCs", ds.total),
            ("Safe", f"{ds.safe} ({ds.safe_percent:.1f}%)"),
            ("Unsafe", f"{ds.unsafe} ({ds.unsafe_percent:.1f}%)"),
            ("Last 90 Days", ds.last_90_days),
        ])]
        if ds.category_breakdown:
            parts.append(_count_table("Incident Category", ds.category_breakdown))

        cs = data.company_stats
        parts.append(
            f"<h3>Company Comparison</h3><p class=\"muted\">Company-wide: {cs.total} VPCs, "
            f"{cs.safe} safe, {cs.unsafe} unsafe.</p>"
        )
        if cs.department_ranking:
            trs = []
            for rank, entry in enumerate(cs.department_ranking, 1):
                css = " class=\"current-dept\"" if entry.department == dept else ""
                trs.append(
                    f"<tr{css}><td>{rank}</td><td>{_safe(entry.department)}</td>"
                    f"<td>{entry.total}</td><td>{entry.safe}</td>"
                    f"<td>{entry.safety_ratio * 100:.1f}%</td></tr>"
                )
            parts.append(
                "<table><thead><tr><th>Rank</th><th>Department</th><th>Total</th>"
                f"<th>Safe</th><th>Safety Ratio</th></tr></thead><tbody>{''.join(trs)}</tbody></table>"
            )
        return _section("statistics", f"Department Statistics: {dept}", "".join(parts))

    def _section_role_narrative(self, data: VPCReportData, options: ReportOptions) -> str:
        if not options.include_stats:
            return ""
        narrative = role_narrative(options.role)
        if narrative is None:
            return ""
        return _section(
            "role_narrative",
            narrative.title,
            f"<div class=\"role-narrative {narrative.css_class}\"><p>{_safe(narrative.body)}</p></div>",
        )

    def _section_escalation(self, data: VPCReportData, options: ReportOptions) -> str:
        if not data.escalation_chain:
            return ""
        rows = escalation_levels(data.reporter, data.escalation_chain)
        return _section("escalation", "Escalation Chain", _details_table(rows))

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def build_summary_document(self, data: SummaryReportData, options: ReportOptions) -> str:
        generated = _display_ts(data.generated_at)
        header = self._header(
            data.title,
            [f"Generated on: {generated}", f"Date range: {data.date_range}"],
        )

        parts = [self._summary_filters(data)]
        parts.append(
            f"<p class=\"muted\" data-field=\"completeness\">{_safe(data.data_completeness)}</p>"
        )
        parts.append(_stat_boxes([
            ("Total VPCs", data.total),
            ("Safe", data.by_type.get("safe", 0)),
            ("Unsafe", data.by_type.get("unsafe", 0)),
        ]))
        if options.include_stats:
            if data.by_type:
                parts.append(_section("by_type", "VPCs by Type", _count_table("Type", data.by_type)))
            if data.by_department:
                parts.append(_section(
                    "by_department", "VPCs by Department", _count_table("Department", data.by_department)
                ))
        if data.by_period:
            level = data.filters.aggregation.title()
            parts.append(_section(
                "by_period", f"VPCs per Period ({level})", _count_table("Period", data.by_period)
            ))
        if data.is_large:
            parts.append(_section(
                "generation_notes",
                "Generation Notes",
                f"<div class=\"generation-notes\">{_safe(LARGE_REPORT_NOTE.format(count=data.record_count))}</div>",
            ))

        return self._document(
            data.title,
            generated,
            f"{header}<div class=\"body\">\n{''.join(parts)}</div>",
        )

    def _summary_filters(self, data: SummaryReportData) -> str:
        chips = "".join(
            f"<div class=\"filter-chip\"><strong>{_safe(label)}:</strong> {_safe(value)}</div>"
            for label, value in data.applied_filters()
        )
        return _section("filters", "Applied Filters", f"<div class=\"filter-bar\">{chips}</div>")


# ============================================================================
# HTMLRenderer
# ============================================================================

class HTMLRenderer(ReportRenderer):
    """Self-contained, downloadable HTML document."""

    media_type = "text/html; charset=utf-8"

    def __init__(self, branding: Optional[Branding] = None):
        super().__init__(branding)
        self.document = ReportDocument(self.branding)

    def render_report(self, data: VPCReportData, options: ReportOptions) -> RenderedReport:
        html = self.document.build_report_document(data, options)
        return self._package(html, report_filename(data, "html"))

    def render_summary(self, data: SummaryReportData, options: ReportOptions) -> RenderedReport:
        html = self.document.build_summary_document(data, options)
        return self._package(html, summary_filename(data, "html"))

    def _package(self, html: str, filename: str) -> RenderedReport:
        logger.debug("Rendered HTML %s (%d chars)", filename, len(html))
        return RenderedReport(
            content=html.encode("utf-8"),
            media_type=self.media_type,
            filename=filename,
            disposition="attachment",
        )


# ============================================================================
# Format dispatch
# ============================================================================

def get_renderer(fmt: str, branding: Optional[Branding] = None) -> ReportRenderer:
    """Return the renderer for an output format.

    Raises UnsupportedFormat for anything but pdf, html or preview.
    """
    from .pdf import PDFRenderer
    from .preview import PreviewRenderer

    renderer_cls = {
        "pdf": PDFRenderer,
        "html": HTMLRenderer,
        "preview": PreviewRenderer,
    }.get((fmt or "").lower())
    if renderer_cls is None:
        raise UnsupportedFormat(f"Unsupported format: {fmt}")
    return renderer_cls(branding)
