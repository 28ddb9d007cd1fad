# ============================================================================
# HSMS - VPC Preview Renderer
# ============================================================================
# Compact HTML fragments for inline display before a full export.  Rendered
# from Jinja2 templates in ./templates with autoescaping on; the fragment
# carries record-count / estimated-time meta tags the UI reads before
# offering the download.
# ============================================================================

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import VPCReportData, SummaryReportData, ReportOptions
from .renderer import (
    ReportRenderer, RenderedReport, LARGE_REPORT_NOTE, _display_ts,
)
from .sections import (
    action_steps, attachment_icon, escalation_levels, file_size_mb,
    person_with_position, person_with_role, role_narrative, truncate,
    uploader_name, watermark_for,
)

logger = logging.getLogger("vpc_reports.preview")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

PREVIEW_DESCRIPTION_LIMIT = 200

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"], default=True),
    trim_blocks=True,
    lstrip_blocks=True,
)


class PreviewRenderer(ReportRenderer):
    """Inline, non-downloadable HTML fragment."""

    media_type = "text/html; charset=utf-8"

    def render_report(self, data: VPCReportData, options: ReportOptions) -> RenderedReport:
        report = data.report
        attachments = []
        for att in data.attachments:
            icon = attachment_icon(att.file_type)
            attachments.append({
                "glyph": icon.glyph,
                "label": icon.label,
                "name": att.file_name,
                "size": file_size_mb(att.file_size),
                "uploader": uploader_name(att),
            })

        context = {
            "company_name": self.branding.company_name,
            "report": report,
            "report_instance_id": data.report_instance_id,
            "generated": _display_ts(data.generated_at),
            "reported_date": _display_ts(report.reported_date),
            "watermark": watermark_for(report.vpc_type),
            "description": truncate(report.description, PREVIEW_DESCRIPTION_LIMIT),
            "steps": action_steps(report.action_taken),
            "attachments": attachments,
            "reporter": person_with_position(data.reporter),
            "creator": person_with_role(data.creator),
            "include_stats": options.include_stats,
            "stats": data.department_stats,
            "narrative": role_narrative(options.role),
            "escalation": (
                escalation_levels(data.reporter, data.escalation_chain)
                if data.escalation_chain else []
            ),
        }
        return self._fragment("vpc_preview.html", context)

    def render_summary(self, data: SummaryReportData, options: ReportOptions) -> RenderedReport:
        context = {
            "company_name": self.branding.company_name,
            "data": data,
            "generated": _display_ts(data.generated_at),
            "filters": data.applied_filters(),
            "include_stats": options.include_stats,
            "large_note": LARGE_REPORT_NOTE.format(count=data.record_count),
        }
        return self._fragment("summary_preview.html", context)

    def _fragment(self, template_name: str, context: dict) -> RenderedReport:
        html = _env.get_template(template_name).render(**context)
        logger.debug("Rendered preview %s (%d chars)", template_name, len(html))
        return RenderedReport(content=html.encode("utf-8"), media_type=self.media_type)
