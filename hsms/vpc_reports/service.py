# ============================================================================
# HSMS - VPC Report Service
# ============================================================================
# Glue between the aggregator and the renderers:
#
#   generate_report(options)   one VPC  -> pdf | html | preview
#   generate_summary(options)  summary  -> pdf | html | preview
#   export_summary(options)    summary  -> xlsx
#
# Options arrive already validated by the options parser.
# ============================================================================

import logging
from typing import Optional

from .aggregator import ReportAggregator
from .config import get_config
from .export import export_summary_xlsx
from .models import VPCRepository, EmployeeRepository, ReportOptions
from .renderer import Branding, RenderedReport, get_renderer

logger = logging.getLogger("vpc_reports.service")


class ReportService:
    """Aggregate, then render in the requested format."""

    def __init__(self, aggregator: ReportAggregator, branding: Optional[Branding] = None):
        self.aggregator = aggregator
        self.branding = branding

    def generate_report(self, options: ReportOptions) -> RenderedReport:
        logger.info(
            "Generating %s report for VPC %s (role=%s, stats=%s)",
            options.output_format, options.report_id, options.role, options.include_stats,
        )
        renderer = get_renderer(options.output_format, self.branding)
        data = self.aggregator.aggregate_report(options.report_id, options)
        rendered = renderer.render(data, options)
        logger.info(
            "Generated %s report for VPC %s (%d bytes)",
            options.output_format, data.report.vpc_number, len(rendered.content),
        )
        return rendered

    def generate_summary(self, options: ReportOptions) -> RenderedReport:
        logger.info(
            "Generating %s summary (dept=%s, type=%s, %s to %s)",
            options.output_format, options.department, options.vpc_type,
            options.start_date, options.end_date,
        )
        renderer = get_renderer(options.output_format, self.branding)
        data = self.aggregator.aggregate_summary(options)
        rendered = renderer.render(data, options)
        logger.info(
            "Generated %s summary: %d records (%d bytes)",
            options.output_format, data.record_count, len(rendered.content),
        )
        return rendered

    def export_summary(self, options: ReportOptions) -> RenderedReport:
        data = self.aggregator.aggregate_summary(options)
        return export_summary_xlsx(data, self.branding)


def get_report_service(db_path=None) -> ReportService:
    """Build a service over the configured database."""
    db_path = db_path or get_config("db_path")
    aggregator = ReportAggregator(VPCRepository(db_path), EmployeeRepository(db_path))
    return ReportService(aggregator)
