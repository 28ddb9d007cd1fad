# ============================================================================
# HSMS - VPC Report Generation Package
# ============================================================================

from .errors import (
    ReportError, ReportNotFound, InvalidOptions, InvalidDate, InvalidRole,
    InvalidFormat, InvalidType, AggregationFailure, UnsupportedFormat, RenderFailure,
)
from .models import ReportOptions, VPCReportData, SummaryReportData, init_database
from .options import parse_report_options, parse_summary_options
from .aggregator import ReportAggregator
from .renderer import RenderedReport, ReportRenderer, HTMLRenderer, get_renderer
from .service import ReportService, get_report_service
from .routes import register_vpc_report_routes

__version__ = "1.0.0"

__all__ = [
    "ReportError", "ReportNotFound", "InvalidOptions", "InvalidDate", "InvalidRole",
    "InvalidFormat", "InvalidType", "AggregationFailure", "UnsupportedFormat",
    "RenderFailure",
    "ReportOptions", "VPCReportData", "SummaryReportData", "init_database",
    "parse_report_options", "parse_summary_options",
    "ReportAggregator",
    "RenderedReport", "ReportRenderer", "HTMLRenderer", "get_renderer",
    "ReportService", "get_report_service",
    "register_vpc_report_routes",
]
