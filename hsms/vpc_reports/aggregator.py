# ============================================================================
# HSMS - VPC Report Data Aggregator
# ============================================================================
# Assembles the view-models the renderers consume:
#
#   aggregate_report   - one VPC with attachments, people, escalation chain,
#                        department and company statistics
#   aggregate_summary  - counts over a filtered set of VPCs
#
# Both are read-only and idempotent.  Identity lookups are best-effort: a
# creator, reporter or manager that does not resolve leaves an empty field
# instead of failing the report.
# ============================================================================

import logging
from datetime import date, datetime
from typing import Callable, Optional

from .config import get_config, get_local_now
from .escalation import resolve_escalation_chain
from .models import (
    VPCRepository, EmployeeRepository, ReportFilter, ReportOptions,
    VPCReportData, SummaryReportData,
)
from .statistics import department_statistics, company_statistics

logger = logging.getLogger("vpc_reports.aggregator")

SUMMARY_TITLE = "VPC Summary Report"


def estimate_generation_time(record_count: int) -> str:
    """Coarse generation-time hint shown before a summary is downloaded."""
    if record_count > 500:
        return "~30-90 sec"
    if record_count > 100:
        return "~10-30 sec"
    return "~5-15 sec"


def _long_date(d: date) -> str:
    return f"{d.strftime('%b')} {d.day:02d}, {d.year}"


def _short_date(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def describe_date_range(start: Optional[date], end: Optional[date]) -> str:
    if start is not None and end is not None:
        return f"{_long_date(start)} to {_long_date(end)}"
    if start is not None:
        return f"From {_long_date(start)}"
    if end is not None:
        return f"Up to {_long_date(end)}"
    return "All time"


def build_summary_title(options: ReportOptions) -> str:
    title = SUMMARY_TITLE
    if options.start_date is not None:
        title += f" from {_short_date(options.start_date)}"
    if options.end_date is not None:
        title += f" to {_short_date(options.end_date)}"
    if options.has_department_filter:
        title += f" for Dept: {options.department}"
    if options.has_type_filter:
        title += f" (Type: {options.vpc_type})"
    return title


def describe_completeness(options: ReportOptions) -> str:
    if options.has_date_range or options.has_department_filter or options.has_type_filter:
        return "Filtered data based on selections."
    return "Full data set."


def make_report_instance_id(vpc_number: str, when: datetime) -> str:
    return f"{vpc_number}-{when.strftime('%Y%m%d-%H%M%S')}"


class ReportAggregator:
    """Builds VPCReportData / SummaryReportData from the repositories."""

    def __init__(
        self,
        reports: VPCRepository,
        employees: EmployeeRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reports = reports
        self.employees = employees
        self.clock = clock or get_local_now

    # ------------------------------------------------------------------
    # Single report
    # ------------------------------------------------------------------

    def aggregate_report(self, report_id: str, options: ReportOptions) -> VPCReportData:
        """Gather everything needed to render one VPC report.

        Raises ReportNotFound when the VPC does not exist.
        """
        report = self.reports.get_by_id(report_id)

        creator = self.employees.get_by_id(report.created_by)
        if creator is None:
            logger.warning(
                "Could not resolve creator %s for VPC %s", report.created_by, report.vpc_number
            )

        # reported_by is a hand-entered employee code, not a foreign key;
        # the match is best-effort and may differ from the true submitter.
        reporter = self.employees.get_by_code(report.reported_by)
        if reporter is None:
            logger.warning(
                "Could not resolve reporter code %r for VPC %s",
                report.reported_by, report.vpc_number,
            )

        chain = resolve_escalation_chain(reporter, self.employees.get_by_id)

        now = self.clock()
        records = self.reports.list_stat_records()
        dept_stats = department_statistics(records, report.department, now=now)
        company_stats = company_statistics(records)

        data = VPCReportData(
            report=report,
            attachments=list(report.attachments),
            creator=creator,
            reporter=reporter,
            escalation_chain=chain,
            department_stats=dept_stats,
            company_stats=company_stats,
            report_instance_id=make_report_instance_id(report.vpc_number, now),
            generated_at=now,
        )
        logger.info(
            "Aggregated VPC %s: %d attachments, %d managers, dept total %d",
            report.vpc_number, len(data.attachments), len(chain), dept_stats.total,
        )
        return data

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def aggregate_summary(self, options: ReportOptions) -> SummaryReportData:
        """Count VPCs matching the options' date range, department and type.

        Raises AggregationFailure if any query fails.
        """
        base = ReportFilter.from_options(options)

        total = self.reports.count(base)
        by_type = self.reports.count_grouped_by("vpc_type", base)

        by_department = {}
        if not options.has_department_filter:
            by_department = self.reports.count_grouped_by(
                "department", base.without_department()
            )

        by_period = {}
        if options.has_aggregation:
            by_period = self.reports.count_by_period(options.aggregation, base)

        data = SummaryReportData(
            filters=options,
            total=total,
            by_type=by_type,
            by_department=by_department,
            by_period=by_period,
            date_range=describe_date_range(options.start_date, options.end_date),
            data_completeness=describe_completeness(options),
            generated_at=self.clock(),
            title=build_summary_title(options),
            record_count=total,
            estimated_time=estimate_generation_time(total),
            large_threshold=int(get_config("large_report_threshold", 100)),
        )
        logger.info(
            "Aggregated summary '%s': %d records, %d types, %d departments",
            data.title, total, len(by_type), len(by_department),
        )
        return data
