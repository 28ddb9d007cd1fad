# ============================================================================
# HSMS - VPC Report Options Parser
# ============================================================================
# Turns raw query parameters into a validated ReportOptions value.
# Pure: no database access, safe to call from any request handler.
#
# Single-report query keys:  role, stats, format, start_date, end_date
# Summary query keys:        userRole, includeStats, outputFormat,
#                            startDate, endDate, department, vpcType,
#                            aggregation
# ============================================================================

from datetime import date, datetime
from typing import Mapping, Optional

from .errors import InvalidDate, InvalidRole, InvalidFormat, InvalidType, InvalidOptions
from .models import (
    ReportOptions, ROLES, VPC_TYPES, AGGREGATION_LEVELS, NO_FILTER, NO_AGGREGATION,
)

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_ROLE = "employee"

SINGLE_REPORT_FORMATS = ("pdf", "html", "preview")
SUMMARY_DOWNLOAD_FORMATS = ("pdf", "html")

_TRUTHY = ("true", "t", "1", "yes", "on")
_FALSY = ("false", "f", "0", "no", "off")


def _param(params: Mapping[str, str], key: str) -> Optional[str]:
    value = params.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_date(value: Optional[str], field_name: str = "date") -> Optional[date]:
    """Parse a YYYY-MM-DD string.  Empty means unbounded."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return datetime.strptime(str(value).strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate(f"invalid {field_name} format '{value}'. Use YYYY-MM-DD")


def parse_bool(value: Optional[str], default: bool = True) -> bool:
    """Truthy/falsy query flag; missing or unrecognised values keep *default*."""
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return default


def parse_role(value: Optional[str]) -> str:
    role = value or DEFAULT_ROLE
    if role not in ROLES:
        raise InvalidRole(
            f"invalid role: {role}. Must be one of: {', '.join(ROLES)}"
        )
    return role


def parse_format(value: Optional[str], allowed, default: str) -> str:
    fmt = (value or default).lower()
    if fmt not in allowed:
        raise InvalidFormat(
            f"invalid output format: {fmt}. Must be one of: {', '.join(allowed)}"
        )
    return fmt


def _check_range(start: Optional[date], end: Optional[date]):
    if start is not None and end is not None and start > end:
        raise InvalidDate(
            f"start date {start.isoformat()} is after end date {end.isoformat()}"
        )


def parse_report_options(
    report_id: str,
    params: Mapping[str, str],
    output_format: Optional[str] = None,
) -> ReportOptions:
    """Options for a single-VPC report.

    ``output_format`` is set by endpoints that fix the format (preview, pdf,
    html); otherwise ``?format=`` is used and defaults to pdf.
    """
    if not report_id or not str(report_id).strip():
        raise InvalidOptions("VPC ID is required")

    start = parse_date(_param(params, "start_date"), "start date")
    end = parse_date(_param(params, "end_date"), "end date")
    _check_range(start, end)

    fmt = parse_format(
        output_format or _param(params, "format"), SINGLE_REPORT_FORMATS, "pdf"
    )

    return ReportOptions(
        report_id=str(report_id).strip(),
        start_date=start,
        end_date=end,
        role=parse_role(_param(params, "role")),
        output_format=fmt,
        include_stats=parse_bool(_param(params, "stats"), True),
        is_summary=False,
    )


def parse_summary_options(
    params: Mapping[str, str],
    output_format: Optional[str] = None,
) -> ReportOptions:
    """Options for a summary report.

    The preview endpoint passes ``output_format="preview"``; the download
    endpoint leaves it unset and ``?outputFormat=`` must be pdf or html.
    """
    start = parse_date(_param(params, "startDate"), "start date")
    end = parse_date(_param(params, "endDate"), "end date")
    _check_range(start, end)

    if output_format is not None:
        fmt = output_format
    else:
        fmt = parse_format(
            _param(params, "outputFormat"), SUMMARY_DOWNLOAD_FORMATS, "pdf"
        )

    vpc_type = (_param(params, "vpcType") or NO_FILTER).lower()
    if vpc_type != NO_FILTER and vpc_type not in VPC_TYPES:
        raise InvalidType(f"invalid vpcType: {vpc_type}. Must be one of: all, safe, unsafe")

    aggregation = (_param(params, "aggregation") or NO_AGGREGATION).lower()
    if aggregation not in AGGREGATION_LEVELS:
        raise InvalidOptions(
            f"invalid aggregation: {aggregation}. Must be one of: {', '.join(AGGREGATION_LEVELS)}"
        )

    return ReportOptions(
        start_date=start,
        end_date=end,
        role=parse_role(_param(params, "userRole")),
        output_format=fmt,
        include_stats=parse_bool(_param(params, "includeStats"), True),
        department=_param(params, "department") or NO_FILTER,
        vpc_type=vpc_type,
        aggregation=aggregation,
        is_summary=True,
    )
