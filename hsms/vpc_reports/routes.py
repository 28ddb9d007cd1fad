# ============================================================================
# HSMS - VPC Report API Routes
# ============================================================================
# Two routers:
#   - report_router:  /api/v1/vpcs/reports/{vpc_id}[/preview|/pdf|/html]
#   - summary_router: /api/v1/vpc/reports/summary/{preview,download,export}
#
# Registration via register_vpc_report_routes(app).
# ============================================================================

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from .errors import ReportError
from .models import init_database
from .options import parse_report_options, parse_summary_options
from .renderer import RenderedReport
from .service import get_report_service

logger = logging.getLogger("vpc_reports.routes")


# ============================================================================
# Router definitions
# ============================================================================

report_router = APIRouter(prefix="/api/v1/vpcs/reports", tags=["vpc-reports"])
summary_router = APIRouter(prefix="/api/v1/vpc/reports/summary", tags=["vpc-reports"])


# ============================================================================
# Helper utilities
# ============================================================================

def _error_response(exc: ReportError) -> JSONResponse:
    return JSONResponse({"ok": False, "error": exc.message}, status_code=exc.status_code)


def _to_response(rendered: RenderedReport) -> Response:
    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers=rendered.headers(),
    )


def _run(label: str, produce: Callable[[], RenderedReport]) -> Response:
    """Run a report job and translate report errors into JSON bodies."""
    try:
        return _to_response(produce())
    except ReportError as exc:
        if exc.status_code >= 500:
            logger.error("%s failed: %s", label, exc.message)
        else:
            logger.warning("%s rejected (%d): %s", label, exc.status_code, exc.message)
        return _error_response(exc)


def _single_report(vpc_id: str, request: Request, output_format: Optional[str] = None) -> Response:
    def produce():
        options = parse_report_options(vpc_id, request.query_params, output_format)
        return get_report_service().generate_report(options)

    return _run(f"VPC report {vpc_id}", produce)


# ============================================================================
# Single VPC report endpoints
# ============================================================================

@report_router.get("/{vpc_id}")
async def api_vpc_report(vpc_id: str, request: Request):
    """Report in the ``?format=`` format (pdf by default)."""
    return _single_report(vpc_id, request)


@report_router.get("/{vpc_id}/preview")
async def api_vpc_report_preview(vpc_id: str, request: Request):
    return _single_report(vpc_id, request, "preview")


@report_router.get("/{vpc_id}/pdf")
async def api_vpc_report_pdf(vpc_id: str, request: Request):
    return _single_report(vpc_id, request, "pdf")


@report_router.get("/{vpc_id}/html")
async def api_vpc_report_html(vpc_id: str, request: Request):
    return _single_report(vpc_id, request, "html")


# ============================================================================
# Summary endpoints
# ============================================================================

@summary_router.get("/preview")
async def api_vpc_summary_preview(request: Request):
    """Inline summary fragment with record-count / estimated-time meta tags."""
    def produce():
        options = parse_summary_options(request.query_params, output_format="preview")
        return get_report_service().generate_summary(options)

    return _run("VPC summary preview", produce)


@summary_router.get("/download")
async def api_vpc_summary_download(request: Request):
    """Summary as a pdf or html attachment (``?outputFormat=``)."""
    def produce():
        options = parse_summary_options(request.query_params)
        return get_report_service().generate_summary(options)

    return _run("VPC summary download", produce)


@summary_router.get("/export")
async def api_vpc_summary_export(request: Request):
    """Summary counts as an XLSX workbook."""
    def produce():
        options = parse_summary_options(request.query_params, output_format="xlsx")
        return get_report_service().export_summary(options)

    return _run("VPC summary export", produce)


# ============================================================================
# Registration function
# ============================================================================

def register_vpc_report_routes(app):
    """Create the report tables if needed and include both routers."""
    init_database()

    app.include_router(report_router)
    app.include_router(summary_router)

    logger.info(
        "VPC report module registered: /api/v1/vpcs/reports, /api/v1/vpc/reports/summary"
    )
