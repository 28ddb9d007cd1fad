# ============================================================================
# HSMS - VPC Report Errors
# ============================================================================
# Every failure the report subsystem can raise.  Routes translate these into
# JSON error responses using ``status_code``.
# ============================================================================


class ReportError(Exception):
    """Base class for report generation failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReportNotFound(ReportError):
    """The requested VPC record does not exist."""

    status_code = 404


class InvalidOptions(ReportError):
    """A request parameter could not be turned into report options."""

    status_code = 400


class InvalidDate(InvalidOptions):
    pass


class InvalidRole(InvalidOptions):
    pass


class InvalidFormat(InvalidOptions):
    pass


class InvalidType(InvalidOptions):
    pass


class AggregationFailure(ReportError):
    """An underlying count or group query failed."""

    status_code = 500


class UnsupportedFormat(ReportError):
    """A renderer was requested for a format it does not implement.

    Options parsing rejects unknown formats first, so reaching this means a
    caller skipped validation.
    """

    status_code = 500


class RenderFailure(ReportError):
    """A renderer could not encode the document."""

    status_code = 500
