# ============================================================================
# HSMS - VPC Report Models, Schema & Repositories
# ============================================================================
# Value types shared by the aggregator and the renderers, the SQLite schema
# for employees / VPC records / attachments, and thin repositories that
# answer the lookups and count queries report generation needs.
# ============================================================================

import logging
import sqlite3
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from pathlib import Path
from typing import Optional, List, Dict, Any, Tuple

from .config import get_config
from .errors import ReportNotFound, AggregationFailure

logger = logging.getLogger("vpc_reports.models")

VPC_TYPES = ("safe", "unsafe")
ROLES = ("admin", "safety_officer", "manager", "employee")
AGGREGATION_LEVELS = ("none", "daily", "weekly", "monthly")
NO_FILTER = "all"
NO_AGGREGATION = "none"


# ============================================================================
# Database Schema  (additive, never drops existing tables)
# ============================================================================

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS employees (
    id TEXT PRIMARY KEY,
    employee_number TEXT UNIQUE NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    department TEXT NOT NULL,
    position TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('admin', 'safety_officer', 'manager', 'employee')),
    reporting_manager_id TEXT REFERENCES employees(id),
    is_active INTEGER DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS vpcs (
    id TEXT PRIMARY KEY,
    vpc_number TEXT UNIQUE NOT NULL,
    reported_by TEXT NOT NULL,
    reported_date TEXT NOT NULL,
    department TEXT NOT NULL,
    description TEXT NOT NULL,
    vpc_type TEXT NOT NULL CHECK (vpc_type IN ('safe', 'unsafe')),
    action_taken TEXT NOT NULL,
    incident_relates_to TEXT NOT NULL,
    created_by TEXT REFERENCES employees(id),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS vpc_attachments (
    id TEXT PRIMARY KEY,
    vpc_id TEXT NOT NULL REFERENCES vpcs(id) ON UPDATE CASCADE ON DELETE CASCADE,
    file_name TEXT NOT NULL,
    file_type TEXT NOT NULL,
    file_size INTEGER NOT NULL,
    storage_path TEXT NOT NULL,
    uploaded_by TEXT REFERENCES employees(id),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_vpcs_department ON vpcs(department);
CREATE INDEX IF NOT EXISTS idx_vpcs_type ON vpcs(vpc_type);
CREATE INDEX IF NOT EXISTS idx_vpcs_reported_date ON vpcs(reported_date);
CREATE INDEX IF NOT EXISTS idx_vpc_attachments_vpc ON vpc_attachments(vpc_id);
CREATE INDEX IF NOT EXISTS idx_employees_number ON employees(employee_number);
"""


def _resolve_db_path(db_path=None) -> str:
    return str(db_path or get_config("db_path"))


def get_db(db_path=None) -> sqlite3.Connection:
    """Get database connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(_resolve_db_path(db_path), timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_database(db_path=None):
    """Initialize the VPC report tables."""
    path = Path(_resolve_db_path(db_path))
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_db(path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()
    logger.info("VPC report schema ready at %s", path)


# ============================================================================
# Timestamp helpers
# ============================================================================

_TS_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
]


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-ish timestamp string into a naive datetime, or None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    for fmt in _TS_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class Employee:
    id: str = ""
    employee_number: str = ""
    first_name: str = ""
    last_name: str = ""
    department: str = ""
    position: str = ""
    role: str = "employee"
    reporting_manager_id: Optional[str] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(cls, row, prefix: str = ""):
        d = dict(row)
        values = {}
        for name in cls.__dataclass_fields__:
            key = prefix + name
            if key in d:
                values[name] = d[key]
        values["is_active"] = bool(values.get("is_active", 1))
        values["reporting_manager_id"] = values.get("reporting_manager_id") or None
        return cls(**values)


@dataclass
class VPCAttachment:
    id: str = ""
    vpc_id: str = ""
    file_name: str = ""
    file_type: str = ""
    file_size: int = 0
    storage_path: str = ""
    uploaded_by: Optional[str] = None
    created_at: Optional[str] = None
    uploader: Optional[Employee] = None

    @property
    def is_image(self) -> bool:
        return "image" in (self.file_type or "").lower()

    @classmethod
    def from_row(cls, row):
        d = dict(row)
        att = cls(**{k: d[k] for k in cls.__dataclass_fields__ if k in d and k != "uploader"})
        if d.get("u_id"):
            att.uploader = Employee.from_row(row, prefix="u_")
        return att


@dataclass
class SafetyReport:
    """A VPC record: one logged safe or unsafe observation."""
    id: str = ""
    vpc_number: str = ""
    reported_by: str = ""
    reported_date: Optional[datetime] = None
    department: str = ""
    description: str = ""
    vpc_type: str = "safe"
    action_taken: str = ""
    incident_relates_to: str = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    attachments: List[VPCAttachment] = field(default_factory=list)

    @classmethod
    def from_row(cls, row):
        d = dict(row)
        return cls(
            id=d["id"],
            vpc_number=d["vpc_number"],
            reported_by=d["reported_by"],
            reported_date=parse_ts(d.get("reported_date")),
            department=d["department"],
            description=d["description"],
            vpc_type=d["vpc_type"],
            action_taken=d["action_taken"],
            incident_relates_to=d["incident_relates_to"],
            created_by=d.get("created_by"),
            created_at=parse_ts(d.get("created_at")),
            updated_at=parse_ts(d.get("updated_at")),
        )


@dataclass
class StatRecord:
    department: str = ""
    vpc_type: str = ""
    category: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            department=row["department"] or "",
            vpc_type=row["vpc_type"] or "",
            category=row["incident_relates_to"] or "",
            created_at=parse_ts(row["created_at"]),
        )


@dataclass
class DepartmentStatistics:
    total: int = 0
    safe: int = 0
    unsafe: int = 0
    last_90_days: int = 0
    category_breakdown: Dict[str, int] = field(default_factory=dict)

    @property
    def safe_percent(self) -> float:
        return (self.safe / self.total) * 100 if self.total else 0.0

    @property
    def unsafe_percent(self) -> float:
        return (self.unsafe / self.total) * 100 if self.total else 0.0


@dataclass
class DepartmentRank:
    department: str = ""
    total: int = 0
    safe: int = 0
    safety_ratio: float = 0.0


@dataclass
class CompanyStatistics:
    total: int = 0
    safe: int = 0
    unsafe: int = 0
    department_ranking: List[DepartmentRank] = field(default_factory=list)


@dataclass(frozen=True)
class ReportOptions:
    """Request-scoped report settings built by the options parser."""
    report_id: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    role: str = "employee"
    output_format: str = "pdf"
    include_stats: bool = True
    department: str = NO_FILTER
    vpc_type: str = NO_FILTER
    aggregation: str = NO_AGGREGATION
    is_summary: bool = False

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @property
    def has_department_filter(self) -> bool:
        return bool(self.department) and self.department != NO_FILTER

    @property
    def has_type_filter(self) -> bool:
        return bool(self.vpc_type) and self.vpc_type != NO_FILTER

    @property
    def has_aggregation(self) -> bool:
        return bool(self.aggregation) and self.aggregation != NO_AGGREGATION


@dataclass
class VPCReportData:
    """Everything a renderer needs for one VPC report."""
    report: SafetyReport
    attachments: List[VPCAttachment] = field(default_factory=list)
    creator: Optional[Employee] = None
    reporter: Optional[Employee] = None
    escalation_chain: List[Employee] = field(default_factory=list)
    department_stats: DepartmentStatistics = field(default_factory=DepartmentStatistics)
    company_stats: CompanyStatistics = field(default_factory=CompanyStatistics)
    report_instance_id: str = ""
    generated_at: Optional[datetime] = None


@dataclass
class SummaryReportData:
    """Counts and descriptions for a filtered multi-record summary."""
    filters: ReportOptions
    total: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_department: Dict[str, int] = field(default_factory=dict)
    by_period: Dict[str, int] = field(default_factory=dict)
    date_range: str = "All time"
    data_completeness: str = ""
    generated_at: Optional[datetime] = None
    title: str = "VPC Summary Report"
    record_count: int = 0
    estimated_time: str = "~5-15 sec"
    large_threshold: int = 100

    @property
    def is_large(self) -> bool:
        return self.record_count > self.large_threshold

    def applied_filters(self) -> List[Tuple[str, str]]:
        """Ordered (label, value) pairs describing the filters in effect."""
        f = self.filters
        items: List[Tuple[str, str]] = []
        if f.has_date_range:
            items.append(("Date Range", self.date_range))
        if f.has_department_filter:
            items.append(("Department", f.department))
        if f.has_type_filter:
            items.append(("VPC Type", f.vpc_type))
        if f.has_aggregation:
            items.append(("Aggregation", f.aggregation.title()))
        items.append(("View As Role", f.role.replace("_", " ").title()))
        items.append(("Include Statistics", "Yes" if f.include_stats else "No"))
        return items


# ============================================================================
# Query filter
# ============================================================================

@dataclass(frozen=True)
class ReportFilter:
    """Predicate over the VPC collection: inclusive dates, exact matches."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    department: Optional[str] = None
    vpc_type: Optional[str] = None

    @classmethod
    def from_options(cls, options: ReportOptions) -> "ReportFilter":
        return cls(
            start_date=options.start_date,
            end_date=options.end_date,
            department=options.department if options.has_department_filter else None,
            vpc_type=options.vpc_type if options.has_type_filter else None,
        )

    def without_department(self) -> "ReportFilter":
        return replace(self, department=None)

    def to_sql(self) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        if self.start_date is not None:
            # Both bounds are whole days; date() normalises "T", space and date-only stamps
            clauses.append("date(reported_date) >= ?")
            params.append(self.start_date.isoformat())
        if self.end_date is not None:
            clauses.append("date(reported_date) <= ?")
            params.append(self.end_date.isoformat())
        if self.department is not None:
            clauses.append("department = ?")
            params.append(self.department)
        if self.vpc_type is not None:
            clauses.append("vpc_type = ?")
            params.append(self.vpc_type)
        if not clauses:
            return "1=1", params
        return " AND ".join(clauses), params


# ============================================================================
# Repositories
# ============================================================================

_GROUPABLE_FIELDS = ("vpc_type", "department")

_PERIOD_FORMATS = {
    "daily": "%Y-%m-%d",
    "weekly": "%Y-W%W",
    "monthly": "%Y-%m",
}

_UPLOADER_COLUMNS = ", ".join(
    f"e.{name} AS u_{name}" for name in Employee.__dataclass_fields__
)


class VPCRepository:
    """Read-only queries over the VPC collection."""

    def __init__(self, db_path=None):
        self.db_path = db_path

    def _conn(self) -> sqlite3.Connection:
        return get_db(self.db_path)

    def get_by_id(self, vpc_id: str) -> SafetyReport:
        """Fetch a VPC with its attachments and their uploaders."""
        conn = self._conn()
        try:
            row = conn.execute("SELECT * FROM vpcs WHERE id = ?", (vpc_id,)).fetchone()
            if row is None:
                raise ReportNotFound(f"VPC with ID {vpc_id} not found")
            report = SafetyReport.from_row(row)
            att_rows = conn.execute(f"""
                SELECT a.*, {_UPLOADER_COLUMNS}
                FROM vpc_attachments a
                LEFT JOIN employees e ON e.id = a.uploaded_by
                WHERE a.vpc_id = ?
                ORDER BY a.created_at, a.id
            """, (vpc_id,)).fetchall()
            report.attachments = [VPCAttachment.from_row(r) for r in att_rows]
            return report
        except sqlite3.Error as exc:
            logger.error("Failed to load VPC %s: %s", vpc_id, exc)
            raise AggregationFailure(f"Error loading VPC {vpc_id}: {exc}") from exc
        finally:
            conn.close()

    def list_stat_records(self) -> List[StatRecord]:
        """Flat department/type/category rows for statistics."""
        conn = self._conn()
        try:
            rows = conn.execute("""
                SELECT department, vpc_type, incident_relates_to, created_at
                FROM vpcs
            """).fetchall()
            return [StatRecord.from_row(r) for r in rows]
        except sqlite3.Error as exc:
            raise AggregationFailure(f"Error loading VPC statistics: {exc}") from exc
        finally:
            conn.close()

    def count(self, report_filter: ReportFilter) -> int:
        where, params = report_filter.to_sql()
        conn = self._conn()
        try:
            row = conn.execute(f"SELECT COUNT(*) AS cnt FROM vpcs WHERE {where}", params).fetchone()
            return int(row["cnt"])
        except sqlite3.Error as exc:
            raise AggregationFailure(f"counting total VPCs: {exc}") from exc
        finally:
            conn.close()

    def count_grouped_by(self, field_name: str, report_filter: ReportFilter) -> Dict[str, int]:
        """Count matching VPCs per distinct non-blank value of a column."""
        if field_name not in _GROUPABLE_FIELDS:
            raise ValueError(f"Cannot group VPCs by {field_name!r}")
        where, params = report_filter.to_sql()
        sql = f"""
            SELECT {field_name} AS key, COUNT(*) AS cnt
            FROM vpcs
            WHERE {where} AND {field_name} IS NOT NULL AND {field_name} != ''
            GROUP BY {field_name}
            ORDER BY {field_name}
        """
        conn = self._conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            return {r["key"]: int(r["cnt"]) for r in rows}
        except sqlite3.Error as exc:
            raise AggregationFailure(f"counting VPCs by {field_name}: {exc}") from exc
        finally:
            conn.close()

    def count_by_period(self, level: str, report_filter: ReportFilter) -> Dict[str, int]:
        """Count matching VPCs per day, week or month of the reported date."""
        fmt = _PERIOD_FORMATS.get(level)
        if fmt is None:
            raise ValueError(f"Unknown aggregation level {level!r}")
        where, params = report_filter.to_sql()
        sql = f"""
            SELECT strftime(?, reported_date) AS period, COUNT(*) AS cnt
            FROM vpcs
            WHERE {where}
            GROUP BY period
            ORDER BY period
        """
        conn = self._conn()
        try:
            rows = conn.execute(sql, [fmt] + params).fetchall()
            return {r["period"]: int(r["cnt"]) for r in rows if r["period"]}
        except sqlite3.Error as exc:
            raise AggregationFailure(f"counting VPCs by {level} period: {exc}") from exc
        finally:
            conn.close()


class EmployeeRepository:
    """Best-effort identity lookups; a miss returns None, never raises."""

    def __init__(self, db_path=None):
        self.db_path = db_path

    def _fetch_one(self, sql: str, value: Optional[str]) -> Optional[Employee]:
        if not value:
            return None
        conn = get_db(self.db_path)
        try:
            row = conn.execute(sql, (value,)).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Employee lookup failed for %r: %s", value, exc)
            return None
        finally:
            conn.close()
        return Employee.from_row(row) if row else None

    def get_by_id(self, employee_id: Optional[str]) -> Optional[Employee]:
        return self._fetch_one("SELECT * FROM employees WHERE id = ?", employee_id)

    def get_by_code(self, employee_number: Optional[str]) -> Optional[Employee]:
        return self._fetch_one(
            "SELECT * FROM employees WHERE employee_number = ?", employee_number
        )
