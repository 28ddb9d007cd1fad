"""
HSMS VPC Reports - Test Infrastructure (conftest.py)
=====================================================
Provides:
  - Per-test SQLite database with deterministic seed data
  - ReportAggregator with a frozen clock
  - FastAPI TestClient
  - DB helpers
"""

import os
import sys
import datetime
import pytest

# Ensure project root is on path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)

# main.py creates the schema at import time; keep that out of the working copy
os.environ.setdefault("HSMS_DB_PATH", os.path.join(ROOT_DIR, "hsms_test.db"))

from hsms.vpc_reports.config import ReportsConfig, set_config  # noqa: E402
from hsms.vpc_reports.models import (  # noqa: E402
    get_db, init_database, VPCRepository, EmployeeRepository,
)
from hsms.vpc_reports.aggregator import ReportAggregator  # noqa: E402
from hsms.vpc_reports.renderer import Branding  # noqa: E402

# Frozen "now" for every aggregator built by the fixtures
NOW = datetime.datetime(2024, 6, 15, 12, 0, 0)

TEST_BRANDING = Branding(
    company_name="Acme Safety Ltd",
    company_address="1 Test Way, Testville",
    company_contact="Phone: 000 | Email: safety@acme.test",
)

MULTI_STEP_ACTION = "Step one\nStep two\n\nStep three"


# ============================================================================
# Seed data
# ============================================================================

# id, employee_number, first, last, department, position, role, manager_id
EMPLOYEES = [
    ("emp-admin", "A001", "Sam", "Admin", "Administration", "System Administrator", "admin", None),
    # Seven managers above the Engineering reporter: m1 -> m2 -> ... -> m7
    ("emp-m7", "M007", "Grace", "Top", "Executive", "CEO", "manager", None),
    ("emp-m6", "M006", "Frank", "Six", "Executive", "COO", "manager", "emp-m7"),
    ("emp-m5", "M005", "Erin", "Five", "Operations", "VP Operations", "manager", "emp-m6"),
    ("emp-m4", "M004", "Dan", "Four", "Operations", "Director", "manager", "emp-m5"),
    ("emp-m3", "M003", "Cara", "Three", "Engineering", "Head of Engineering", "manager", "emp-m4"),
    ("emp-m2", "M002", "Ben", "Two", "Engineering", "Engineering Manager", "manager", "emp-m3"),
    ("emp-m1", "M001", "Amy", "One", "Engineering", "Team Lead", "safety_officer", "emp-m2"),
    ("emp-e1", "E001", "Alice", "Reporter", "Engineering", "Technician", "employee", "emp-m1"),
    # Production: one manager, no further chain
    ("emp-pm", "PM01", "Paul", "Boss", "Production", "Production Manager", "manager", None),
    ("emp-p1", "P001", "Pat", "Worker", "Production", "Operator", "employee", "emp-pm"),
]

# id, number, reported_by, reported_date, department, description, type,
# action_taken, relates_to, created_by
VPCS = [
    ("vpc-1", "VPC-0001", "E001", "2024-06-01 09:30:00", "Engineering",
     "Exposed wiring found near the test bench.", "unsafe",
     MULTI_STEP_ACTION, "Electrical", "emp-admin"),
    ("vpc-2", "VPC-0002", "E001", "2024-05-20 14:00:00", "Engineering",
     "Team wore full PPE during the grinding work.", "safe",
     "Praised the team", "PPE", "emp-admin"),
    ("vpc-3", "VPC-0003", "E001", "2024-01-10 08:15:00", "Engineering",
     "Safety glasses used correctly.", "safe",
     "None required", "PPE", "emp-admin"),
    ("vpc-4", "VPC-0004", "P001", "2024-06-10 11:00:00", "Production",
     "Guard removed from the press.", "unsafe",
     "Machine locked out\nGuard refitted", "Machinery", "emp-pm"),
    ("vpc-5", "VPC-0005", "P001", "2024-04-02 16:45:00", "Production",
     "Operator bypassed the interlock.", "unsafe",
     "Interlock repaired", "Machinery", "emp-pm"),
    ("vpc-6", "VPC-0006", "UNKNOWN-99", "2024-06-12 10:00:00", "Production",
     "Walkways kept clear of pallets.", "safe",
     "Recognised at toolbox talk", "Housekeeping", None),
    ("vpc-7", "VPC-0007", "W001", "2024-03-15 13:20:00", "Warehouse",
     "Forklift driver wore seatbelt.", "safe",
     "Noted", "", "emp-admin"),
]

# id, vpc_id, file_name, file_type, file_size, storage_path, uploaded_by, created_at
ATTACHMENTS = [
    ("att-1", "vpc-1", "wiring.jpg", "image/jpeg", 2 * 1024 * 1024,
     "uploads/vpc-1/wiring.jpg", "emp-e1", "2024-06-01 09:35:00"),
    ("att-2", "vpc-1", "procedure.pdf", "application/pdf", 1572864,
     "uploads/vpc-1/procedure.pdf", "emp-admin", "2024-06-01 09:40:00"),
    ("att-3", "vpc-1", "walkthrough.mp4", "video/mp4", 12 * 1024 * 1024,
     "uploads/vpc-1/walkthrough.mp4", None, "2024-06-01 09:45:00"),
]


def seed_database(db_path):
    conn = get_db(db_path)
    try:
        c = conn.cursor()
        for emp in EMPLOYEES:
            c.execute("""
                INSERT INTO employees
                (id, employee_number, first_name, last_name, department, position,
                 role, reporting_manager_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, emp)
        for vpc in VPCS:
            c.execute("""
                INSERT INTO vpcs
                (id, vpc_number, reported_by, reported_date, department, description,
                 vpc_type, action_taken, incident_relates_to, created_by,
                 created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, vpc + (vpc[3], vpc[3]))
        for att in ATTACHMENTS:
            c.execute("""
                INSERT INTO vpc_attachments
                (id, vpc_id, file_name, file_type, file_size, storage_path,
                 uploaded_by, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, att)
        conn.commit()
    finally:
        conn.close()


def insert_vpcs(db_path, count, department="Bulk", vpc_type="safe",
                reported_date="2024-02-01 10:00:00"):
    """Add *count* filler VPCs for large-report tests."""
    conn = get_db(db_path)
    try:
        conn.executemany("""
            INSERT INTO vpcs
            (id, vpc_number, reported_by, reported_date, department, description,
             vpc_type, action_taken, incident_relates_to, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            (f"bulk-{i}", f"BULK-{i:04d}", "E001", reported_date, department,
             "Bulk record", vpc_type, "None", "General", reported_date)
            for i in range(count)
        ])
        conn.commit()
    finally:
        conn.close()


def db_count(db_path, table, where="1=1", params=()):
    conn = get_db(db_path)
    try:
        row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {table} WHERE {where}", params).fetchone()
        return row["cnt"]
    finally:
        conn.close()


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    """Fresh seeded database, installed as the configured db_path."""
    path = str(tmp_path / "hsms_test.db")
    ReportsConfig.reload()
    set_config("db_path", path)
    init_database(path)
    seed_database(path)
    yield path
    ReportsConfig.reload()


@pytest.fixture
def aggregator(db_path):
    return ReportAggregator(
        VPCRepository(db_path), EmployeeRepository(db_path), clock=lambda: NOW
    )


@pytest.fixture(scope="session")
def app():
    """The FastAPI app instance."""
    import main
    return main.app


@pytest.fixture
def client(app, db_path):
    """TestClient against the seeded per-test database."""
    from starlette.testclient import TestClient
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
