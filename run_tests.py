#!/usr/bin/env python3
"""
HSMS VPC Reports - Single-Command Test Runner
=============================================
Run:  python run_tests.py
      python run_tests.py --html       (with HTML report, needs pytest-html)
      python run_tests.py --quick      (skip the API and PDF conversion tests)
      python run_tests.py --verbose    (verbose output)
"""

import os
import sys
import subprocess
import datetime

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))
ARTIFACTS_DIR = os.path.join(ROOT_DIR, "test_artifacts")


def main():
    args = sys.argv[1:]
    quick = "--quick" in args
    html = "--html" in args
    verbose = "--verbose" in args or "-v" in args

    cmd = [sys.executable, "-m", "pytest"]

    test_files = [
        "tests/test_options.py",
        "tests/test_statistics.py",
        "tests/test_escalation.py",
        "tests/test_aggregator.py",
        "tests/test_renderers.py",
        "tests/test_export.py",
    ]
    if not quick:
        test_files.append("tests/test_api_reports.py")
    cmd.extend(test_files)

    if quick:
        cmd.extend(["-m", "not pdf"])

    cmd.append("-v" if verbose else "-q")
    cmd.append("--tb=short")

    report_path = None
    if html:
        ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        report_dir = os.path.join(ARTIFACTS_DIR, ts)
        os.makedirs(report_dir, exist_ok=True)
        report_path = os.path.join(report_dir, "test_report.html")
        cmd.extend(["--html", report_path, "--self-contained-html"])
        print(f"[HSMS] HTML report will be saved to: {report_path}")

    print(f"[HSMS] Running: {' '.join(cmd)}")
    print(f"[HSMS] {'Quick mode (no API / PDF conversion)' if quick else 'Full suite'}")
    print()

    result = subprocess.run(cmd, cwd=ROOT_DIR)

    if report_path and result.returncode == 0:
        print(f"\n[HSMS] HTML report: {report_path}")

    return result.returncode


if __name__ == "__main__":
    sys.exit(main())
