# ============================================================================
# HSMS - VPC Safety Statistics
# ============================================================================
# Pure functions over flat StatRecord rows.  Recomputed on every report
# request; nothing here is cached.
# ============================================================================

from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from .models import StatRecord, DepartmentStatistics, CompanyStatistics, DepartmentRank

ROLLING_WINDOW_DAYS = 90


def _ordered_counts(counter: Counter) -> Dict[str, int]:
    """Highest count first, ties broken by name."""
    return dict(sorted(counter.items(), key=lambda kv: (-kv[1], kv[0])))


def safety_ratio(safe: int, total: int) -> float:
    """safe / total, 0.0 when there is nothing to divide."""
    if total <= 0:
        return 0.0
    return safe / total


def department_statistics(
    records: Iterable[StatRecord],
    department: str,
    now: Optional[datetime] = None,
) -> DepartmentStatistics:
    """Totals, 90-day count and category breakdown for one department."""
    if now is None:
        now = datetime.now()
    window_start = now - timedelta(days=ROLLING_WINDOW_DAYS)

    stats = DepartmentStatistics()
    categories: Counter = Counter()
    for rec in records:
        if rec.department != department:
            continue
        stats.total += 1
        if rec.vpc_type == "safe":
            stats.safe += 1
        elif rec.vpc_type == "unsafe":
            stats.unsafe += 1
        if rec.created_at is not None and rec.created_at >= window_start:
            stats.last_90_days += 1
        if rec.category.strip():
            categories[rec.category.strip()] += 1

    stats.category_breakdown = _ordered_counts(categories)
    return stats


def company_statistics(records: Iterable[StatRecord]) -> CompanyStatistics:
    """Company totals plus one safety-ratio entry per department."""
    stats = CompanyStatistics()
    dept_totals: Counter = Counter()
    dept_safe: Counter = Counter()

    for rec in records:
        stats.total += 1
        if rec.vpc_type == "safe":
            stats.safe += 1
        elif rec.vpc_type == "unsafe":
            stats.unsafe += 1

        dept = rec.department.strip()
        if not dept:
            continue
        dept_totals[dept] += 1
        if rec.vpc_type == "safe":
            dept_safe[dept] += 1

    ranking: List[DepartmentRank] = [
        DepartmentRank(
            department=dept,
            total=total,
            safe=dept_safe[dept],
            safety_ratio=safety_ratio(dept_safe[dept], total),
        )
        for dept, total in dept_totals.items()
    ]
    ranking.sort(key=lambda r: (-r.safety_ratio, r.department))
    stats.department_ranking = ranking
    return stats
