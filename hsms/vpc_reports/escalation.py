# ============================================================================
# HSMS - Escalation Chain Resolver
# ============================================================================
# Walks the employee -> reporting manager relation upwards.
#
# The relation is self-referential and nothing in the schema prevents a
# cycle, so the walk is capped at MAX_ESCALATION_DEPTH hops.  The cap does
# not detect cycles; a cyclic graph simply yields repeated managers up to
# the cap.
# ============================================================================

import logging
from typing import Callable, List, Optional

from .models import Employee

logger = logging.getLogger("vpc_reports.escalation")

MAX_ESCALATION_DEPTH = 5

ManagerLookup = Callable[[str], Optional[Employee]]


def resolve_escalation_chain(
    employee: Optional[Employee],
    lookup: ManagerLookup,
    max_depth: int = MAX_ESCALATION_DEPTH,
) -> List[Employee]:
    """Return the managers above *employee*, nearest first.

    Stops at the first manager without a manager reference, the first
    reference that does not resolve, or after *max_depth* managers.
    """
    managers: List[Employee] = []
    if employee is None or not employee.reporting_manager_id:
        return managers

    manager_id = employee.reporting_manager_id
    for _ in range(max_depth):
        manager = lookup(manager_id)
        if manager is None:
            logger.warning(
                "Escalation chain for %s stops at unresolved manager %s",
                employee.employee_number or employee.id, manager_id,
            )
            break
        managers.append(manager)
        if not manager.reporting_manager_id:
            break
        manager_id = manager.reporting_manager_id
    else:
        if managers:
            logger.warning(
                "Escalation chain for %s truncated at %d levels",
                employee.employee_number or employee.id, max_depth,
            )

    return managers
