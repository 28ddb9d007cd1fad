"""
HSMS VPC Reports - Escalation Chain Tests
==========================================
Tests: chain walk order, depth cap, unresolved managers, cycles
"""

import logging

from hsms.vpc_reports.escalation import MAX_ESCALATION_DEPTH, resolve_escalation_chain
from hsms.vpc_reports.models import Employee


def chain_of(length):
    """Employee e0 with managers e1..e<length>, each reporting to the next."""
    people = {}
    for i in range(length + 1):
        manager = f"e{i + 1}" if i < length else None
        people[f"e{i}"] = Employee(
            id=f"e{i}", employee_number=f"N{i}", first_name="Emp", last_name=str(i),
            position=f"Level {i}", reporting_manager_id=manager,
        )
    return people


class TestEscalationChain:

    def test_walks_nearest_first(self):
        people = chain_of(3)
        chain = resolve_escalation_chain(people["e0"], people.get)
        assert [m.id for m in chain] == ["e1", "e2", "e3"]

    def test_capped_at_five(self, caplog):
        people = chain_of(7)
        with caplog.at_level(logging.WARNING, logger="vpc_reports.escalation"):
            chain = resolve_escalation_chain(people["e0"], people.get)
        assert len(chain) == MAX_ESCALATION_DEPTH == 5
        assert [m.id for m in chain] == ["e1", "e2", "e3", "e4", "e5"]
        assert "truncated" in caplog.text

    def test_exactly_five_not_reported_as_truncated(self, caplog):
        people = chain_of(5)
        with caplog.at_level(logging.WARNING, logger="vpc_reports.escalation"):
            chain = resolve_escalation_chain(people["e0"], people.get)
        assert len(chain) == 5
        assert "truncated" not in caplog.text

    def test_no_employee(self):
        assert resolve_escalation_chain(None, lambda _id: None) == []

    def test_no_manager(self):
        people = chain_of(0)
        assert resolve_escalation_chain(people["e0"], people.get) == []

    def test_unresolved_manager_stops_walk(self, caplog):
        people = chain_of(4)
        del people["e3"]
        with caplog.at_level(logging.WARNING, logger="vpc_reports.escalation"):
            chain = resolve_escalation_chain(people["e0"], people.get)
        assert [m.id for m in chain] == ["e1", "e2"]
        assert "unresolved manager e3" in caplog.text

    def test_cycle_is_bounded(self):
        a = Employee(id="a", reporting_manager_id="b")
        b = Employee(id="b", reporting_manager_id="a")
        people = {"a": a, "b": b}
        chain = resolve_escalation_chain(a, people.get)
        assert len(chain) == MAX_ESCALATION_DEPTH
        assert [m.id for m in chain] == ["b", "a", "b", "a", "b"]

    def test_custom_depth(self):
        people = chain_of(7)
        assert len(resolve_escalation_chain(people["e0"], people.get, max_depth=2)) == 2
