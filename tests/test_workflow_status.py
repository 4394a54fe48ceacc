from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from studio.workflow.status import (
    InvalidTransition,
    apply_assignment_status,
    apply_status,
    assign,
    can_transition_assignment,
    can_transition_status,
    effective_status,
)


def _record(**kw):
    base = dict(
        status="pending",
        generated_at=None,
        assigned_to=None,
        assigned_to_name=None,
        assignment_status=None,
    )
    base.update(kw)
    return SimpleNamespace(**base)


@pytest.mark.parametrize(
    "current,requested,ok",
    [
        ("pending", "approved", True),
        ("pending", "rejected", True),
        ("pending", "pending", True),
        ("approved", "approved", True),
        ("approved", "rejected", False),
        ("rejected", "approved", False),
        ("approved", "pending", False),
        ("generated", "approved", True),  # legacy rows are still undecided
        ("approved", "generated", True),
        ("pending", "archived", False),
    ],
)
def test_status_guard(current, requested, ok):
    assert can_transition_status(current, requested) is ok


def test_legacy_generated_reads_as_pending():
    assert effective_status("generated") == "pending"
    assert effective_status("Approved") == "approved"


def test_generated_sets_timestamp_only():
    rec = _record(status="approved")
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)

    apply_status(rec, "generated", now=now)

    assert rec.status == "approved"
    assert rec.generated_at == now


def test_approve_then_reject_is_refused():
    rec = _record()
    apply_status(rec, "approved")

    with pytest.raises(InvalidTransition) as exc:
        apply_status(rec, "rejected")

    assert exc.value.code == "INVALID_STATUS_TRANSITION"
    assert exc.value.to_dict()["current"] == "approved"
    assert rec.status == "approved"


def test_assignment_guard():
    assert can_transition_assignment(None, "pending")
    assert not can_transition_assignment(None, "accepted")
    assert can_transition_assignment("pending", "accepted")
    assert can_transition_assignment("accepted", "completed")
    assert not can_transition_assignment("completed", "pending")
    assert not can_transition_assignment("pending", "done")


def test_assign_then_walk_the_assignment_axis():
    rec = _record()
    assign(rec, "staff-1", "Asha")
    assert (rec.assigned_to, rec.assignment_status) == ("staff-1", "pending")

    apply_assignment_status(rec, "accepted")
    apply_assignment_status(rec, "completed")
    assert rec.assignment_status == "completed"
    assert rec.status == "pending"  # approval axis untouched


def test_reassigning_resets_to_pending():
    rec = _record(assigned_to="staff-1", assignment_status="accepted")

    assign(rec, "staff-2")

    assert rec.assigned_to == "staff-2"
    assert rec.assignment_status == "pending"


def test_same_assignee_keeps_progress():
    rec = _record(assigned_to="staff-1", assignment_status="accepted")
    assign(rec, "staff-1", "Asha K.")
    assert rec.assignment_status == "accepted"
    assert rec.assigned_to_name == "Asha K."


def test_completed_assignment_cannot_be_handed_over():
    rec = _record(assigned_to="staff-1", assignment_status="completed")
    with pytest.raises(InvalidTransition) as exc:
        assign(rec, "staff-2")
    assert exc.value.code == "ASSIGNMENT_COMPLETED"


def test_assignment_status_requires_assignee():
    with pytest.raises(InvalidTransition) as exc:
        apply_assignment_status(_record(), "accepted")
    assert exc.value.code == "NOT_ASSIGNED"
