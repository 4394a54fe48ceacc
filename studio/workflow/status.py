# studio/workflow/status.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

# Approval axis
PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
GENERATED = "generated"  # orthogonal flag; legacy records stored it as a status

APPROVAL_STATUSES: FrozenSet[str] = frozenset({PENDING, APPROVED, REJECTED, GENERATED})

_APPROVAL_NEXT: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({PENDING, APPROVED, REJECTED}),
    APPROVED: frozenset({APPROVED}),
    REJECTED: frozenset({REJECTED}),
}

# Assignment axis (None = unassigned)
ASSIGNMENT_PENDING = "pending"
ASSIGNMENT_ACCEPTED = "accepted"
ASSIGNMENT_COMPLETED = "completed"
UNASSIGNED = "unassigned"

ASSIGNMENT_STATUSES: FrozenSet[str] = frozenset(
    {ASSIGNMENT_PENDING, ASSIGNMENT_ACCEPTED, ASSIGNMENT_COMPLETED}
)

_ASSIGNMENT_NEXT: Dict[str, FrozenSet[str]] = {
    UNASSIGNED: frozenset({ASSIGNMENT_PENDING}),
    ASSIGNMENT_PENDING: frozenset({ASSIGNMENT_PENDING, ASSIGNMENT_ACCEPTED}),
    # accepted -> pending happens when the estimate is handed to someone else
    ASSIGNMENT_ACCEPTED: frozenset({ASSIGNMENT_ACCEPTED, ASSIGNMENT_COMPLETED, ASSIGNMENT_PENDING}),
    ASSIGNMENT_COMPLETED: frozenset({ASSIGNMENT_COMPLETED}),
}


class InvalidTransition(ValueError):
    def __init__(self, code: str, message: str, current: Optional[str], requested: Optional[str]):
        self.code = code
        self.message = message
        self.current = current
        self.requested = requested
        super().__init__(f"{code}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "current": self.current,
            "requested": self.requested,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _norm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip().lower()


def effective_status(stored: Optional[str]) -> Optional[str]:
    """Approval status as the workflow sees it; a legacy 'generated' is still undecided."""
    s = _norm(stored)
    if s == GENERATED:
        return PENDING
    return s


# -----------------------------
# Pure guards
# -----------------------------


def can_transition_status(current: Optional[str], requested: Optional[str]) -> bool:
    cur = effective_status(current)
    req = _norm(requested)
    if cur not in _APPROVAL_NEXT or req not in APPROVAL_STATUSES:
        return False
    if req == GENERATED:
        return True
    return req in _APPROVAL_NEXT[cur]


def can_transition_assignment(current: Optional[str], requested: Optional[str]) -> bool:
    cur = _norm(current) or UNASSIGNED
    req = _norm(requested)
    if cur not in _ASSIGNMENT_NEXT or req not in ASSIGNMENT_STATUSES:
        return False
    return req in _ASSIGNMENT_NEXT[cur]


# -----------------------------
# Mutating helpers (work on any record-like object)
# -----------------------------


def apply_status(record: Any, requested: str, now: Optional[datetime] = None) -> None:
    req = _norm(requested)
    if not can_transition_status(record.status, req):
        raise InvalidTransition(
            "INVALID_STATUS_TRANSITION",
            f"cannot move estimate from '{record.status}' to '{requested}'",
            current=record.status,
            requested=requested,
        )

    if req == GENERATED:
        record.generated_at = now or _utcnow()
        return

    record.status = req


def assign(record: Any, staff_id: str, staff_name: Optional[str] = None) -> None:
    current = _norm(record.assignment_status)
    if current == ASSIGNMENT_COMPLETED:
        raise InvalidTransition(
            "ASSIGNMENT_COMPLETED",
            "a completed assignment cannot be handed over",
            current=current,
            requested=ASSIGNMENT_PENDING,
        )

    if record.assigned_to != staff_id or current is None:
        record.assigned_to = staff_id
        record.assignment_status = ASSIGNMENT_PENDING
    if staff_name is not None:
        record.assigned_to_name = staff_name


def apply_assignment_status(record: Any, requested: str) -> None:
    req = _norm(requested)
    if not record.assigned_to:
        raise InvalidTransition(
            "NOT_ASSIGNED",
            "estimate has no assignee",
            current=None,
            requested=requested,
        )
    if not can_transition_assignment(record.assignment_status, req):
        raise InvalidTransition(
            "INVALID_ASSIGNMENT_TRANSITION",
            f"cannot move assignment from '{record.assignment_status}' to '{requested}'",
            current=record.assignment_status,
            requested=requested,
        )
    record.assignment_status = req
