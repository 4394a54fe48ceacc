# studio/repositories/estimates.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from studio.models.estimate import Estimate
from studio.workflow.status import GENERATED, PENDING

IMMUTABLE_FIELDS = frozenset({"id", "tenant_id", "created_at"})
OVERRIDE_ONLY_FIELDS = frozenset({"total_amount"})

MUTABLE_FIELDS = frozenset(
    {
        "customer_info",
        "status",
        "assigned_to",
        "assigned_to_name",
        "assignment_status",
        "pdf_url",
        "pdf_key",
        "generated_at",
    }
)


class EstimateNotFound(LookupError):
    def __init__(self, tenant_id: str, estimate_id: str):
        self.tenant_id = tenant_id
        self.estimate_id = estimate_id
        super().__init__(f"estimate {estimate_id} not found for tenant {tenant_id}")


class ImmutableFieldError(ValueError):
    def __init__(self, fields: List[str]):
        self.fields = sorted(fields)
        super().__init__(f"immutable estimate fields: {', '.join(self.fields)}")


def create_estimate_record(db: Session, record: Mapping[str, Any]) -> str:
    """Insert one estimate in its own transaction and return the new id."""
    estimate = Estimate(**dict(record))
    db.add(estimate)
    db.commit()
    db.refresh(estimate)
    return estimate.id


def get_estimate(db: Session, tenant_id: str, estimate_id: str) -> Estimate:
    estimate = (
        db.query(Estimate)
        .filter(Estimate.id == estimate_id, Estimate.tenant_id == tenant_id)
        .first()
    )
    if estimate is None:
        raise EstimateNotFound(tenant_id, estimate_id)
    return estimate


def list_estimates(
    db: Session,
    tenant_id: str,
    *,
    status: Optional[str] = None,
    assigned_to: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Estimate], int]:
    q = db.query(Estimate).filter(Estimate.tenant_id == tenant_id)
    if status == PENDING:
        # legacy rows stored "generated" in place of pending
        q = q.filter(Estimate.status.in_((PENDING, GENERATED)))
    elif status:
        q = q.filter(Estimate.status == status)
    if assigned_to:
        q = q.filter(Estimate.assigned_to == assigned_to)

    total = q.count()
    rows = (
        q.order_by(Estimate.created_at.desc(), Estimate.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def update_estimate_record(
    db: Session,
    tenant_id: str,
    estimate_id: str,
    changes: Mapping[str, Any],
    *,
    allow_total_override: bool = False,
) -> Estimate:
    """
    Apply a partial update. id/tenant_id/created_at never change; total_amount
    only through the explicit admin override (allow_total_override=True).
    """
    changes = dict(changes)

    blocked = [k for k in changes if k in IMMUTABLE_FIELDS]
    if not allow_total_override:
        blocked += [k for k in changes if k in OVERRIDE_ONLY_FIELDS]
    if blocked:
        raise ImmutableFieldError(blocked)

    allowed = MUTABLE_FIELDS | (OVERRIDE_ONLY_FIELDS if allow_total_override else frozenset())
    unknown = sorted(k for k in changes if k not in allowed)
    if unknown:
        raise ValueError(f"unknown estimate fields: {', '.join(unknown)}")

    estimate = get_estimate(db, tenant_id, estimate_id)
    for key, value in changes.items():
        setattr(estimate, key, value)

    db.commit()
    db.refresh(estimate)
    return estimate


def save_estimate(db: Session, estimate: Estimate) -> Estimate:
    """Commit an estimate mutated in place by the workflow helpers."""
    db.add(estimate)
    db.commit()
    db.refresh(estimate)
    return estimate
