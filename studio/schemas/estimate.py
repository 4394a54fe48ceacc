# studio/schemas/estimate.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from studio.schemas.common import CamelModel
from studio.schemas.selection import CustomerInfo, CustomerSelection


class EstimateSubmit(CamelModel):
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    selection: CustomerSelection


class BreakdownLineOut(CamelModel):
    seq: int
    section: str
    code: str
    label: str
    amount: float
    included: bool = True
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    tag: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)


class DiagnosticOut(CamelModel):
    code: str
    message: str
    meta: Dict[str, Any] = Field(default_factory=dict)


class EstimateQuoteOut(CamelModel):
    """Calculator output without persistence (storefront live preview)."""

    total_amount: int
    currency: str
    breakdown: List[BreakdownLineOut] = Field(default_factory=list)
    diagnostics: List[DiagnosticOut] = Field(default_factory=list)


class EstimateOut(CamelModel):
    id: str
    tenant_id: str
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    configuration: Dict[str, Any] = Field(default_factory=dict)

    total_amount: int
    currency: str = "INR"
    breakdown: List[BreakdownLineOut] = Field(default_factory=list)

    status: str = "pending"
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    assignment_status: Optional[str] = None

    pdf_url: Optional[str] = None
    pdf_key: Optional[str] = None
    generated_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # read-only compatibility view for older dashboards
    bedrooms: int = 0
    bathrooms: int = 0
    pdf_generated: bool = False

    @model_validator(mode="after")
    def _derive_legacy_view(self):
        selection = self.configuration or {}
        nested = selection.get("configuration") or {}
        self.bedrooms = _count(selection.get("bedroomsCount"), nested.get("bedrooms"))
        self.bathrooms = _count(selection.get("bathroomsCount"), nested.get("bathrooms"))
        self.pdf_generated = bool(self.pdf_url)
        return self

    @classmethod
    def from_record(cls, record: Any) -> "EstimateOut":
        return cls(
            id=record.id,
            tenant_id=record.tenant_id,
            customer_info=CustomerInfo.model_validate(record.customer_info or {}),
            configuration=dict(record.configuration or {}),
            total_amount=record.total_amount,
            currency=record.currency,
            breakdown=list(record.breakdown or []),
            status=record.status,
            assigned_to=record.assigned_to,
            assigned_to_name=record.assigned_to_name,
            assignment_status=record.assignment_status,
            pdf_url=record.pdf_url,
            pdf_key=record.pdf_key,
            generated_at=record.generated_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


def _count(explicit: Any, rooms: Any) -> int:
    if isinstance(explicit, (int, float)) and not isinstance(explicit, bool):
        return int(explicit)
    return len(rooms or [])


class EstimateList(CamelModel):
    items: List[EstimateOut] = Field(default_factory=list)
    total: int = 0


# -----------------------------
# Admin actions
# -----------------------------


class StatusUpdate(CamelModel):
    status: str


class AssignmentUpdate(CamelModel):
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    assignment_status: Optional[str] = None

    @model_validator(mode="after")
    def _needs_something(self):
        if not self.assigned_to and not self.assignment_status:
            raise ValueError("assignedTo or assignmentStatus is required")
        return self


class TotalOverride(CamelModel):
    total_amount: int = Field(..., ge=0)
    reason: Optional[str] = None
