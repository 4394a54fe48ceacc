# studio/models/estimate.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studio.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class Estimate(Base):
    __tablename__ = "estimates"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)

    # multi-tenant
    tenant_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)

    # customer + what they picked (frozen at submit)
    customer_info: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    configuration: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # price (frozen at submit; admin override is the only writer afterwards)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")
    breakdown: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # approval axis
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)

    # assignment axis
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    assigned_to_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    assignment_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # document
    pdf_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pdf_key: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Estimate id={self.id} tenant={self.tenant_id} "
            f"total={self.total_amount} status={self.status}>"
        )
