# studio/models/pricing_config.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from studio.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PricingConfigRecord(Base):
    """One pricing document per tenant, stored as the frontend's camelCase JSON."""

    __tablename__ = "pricing_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(100), index=True, unique=True, nullable=False)

    document: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<PricingConfigRecord tenant_id={self.tenant_id!r}>"
