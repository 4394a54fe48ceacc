# studio/models/tenant_settings.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from studio.db import Base


class TenantSettings(Base):
    __tablename__ = "tenant_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        String(100), index=True, unique=True, nullable=False
    )

    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # contact details printed on the estimate header
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    # Branding
    primary_color: Mapped[str] = mapped_column(String(20), default="#0f172a")
    secondary_color: Mapped[str] = mapped_column(String(20), default="#2563eb")

    currency: Mapped[str] = mapped_column(String(8), default="INR")

    def __repr__(self) -> str:
        return f"<TenantSettings tenant_id={self.tenant_id!r} company_name={self.company_name!r}>"
