# studio/schemas/tenant.py
from __future__ import annotations

import re
from typing import Optional

from pydantic import Field, field_validator

from studio.schemas.common import CamelModel

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


class TenantBranding(CamelModel):
    """What the estimate document header needs to know about a tenant."""

    tenant_id: Optional[str] = None
    company_name: str = Field(..., min_length=1, max_length=200)
    logo_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    primary_color: str = "#0f172a"
    secondary_color: str = "#2563eb"
    currency: str = "INR"

    @field_validator("primary_color", "secondary_color")
    @classmethod
    def _hex_color(cls, v: str) -> str:
        if not _HEX_COLOR.match(v):
            raise ValueError(f"not a hex color: {v!r}")
        return v.lower()

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not re.fullmatch(r"[A-Z]{3}", v):
            raise ValueError(f"not an ISO currency code: {v!r}")
        return v
