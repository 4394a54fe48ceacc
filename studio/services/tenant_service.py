# studio/services/tenant_service.py
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from studio.config import settings
from studio.models.tenant_settings import TenantSettings
from studio.schemas.tenant import TenantBranding

logger = logging.getLogger(__name__)


def _to_branding(row: TenantSettings) -> TenantBranding:
    return TenantBranding(
        tenant_id=row.tenant_id,
        company_name=row.company_name,
        logo_url=row.logo_url,
        email=row.email,
        phone=row.phone,
        address=row.address,
        primary_color=row.primary_color or "#0f172a",
        secondary_color=row.secondary_color or "#2563eb",
        currency=row.currency or settings.default_currency,
    )


def get_branding(db: Session, tenant_id: str) -> TenantBranding:
    """Tenant branding, falling back to the service defaults when none is stored."""
    row = db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).first()
    if row is None:
        return TenantBranding(
            tenant_id=tenant_id,
            company_name=settings.default_company_name,
            currency=settings.default_currency,
        )
    return _to_branding(row)


def save_branding(db: Session, tenant_id: str, branding: TenantBranding) -> TenantBranding:
    row = db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant_id).first()
    if row is None:
        row = TenantSettings(tenant_id=tenant_id, company_name=branding.company_name)
        db.add(row)

    row.company_name = branding.company_name
    row.logo_url = branding.logo_url
    row.email = branding.email
    row.phone = branding.phone
    row.address = branding.address
    row.primary_color = branding.primary_color
    row.secondary_color = branding.secondary_color
    row.currency = branding.currency

    db.commit()
    db.refresh(row)
    logger.info("Tenant branding saved for %s", tenant_id)
    return _to_branding(row)
