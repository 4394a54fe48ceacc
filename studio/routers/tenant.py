# studio/routers/tenant.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studio.db import get_db
from studio.dependencies import resolve_tenant
from studio.schemas.tenant import TenantBranding
from studio.services.tenant_service import get_branding, save_branding

router = APIRouter(prefix="/api/tenant", tags=["tenant"])


@router.get("/branding", response_model=TenantBranding)
def read_branding(
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    return get_branding(db, tenant_id)


@router.put("/branding", response_model=TenantBranding)
def update_branding(
    branding: TenantBranding,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    return save_branding(db, tenant_id, branding)
