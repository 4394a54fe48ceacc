# studio/routers/pricing.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studio.db import get_db
from studio.dependencies import resolve_tenant
from studio.schemas.pricing_config import PricingConfig
from studio.services.pricing_config_service import (
    get_or_create_default_config,
    save_pricing_config,
)

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.get("/config", response_model=PricingConfig)
def read_pricing_config(
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    """Tenant pricing document; created from the defaults on first access."""
    return get_or_create_default_config(db, tenant_id)


@router.put("/config", response_model=PricingConfig)
def replace_pricing_config(
    config: PricingConfig,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    return save_pricing_config(db, tenant_id, config)
