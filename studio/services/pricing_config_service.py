# studio/services/pricing_config_service.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from sqlalchemy.orm import Session

from studio.core.logging_config import logger
from studio.models.pricing_config import PricingConfigRecord
from studio.pricing.defaults import load_default_pricing_config
from studio.schemas.pricing_config import PricingConfig


def _row(db: Session, tenant_id: str) -> Optional[PricingConfigRecord]:
    return (
        db.query(PricingConfigRecord)
        .filter(PricingConfigRecord.tenant_id == tenant_id)
        .first()
    )


def get_pricing_config(db: Session, tenant_id: str) -> Optional[PricingConfig]:
    """Materialized pricing config for a tenant, or None when the tenant has none yet."""
    row = _row(db, tenant_id)
    if row is None:
        return None
    return PricingConfig.model_validate(row.document or {})


def get_or_create_default_config(db: Session, tenant_id: str) -> PricingConfig:
    existing = get_pricing_config(db, tenant_id)
    if existing is not None:
        return existing

    config = load_default_pricing_config()
    config.last_updated = datetime.now(timezone.utc)

    db.add(PricingConfigRecord(tenant_id=tenant_id, document=config.to_document()))
    db.commit()

    logger.bind(tenant_id=tenant_id).info("pricing_config_defaults_created")
    return config


def save_pricing_config(
    db: Session,
    tenant_id: str,
    config: Union[PricingConfig, Mapping[str, Any]],
) -> PricingConfig:
    """Replace the tenant's whole pricing document (no merge with what was stored)."""
    if not isinstance(config, PricingConfig):
        config = PricingConfig.model_validate(dict(config))
    config = config.model_copy(update={"last_updated": datetime.now(timezone.utc)})

    row = _row(db, tenant_id)
    if row is None:
        row = PricingConfigRecord(tenant_id=tenant_id)
        db.add(row)
    row.document = config.to_document()

    db.commit()
    logger.bind(tenant_id=tenant_id).info(
        "pricing_config_saved",
        rooms=len(config.room_pricing),
        categories=len(config.categories),
    )
    return config
