# studio/services/estimate_service.py
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.orm import Session

from studio.core.logging_config import logger
from studio.models.estimate import Estimate
from studio.observability.metrics import (
    configuration_gaps,
    estimate_total_hist,
    estimates_computed,
    estimates_submitted,
)
from studio.pricing.calculator import EstimateResult, compute_estimate
from studio.pricing.errors import InvalidSelection
from studio.repositories.estimates import (
    create_estimate_record,
    get_estimate,
    save_estimate,
    update_estimate_record,
)
from studio.schemas.pricing_config import PricingConfig
from studio.schemas.selection import CustomerInfo, CustomerSelection
from studio.services.pricing_config_service import get_or_create_default_config
from studio.workflow import status as workflow

ConfigLoader = Callable[[Session, str], PricingConfig]


def _compute(selection: CustomerSelection, config: PricingConfig) -> EstimateResult:
    try:
        result = compute_estimate(selection, config)
    except InvalidSelection:
        estimates_computed.labels(result="invalid").inc()
        raise
    estimates_computed.labels(result="ok").inc()
    for gap in result.diagnostics:
        configuration_gaps.labels(code=gap.code).inc()
    return result


def preview_estimate(
    db: Session,
    tenant_id: str,
    selection: CustomerSelection,
    config_loader: ConfigLoader = get_or_create_default_config,
) -> EstimateResult:
    """Price a selection for the live storefront summary; nothing is stored."""
    return _compute(selection, config_loader(db, tenant_id))


def submit_estimate(
    db: Session,
    tenant_id: str,
    customer_info: CustomerInfo,
    selection: CustomerSelection,
    config_loader: ConfigLoader = get_or_create_default_config,
) -> Estimate:
    log = logger.bind(tenant_id=tenant_id)

    # InvalidSelection propagates from here: no row is written for bad input
    result = _compute(selection, config_loader(db, tenant_id))

    estimate_id = create_estimate_record(
        db,
        {
            "tenant_id": tenant_id,
            "customer_info": customer_info.model_dump(mode="json"),
            "configuration": selection.to_document(),
            "total_amount": result.total_amount,
            "currency": result.currency,
            "breakdown": [ln.to_dict() for ln in result.breakdown],
            "status": workflow.PENDING,
        },
    )

    estimates_submitted.labels(segment=selection.segment).inc()
    estimate_total_hist.observe(result.total_amount)
    log.info(
        "estimate_submitted",
        estimate_id=estimate_id,
        total_amount=result.total_amount,
        included_lines=len(result.included_lines()),
        gaps=[g.code for g in result.diagnostics],
    )
    return get_estimate(db, tenant_id, estimate_id)


def change_status(db: Session, tenant_id: str, estimate_id: str, requested: str) -> Estimate:
    estimate = get_estimate(db, tenant_id, estimate_id)
    previous = estimate.status
    workflow.apply_status(estimate, requested)
    estimate = save_estimate(db, estimate)

    logger.bind(tenant_id=tenant_id, estimate_id=estimate_id).info(
        "estimate_status_changed", previous=previous, requested=requested, status=estimate.status
    )
    return estimate


def update_assignment(
    db: Session,
    tenant_id: str,
    estimate_id: str,
    *,
    assigned_to: Optional[str] = None,
    assigned_to_name: Optional[str] = None,
    assignment_status: Optional[str] = None,
) -> Estimate:
    estimate = get_estimate(db, tenant_id, estimate_id)
    if assigned_to:
        workflow.assign(estimate, assigned_to, assigned_to_name)
    if assignment_status:
        workflow.apply_assignment_status(estimate, assignment_status)
    estimate = save_estimate(db, estimate)

    logger.bind(tenant_id=tenant_id, estimate_id=estimate_id).info(
        "estimate_assignment_changed",
        assigned_to=estimate.assigned_to,
        assignment_status=estimate.assignment_status,
    )
    return estimate


def override_total(
    db: Session,
    tenant_id: str,
    estimate_id: str,
    total_amount: int,
    reason: Optional[str] = None,
) -> Estimate:
    """Admin override; the only path that may change a submitted total."""
    before = get_estimate(db, tenant_id, estimate_id).total_amount
    estimate = update_estimate_record(
        db,
        tenant_id,
        estimate_id,
        {"total_amount": int(total_amount)},
        allow_total_override=True,
    )
    logger.bind(tenant_id=tenant_id, estimate_id=estimate_id).warning(
        "estimate_total_overridden", previous=before, total_amount=total_amount, reason=reason
    )
    return estimate
