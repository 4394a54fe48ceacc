# studio/routers/estimates.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from studio.db import get_db
from studio.dependencies import get_storage_service, resolve_tenant
from studio.repositories.estimates import get_estimate, list_estimates
from studio.schemas.estimate import (
    AssignmentUpdate,
    EstimateList,
    EstimateOut,
    EstimateQuoteOut,
    EstimateSubmit,
    StatusUpdate,
    TotalOverride,
)
from studio.schemas.selection import CustomerSelection
from studio.services import estimate_service
from studio.services.estimate_documents import (
    download_filename,
    generate_estimate_document,
    read_estimate_document,
)
from studio.services.storage import Storage

router = APIRouter(prefix="/api/estimates", tags=["estimates"])


@router.post("/calculate", response_model=EstimateQuoteOut)
def calculate_estimate(
    selection: CustomerSelection,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    """Live price for the storefront summary; nothing is persisted."""
    result = estimate_service.preview_estimate(db, tenant_id, selection)
    return EstimateQuoteOut.model_validate(result.to_dict())


@router.post("", response_model=EstimateOut, status_code=201)
def submit_estimate(
    payload: EstimateSubmit,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    estimate = estimate_service.submit_estimate(
        db, tenant_id, payload.customer_info, payload.selection
    )
    return EstimateOut.from_record(estimate)


@router.get("", response_model=EstimateList)
def list_tenant_estimates(
    status: Optional[str] = Query(None),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    rows, total = list_estimates(
        db, tenant_id, status=status, assigned_to=assigned_to, limit=limit, offset=offset
    )
    return EstimateList(items=[EstimateOut.from_record(r) for r in rows], total=total)


@router.get("/{estimate_id}", response_model=EstimateOut)
def read_estimate(
    estimate_id: str,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    return EstimateOut.from_record(get_estimate(db, tenant_id, estimate_id))


@router.patch("/{estimate_id}/status", response_model=EstimateOut)
def update_status(
    estimate_id: str,
    payload: StatusUpdate,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    estimate = estimate_service.change_status(db, tenant_id, estimate_id, payload.status)
    return EstimateOut.from_record(estimate)


@router.patch("/{estimate_id}/assignment", response_model=EstimateOut)
def update_assignment(
    estimate_id: str,
    payload: AssignmentUpdate,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    estimate = estimate_service.update_assignment(
        db,
        tenant_id,
        estimate_id,
        assigned_to=payload.assigned_to,
        assigned_to_name=payload.assigned_to_name,
        assignment_status=payload.assignment_status,
    )
    return EstimateOut.from_record(estimate)


@router.patch("/{estimate_id}/total", response_model=EstimateOut)
def override_total(
    estimate_id: str,
    payload: TotalOverride,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
):
    estimate = estimate_service.override_total(
        db, tenant_id, estimate_id, payload.total_amount, payload.reason
    )
    return EstimateOut.from_record(estimate)


@router.post("/{estimate_id}/document", response_model=EstimateOut)
def generate_document(
    estimate_id: str,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage_service),
):
    estimate = generate_estimate_document(db, tenant_id, estimate_id, storage=storage)
    return EstimateOut.from_record(estimate)


@router.get("/{estimate_id}/document")
def download_document(
    estimate_id: str,
    tenant_id: str = Depends(resolve_tenant),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage_service),
):
    try:
        pdf = read_estimate_document(db, tenant_id, estimate_id, storage=storage)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="No document generated for this estimate")

    filename = download_filename(get_estimate(db, tenant_id, estimate_id))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
