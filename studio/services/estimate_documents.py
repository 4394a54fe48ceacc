# studio/services/estimate_documents.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from studio.core.logging_config import logger
from studio.models.estimate import Estimate
from studio.observability.metrics import documents_generated
from studio.repositories.estimates import get_estimate, save_estimate
from studio.schemas.tenant import TenantBranding
from studio.services.estimate_renderer import PdfWriter, render_estimate_document
from studio.services.storage import Storage, get_storage
from studio.services.tenant_service import get_branding
from studio.workflow.status import GENERATED, apply_status


def document_key(estimate_id: str) -> str:
    """One artifact per estimate; regenerating overwrites it."""
    return f"estimates/{estimate_id}.pdf"


def download_filename(estimate: Estimate, today: Optional[datetime] = None) -> str:
    name = (estimate.customer_info or {}).get("name") or "customer"
    slug = re.sub(r"[^a-zA-Z0-9]", "_", str(name)).lower()
    day = (today or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
    return f"estimate_{slug}_{day}.pdf"


def generate_estimate_document(
    db: Session,
    tenant_id: str,
    estimate_id: str,
    *,
    storage: Optional[Storage] = None,
    branding: Optional[TenantBranding] = None,
    pdf_writer: Optional[PdfWriter] = None,
    now: Optional[datetime] = None,
) -> Estimate:
    """
    Render the estimate's frozen breakdown to PDF, store it under
    estimates/{id}.pdf and point the record at it. Idempotent: a second call
    overwrites the artifact and the single pdf_url/pdf_key reference.
    """
    log = logger.bind(tenant_id=tenant_id, estimate_id=estimate_id)

    estimate = get_estimate(db, tenant_id, estimate_id)
    storage = storage or get_storage()
    branding = branding or get_branding(db, tenant_id)

    try:
        pdf = render_estimate_document(estimate, estimate.breakdown, branding, pdf_writer)
        key = storage.save_bytes(tenant_id, document_key(estimate.id), pdf)
    except Exception:
        documents_generated.labels(result="error").inc()
        log.exception("estimate_document_failed")
        raise

    # record is only touched after the artifact is safely stored
    estimate.pdf_key = key
    estimate.pdf_url = storage.public_url(tenant_id, key)
    apply_status(estimate, GENERATED, now=now)
    estimate = save_estimate(db, estimate)

    documents_generated.labels(result="success").inc()
    log.info("estimate_document_generated", pdf_key=key, size_bytes=len(pdf))
    return estimate


def read_estimate_document(
    db: Session,
    tenant_id: str,
    estimate_id: str,
    *,
    storage: Optional[Storage] = None,
) -> bytes:
    """Stored PDF bytes; FileNotFoundError when no document was generated yet."""
    estimate = get_estimate(db, tenant_id, estimate_id)
    if not estimate.pdf_key:
        raise FileNotFoundError(document_key(estimate.id))
    storage = storage or get_storage()
    return storage.read_bytes(tenant_id, estimate.pdf_key)
