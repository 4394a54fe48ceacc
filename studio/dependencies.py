# studio/dependencies.py
from __future__ import annotations

import re
from typing import Optional

from fastapi import Header, HTTPException

from studio.services.storage import Storage, get_storage

_TENANT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,99}$")


def get_storage_service() -> Storage:
    """Sync helper to access the storage implementation (S3/local)."""
    return get_storage()


async def resolve_tenant(
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-Id"),
    x_tenant: Optional[str] = Header(None, alias="X-Tenant"),
) -> str:
    """
    Resolve the tenant from headers.

    Priority:
    1) X-Tenant-Id
    2) X-Tenant

    Authorization is handled upstream; this only scopes the request.
    """
    tenant_id = (x_tenant_id or x_tenant or "").strip()
    if not tenant_id:
        raise HTTPException(status_code=400, detail="Missing X-Tenant-Id header")
    if not _TENANT_RE.match(tenant_id):
        raise HTTPException(status_code=400, detail=f"Invalid tenant_id: {tenant_id}")
    return tenant_id
