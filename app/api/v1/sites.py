# app/api/v1/sites.py
from fastapi import APIRouter, Depends, status
from typing import List, Optional
from uuid import UUID

from app.api.dependencies import get_site_service
from app.core.tenant import require_tenant, require_user
from app.schemas.site import Site, SiteCreate, SiteUpdate, SiteDeleted
from app.services.site_service import SiteService

router = APIRouter()


@router.post("/", response_model=Site, status_code=status.HTTP_201_CREATED)
async def create_site(
    site_in: SiteCreate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: SiteService = Depends(get_site_service),
):
    """Create a site under a customer of the current tenant"""
    return await service.create(
        organization_id,
        customer_id=site_in.customer_id,
        name=site_in.name,
        address=site_in.address,
        contact_name=site_in.contact_name,
        contact_phone=site_in.contact_phone,
        meta=site_in.metadata,
        user_id=user_id,
    )


@router.get("/", response_model=List[Site])
async def list_sites(
    customer_id: Optional[UUID] = None,
    skip: int = 0,
    limit: Optional[int] = 100,
    organization_id: UUID = Depends(require_tenant),
    service: SiteService = Depends(get_site_service),
):
    """List sites, optionally of one customer"""
    return await service.list(organization_id, customer_id=customer_id, skip=skip, limit=limit)


@router.get("/{site_id}", response_model=Site)
async def get_site(
    site_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    service: SiteService = Depends(get_site_service),
):
    return await service.get(site_id, organization_id)


@router.put("/{site_id}", response_model=Site)
async def update_site(
    site_id: UUID,
    site_in: SiteUpdate,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: SiteService = Depends(get_site_service),
):
    changes = site_in.model_dump(exclude_unset=True)
    if "metadata" in changes:
        changes["meta"] = changes.pop("metadata") or {}
    return await service.update(site_id, organization_id, changes, user_id)


@router.delete("/{site_id}", response_model=SiteDeleted)
async def delete_site(
    site_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: SiteService = Depends(get_site_service),
):
    """Soft-delete a site; its equipment is orphaned"""
    orphaned = await service.delete(site_id, organization_id, user_id)
    return SiteDeleted(id=site_id, orphaned_equipment=orphaned)


@router.post("/{site_id}/restore", response_model=Site)
async def restore_site(
    site_id: UUID,
    organization_id: UUID = Depends(require_tenant),
    user_id: UUID = Depends(require_user),
    service: SiteService = Depends(get_site_service),
):
    return await service.restore(site_id, organization_id, user_id)
