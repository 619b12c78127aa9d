# app/compliance/lifecycle.py
"""
Explicit state tags for soft deletion and equipment ownership.

Rows store a nullable ``deleted_at`` and two nullable ownership columns; these
tags are the only way the rest of the code asks "is it deleted?" and "who owns
it?", so the null conventions stay in one place.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union
from uuid import UUID


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Deleted:
    at: datetime


Deletion = Union[Active, Deleted]


def deletion_state(deleted_at: Optional[datetime]) -> Deletion:
    if deleted_at is None:
        return Active()
    return Deleted(at=deleted_at)


@dataclass(frozen=True)
class Owned:
    """Held directly by an organization, not linked to a site"""
    organization_id: UUID


@dataclass(frozen=True)
class SitedOwned:
    """Installed at a site; the organization is inherited via site -> customer"""
    site_id: UUID


Ownership = Union[Owned, SitedOwned]


def ownership_of(equipment) -> Ownership:
    if equipment.site_id is not None:
        return SitedOwned(site_id=equipment.site_id)
    if equipment.organization_id is None:
        raise ValueError(f"Equipment {equipment.id} has neither a site nor an organization")
    return Owned(organization_id=equipment.organization_id)


def effective_organization_id(equipment) -> Optional[UUID]:
    """Resolve the owning organization whichever way the equipment is held"""
    ownership = ownership_of(equipment)
    if isinstance(ownership, Owned):
        return ownership.organization_id
    if equipment.organization_id is not None:
        return equipment.organization_id
    site = equipment.site
    if site is not None and site.customer is not None:
        return site.customer.organization_id
    return None
