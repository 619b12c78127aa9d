# app/core/tenant.py
"""Tenant and acting-user resolvers for FastAPI routes."""
from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException

from app.core.constants import TENANT_HEADER, USER_HEADER


def _parse_uuid(value: Optional[str], header: str) -> UUID:
    if not value:
        raise HTTPException(status_code=400, detail=f"{header} header is required")
    try:
        return UUID(value)
    except (ValueError, AttributeError):
        raise HTTPException(status_code=400, detail=f"Invalid {header} format")


async def require_tenant(
    x_tenant_id: Optional[str] = Header(None),
) -> UUID:
    """
    FastAPI dependency that extracts and validates the tenant ID from request headers.

    Authentication sits in front of this service and is trusted to set the header.

    Raises:
        HTTPException: If tenant ID is missing or invalid
    """
    return _parse_uuid(x_tenant_id, TENANT_HEADER)


async def require_user(
    x_user_id: Optional[str] = Header(None),
) -> UUID:
    """Acting user for operations that record who did them"""
    return _parse_uuid(x_user_id, USER_HEADER)
