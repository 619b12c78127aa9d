# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1 import customers, sites, equipment, equipment_types, dashboard

api_router = APIRouter()

api_router.include_router(customers.router, prefix="/customers", tags=["customers"])
api_router.include_router(sites.router, prefix="/sites", tags=["sites"])
api_router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
api_router.include_router(equipment_types.router, prefix="/equipment-types", tags=["equipment-types"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
