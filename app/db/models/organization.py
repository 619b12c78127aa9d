# app/db/models/organization.py
from sqlalchemy import Column, String
from app.db.base import BaseModel


class Organization(BaseModel):
    """Tenant root; every customer, user and equipment type belongs to one"""
    __tablename__ = "organizations"

    name = Column(String(255), nullable=False)
