# app/db/models/user.py
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.core.constants import UserRole
from app.db.base import BaseModel, enum_column_type


class User(BaseModel):
    """Organization member; technicians are recorded on service records"""
    __tablename__ = "users"

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    username = Column(String(255), nullable=False)
    role = Column(enum_column_type(UserRole, "user_role"), default=UserRole.TECHNICIAN, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    organization = relationship("Organization")
