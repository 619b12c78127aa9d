# app/db/models/site.py
from sqlalchemy import Column, String, ForeignKey, Index, Integer, JSON, Uuid, text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, SoftDeleteMixin


class Site(SoftDeleteMixin, BaseModel):
    """Location of a customer where equipment is installed"""
    __tablename__ = "sites"
    __table_args__ = (
        Index(
            "uq_sites_customer_name_active",
            "customer_id",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    customer_id = Column(Uuid, ForeignKey("customers.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    contact_name = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    meta = Column("metadata", JSON, default=dict, nullable=False)

    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}

    customer = relationship("Customer", lazy="joined")
