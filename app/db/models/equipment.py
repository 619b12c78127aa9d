# app/db/models/equipment.py
from sqlalchemy import (
    Column, String, Boolean, Date, DateTime, ForeignKey, Index, Integer, Uuid,
    CheckConstraint, text,
)
from sqlalchemy.orm import relationship
from app.compliance.lifecycle import Ownership, effective_organization_id, ownership_of
from app.compliance.status import calculate_status, effective_agreement_status
from app.core.constants import AgreementStatus, LifecycleStatus, ServiceCycle
from app.db.base import BaseModel, SoftDeleteMixin, enum_column_type


class Equipment(SoftDeleteMixin, BaseModel):
    """
    Serviced equipment item.

    Held either directly by an organization or through a site. Deleting the
    site (or its customer) clears ``site_id`` but keeps ``organization_id``,
    which leaves the item orphaned rather than deleted.

    Invariants enforced at database level:
    - a provisional item always carries an expiry
    - serial number and customer asset id are unique per organization among
      non-deleted rows
    """
    __tablename__ = "equipment"
    __table_args__ = (
        CheckConstraint(
            "NOT is_provisional OR provisional_expires_at IS NOT NULL",
            name="equipment_provisional_expiry_check",
        ),
        Index(
            "uq_equipment_org_serial_active",
            "organization_id",
            "serial_number",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "uq_equipment_org_asset_active",
            "organization_id",
            "cust_asset_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND cust_asset_id IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND cust_asset_id IS NOT NULL"),
        ),
    )

    # Ownership
    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=True, index=True)
    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=True, index=True)
    equipment_type_id = Column(Uuid, ForeignKey("equipment_types.id"), nullable=True, index=True)

    # Identity
    serial_number = Column(String(255), nullable=False)
    cust_asset_id = Column(String(255), nullable=True)
    qr_code_value = Column(String(255), nullable=True, index=True)

    # Contract and lifecycle
    agreement_status = Column(
        enum_column_type(AgreementStatus, "equipment_agreement_status"),
        default=AgreementStatus.COVERED,
        nullable=False,
    )
    lifecycle_status = Column(
        enum_column_type(LifecycleStatus, "equipment_lifecycle_status"),
        default=LifecycleStatus.ACTIVE,
        nullable=False,
    )

    # Maintenance cycle
    service_cycle = Column(enum_column_type(ServiceCycle, "equipment_service_cycle"), nullable=False)
    last_service = Column(DateTime, nullable=True)
    next_service = Column(Date, nullable=True, index=True)
    next_service_override = Column(Boolean, default=False, nullable=False)

    # Provisional entries expire unless formalized
    provisional = Column("is_provisional", Boolean, default=False, nullable=False, index=True)
    provisional_expires_at = Column(DateTime, nullable=True)

    # Row whose customer asset id this item took over
    predecessor_id = Column(Uuid, nullable=True)

    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}

    # Relationships
    site = relationship("Site", lazy="joined")
    equipment_type = relationship("EquipmentType", lazy="joined")

    @property
    def ownership(self) -> Ownership:
        return ownership_of(self)

    @property
    def effective_organization_id(self):
        return effective_organization_id(self)

    @property
    def stoplight_status(self):
        """Status as of today (UTC)"""
        return calculate_status(self)

    @property
    def effective_agreement_status(self):
        return effective_agreement_status(self)

    @property
    def is_orphaned(self) -> bool:
        return self.site_id is None

    @property
    def effective_qr_code(self) -> str:
        return self.qr_code_value or self.serial_number

    def is_provisional_expired(self, now) -> bool:
        return (
            bool(self.provisional)
            and self.provisional_expires_at is not None
            and self.provisional_expires_at < now
        )
