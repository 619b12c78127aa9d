# app/db/models/customer.py
from sqlalchemy import Column, String, Date, ForeignKey, Index, Integer, Uuid, text
from app.core.constants import AgreementStatus
from app.db.base import BaseModel, SoftDeleteMixin, enum_column_type


class Customer(SoftDeleteMixin, BaseModel):
    """
    Customer of an organization.

    The agreement status governs every equipment installed at the customer's
    sites. It only moves covered -> pending automatically (contract lapse);
    every other transition is explicit.
    """
    __tablename__ = "customers"
    __table_args__ = (
        Index(
            "uq_customers_org_name_active",
            "organization_id",
            "name",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    agreement_status = Column(
        enum_column_type(AgreementStatus, "customer_agreement_status"),
        default=AgreementStatus.COVERED,
        nullable=False,
        index=True,
    )
    contract_end_date = Column(Date, nullable=True)

    version_id = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version_id}

    def is_contract_expired(self, today) -> bool:
        return self.contract_end_date is not None and self.contract_end_date < today
