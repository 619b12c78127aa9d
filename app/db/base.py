# app/db/base.py
from datetime import datetime
from typing import Optional, Type
import enum
import uuid

from sqlalchemy import Column, DateTime, Enum, Uuid
from sqlalchemy.orm import declarative_base

from app.compliance.lifecycle import Deleted, Deletion, deletion_state

Base = declarative_base()


def enum_column_type(enum_cls: Type[enum.Enum], name: str) -> Enum:
    """Store enum values (not member names) as constrained strings"""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


class BaseModel(Base):
    """Abstract base model with common fields"""
    __abstract__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SoftDeleteMixin:
    """Soft deletion stored as a nullable timestamp, read as an Active/Deleted tag"""

    deleted_at = Column(DateTime, nullable=True, index=True)

    @property
    def deletion(self) -> Deletion:
        return deletion_state(self.deleted_at)

    @property
    def is_deleted(self) -> bool:
        return isinstance(self.deletion, Deleted)

    def soft_delete(self, now: Optional[datetime] = None) -> None:
        self.deleted_at = now or datetime.utcnow()

    def restore(self) -> None:
        self.deleted_at = None
