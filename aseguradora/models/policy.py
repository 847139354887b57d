"""
Insurance policy model.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import String, DateTime, Float, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from aseguradora.models.database import Base


def _utcnow():
    """Get current UTC time."""
    return datetime.now(timezone.utc)


class InsuranceType(str, Enum):
    """Kinds of insurance a policy can cover."""

    AUTO = "Auto"
    LIFE = "Life"
    HOME = "Home"
    HEALTH = "Health"


class Policy(Base):
    """Insurance policy record."""

    __tablename__ = "policies"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    policy_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    # Stored by value so the column holds "Auto", "Life", ...
    insurance_type: Mapped[InsuranceType] = mapped_column(
        SQLEnum(
            InsuranceType,
            name="insurance_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        )
    )
    policy_holder: Mapped[str] = mapped_column(String(255))
    insured_amount: Mapped[float] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<Policy(id={self.id}, number={self.policy_number}, "
            f"type={self.insurance_type.value})>"
        )
