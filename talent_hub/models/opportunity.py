"""Opportunity and OpportunityApplicant ORM models."""
import uuid
import enum
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import validates
from talent_hub.database import Base
from talent_hub.models.user import utcnow


class ApplicationStatus(str, enum.Enum):
    pending = "PENDING"
    shortlisted = "SHORTLISTED"
    maybe = "MAYBE"
    rejected = "REJECTED"
    final = "FINAL"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Opportunity(Base):
    __tablename__ = "opportunities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    published_by = Column(String(36), ForeignKey("pages.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    role = Column(String(255), nullable=True)
    type = Column(String(50), nullable=True)
    reg_start_date = Column(DateTime(timezone=True), nullable=True)
    reg_end_date = Column(DateTime(timezone=True), nullable=False)
    vacancies = Column(Integer, nullable=False, default=0)
    max_participants = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class OpportunityApplicant(Base):
    __tablename__ = "opportunity_applicants"
    __table_args__ = (
        UniqueConstraint("user_id", "opportunity_id", name="uq_applicant_user_opportunity"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    opportunity_id = Column(String(36), ForeignKey("opportunities.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    application_status = Column(
        SAEnum(ApplicationStatus, name="application_status", values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.pending,
    )
    applied_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    @validates("application_status")
    def _validate_status(self, key, value):
        return ApplicationStatus(value)
