"""Event and RegisteredEvent ORM models."""
import uuid
import enum
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import validates
from talent_hub.database import Base
from talent_hub.models.user import utcnow
from talent_hub.models.opportunity import _enum_values


class RegistrationStatus(str, enum.Enum):
    pending = "PENDING"
    shortlisting = "SHORTLISTING"
    rejected = "REJECTED"
    hold = "HOLD"
    final = "FINAL"


class BookingStatus(str, enum.Enum):
    pending = "PENDING"
    success = "SUCCESS"
    failed = "FAILED"


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    published_by = Column(String(36), ForeignKey("pages.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    type = Column(String(50), nullable=True)
    reg_start_date = Column(DateTime(timezone=True), nullable=True)
    reg_end_date = Column(DateTime(timezone=True), nullable=False)
    seat = Column(Integer, nullable=False, default=0)
    participant_count = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class RegisteredEvent(Base):
    __tablename__ = "registered_events"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_registration_user_event"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    # Approval and payment are independent axes.
    status = Column(
        SAEnum(RegistrationStatus, name="registration_status", values_callable=_enum_values),
        nullable=False,
        default=RegistrationStatus.pending,
    )
    booking_status = Column(
        SAEnum(BookingStatus, name="booking_status", values_callable=_enum_values),
        nullable=False,
        default=BookingStatus.pending,
    )
    transaction_id = Column(String(100), nullable=True)
    last_reminder_sent = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    @validates("status")
    def _validate_status(self, key, value):
        return RegistrationStatus(value)

    @validates("booking_status")
    def _validate_booking_status(self, key, value):
        return BookingStatus(value)
