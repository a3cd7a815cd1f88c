"""Pydantic schemas for Events and their registrants."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from talent_hub.schemas.common import CamelModel, PaginationOut


class EventOut(CamelModel):
    id: str
    event_name: str
    status: str  # Live / Closed
    event_type: str
    posted_on: Optional[str] = None
    due_date: Optional[str] = None
    total_registration: int
    active: bool


class EventListOut(CamelModel):
    success: bool = True
    message: str = "Successfully retrieved events"
    events: list[EventOut] = []
    pagination: PaginationOut


class RegistrantStatusUpdate(CamelModel):
    status: str  # APPROVED, HOLD, REJECTED, DECLINED


class RegistrantStatusData(CamelModel):
    status: str
    registration_status: str
    email_sent: bool


class RegistrantStatusOut(CamelModel):
    success: bool = True
    message: str
    data: RegistrantStatusData


class BookingStatusUpdate(CamelModel):
    booking_status: str  # PENDING, SUCCESS, FAILED


class BookingStatusData(CamelModel):
    booking_status: str
    applicant_id: str
    event_id: str
    transaction_id: Optional[str] = None
    updated_at: Optional[datetime] = None


class BookingStatusOut(CamelModel):
    success: bool = True
    message: str
    data: BookingStatusData


class RegistrantOut(CamelModel):
    id: str
    user_id: str
    name: str
    email: str
    status: str
    booking_status: str
    last_reminder_sent: Optional[datetime] = None


class RegistrantListData(CamelModel):
    event_id: str
    registered_users: list[RegistrantOut] = []
    pagination: PaginationOut


class RegistrantListOut(CamelModel):
    success: bool = True
    message: str = "Successfully retrieved registered users for event"
    data: RegistrantListData


class ReminderData(CamelModel):
    email_sent: bool


class ReminderOut(CamelModel):
    success: bool = True
    message: str
    data: ReminderData
