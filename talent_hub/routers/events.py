"""Event API routes: listings, ownership, registrant approval and payment status."""
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from talent_hub.database import get_db
from talent_hub.deps import get_identity, private_cache
from talent_hub.errors import NotFound
from talent_hub.models.event import Event
from talent_hub.schemas.common import OwnershipData, OwnershipOut, OwnershipResult, PaginationOut
from talent_hub.schemas.event import (
    BookingStatusData,
    BookingStatusOut,
    BookingStatusUpdate,
    EventListOut,
    EventOut,
    RegistrantListData,
    RegistrantListOut,
    RegistrantOut,
    RegistrantStatusData,
    RegistrantStatusOut,
    RegistrantStatusUpdate,
    ReminderData,
    ReminderOut,
)
from talent_hub.security import RequestIdentity
from talent_hub.services import lifecycle, listing_service
from talent_hub.services.listing_service import display_date, is_live
from talent_hub.services.notifications import Notifier, get_notifier
from talent_hub.services.ownership import event_ownership
from talent_hub.validation import parse_status, require_uuid

router = APIRouter()

DECISION_MESSAGES = {
    lifecycle.ApprovalDecision.approved: "Applicant approved successfully",
    lifecycle.ApprovalDecision.hold: "Applicant put on hold",
    lifecycle.ApprovalDecision.rejected: "Applicant rejected",
    lifecycle.ApprovalDecision.declined: "Applicant declined",
}


def _event_out(event: Event, now: datetime) -> EventOut:
    live = is_live(event.is_verified, event.reg_end_date, now)
    return EventOut(
        id=event.id,
        event_name=event.title or "Untitled Event",
        status="Live" if live else "Closed",
        event_type=event.type or "Event",
        posted_on=display_date(event.created_at),
        due_date=display_date(event.reg_end_date),
        total_registration=event.participant_count or 0,
        active=live,
    )


def _ids(event_id: str, applicant_id: str) -> None:
    require_uuid(event_id, "event ID")
    require_uuid(applicant_id, "applicant ID")


@router.get("", response_model=EventListOut)
def list_events(
    response: Response,
    page_id: Optional[str] = Query(None, alias="pageId"),
    page: int = Query(1),
    limit: int = Query(10),
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """List events published by pages the caller manages."""
    result = listing_service.list_events(db, identity.user_id, page_id, page, limit)
    now = datetime.now(timezone.utc)
    private_cache(response)
    return EventListOut(
        message="Successfully retrieved events" if result.total else "No events found",
        events=[_event_out(event, now) for (event,) in result.items],
        pagination=PaginationOut(**result.to_dict()),
    )


@router.get("/{event_id}/ownership", response_model=OwnershipOut)
def check_event_ownership(
    event_id: str,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Does the caller manage the page that published this event?"""
    require_uuid(event_id, "event ID")
    if db.get(Event, event_id) is None:
        raise NotFound("Event not found")

    check = event_ownership(db, identity.user_id, event_id)
    ownership_data = None
    if check.is_owner:
        ownership_data = OwnershipData(
            event_id=event_id,
            page_id=check.ownership.page_id,
            user_id=check.ownership.user_id,
            role=check.ownership.role,
            is_active=check.ownership.is_active,
        )
    return OwnershipOut(
        data=OwnershipResult(is_owner=check.is_owner, event_id=event_id, ownership_data=ownership_data)
    )


@router.get("/{event_id}/applicants", response_model=RegistrantListOut)
def list_event_registrants(
    event_id: str,
    response: Response,
    page: int = Query(1),
    limit: int = Query(10),
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Paginated registrants of one event with approval and booking status."""
    require_uuid(event_id, "event ID")
    event, result = listing_service.list_event_registrants(db, identity.user_id, event_id, page, limit)
    registrants = []
    for registration, user in result.items:
        registrants.append(RegistrantOut(
            id=registration.id,
            user_id=registration.user_id,
            name=(user.display_name if user else None) or "Unknown User",
            email=(user.email if user else None) or "No email provided",
            status=registration.status.value,
            booking_status=registration.booking_status.value,
            last_reminder_sent=registration.last_reminder_sent,
        ))
    private_cache(response)
    return RegistrantListOut(
        data=RegistrantListData(
            event_id=event.id,
            registered_users=registrants,
            pagination=PaginationOut(**result.to_dict()),
        )
    )


@router.put("/{event_id}/applicants/{applicant_id}/status", response_model=RegistrantStatusOut)
def update_registrant_status(
    event_id: str,
    applicant_id: str,
    payload: RegistrantStatusUpdate,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Approve, hold or decline a registrant; notifies on approve/decline."""
    _ids(event_id, applicant_id)
    decision = parse_status(lifecycle.ApprovalDecision, payload.status)
    change = lifecycle.update_registrant_approval(
        db, identity.user_id, event_id, applicant_id, decision, notifier,
    )
    return RegistrantStatusOut(
        message=DECISION_MESSAGES[decision],
        data=RegistrantStatusData(
            status=decision.value,
            registration_status=change.current.value,
            email_sent=change.email_sent,
        ),
    )


@router.get("/{event_id}/applicants/{applicant_id}/payment-status", response_model=BookingStatusOut)
def get_payment_status(
    event_id: str,
    applicant_id: str,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    _ids(event_id, applicant_id)
    registration = lifecycle.get_booking(db, identity.user_id, event_id, applicant_id)
    return BookingStatusOut(
        message="Payment status retrieved",
        data=BookingStatusData(
            booking_status=registration.booking_status.value,
            applicant_id=registration.id,
            event_id=registration.event_id,
            transaction_id=registration.transaction_id,
            updated_at=registration.updated_at,
        ),
    )


@router.put("/{event_id}/applicants/{applicant_id}/payment-status", response_model=BookingStatusOut)
def update_payment_status(
    event_id: str,
    applicant_id: str,
    payload: BookingStatusUpdate,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Set a registrant's booking (payment) status."""
    _ids(event_id, applicant_id)
    change = lifecycle.update_booking_status(
        db, identity.user_id, event_id, applicant_id, payload.booking_status,
    )
    return BookingStatusOut(
        message="Payment status updated successfully",
        data=BookingStatusData(
            booking_status=change.current.value,
            applicant_id=applicant_id,
            event_id=event_id,
            updated_at=change.updated_at,
        ),
    )


@router.post("/{event_id}/applicants/{applicant_id}/remind", response_model=ReminderOut)
def remind_registrant(
    event_id: str,
    applicant_id: str,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Email a payment reminder to a registrant (once per cooldown window)."""
    _ids(event_id, applicant_id)
    sent = lifecycle.send_payment_reminder(db, identity.user_id, event_id, applicant_id, notifier)
    return ReminderOut(
        message="Payment reminder sent successfully" if sent else "Payment reminder could not be sent",
        data=ReminderData(email_sent=sent),
    )
