"""Application lifecycle engine: status transitions for applicants and registrants.

Responsibilities:
- Transition tables keyed by (current state, event) -> next state
- Mapping of the external approve/hold/decline decision onto registrant status
- Parent/child matching so a row is only updated through its own opportunity/event
- Single-statement compare-and-set writes (no application-level locks)
- Best-effort notifications after the write is committed
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from talent_hub.config import settings
from talent_hub.errors import Conflict, Forbidden, InvalidTransition, NotFound
from talent_hub.models.event import BookingStatus, Event, RegisteredEvent, RegistrationStatus
from talent_hub.models.opportunity import ApplicationStatus, Opportunity, OpportunityApplicant
from talent_hub.models.page import Page
from talent_hub.models.user import User
from talent_hub.services.notifications import NotificationKind, Notifier, Recipient
from talent_hub.services.ownership import opportunity_ownership, require_event_owner
from talent_hub.validation import parse_status

logger = logging.getLogger(__name__)


class ApprovalDecision(str, enum.Enum):
    """What an event owner submits; mapped onto RegistrationStatus."""

    approved = "APPROVED"
    hold = "HOLD"
    rejected = "REJECTED"
    declined = "DECLINED"


APPROVAL_TARGETS = {
    ApprovalDecision.approved: RegistrationStatus.shortlisting,
    ApprovalDecision.hold: RegistrationStatus.hold,
    ApprovalDecision.rejected: RegistrationStatus.rejected,
    ApprovalDecision.declined: RegistrationStatus.rejected,
}

APPLICANT_NOTIFICATIONS = {
    ApplicationStatus.shortlisted: NotificationKind.shortlisted,
    ApplicationStatus.rejected: NotificationKind.rejected,
}

REGISTRANT_NOTIFICATIONS = {
    RegistrationStatus.shortlisting: NotificationKind.shortlisted,
    RegistrationStatus.rejected: NotificationKind.rejected,
}


def map_approval_decision(decision) -> RegistrationStatus:
    """APPROVED -> SHORTLISTING, HOLD -> HOLD, anything else -> REJECTED."""
    try:
        return APPROVAL_TARGETS[ApprovalDecision(decision)]
    except ValueError:
        return RegistrationStatus.rejected


# ── Transition tables ───────────────────────────────────────────────


class TransitionTable:
    def __init__(self, name: str, edges: dict[tuple[enum.Enum, enum.Enum], enum.Enum]):
        self.name = name
        self._edges = edges

    def next_state(self, current: enum.Enum, event: enum.Enum) -> enum.Enum:
        try:
            return self._edges[(current, event)]
        except KeyError:
            raise InvalidTransition(
                details=f"{self.name}: {event.value} is not allowed from {current.value}",
            )


def caller_directed(name: str, states: Iterable[enum.Enum], terminal=frozenset()) -> TransitionTable:
    """The event is the requested state itself. Terminal states only self-transition."""
    states = list(states)
    edges = {}
    for current in states:
        for target in states:
            if current in terminal and target is not current:
                continue
            edges[(current, target)] = target
    return TransitionTable(name, edges)


@lru_cache(maxsize=None)
def applicant_transitions(strict: bool) -> TransitionTable:
    terminal = {ApplicationStatus.rejected, ApplicationStatus.final} if strict else set()
    return caller_directed("application", ApplicationStatus, terminal)


@lru_cache(maxsize=None)
def approval_transitions(strict: bool) -> TransitionTable:
    """Keyed by the target status a decision maps to."""
    terminal = {RegistrationStatus.rejected, RegistrationStatus.final} if strict else set()
    return caller_directed("registration", RegistrationStatus, terminal)


@lru_cache(maxsize=None)
def booking_transitions() -> TransitionTable:
    return caller_directed("booking", BookingStatus)


def _strict(strict: Optional[bool]) -> bool:
    return settings.LIFECYCLE_STRICT if strict is None else strict


# ── Status changes ──────────────────────────────────────────────────


@dataclass
class StatusChange:
    record_id: str
    previous: enum.Enum
    current: enum.Enum
    updated_at: Optional[datetime] = None
    email_sent: bool = False

    @property
    def changed(self) -> bool:
        return self.previous is not self.current


def _compare_and_set(db: Session, model, record_id: str, parent_column, parent_id: str,
                     column, expected, new_value, now: datetime) -> None:
    """UPDATE ... WHERE id AND parent AND column = expected; one atomic statement."""
    stmt = (
        update(model)
        .where(model.id == record_id, parent_column == parent_id, column == expected)
        .values({column.key: new_value, "updated_at": now})
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 1:
        db.commit()
        return

    db.rollback()
    still_there = db.execute(
        select(model.id).where(model.id == record_id, parent_column == parent_id)
    ).first()
    if still_there is None:
        raise NotFound("Record not found", details="The record no longer exists")
    raise Conflict(
        "Status changed concurrently",
        code="CONCURRENT_UPDATE",
        details="The record was updated by another request; re-fetch and retry",
    )


def _recipient(db: Session, user_id: str) -> Recipient:
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        return Recipient(email=None, name="Applicant")
    return Recipient(email=user.email, name=user.display_name)


def _company(db: Session, page_id: str) -> str:
    page = db.get(Page, page_id)
    return page.title if page is not None else settings.COMPANY_NAME


def dispatch(notifier: Notifier, kind: NotificationKind, recipient: Recipient,
             context: dict[str, Any]) -> bool:
    """Attempt one notification. Never raises; the outcome is returned as data."""
    if not recipient.email:
        logger.info("No deliverable address for %s notification; skipping", kind.value)
        return False
    try:
        return bool(notifier.notify(kind, recipient, context))
    except Exception:
        logger.exception("%s notification failed for %s", kind.value, recipient.email)
        return False


def get_applicant(db: Session, user_id: str, applicant_id: str) -> OpportunityApplicant:
    applicant = db.get(OpportunityApplicant, applicant_id)
    if applicant is None:
        raise NotFound("Applicant not found", details="The specified applicant does not exist")
    if not opportunity_ownership(db, user_id, applicant.opportunity_id).is_owner:
        raise Forbidden(details="You do not manage the page that published this opportunity")
    return applicant


def update_applicant_status(db: Session, user_id: str, applicant_id: str, requested,
                            notifier: Notifier, strict: Optional[bool] = None,
                            now: Optional[datetime] = None) -> StatusChange:
    """Move an opportunity applicant to `requested` on behalf of a page owner."""
    target = parse_status(ApplicationStatus, requested)
    applicant = get_applicant(db, user_id, applicant_id)

    previous = applicant.application_status
    next_state = applicant_transitions(_strict(strict)).next_state(previous, target)
    change = StatusChange(applicant.id, previous, next_state, applicant.updated_at)
    if not change.changed:
        return change

    now = now or datetime.now(timezone.utc)
    opportunity_id, applicant_user_id = applicant.opportunity_id, applicant.user_id
    _compare_and_set(
        db, OpportunityApplicant, applicant_id, OpportunityApplicant.opportunity_id, opportunity_id,
        OpportunityApplicant.application_status, previous, next_state, now,
    )
    change.updated_at = now
    logger.info("Applicant %s moved %s -> %s by user %s",
                applicant_id, previous.value, next_state.value, user_id)

    kind = APPLICANT_NOTIFICATIONS.get(next_state)
    if kind is not None:
        opportunity = db.get(Opportunity, opportunity_id)
        context = {
            "title": opportunity.role or opportunity.title,
            "company": _company(db, opportunity.published_by),
        }
        change.email_sent = dispatch(notifier, kind, _recipient(db, applicant_user_id), context)
    return change


def _registration(db: Session, event_id: str, registration_id: str) -> RegisteredEvent:
    # Matching on the pair keeps a guessed registration id from reaching another event's row.
    registration = db.execute(
        select(RegisteredEvent).where(
            RegisteredEvent.id == registration_id,
            RegisteredEvent.event_id == event_id,
        )
    ).scalars().first()
    if registration is None:
        raise NotFound("Registration not found", details="No registration with this id for this event")
    return registration


def update_registrant_approval(db: Session, user_id: str, event_id: str, registration_id: str,
                               decision, notifier: Notifier, strict: Optional[bool] = None,
                               now: Optional[datetime] = None) -> StatusChange:
    """Apply an approval decision to an event registrant.

    APPROVED, HOLD, REJECTED and DECLINED map as in APPROVAL_TARGETS; any other
    value is treated as REJECTED. The HTTP layer rejects unknown decisions
    before they get here.
    """
    target = map_approval_decision(decision)
    require_event_owner(db, user_id, event_id)
    registration = _registration(db, event_id, registration_id)

    previous = registration.status
    next_state = approval_transitions(_strict(strict)).next_state(previous, target)
    change = StatusChange(registration.id, previous, next_state, registration.updated_at)
    if not change.changed:
        return change

    now = now or datetime.now(timezone.utc)
    registrant_user_id = registration.user_id
    _compare_and_set(
        db, RegisteredEvent, registration_id, RegisteredEvent.event_id, event_id,
        RegisteredEvent.status, previous, next_state, now,
    )
    change.updated_at = now
    logger.info("Registration %s on event %s moved %s -> %s",
                registration_id, event_id, previous.value, next_state.value)

    kind = REGISTRANT_NOTIFICATIONS.get(next_state)
    if kind is not None:
        event = db.get(Event, event_id)
        context = {"title": event.title, "company": _company(db, event.published_by)}
        change.email_sent = dispatch(notifier, kind, _recipient(db, registrant_user_id), context)
    return change


def update_booking_status(db: Session, user_id: str, event_id: str, registration_id: str,
                          requested, now: Optional[datetime] = None) -> StatusChange:
    """Set the payment sub-status; independent of the approval status."""
    target = parse_status(BookingStatus, requested, label="booking status")
    require_event_owner(db, user_id, event_id)
    registration = _registration(db, event_id, registration_id)

    previous = registration.booking_status
    next_state = booking_transitions().next_state(previous, target)
    change = StatusChange(registration.id, previous, next_state, registration.updated_at)
    if not change.changed:
        return change

    now = now or datetime.now(timezone.utc)
    _compare_and_set(
        db, RegisteredEvent, registration_id, RegisteredEvent.event_id, event_id,
        RegisteredEvent.booking_status, previous, next_state, now,
    )
    change.updated_at = now
    logger.info("Registration %s booking %s -> %s", registration_id, previous.value, next_state.value)
    return change


def get_booking(db: Session, user_id: str, event_id: str, registration_id: str) -> RegisteredEvent:
    require_event_owner(db, user_id, event_id)
    return _registration(db, event_id, registration_id)


def send_payment_reminder(db: Session, user_id: str, event_id: str, registration_id: str,
                          notifier: Notifier, now: Optional[datetime] = None) -> bool:
    """Email a registrant a payment reminder, at most once per cooldown window."""
    event = require_event_owner(db, user_id, event_id)
    registration = _registration(db, event_id, registration_id)
    now = now or datetime.now(timezone.utc)

    last = registration.last_reminder_sent
    if last is not None:
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        next_allowed = last + timedelta(hours=settings.REMINDER_COOLDOWN_HOURS)
        if now < next_allowed:
            raise Conflict(
                "Reminder already sent recently",
                code="REMINDER_COOLDOWN",
                details=f"Next reminder allowed after {next_allowed.isoformat()}",
            )

    context = {
        "title": event.title,
        "company": _company(db, event.published_by),
        "payment_link": f"https://tayog.in/payment/{event_id}/{registration_id}",
    }
    sent = dispatch(notifier, NotificationKind.payment_reminder,
                    _recipient(db, registration.user_id), context)
    if sent:
        registration.last_reminder_sent = now
        db.commit()
        logger.info("Payment reminder sent for registration %s", registration_id)
    return sent
