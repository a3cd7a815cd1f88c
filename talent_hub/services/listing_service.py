"""Tenant-scoped collections: opportunities, events, applicants, registrants, pages."""
import logging
from datetime import datetime, timezone
from typing import Optional

import pytz
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from talent_hub.config import settings
from talent_hub.models.event import Event, RegisteredEvent
from talent_hub.models.opportunity import ApplicationStatus, Opportunity, OpportunityApplicant
from talent_hub.models.page import Page, PageOwnership
from talent_hub.models.user import User
from talent_hub.services.ownership import (
    require_event_owner,
    require_opportunity_owner,
    require_page_in_scope,
)
from talent_hub.services.pagination import PageResult, empty_page, paginate, validate_pagination
from talent_hub.validation import parse_status

logger = logging.getLogger(__name__)

# Review-tab filters used by the dashboard, besides the raw status values.
APPLICANT_FILTER_ALIASES = {
    "STRONG_FIT": ApplicationStatus.shortlisted,
    "GOOD_FIT": ApplicationStatus.maybe,
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_live(active: bool, reg_end_date: Optional[datetime], now: datetime) -> bool:
    """Live iff the listing is active and registration has not closed yet."""
    end = as_utc(reg_end_date)
    return bool(active) and end is not None and now <= end


def display_date(value: Optional[datetime]) -> Optional[str]:
    """dd/mm/yyyy in the dashboard's display timezone."""
    value = as_utc(value)
    if value is None:
        return None
    return value.astimezone(pytz.timezone(settings.DISPLAY_TIMEZONE)).strftime("%d/%m/%Y")


def list_opportunities(db: Session, user_id: str, page_id: Optional[str],
                       page: int, limit: int) -> PageResult:
    """Items are (Opportunity, applicant_count) tuples."""
    validate_pagination(page, limit)
    scope = require_page_in_scope(db, user_id, page_id)
    if not scope:
        logger.info("User %s owns no pages; skipping opportunity query", user_id)
        return empty_page(page, limit)

    applicant_count = (
        select(func.count(OpportunityApplicant.id))
        .where(OpportunityApplicant.opportunity_id == Opportunity.id)
        .correlate(Opportunity)
        .scalar_subquery()
        .label("applicant_count")
    )
    stmt = select(Opportunity, applicant_count).where(Opportunity.published_by.in_(scope))
    return paginate(db, stmt, page=page, limit=limit,
                    order_by=(Opportunity.created_at.desc(), Opportunity.id.desc()))


def list_events(db: Session, user_id: str, page_id: Optional[str],
                page: int, limit: int) -> PageResult:
    """Items are (Event,) tuples."""
    validate_pagination(page, limit)
    scope = require_page_in_scope(db, user_id, page_id)
    if not scope:
        logger.info("User %s owns no pages; skipping event query", user_id)
        return empty_page(page, limit)

    stmt = select(Event).where(Event.published_by.in_(scope))
    return paginate(db, stmt, page=page, limit=limit,
                    order_by=(Event.created_at.desc(), Event.id.desc()))


def parse_applicant_filter(value: Optional[str]) -> Optional[ApplicationStatus]:
    if value is None or value.upper() == "ALL":
        return None
    alias = APPLICANT_FILTER_ALIASES.get(value.upper())
    return alias or parse_status(ApplicationStatus, value.upper())


def list_opportunity_applicants(db: Session, user_id: str, opportunity_id: str,
                                status_filter: Optional[str], page: int, limit: int):
    """Returns (opportunity, PageResult of (OpportunityApplicant, User | None))."""
    validate_pagination(page, limit)
    wanted = parse_applicant_filter(status_filter)
    opportunity = require_opportunity_owner(db, user_id, opportunity_id)

    stmt = (
        select(OpportunityApplicant, User)
        .outerjoin(User, User.id == OpportunityApplicant.user_id)
        .where(OpportunityApplicant.opportunity_id == opportunity_id)
    )
    if wanted is not None:
        stmt = stmt.where(OpportunityApplicant.application_status == wanted)
    result = paginate(db, stmt, page=page, limit=limit,
                      order_by=(OpportunityApplicant.created_at.desc(), OpportunityApplicant.id.desc()))
    return opportunity, result


def list_all_applicants(db: Session, user_id: str, page_id: Optional[str],
                        status_filter: Optional[str], page: int, limit: int) -> PageResult:
    """Applicants across every opportunity in the caller's tenant scope.

    Items are (OpportunityApplicant, User | None, Opportunity) tuples.
    """
    validate_pagination(page, limit)
    wanted = parse_applicant_filter(status_filter)
    scope = require_page_in_scope(db, user_id, page_id)
    if not scope:
        logger.info("User %s owns no pages; skipping applicant query", user_id)
        return empty_page(page, limit)

    stmt = (
        select(OpportunityApplicant, User, Opportunity)
        .join(Opportunity, Opportunity.id == OpportunityApplicant.opportunity_id)
        .outerjoin(User, User.id == OpportunityApplicant.user_id)
        .where(Opportunity.published_by.in_(scope))
    )
    if wanted is not None:
        stmt = stmt.where(OpportunityApplicant.application_status == wanted)
    return paginate(db, stmt, page=page, limit=limit,
                    order_by=(OpportunityApplicant.created_at.desc(), OpportunityApplicant.id.desc()))


def list_event_registrants(db: Session, user_id: str, event_id: str, page: int, limit: int):
    """Returns (event, PageResult of (RegisteredEvent, User | None))."""
    validate_pagination(page, limit)
    event = require_event_owner(db, user_id, event_id)

    stmt = (
        select(RegisteredEvent, User)
        .outerjoin(User, User.id == RegisteredEvent.user_id)
        .where(RegisteredEvent.event_id == event_id)
    )
    result = paginate(db, stmt, page=page, limit=limit,
                      order_by=(RegisteredEvent.created_at.desc(), RegisteredEvent.id.desc()))
    return event, result


def list_owned_pages(db: Session, user_id: str) -> list[tuple[Page, str]]:
    """(Page, role) for every page the user holds an active grant on."""
    stmt = (
        select(Page, PageOwnership.role)
        .join(PageOwnership, PageOwnership.page_id == Page.id)
        .where(PageOwnership.user_id == user_id, PageOwnership.is_active.is_(True))
        .order_by(Page.created_at.desc(), Page.id.desc())
    )
    return [(page, role) for page, role in db.execute(stmt).all()]
