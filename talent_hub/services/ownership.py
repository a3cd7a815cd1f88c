"""Ownership resolution: does a user control the page that published a resource?

Every check is a fresh join against page_ownership. Nothing is cached: a grant
revoked between two requests must not be honoured on the second one. A request
already past its ownership check when the grant is revoked may still complete
its write; that window is accepted.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from talent_hub.errors import Forbidden, NotFound
from talent_hub.models.event import Event
from talent_hub.models.opportunity import Opportunity
from talent_hub.models.page import PageOwnership

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OwnershipCheck:
    is_owner: bool
    ownership: Optional[PageOwnership] = None

    @property
    def page_id(self) -> Optional[str]:
        return self.ownership.page_id if self.ownership else None


def _active_grant(db: Session, resource, resource_id: str, user_id: str) -> OwnershipCheck:
    stmt = (
        select(PageOwnership)
        .join(resource, resource.published_by == PageOwnership.page_id)
        .where(
            resource.id == resource_id,
            PageOwnership.user_id == user_id,
            PageOwnership.is_active.is_(True),
        )
        .limit(1)
    )
    ownership = db.execute(stmt).scalars().first()
    return OwnershipCheck(is_owner=ownership is not None, ownership=ownership)


def opportunity_ownership(db: Session, user_id: str, opportunity_id: str) -> OwnershipCheck:
    """False (never an error) when the opportunity or an active grant is missing."""
    return _active_grant(db, Opportunity, opportunity_id, user_id)


def event_ownership(db: Session, user_id: str, event_id: str) -> OwnershipCheck:
    """False (never an error) when the event or an active grant is missing."""
    return _active_grant(db, Event, event_id, user_id)


def owned_page_ids(db: Session, user_id: str) -> list[str]:
    """The caller's tenant scope: pages reachable through active grants."""
    stmt = (
        select(PageOwnership.page_id)
        .where(PageOwnership.user_id == user_id, PageOwnership.is_active.is_(True))
        .distinct()
    )
    return list(db.execute(stmt).scalars())


def require_opportunity_owner(db: Session, user_id: str, opportunity_id: str) -> Opportunity:
    opportunity = db.get(Opportunity, opportunity_id)
    if opportunity is None:
        raise NotFound("Opportunity not found", details="The specified opportunity does not exist")
    if not opportunity_ownership(db, user_id, opportunity_id).is_owner:
        logger.info("User %s denied on opportunity %s (not a page owner)", user_id, opportunity_id)
        raise Forbidden(details="You do not manage the page that published this opportunity")
    return opportunity


def require_event_owner(db: Session, user_id: str, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found", details="The specified event does not exist")
    if not event_ownership(db, user_id, event_id).is_owner:
        logger.info("User %s denied on event %s (not a page owner)", user_id, event_id)
        raise Forbidden(details="You do not manage the page that published this event")
    return event


def require_page_in_scope(db: Session, user_id: str, page_id: Optional[str]) -> list[str]:
    """Resolve the page ids a listing may read.

    No owned pages -> empty scope (callers skip the query). A requested page
    outside the caller's scope is Forbidden.
    """
    scope = owned_page_ids(db, user_id)
    if not scope or page_id is None:
        return scope
    if page_id not in scope:
        raise Forbidden(details="You do not manage the requested page")
    return [page_id]
