"""Opportunity API routes: listings, ownership checks and applicant status."""
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from talent_hub.database import get_db
from talent_hub.deps import get_identity, private_cache
from talent_hub.errors import NotFound
from talent_hub.models.opportunity import Opportunity
from talent_hub.schemas.common import OwnershipData, OwnershipOut, OwnershipResult, PaginationOut
from talent_hub.schemas.opportunity import (
    AllApplicantsData,
    AllApplicantsOut,
    ApplicantListData,
    ApplicantListOut,
    ApplicantOut,
    ApplicantRecord,
    ApplicantStatusData,
    ApplicantStatusOut,
    ApplicantStatusUpdate,
    OpportunityListOut,
    OpportunityOut,
    OpportunitySummary,
    StatusChanges,
    TenantApplicantOut,
)
from talent_hub.security import RequestIdentity
from talent_hub.services import lifecycle, listing_service
from talent_hub.services.listing_service import display_date, is_live
from talent_hub.services.notifications import Notifier, get_notifier
from talent_hub.services.ownership import opportunity_ownership
from talent_hub.validation import require_uuid

router = APIRouter()


def _opportunity_out(opportunity: Opportunity, applicant_count: int, now: datetime) -> OpportunityOut:
    live = is_live(opportunity.is_active, opportunity.reg_end_date, now)
    return OpportunityOut(
        id=opportunity.id,
        role=opportunity.role or opportunity.title or "Untitled Role",
        status="Live" if live else "Closed",
        type=opportunity.type or "Full Time",
        posted=display_date(opportunity.created_at),
        due=display_date(opportunity.reg_end_date),
        applicants=int(applicant_count or 0),
        needs=f"{opportunity.max_participants - opportunity.vacancies} / {opportunity.max_participants}",
        action="Review Applicants" if live else "Completed",
        active=live,
    )


@router.get("", response_model=OpportunityListOut)
def list_opportunities(
    response: Response,
    page_id: Optional[str] = Query(None, alias="pageId"),
    page: int = Query(1),
    limit: int = Query(10),
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """List opportunities published by pages the caller manages."""
    result = listing_service.list_opportunities(db, identity.user_id, page_id, page, limit)
    now = datetime.now(timezone.utc)
    private_cache(response)
    return OpportunityListOut(
        message="Successfully retrieved opportunities" if result.total else "No opportunities found",
        opportunities=[_opportunity_out(opp, count, now) for opp, count in result.items],
        pagination=PaginationOut(**result.to_dict()),
    )


@router.get("/applicants", response_model=AllApplicantsOut)
def list_all_applicants(
    response: Response,
    page_id: Optional[str] = Query(None, alias="pageId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1),
    limit: int = Query(10),
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Applicants across every opportunity the caller's pages published."""
    result = listing_service.list_all_applicants(db, identity.user_id, page_id, status_filter, page, limit)
    applicants = []
    for applicant, user, opportunity in result.items:
        applicants.append(TenantApplicantOut(
            id=applicant.id,
            user_id=applicant.user_id,
            name=(user.display_name if user else None) or "Anonymous",
            email=(user.email if user else None) or "",
            role=opportunity.role or opportunity.title or "Unknown Role",
            job_type=opportunity.type or "Not specified",
            status=applicant.application_status.value,
            applied_on=display_date(applicant.applied_date or applicant.created_at),
            opportunity_id=opportunity.id,
            opportunity_title=opportunity.title or opportunity.role,
        ))
    private_cache(response)
    return AllApplicantsOut(
        message="Successfully retrieved applicants" if result.total else "No applicants found",
        data=AllApplicantsData(applicants=applicants, pagination=PaginationOut(**result.to_dict())),
    )


@router.get("/applicants/{applicant_id}/status", response_model=ApplicantStatusOut)
def get_applicant_status(
    applicant_id: str,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Fetch one applicant's current status (page owners only)."""
    require_uuid(applicant_id, "applicant ID")
    applicant = lifecycle.get_applicant(db, identity.user_id, applicant_id)
    return ApplicantStatusOut(
        message="Applicant found",
        timestamp=datetime.now(timezone.utc),
        data=ApplicantStatusData(
            applicant=ApplicantRecord(
                id=applicant.id,
                application_status=applicant.application_status.value,
                updated_at=applicant.updated_at,
            ),
        ),
    )


@router.put("/applicants/{applicant_id}/status", response_model=ApplicantStatusOut)
def update_applicant_status(
    applicant_id: str,
    payload: ApplicantStatusUpdate,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Move an applicant to a new status; notifies on shortlist/reject."""
    require_uuid(applicant_id, "applicant ID")
    change = lifecycle.update_applicant_status(db, identity.user_id, applicant_id, payload.status, notifier)
    return ApplicantStatusOut(
        message="Applicant status updated successfully",
        timestamp=datetime.now(timezone.utc),
        data=ApplicantStatusData(
            applicant=ApplicantRecord(
                id=change.record_id,
                application_status=change.current.value,
                updated_at=change.updated_at,
            ),
            changes=StatusChanges(from_=change.previous.value, to=change.current.value),
            email_sent=change.email_sent,
        ),
    )


@router.get("/{opportunity_id}/ownership", response_model=OwnershipOut)
def check_opportunity_ownership(
    opportunity_id: str,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Does the caller manage the page that published this opportunity?"""
    require_uuid(opportunity_id, "opportunity ID")
    if db.get(Opportunity, opportunity_id) is None:
        raise NotFound("Opportunity not found")

    check = opportunity_ownership(db, identity.user_id, opportunity_id)
    ownership_data = None
    if check.is_owner:
        ownership_data = OwnershipData(
            opportunity_id=opportunity_id,
            page_id=check.ownership.page_id,
            user_id=check.ownership.user_id,
            role=check.ownership.role,
            is_active=check.ownership.is_active,
        )
    return OwnershipOut(
        data=OwnershipResult(
            is_owner=check.is_owner,
            opportunity_id=opportunity_id,
            ownership_data=ownership_data,
        )
    )


@router.get("/{opportunity_id}/applicants", response_model=ApplicantListOut)
def list_opportunity_applicants(
    opportunity_id: str,
    response: Response,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1),
    limit: int = Query(10),
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Paginated applicants of one opportunity, optionally filtered by status."""
    require_uuid(opportunity_id, "opportunity ID")
    opportunity, result = listing_service.list_opportunity_applicants(
        db, identity.user_id, opportunity_id, status_filter, page, limit,
    )
    applicants = []
    for applicant, user in result.items:
        applicants.append(ApplicantOut(
            id=applicant.id,
            user_id=applicant.user_id,
            name=(user.display_name if user else None) or "Anonymous",
            email=(user.email if user else None) or "",
            status=applicant.application_status.value,
            applied_on=display_date(applicant.applied_date or applicant.created_at),
        ))
    private_cache(response)
    return ApplicantListOut(
        data=ApplicantListData(
            opportunity=OpportunitySummary(id=opportunity.id, role=opportunity.role, title=opportunity.title),
            applicants=applicants,
            pagination=PaginationOut(**result.to_dict()),
        )
    )
