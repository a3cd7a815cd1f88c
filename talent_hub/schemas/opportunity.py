"""Pydantic schemas for Opportunities and their applicants."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import Field
from talent_hub.schemas.common import CamelModel, PaginationOut


class OpportunityOut(CamelModel):
    id: str
    role: str
    status: str  # Live / Closed
    type: str
    posted: Optional[str] = None
    due: Optional[str] = None
    applicants: int
    needs: str
    action: str
    active: bool


class OpportunityListOut(CamelModel):
    success: bool = True
    message: str = "Successfully retrieved opportunities"
    opportunities: list[OpportunityOut] = []
    pagination: PaginationOut


class ApplicantStatusUpdate(CamelModel):
    status: str


class ApplicantRecord(CamelModel):
    id: str
    application_status: str
    updated_at: Optional[datetime] = None


class StatusChanges(CamelModel):
    from_: str = Field(alias="from")
    to: str


class ApplicantStatusData(CamelModel):
    applicant: ApplicantRecord
    changes: Optional[StatusChanges] = None
    email_sent: Optional[bool] = None


class ApplicantStatusOut(CamelModel):
    success: bool = True
    message: str
    timestamp: datetime
    data: ApplicantStatusData


class ApplicantOut(CamelModel):
    id: str
    user_id: str
    name: str
    email: str
    status: str
    applied_on: Optional[str] = None


class OpportunitySummary(CamelModel):
    id: str
    role: Optional[str] = None
    title: Optional[str] = None


class ApplicantListData(CamelModel):
    opportunity: OpportunitySummary
    applicants: list[ApplicantOut] = []
    pagination: PaginationOut


class ApplicantListOut(CamelModel):
    success: bool = True
    message: str = "Successfully retrieved applicants data"
    data: ApplicantListData


class TenantApplicantOut(CamelModel):
    id: str
    user_id: str
    name: str
    email: str
    role: str
    job_type: str
    status: str
    applied_on: Optional[str] = None
    opportunity_id: str
    opportunity_title: Optional[str] = None


class AllApplicantsData(CamelModel):
    applicants: list[TenantApplicantOut] = []
    pagination: PaginationOut


class AllApplicantsOut(CamelModel):
    success: bool = True
    message: str = "Successfully retrieved applicants"
    data: AllApplicantsData
