"""Shared Pydantic building blocks. JSON on the wire is camelCase."""
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PaginationOut(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_more: bool


class OwnershipData(CamelModel):
    page_id: str
    user_id: str
    role: str
    is_active: bool
    opportunity_id: Optional[str] = None
    event_id: Optional[str] = None


class OwnershipResult(CamelModel):
    is_owner: bool
    opportunity_id: Optional[str] = None
    event_id: Optional[str] = None
    ownership_data: Optional[OwnershipData] = None


class OwnershipOut(CamelModel):
    success: bool = True
    message: str = "Ownership check completed"
    data: OwnershipResult
