"""Pydantic schemas for Pages."""
from typing import Optional
from talent_hub.schemas.common import CamelModel


class PageOut(CamelModel):
    id: str
    title: str
    u_name: str
    type: Optional[str] = None
    logo: Optional[str] = None
    role: str


class PageListOut(CamelModel):
    success: bool = True
    pages: list[PageOut] = []
    total: int
