"""Page API routes: the caller's managed pages."""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from talent_hub.database import get_db
from talent_hub.deps import get_identity, private_cache
from talent_hub.schemas.page import PageListOut, PageOut
from talent_hub.security import RequestIdentity
from talent_hub.services import listing_service

router = APIRouter()


@router.get("", response_model=PageListOut)
def list_my_pages(
    response: Response,
    identity: RequestIdentity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Pages the caller currently holds an active ownership grant on."""
    owned = listing_service.list_owned_pages(db, identity.user_id)
    pages = [
        PageOut(id=page.id, title=page.title, u_name=page.u_name, type=page.type, logo=page.logo, role=role)
        for page, role in owned
    ]
    private_cache(response)
    return PageListOut(pages=pages, total=len(pages))
