"""Page and PageOwnership ORM models."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, text
from talent_hub.database import Base
from talent_hub.models.user import utcnow


class Page(Base):
    __tablename__ = "pages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    u_name = Column(String(150), nullable=False, unique=True)
    title = Column(String(255), nullable=False)
    type = Column(String(50), nullable=True)
    logo = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class PageOwnership(Base):
    __tablename__ = "page_ownership"
    __table_args__ = (
        # At most one active grant per (page, user); revoked rows are kept.
        Index(
            "uq_page_ownership_active",
            "page_id",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    page_id = Column(String(36), ForeignKey("pages.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(50), nullable=False, default="owner")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
