"""콘텐츠 엔트리의 불변 스냅샷(버전 이력) SQLAlchemy 모델입니다."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from headless_cms.database import Base, JSONVariant


class ContentEntryVersion(Base):
    __tablename__ = "content_entry_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_entry_id = Column(Integer, ForeignKey("content_entries.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    title = Column(String(500))
    slug = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False)
    field_values = Column(JSONVariant, nullable=False, default=dict)
    created_by = Column(String(36))
    comment = Column(Text)
    is_auto_generated = Column(Boolean, nullable=False, default=True)
    change_summary = Column(JSONVariant)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    entry = relationship("ContentEntry", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("content_entry_id", "version_number", name="uq_content_entry_versions_number"),
        Index("idx_content_entry_versions_created_at", "created_at"),
    )
