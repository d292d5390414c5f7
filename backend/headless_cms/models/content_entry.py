"""콘텐츠 엔트리(라이브 데이터) SQLAlchemy 모델입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from headless_cms.database import Base, JSONVariant

ENTRY_STATUSES = ("draft", "published", "archived")


class ContentEntry(Base):
    __tablename__ = "content_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_type_id = Column(Integer, ForeignKey("content_types.id", ondelete="CASCADE"), nullable=False)
    slug = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft/published/archived
    data = Column(JSONVariant, nullable=False, default=dict)  # title + field values
    meta_data = Column(JSONVariant)
    published_at = Column(DateTime(timezone=True))
    # 마지막으로 발급한 버전 번호. 버전이 삭제되어도 줄어들지 않는다.
    version_counter = Column(Integer, nullable=False, default=0)
    created_by = Column(String(36))
    updated_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    content_type = relationship("ContentType", back_populates="entries")
    versions = relationship(
        "ContentEntryVersion",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="ContentEntryVersion.version_number.desc()",
    )
    outgoing_relations = relationship(
        "ContentRelation",
        foreign_keys="ContentRelation.source_entry_id",
        back_populates="source_entry",
        cascade="all, delete-orphan",
    )
    incoming_relations = relationship(
        "ContentRelation",
        foreign_keys="ContentRelation.target_entry_id",
        back_populates="target_entry",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("content_type_id", "slug", name="uq_content_entries_type_slug"),
        Index("idx_content_entries_status", "status"),
        Index("idx_content_entries_published_at", "published_at"),
    )

    @property
    def title(self) -> str:
        return (self.data or {}).get("title") or self.slug
