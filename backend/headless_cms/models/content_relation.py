"""콘텐츠 타입 간 관계 정의와 엔트리 간 실제 관계 SQLAlchemy 모델입니다."""

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from headless_cms.database import Base, JSONVariant

RELATION_TYPES = ("one_to_one", "one_to_many", "many_to_many")


class ContentRelationDefinition(Base):
    __tablename__ = "content_relation_definitions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)  # article_tags
    display_name = Column(String(200), nullable=False)
    description = Column(Text)
    source_content_type_id = Column(Integer, ForeignKey("content_types.id", ondelete="CASCADE"), nullable=False)
    source_field_name = Column(String(100), nullable=False)
    target_content_type_id = Column(Integer, ForeignKey("content_types.id", ondelete="CASCADE"), nullable=False)
    target_field_name = Column(String(100))  # 양방향 탐색 시 역방향 이름
    relation_type = Column(String(20), nullable=False, default="many_to_many")
    is_bidirectional = Column(Boolean, nullable=False, default=False)
    max_relations = Column(Integer)  # None = 무제한
    min_relations = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    source_content_type = relationship(
        "ContentType", foreign_keys=[source_content_type_id], back_populates="outgoing_relation_definitions",
    )
    target_content_type = relationship(
        "ContentType", foreign_keys=[target_content_type_id], back_populates="incoming_relation_definitions",
    )
    relations = relationship("ContentRelation", back_populates="definition", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("source_content_type_id", "source_field_name", name="uq_relation_definitions_source_field"),
        CheckConstraint(
            "min_relations >= 0 AND (max_relations IS NULL OR max_relations >= min_relations)",
            name="ck_relation_definitions_min_max",
        ),
    )


class ContentRelation(Base):
    __tablename__ = "content_relations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    relation_definition_id = Column(
        Integer, ForeignKey("content_relation_definitions.id", ondelete="CASCADE"), nullable=False,
    )
    source_entry_id = Column(Integer, ForeignKey("content_entries.id", ondelete="CASCADE"), nullable=False)
    target_entry_id = Column(Integer, ForeignKey("content_entries.id", ondelete="CASCADE"), nullable=False)
    relation_data = Column(JSONVariant, nullable=False, default=dict)
    sort_order = Column(Integer, nullable=False, default=0)
    created_by = Column(String(36))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    definition = relationship("ContentRelationDefinition", back_populates="relations")
    source_entry = relationship("ContentEntry", foreign_keys=[source_entry_id], back_populates="outgoing_relations")
    target_entry = relationship("ContentEntry", foreign_keys=[target_entry_id], back_populates="incoming_relations")

    __table_args__ = (
        UniqueConstraint(
            "relation_definition_id", "source_entry_id", "target_entry_id", name="uq_content_relations_pair",
        ),
        CheckConstraint("source_entry_id != target_entry_id", name="ck_content_relations_no_self"),
        Index("idx_content_relations_source", "relation_definition_id", "source_entry_id", "sort_order"),
        Index("idx_content_relations_target", "relation_definition_id", "target_entry_id"),
    )
