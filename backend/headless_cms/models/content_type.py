"""콘텐츠 타입(스키마 정의)과 필드 정의 SQLAlchemy 모델입니다."""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from headless_cms.database import Base

FIELD_TYPES = (
    "text", "textarea", "rich_text", "number", "boolean", "date", "datetime",
    "email", "url", "select", "multi_select", "media", "relation", "json",
)


class ContentType(Base):
    __tablename__ = "content_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)  # article/product/page
    display_name = Column(String(255), nullable=False)
    description = Column(Text)
    icon = Column(String(100), default="File")
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(36))  # auth user uuid
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    fields = relationship(
        "ContentTypeField",
        back_populates="content_type",
        cascade="all, delete-orphan",
        order_by="ContentTypeField.sort_order",
    )
    entries = relationship("ContentEntry", back_populates="content_type", cascade="all, delete-orphan")
    outgoing_relation_definitions = relationship(
        "ContentRelationDefinition",
        foreign_keys="ContentRelationDefinition.source_content_type_id",
        cascade="all, delete-orphan",
        back_populates="source_content_type",
    )
    incoming_relation_definitions = relationship(
        "ContentRelationDefinition",
        foreign_keys="ContentRelationDefinition.target_content_type_id",
        cascade="all, delete-orphan",
        back_populates="target_content_type",
    )


class ContentTypeField(Base):
    __tablename__ = "content_type_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_type_id = Column(Integer, ForeignKey("content_types.id", ondelete="CASCADE"), nullable=False)
    field_name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    field_type = Column(String(30), nullable=False)
    is_required = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    content_type = relationship("ContentType", back_populates="fields")

    __table_args__ = (
        UniqueConstraint("content_type_id", "field_name", name="uq_content_type_fields_name"),
    )
