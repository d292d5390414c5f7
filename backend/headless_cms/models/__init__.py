"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from headless_cms.models.content_type import ContentType, ContentTypeField
from headless_cms.models.content_entry import ContentEntry
from headless_cms.models.content_version import ContentEntryVersion
from headless_cms.models.content_relation import ContentRelation, ContentRelationDefinition
from headless_cms.models.api_key import ApiKey
from headless_cms.models.user_profile import UserProfile

__all__ = [
    "ContentType", "ContentTypeField",
    "ContentEntry",
    "ContentEntryVersion",
    "ContentRelationDefinition", "ContentRelation",
    "ApiKey",
    "UserProfile",
]
