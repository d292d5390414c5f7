import pytest
from fastapi.testclient import TestClient
from jose import jwt

from headless_cms.config import Settings
from headless_cms.database import Database
from headless_cms.main import create_app
from headless_cms.models.content_type import ContentType, ContentTypeField
from headless_cms.models.user_profile import UserProfile
from headless_cms.schemas.content_entry import ContentEntryCreate, ContentEntryUpdate
from headless_cms.schemas.relation import RelationDefinitionCreate
from headless_cms.services import content_entry_service, relation_service

TEST_DB_URL = "sqlite:///./test_headless_cms.db"
TEST_JWT_SECRET = "test-jwt-secret"


@pytest.fixture
def test_settings():
    return Settings(DATABASE_URL=TEST_DB_URL, JWT_SECRET=TEST_JWT_SECRET, DEBUG=False)


@pytest.fixture
def database():
    database = Database(TEST_DB_URL)
    database.drop_all()
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database, test_settings):
    app = create_app(test_settings, database=database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict:
        token = jwt.encode({"sub": user_id, "aud": "authenticated"}, TEST_JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def seed_users(db):
    users = {
        "editor": UserProfile(id="11111111-1111-1111-1111-111111111111", display_name="Editor", email="editor@example.com"),
        "writer": UserProfile(id="22222222-2222-2222-2222-222222222222", display_name="Writer", email="writer@example.com"),
    }
    for user in users.values():
        db.add(user)
    db.commit()
    return users


@pytest.fixture
def seed_content_type(db):
    content_type = ContentType(name="article", display_name="Article", icon="FileText")
    content_type.fields.append(ContentTypeField(field_name="title", display_name="Title", field_type="text", is_required=True, sort_order=0))
    content_type.fields.append(ContentTypeField(field_name="body", display_name="Body", field_type="rich_text", sort_order=1))
    content_type.fields.append(ContentTypeField(field_name="tags", display_name="Tags", field_type="multi_select", sort_order=2))
    db.add(content_type)
    db.commit()
    db.refresh(content_type)
    return content_type


@pytest.fixture
def make_entry(db, seed_content_type):
    def _make(title: str = "First Post", fields: dict | None = None, status: str = "draft"):
        return content_entry_service.create_entry(
            db,
            ContentEntryCreate(
                content_type_id=seed_content_type.id,
                title=title,
                status=status,
                fields=fields or {},
            ),
            user_id=None,
        )
    return _make


@pytest.fixture
def entry_with_five_versions(db, make_entry):
    """v1..v5 의 title 이 X, B, C, D, A 인 엔트리. 라이브 데이터는 {title: "A"}."""
    entry = make_entry(title="X")
    for title in ("B", "C", "D", "A"):
        content_entry_service.update_entry(db, entry.id, ContentEntryUpdate(title=title), user_id=None)
    return entry


@pytest.fixture
def seed_tag_type(db):
    content_type = ContentType(name="tag", display_name="Tag", icon="Tag")
    content_type.fields.append(ContentTypeField(field_name="title", display_name="Name", field_type="text", is_required=True, sort_order=0))
    db.add(content_type)
    db.commit()
    db.refresh(content_type)
    return content_type


@pytest.fixture
def make_tag(db, seed_tag_type):
    def _make(title: str):
        return content_entry_service.create_entry(
            db,
            ContentEntryCreate(content_type_id=seed_tag_type.id, title=title, status="published"),
            user_id=None,
        )
    return _make


@pytest.fixture
def make_definition(db, seed_content_type, seed_tag_type):
    def _make(name: str = "article_tags", **overrides):
        values = {
            "name": name,
            "display_name": name.replace("_", " ").title(),
            "source_content_type_id": seed_content_type.id,
            "source_field_name": name,
            "target_content_type_id": seed_tag_type.id,
            "relation_type": "many_to_many",
        }
        values.update(overrides)
        return relation_service.create_definition(db, RelationDefinitionCreate(**values), user_id=None)
    return _make
