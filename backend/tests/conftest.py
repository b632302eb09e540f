from datetime import datetime, timedelta

import pytest

from app import create_app
from config import Config
from models import (
    db,
    User,
    StudyGroup,
    StudyGroupMember,
    Notification,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_OWNER,
)


class ConfigForTests(Config):
    TESTING = True
    ENV = "development"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    FIREBASE_CREDENTIALS_PATH = "/nonexistent/serviceAccountKey.json"
    ALLOWED_EMAIL_DOMAINS = ""


@pytest.fixture
def app(tmp_path):
    class _Config(ConfigForTests):
        UPLOAD_DIR = str(tmp_path / "uploads")

    app = create_app(_Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth():
    def _headers(uid):
        return {"X-Demo-UID": uid}
    return _headers


@pytest.fixture
def reload():
    def _reload(model, pk):
        db.session.expire_all()
        return db.session.get(model, pk)
    return _reload


@pytest.fixture
def users(app):
    """alice owns the group, carol is an ADMIN, bob a MEMBER, dave an outsider."""
    created = {}
    for uid in ("alice", "bob", "carol", "dave"):
        user = User(uid=uid, email=f"{uid}@example.com", name=uid.capitalize())
        db.session.add(user)
        created[uid] = user
    db.session.commit()
    return created


@pytest.fixture
def group(users):
    g = StudyGroup(
        name="CSE110 Study Group",
        description="Programming fundamentals",
        course_code="CSE110",
        course_name="Programming Fundamentals",
        owner_id=users["alice"].id,
    )
    g.members.append(StudyGroupMember(user_id=users["alice"].id, role=ROLE_OWNER))
    g.members.append(StudyGroupMember(user_id=users["bob"].id, role=ROLE_MEMBER))
    g.members.append(StudyGroupMember(user_id=users["carol"].id, role=ROLE_ADMIN))
    db.session.add(g)
    db.session.commit()
    return g


@pytest.fixture
def make_notification():
    base = datetime(2024, 1, 1, 12, 0, 0)

    def _make(user, title="Hello", minutes=0, is_read=False):
        n = Notification(
            user_id=user.id,
            title=title,
            message=f"{title} message",
            type="POLL_CREATED",
            is_read=is_read,
            created_at=base + timedelta(minutes=minutes),
        )
        db.session.add(n)
        db.session.commit()
        return n

    return _make
