import os

os.environ["ENVIRONMENT"] = "development"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAILERSEND_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["R2_PUBLIC_URL"] = "https://files.example.com"

import mongomock
import pytest
from fastapi.testclient import TestClient

import auth
from database import connect_db
from main import app
from models import (
    Comment,
    CommunityNote,
    Course,
    Level,
    MaterialRequest,
    OfficialNote,
    PastQuestion,
    Quiz,
    QuizAttempt,
    User,
    Vote,
)
from responses import Page
from services import community_notes

connect_db(host="mongodb://localhost", mongo_client_class=mongomock.MongoClient)

ALL_MODELS = (
    User,
    Level,
    Course,
    PastQuestion,
    OfficialNote,
    CommunityNote,
    Comment,
    Vote,
    Quiz,
    QuizAttempt,
    MaterialRequest,
)

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def clean_db():
    for model in ALL_MODELS:
        model.drop_collection()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def page():
    return Page(page=1, limit=20)


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make(name=None, role="student", is_verified=True, **fields):
        counter["n"] += 1
        name = name or f"User {counter['n']}"
        user = User(
            name=name,
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            password_hash=auth.get_password_hash(PASSWORD),
            role=role,
            is_verified=is_verified,
            **fields
        )
        user.save()
        return user

    return _make


@pytest.fixture
def student(make_user):
    return make_user("Ada Student")


@pytest.fixture
def rep(make_user):
    return make_user("Rita Rep", role="rep")


@pytest.fixture
def admin(make_user):
    return make_user("Alan Admin", role="admin")


@pytest.fixture
def headers_for():
    def _headers(user):
        return {"Authorization": f"Bearer {auth.create_access_token(user)}"}

    return _headers


@pytest.fixture
def level(admin):
    level = Level(name="100 Level", code="l100", order=1, created_by=admin)
    level.save()
    return level


@pytest.fixture
def course(level, admin):
    course = Course(
        title="Introduction to Computing",
        code="csc101",
        level=level,
        department="Computer Science",
        semester="First",
        created_by=admin,
    )
    course.save()
    return course


@pytest.fixture
def make_note(course):
    def _make(author, title="Sorting algorithms", content="Merge sort splits the list in halves.", tags=None):
        return community_notes.create_note(author, str(course.id), title, content, tags or [])

    return _make


@pytest.fixture
def note(make_note, student):
    return make_note(student)
