"""Shared pytest fixtures: in-memory database, API client and users."""
import os

# Must be set before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SEED_ADMINS"] = "[]"

import pytest
from fastapi.testclient import TestClient

from dashboard import models  # noqa
from dashboard.database import Base, SessionLocal, engine
from dashboard.models.user import User
from dashboard.models.user_material import UserMaterial
from dashboard.services.auth import create_access_token, hash_password
from dashboard.services.category_store import create_category
from dashboard.services.materials import create_material


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from dashboard.main import app
    return TestClient(app)


@pytest.fixture
def user_factory(db):
    """
    Usage:
        def test_example(user_factory):
            user = user_factory("reader", materials=[material.id])
    """
    def _make_user(
        username: str,
        password: str = "secret123",
        is_admin: bool = False,
        can_edit_categories: bool = False,
        materials: list[int] = (),
    ) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password),
            is_admin=is_admin,
            can_edit_categories=can_edit_categories,
        )
        for material_id in materials:
            user.assigned_materials.append(UserMaterial(material_id=material_id))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def admin_headers(user_factory):
    return auth_headers(user_factory("admin", is_admin=True))


@pytest.fixture
def chain(db):
    """Factory creating a root-to-leaf category chain; returns the categories root-first."""
    def _make_chain(*names, parent_id=None):
        created = []
        for name in names:
            category = create_category(db, name, parent_id)
            created.append(category)
            parent_id = category.id
        return created
    return _make_chain


@pytest.fixture
def material(db):
    return create_material(db, "كتاب الاختبار", "Test Author")
