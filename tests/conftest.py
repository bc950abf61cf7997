import os

# keep the app's own engine off the filesystem while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.security import create_access_token, get_password_hash
from app.database import get_session
from app.main import app
from app.models import Expense, ExpenseType, User


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture()
def session(engine):
    with Session(engine) as db_session:
        yield db_session


@pytest.fixture()
def client(engine):
    def override_get_session():
        with Session(engine) as db_session:
            yield db_session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_user(session, email):
    user = User(email=email, hashed_password=get_password_hash("secret123"))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def user(session):
    return _make_user(session, "ana@example.com")


@pytest.fixture()
def other_user(session):
    return _make_user(session, "bruno@example.com")


@pytest.fixture()
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture()
def other_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(other_user.id)})}"}


@pytest.fixture()
def make_expense(session):
    def _make(owner, amount, category="Food", type=ExpenseType.expense, date=None, title="Item", note=None):
        expense = Expense(
            user_id=owner.id,
            title=title,
            amount=amount,
            type=type,
            category=category,
            date=date or datetime(2025, 1, 15),
            note=note,
        )
        session.add(expense)
        session.commit()
        session.refresh(expense)
        return expense

    return _make
