from __future__ import annotations

import os

# must be set before plantnet.db builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ACCESS_TOKEN_SECRET"] = "test-secret"
os.environ.pop("MAIL_USER", None)
os.environ.pop("MAIL_PASS", None)

from typing import Any, Callable, Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from plantnet import main
from plantnet.auth import create_token
from plantnet.db import Base, get_db, make_engine
from plantnet.models import Plant, User


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    main.app.dependency_overrides[get_db] = override_get_db
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture()
def sent_mail(monkeypatch) -> List[Dict[str, Any]]:
    """Replaces the mailer used by the routes and records every call."""
    calls: List[Dict[str, Any]] = []

    def fake_send(to_email, email_data=None):
        calls.append({"to": to_email, "data": email_data})
        return True

    monkeypatch.setattr(main, "send_email", fake_send)
    return calls


@pytest.fixture()
def make_user(session_factory) -> Callable[..., None]:
    def _make(email: str, role: str = "customer", status: str | None = None, name: str | None = None):
        with session_factory() as db:
            db.add(User(email=email, name=name, role=role, status=status, timestamp=0))
            db.commit()

    return _make


@pytest.fixture()
def make_plant(session_factory) -> Callable[..., int]:
    def _make(seller_email: str, name: str = "Monstera", quantity: int = 10, **extra) -> int:
        with session_factory() as db:
            p = Plant(name=name, seller_email=seller_email, quantity=quantity, **extra)
            db.add(p)
            db.commit()
            return p.id

    return _make


def auth_header(email: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_token({'email': email})}"}
