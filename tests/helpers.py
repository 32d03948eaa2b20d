# tests/helpers.py
import uuid
from datetime import date

from fastapi.testclient import TestClient
from sqlalchemy import select

from app.main import app as fastapi_app
from app.core.security import get_password_hash
from app.db.session import SessionLocal
from app.models.user import User

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"
DEFAULT_PASSWORD = "Passw0rd!"


def login(client: TestClient, username: str, password: str):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def login_admin(client: TestClient) -> dict:
    r = login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    assert r.status_code == 200, r.text
    return r.json()["data"]["user"]


def create_user_in_db(role: str = "user", *, username: str | None = None,
                      password: str = DEFAULT_PASSWORD, is_active: bool = True) -> User:
    db = SessionLocal()
    try:
        user = User(
            username=username or f"{role}_{uuid.uuid4().hex[:6]}",
            password_hash=get_password_hash(password),
            full_name=f"{role.title()} Tester",
            role=role,
            is_active=is_active,
            is_deleted=False,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        db.expunge(user)
        return user
    finally:
        db.close()


def get_user(user_id: int) -> User | None:
    db = SessionLocal()
    try:
        return db.scalar(select(User).where(User.id == user_id))
    finally:
        db.close()


def client_as(role: str = "user", **kwargs) -> tuple[TestClient, User]:
    """
    역할(role) 사용자를 DB에 만들고 로그인된 별도 TestClient 반환
    (쿠키 세션이 클라이언트마다 분리됨)
    """
    user = create_user_in_db(role, **kwargs)
    c = TestClient(fastapi_app)
    r = login(c, user.username, kwargs.get("password", DEFAULT_PASSWORD))
    assert r.status_code == 200, r.text
    return c, user


def finance_payload(**overrides) -> dict:
    payload = {
        "title": "Membership fees",
        "amount": 150.0,
        "type": "income",
        "category": "dues",
        "date": date.today().isoformat(),
    }
    payload.update(overrides)
    return payload


def new_client() -> TestClient:
    """로그인하지 않은 새 클라이언트 (쿠키 분리)"""
    return TestClient(fastapi_app)
