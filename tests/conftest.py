"""Pytest fixtures: temp-dir settings and database, seeded users, API client."""

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from tripvoucher.core.config import Settings
from tripvoucher.db.dal import Database
from tripvoucher.db.schema import init_db
from tripvoucher.main import create_app
from tripvoucher.models.expense import ExpenseIn
from tripvoucher.models.voucher import VoucherCreate
from tripvoucher.services.identity import Caller, Identity
from tripvoucher.services.profiles import ensure_profile
from tripvoucher.services.vouchers import VoucherService

JWT_SECRET = "test-secret-for-vouchers"


def make_token(
    user_id: str,
    email: str,
    secret: str = JWT_SECRET,
    audience: str = "authenticated",
    expires_in: int = 3600,
    **extra,
) -> str:
    claims = {
        "sub": user_id,
        "email": email,
        "aud": audience,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        **extra,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def expense(transport_type: str = "cab", amount=None, distance=None, **overrides) -> ExpenseIn:
    data = {
        "description": overrides.pop("description", f"{transport_type} ride"),
        "transport_type": transport_type,
        "amount": amount,
        "distance": distance,
        "datetime": overrides.pop("datetime", datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)),
    }
    data.update(overrides)
    return ExpenseIn(**data)


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(
        data_dir=tmp_path,
        db_path=tmp_path / "vouchers-test.sqlite3",
        jwt_secret=JWT_SECRET,
    )
    s.init_post_load()
    return s


@pytest.fixture
def db(settings) -> Database:
    init_db(settings.db_path)
    return Database(settings.db_path)


@pytest.fixture
def service(db, settings) -> VoucherService:
    return VoucherService(db, fuel_rate=settings.fuel_rate, allow_empty_submission=False)


def _caller(db: Database, user_id: str, email: str) -> Caller:
    caller, _ = ensure_profile(db, Identity(user_id=user_id, email=email), "Engineering")
    return caller


@pytest.fixture
def alice(db) -> Caller:
    return _caller(db, "user-alice", "alice@example.com")


@pytest.fixture
def bob(db) -> Caller:
    return _caller(db, "user-bob", "bob@example.com")


@pytest.fixture
def draft_voucher(service, alice):
    return service.create_voucher(
        alice,
        VoucherCreate(
            name="Pune client visit",
            start_date=date(2026, 3, 1),
            end_date=date(2026, 3, 4),
        ),
    )


@pytest.fixture
def client(settings) -> TestClient:
    return TestClient(create_app(settings_override=settings))


@pytest.fixture
def auth_headers() -> Callable[..., Dict[str, str]]:
    def _headers(user_id: str = "user-alice", email: str = "alice@example.com") -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, email)}"}

    return _headers
