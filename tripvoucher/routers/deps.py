"""Shared FastAPI dependencies.

Settings come from ``app.state`` so an app built with ``settings_override``
(tests, scripts) never falls back to the process-wide cached settings.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tripvoucher.core.config import Settings
from tripvoucher.core.errors import InvalidCredential
from tripvoucher.db.dal import Database
from tripvoucher.services.identity import Caller, Identity, IdentityProvider
from tripvoucher.services.profiles import ensure_profile
from tripvoucher.services.vouchers import VoucherService

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(settings: Settings = Depends(get_app_settings)) -> Database:
    return Database(settings.db_path, busy_timeout=settings.db_busy_timeout_seconds)  # type: ignore[arg-type]


def get_voucher_service(
    settings: Settings = Depends(get_app_settings), db: Database = Depends(get_db)
) -> VoucherService:
    return VoucherService(
        db,
        fuel_rate=settings.fuel_rate,
        allow_empty_submission=settings.allow_empty_submission,
    )


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    if credentials is None:
        raise InvalidCredential("missing or invalid authorization header")
    return provider.identify(credentials.credentials)


def get_caller(
    identity: Identity = Depends(get_identity),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Caller:
    caller, _ = ensure_profile(db, identity, settings.default_department)
    return caller
