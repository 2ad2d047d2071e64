from fastapi import APIRouter, Depends

from tripvoucher.core.config import Settings
from tripvoucher.db.dal import Database
from tripvoucher.models.user import ProfileOut, ProfileUpdate
from tripvoucher.routers.deps import get_app_settings, get_caller, get_db, get_identity
from tripvoucher.services.identity import Caller, Identity
from tripvoucher.services.profiles import ensure_profile, profile_out, update_profile

router = APIRouter(prefix="/user/profile", tags=["profile"])


@router.get("", response_model=ProfileOut, summary="Current user's profile")
def get_profile(
    identity: Identity = Depends(get_identity),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    caller, created = ensure_profile(db, identity, settings.default_department)
    return profile_out(caller, source="db-created" if created else "db")


@router.patch("", response_model=ProfileOut, summary="Update name or department")
def patch_profile(
    payload: ProfileUpdate,
    caller: Caller = Depends(get_caller),
    db: Database = Depends(get_db),
):
    updated = update_profile(db, caller, payload)
    return profile_out(updated, source="db-updated")
