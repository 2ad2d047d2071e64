"""User profiles: lazy provisioning on first login and profile updates."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Tuple

from tripvoucher.core.errors import Forbidden
from tripvoucher.db.dal import Database
from tripvoucher.models.user import ProfileOut, ProfileUpdate
from tripvoucher.services.identity import Caller, Identity

logger = logging.getLogger("tripvoucher.profiles")


def _row_to_caller(row: Mapping[str, Any]) -> Caller:
    return Caller(
        user_id=row["id"],
        email=row["email"],
        department=row["department"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
    )


def profile_out(caller: Caller, source: str = "db") -> ProfileOut:
    return ProfileOut(
        id=caller.user_id,
        email=caller.email,
        first_name=caller.first_name,
        last_name=caller.last_name,
        department=caller.department,
        source=source,
    )


def ensure_profile(db: Database, identity: Identity, default_department: str) -> Tuple[Caller, bool]:
    """Return the caller's profile, creating it on first sight.

    The second element is True when the row was created by this call. An
    email already registered to a different user id is ``Forbidden``.
    """
    with db.transaction(write=False) as cur:
        row = db.get_user(cur, identity.user_id)
    if row is not None:
        return _row_to_caller(row), False

    with db.transaction() as cur:
        # re-check under the write lock; a concurrent request may have won
        row = db.get_user(cur, identity.user_id)
        if row is not None:
            return _row_to_caller(row), False
        holder = db.find_user_by_email(cur, identity.email)
        if holder is not None:
            logger.warning(
                "user %s cannot be provisioned: email already belongs to user %s",
                identity.user_id,
                holder["id"],
            )
            raise Forbidden("this email is already linked to another account")
        db.insert_user(
            cur,
            user_id=identity.user_id,
            email=identity.email,
            department=default_department,
            first_name=identity.first_name,
            last_name=identity.last_name,
        )
        row = db.get_user(cur, identity.user_id)
    logger.info("provisioned profile for user %s in %s", identity.user_id, default_department)
    return _row_to_caller(row), True  # type: ignore[arg-type]


def update_profile(db: Database, caller: Caller, payload: ProfileUpdate) -> Caller:
    fields: Dict[str, Any] = {
        name: getattr(payload, name) for name in payload.model_fields_set
    }
    # department is NOT NULL; an explicit null leaves it unchanged
    if fields.get("department") is None:
        fields.pop("department", None)
    with db.transaction() as cur:
        db.update_user(cur, caller.user_id, fields)
        row = db.get_user(cur, caller.user_id)
    logger.info("updated profile for user %s: %s", caller.user_id, sorted(fields))
    return _row_to_caller(row)  # type: ignore[arg-type]
