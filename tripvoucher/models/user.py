from typing import Literal, Optional

from pydantic import field_validator

from .base import WireModel
from .constants import DEPARTMENTS


class ProfileOut(WireModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: str
    # db: existing row, db-created: provisioned on this call, db-updated: after PATCH
    source: Literal["db", "db-created", "db-updated"] = "db"


class ProfileUpdate(WireModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @field_validator("department")
    @classmethod
    def _known_department(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in DEPARTMENTS:
            raise ValueError(f"unsupported department, expected one of {sorted(DEPARTMENTS)}")
        return value
