# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed records for identities and their role extensions.

Store rows are plain dicts; these dataclasses give them explicit fields.
Each role extension has its own record type, and ``RoleExtension`` is the
union of the three. Administrators have no extension.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Union


class UserRole(str, Enum):
    """Closed set of platform roles."""

    ADMIN = "admin"
    TEACHER = "teacher"
    TUTOR = "tutor"
    STUDENT = "student"


class UserStatus(str, Enum):
    """Account status. Suspended accounts cannot log in."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


def _timestamp(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class Identity:
    """A ``users`` row.

    Attributes:
        id: Store-assigned identifier.
        email: Normalized (trimmed, lower-case) email.
        password_hash: bcrypt hash of the password.
        name: Display name.
        role: Platform role.
        status: Account status.
        avatar_url: Optional avatar image URL.
        last_login: Timestamp of the last successful login.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: int
    email: str
    password_hash: str
    name: str
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE
    avatar_url: Optional[str] = None
    last_login: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Identity":
        """Build an Identity from a ``users`` row."""
        return cls(
            id=int(row["id"]),
            email=row["email"],
            password_hash=row["password"],
            name=row["name"],
            role=UserRole(row["role"]),
            status=UserStatus(row.get("status") or UserStatus.ACTIVE.value),
            avatar_url=row.get("avatar_url"),
            last_login=_timestamp(row.get("last_login")),
            created_at=_timestamp(row.get("created_at")),
            updated_at=_timestamp(row.get("updated_at")),
        )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


@dataclass(frozen=True)
class TeacherExtension:
    """A ``teachers`` row."""

    school: str = ""
    subjects: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TeacherExtension":
        return cls(school=row.get("school") or "", subjects=row.get("subjects") or "")


@dataclass(frozen=True)
class TutorExtension:
    """A ``tutors`` row."""

    relationship: str = "parent"
    phone: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TutorExtension":
        return cls(
            relationship=row.get("relationship") or "",
            phone=row.get("phone") or "",
        )


@dataclass(frozen=True)
class StudentExtension:
    """A ``students`` row."""

    school: str = ""
    grade: str = ""
    points: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "StudentExtension":
        return cls(
            school=row.get("school") or "",
            grade=str(row.get("grade") or ""),
            points=int(row.get("points") or 0),
        )


RoleExtension = Union[TeacherExtension, TutorExtension, StudentExtension]

EXTENSION_TYPES: dict[UserRole, type] = {
    UserRole.TEACHER: TeacherExtension,
    UserRole.TUTOR: TutorExtension,
    UserRole.STUDENT: StudentExtension,
}

EXTENSION_TABLES: dict[UserRole, str] = {
    UserRole.TEACHER: "teachers",
    UserRole.TUTOR: "tutors",
    UserRole.STUDENT: "students",
}


@dataclass(frozen=True)
class UserProfile:
    """Identity fields merged with role-specific fields.

    Role-specific attributes are None when they do not apply to the role,
    and are left out of ``to_dict()``.
    """

    id: int
    email: str
    name: str
    role: UserRole
    status: UserStatus
    avatar_url: Optional[str] = None
    last_login: Optional[str] = None
    created_at: Optional[str] = None
    school: Optional[str] = None
    subjects: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None
    grade: Optional[str] = None
    points: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        data = asdict(self)
        data["role"] = self.role.value
        data["status"] = self.status.value
        role_fields = ("school", "subjects", "relationship", "phone", "grade", "points")
        for key in role_fields:
            if data[key] is None:
                del data[key]
        return data
