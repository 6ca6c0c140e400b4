# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role profile composition.

A profile is an identity merged with the fields of its role extension:

- teacher: school, subjects
- tutor: relationship, phone
- student: school, grade, points
- admin: identity fields only

An identity whose extension row is missing still gets a profile, with
empty-string role fields. The gap is logged as ``role_extension_missing``.
"""

from typing import TYPE_CHECKING, Optional

from amistapp.domains.auth.models import (
    Identity,
    RoleExtension,
    StudentExtension,
    TeacherExtension,
    TutorExtension,
    UserProfile,
    UserRole,
)
from amistapp.utils.logging import get_logger

if TYPE_CHECKING:
    from amistapp.domains.auth.repository import UserRepository

logger = get_logger(__name__)


def compose_profile(identity: Identity, extension: Optional[RoleExtension]) -> UserProfile:
    """Merge an identity with its role extension.

    Args:
        identity: The user's identity record.
        extension: The extension row for the identity's role, or None.
            An extension of the wrong type is treated as missing.

    Returns:
        The composed profile.
    """
    base = {
        "id": identity.id,
        "email": identity.email,
        "name": identity.name,
        "role": identity.role,
        "status": identity.status,
        "avatar_url": identity.avatar_url,
        "last_login": identity.last_login,
        "created_at": identity.created_at,
    }

    if identity.role == UserRole.TEACHER:
        teacher = extension if isinstance(extension, TeacherExtension) else TeacherExtension()
        return UserProfile(**base, school=teacher.school, subjects=teacher.subjects)

    if identity.role == UserRole.TUTOR:
        tutor = (
            extension if isinstance(extension, TutorExtension)
            else TutorExtension(relationship="", phone="")
        )
        return UserProfile(**base, relationship=tutor.relationship, phone=tutor.phone)

    if identity.role == UserRole.STUDENT:
        student = extension if isinstance(extension, StudentExtension) else StudentExtension()
        return UserProfile(
            **base,
            school=student.school,
            grade=student.grade,
            points=student.points,
        )

    return UserProfile(**base)


class ProfileComposer:
    """Loads role extensions and composes profiles."""

    def __init__(self, repository: "UserRepository") -> None:
        self._repository = repository

    async def compose(self, identity: Identity) -> UserProfile:
        """Compose the profile of a loaded identity.

        Args:
            identity: The identity to compose.

        Returns:
            The composed profile. Missing extension data degrades to
            empty-string fields.
        """
        extension = await self._repository.get_extension(identity.id, identity.role)
        if extension is None and identity.role != UserRole.ADMIN:
            logger.warning(
                "role_extension_missing",
                user_id=identity.id,
                role=identity.role.value,
            )
        return compose_profile(identity, extension)

    async def compose_for_user(self, user_id: int) -> Optional[UserProfile]:
        """Fetch an identity by id and compose its profile.

        Returns:
            The composed profile, or None if the user does not exist.
        """
        identity = await self._repository.get_by_id(user_id)
        if identity is None:
            return None
        return await self.compose(identity)
