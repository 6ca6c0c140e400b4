# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration, login and account management.

The service ties the password hasher, the user repository, the profile
composer and the JWT manager together. It raises domain exceptions; the API
layer maps them to HTTP responses.

Example:
    >>> service = AuthService(store, jwt_manager, PasswordHasher(rounds=10))
    >>> result = await service.register(RegistrationData(...))
    >>> result = await service.login("a@b.com", "secret1")
    >>> result.profile.role
    <UserRole.STUDENT: 'student'>
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from amistapp.domains.auth.jwt import JWTManager, TokenClaims
from amistapp.domains.auth.models import (
    Identity,
    RoleExtension,
    StudentExtension,
    TeacherExtension,
    TutorExtension,
    UserProfile,
    UserRole,
    UserStatus,
)
from amistapp.domains.auth.password import PasswordHasher
from amistapp.domains.auth.profile import ProfileComposer
from amistapp.domains.auth.repository import UserRepository
from amistapp.domains.auth.validation import normalize_email
from amistapp.infrastructure.database.connection import ConflictError, CredentialStore

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base exception for authentication errors."""

    pass


class InvalidCredentialsError(AuthError):
    """Raised when the email is unknown or the password is wrong.

    Both cases raise the same error so callers cannot tell them apart.
    """

    pass


class AccountSuspendedError(AuthError):
    """Raised when a suspended account presents correct credentials."""

    pass


class EmailAlreadyRegisteredError(AuthError):
    """Raised when registering an email that already has an identity."""

    pass


class UserNotFoundError(AuthError):
    """Raised when the referenced user does not exist."""

    pass


class IncorrectPasswordError(AuthError):
    """Raised when a password change presents the wrong current password."""

    pass


@dataclass(frozen=True)
class RegistrationData:
    """Validated registration input.

    Attributes:
        email: Normalized email.
        password: Plain text password.
        name: Display name.
        role: Requested role. Public registration never grants admin.
        extension: Role extension fields to store with the identity.
    """

    email: str
    password: str
    name: str
    role: UserRole
    extension: RoleExtension

    @classmethod
    def build(
        cls,
        *,
        email: str,
        password: str,
        name: str,
        role: UserRole,
        school: Optional[str] = None,
        subjects: Optional[str] = None,
        relationship: Optional[str] = None,
        phone: Optional[str] = None,
        grade: Optional[str] = None,
    ) -> "RegistrationData":
        """Assemble registration data, picking the extension for the role.

        Raises:
            ValueError: If the role is admin.
        """
        extension: RoleExtension
        if role == UserRole.TEACHER:
            extension = TeacherExtension(school=school or "", subjects=subjects or "")
        elif role == UserRole.TUTOR:
            extension = TutorExtension(relationship=relationship or "parent", phone=phone or "")
        elif role == UserRole.STUDENT:
            extension = StudentExtension(school=school or "", grade=grade or "")
        else:
            raise ValueError("Administrator accounts cannot be registered")

        return cls(
            email=normalize_email(email),
            password=password,
            name=name,
            role=role,
            extension=extension,
        )


class AuthResult(NamedTuple):
    """Result of a successful registration or login."""

    token: str
    profile: UserProfile


class AuthService:
    """Credential and session operations over the credential store.

    Attributes:
        _repository: SQL access for users and extensions.
        _composer: Role profile composer.
        _jwt_manager: Session token manager.
        _password_hasher: Password hashing utility.
    """

    def __init__(
        self,
        store: CredentialStore,
        jwt_manager: JWTManager,
        password_hasher: PasswordHasher | None = None,
    ) -> None:
        """Initialize the authentication service.

        Args:
            store: Credential store.
            jwt_manager: Session token manager.
            password_hasher: Password hasher (uses default rounds if not provided).
        """
        self._store = store
        self._repository = UserRepository(store)
        self._composer = ProfileComposer(self._repository)
        self._jwt_manager = jwt_manager
        self._password_hasher = password_hasher or PasswordHasher()
        self._dummy_hash: str | None = None

    @property
    def repository(self) -> UserRepository:
        return self._repository

    async def register(self, data: RegistrationData) -> AuthResult:
        """Create an identity with its role extension and issue a token.

        The identity and the extension are written in one transaction, so
        either both exist afterwards or neither does.

        Args:
            data: Validated registration input.

        Returns:
            AuthResult with a session token and the composed profile.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken.
        """
        password_hash = await self._password_hasher.hash_async(data.password)

        try:
            async with self._store.transaction() as tx:
                user_id = await self._repository.create_identity(
                    tx,
                    email=data.email,
                    password_hash=password_hash,
                    name=data.name,
                    role=data.role,
                )
                await self._repository.create_extension(tx, user_id, data.extension)
        except ConflictError as e:
            logger.info("Registration rejected: email already registered")
            raise EmailAlreadyRegisteredError("Email already registered") from e

        identity = await self._repository.get_by_id(user_id)
        if identity is None:
            raise UserNotFoundError(f"User {user_id} vanished after registration")

        profile = await self._composer.compose(identity)
        token = self._issue(identity)

        logger.info("User registered: id=%s role=%s", user_id, data.role.value)
        return AuthResult(token=token, profile=profile)

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password.

        Unknown emails still pay for one bcrypt comparison, so both failure
        paths take about the same time and raise the same error.

        Args:
            email: Login email, normalized before lookup.
            password: Plain text password.

        Returns:
            AuthResult with a session token and the composed profile.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong.
            AccountSuspendedError: If the credentials are right but the account
                is suspended.
        """
        identity = await self._repository.get_by_email(normalize_email(email))

        if identity is None:
            await self._password_hasher.verify_async(password, await self._get_dummy_hash())
            logger.warning("Login failed: unknown email")
            raise InvalidCredentialsError("invalid credentials")

        if not await self._password_hasher.verify_async(password, identity.password_hash):
            logger.warning("Login failed: wrong password for user %s", identity.id)
            raise InvalidCredentialsError("invalid credentials")

        if not identity.is_active:
            logger.warning("Login refused: account %s is %s", identity.id, identity.status.value)
            raise AccountSuspendedError("Account is suspended")

        await self._repository.record_login(identity.id)
        refreshed = await self._repository.get_by_id(identity.id) or identity

        profile = await self._composer.compose(refreshed)
        token = self._issue(refreshed)

        logger.info("User logged in: %s", identity.id)
        return AuthResult(token=token, profile=profile)

    async def get_profile(self, user_id: int) -> UserProfile:
        """Compose the profile of an existing user.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        profile = await self._composer.compose_for_user(user_id)
        if profile is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return profile

    async def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        avatar_url: Optional[str] = None,
    ) -> UserProfile:
        """Update display name and avatar.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        if not await self._repository.update_profile(user_id, name=name, avatar_url=avatar_url):
            raise UserNotFoundError(f"User {user_id} not found")
        return await self.get_profile(user_id)

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one.

        Raises:
            UserNotFoundError: If the user does not exist.
            IncorrectPasswordError: If the current password does not match.
        """
        identity = await self._repository.get_by_id(user_id)
        if identity is None:
            raise UserNotFoundError(f"User {user_id} not found")

        if not await self._password_hasher.verify_async(current_password, identity.password_hash):
            raise IncorrectPasswordError("Current password is incorrect")

        new_hash = await self._password_hasher.hash_async(new_password)
        await self._repository.update_password(user_id, new_hash)
        logger.info("Password changed for user %s", user_id)

    async def set_status(self, user_id: int, status: UserStatus) -> UserProfile:
        """Activate or suspend an account.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        if not await self._repository.set_status(user_id, status):
            raise UserNotFoundError(f"User {user_id} not found")
        logger.info("User %s status set to %s", user_id, status.value)
        return await self.get_profile(user_id)

    def _issue(self, identity: Identity) -> str:
        return self._jwt_manager.create_access_token(
            TokenClaims(
                id=identity.id,
                email=identity.email,
                role=identity.role,
                name=identity.name,
            )
        )

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await self._password_hasher.hash_async("dummy-password-for-timing")
        return self._dummy_hash
