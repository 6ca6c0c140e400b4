# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential field rules shared by request schemas and services."""

import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
NAME_MAX_LENGTH = 100


def normalize_email(email: str) -> str:
    """Trim and lower-case an email for storage and lookup."""
    return email.strip().lower()


def validate_email(email: str) -> str:
    """Normalize an email and check its shape.

    Args:
        email: Raw email input.

    Returns:
        The normalized email.

    Raises:
        ValueError: If the email has no ``@`` or no dotted domain.
    """
    normalized = normalize_email(email)
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("must be a valid email address")
    return normalized


def validate_password(password: str) -> str:
    """Check password length bounds.

    Raises:
        ValueError: If the password is shorter than 6 or longer than 128
            characters.
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"must be at most {PASSWORD_MAX_LENGTH} characters")
    return password


def validate_name(name: str) -> str:
    """Trim a display name and check it is not blank or too long."""
    trimmed = name.strip()
    if not trimmed:
        raise ValueError("must not be blank")
    if len(trimmed) > NAME_MAX_LENGTH:
        raise ValueError(f"must be at most {NAME_MAX_LENGTH} characters")
    return trimmed
