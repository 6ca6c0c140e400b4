# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for credential field rules."""

import pytest

from amistapp.domains.auth.validation import (
    normalize_email,
    validate_email,
    validate_name,
    validate_password,
)


class TestEmail:
    """Tests for email normalization and shape checks."""

    def test_normalize_trims_and_lowercases(self) -> None:
        assert normalize_email("  Ana.Soto@Colegio.CL ") == "ana.soto@colegio.cl"

    @pytest.mark.parametrize("email", ["a@b.com", "x.y+z@sub.domain.cl"])
    def test_valid_emails(self, email: str) -> None:
        assert validate_email(email) == email

    @pytest.mark.parametrize(
        "email",
        ["", "plainaddress", "no-domain@", "@no-user.com", "a@b", "a b@c.com", "a@@b.com"],
    )
    def test_invalid_emails(self, email: str) -> None:
        with pytest.raises(ValueError):
            validate_email(email)


class TestPassword:
    """Tests for password length bounds."""

    def test_minimum_length_accepted(self) -> None:
        assert validate_password("123456") == "123456"

    def test_too_short_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least 6"):
            validate_password("12345")

    def test_too_long_rejected(self) -> None:
        with pytest.raises(ValueError, match="at most 128"):
            validate_password("x" * 129)


class TestName:
    """Tests for display name rules."""

    def test_trims(self) -> None:
        assert validate_name("  Ana  ") == "Ana"

    def test_blank_rejected(self) -> None:
        with pytest.raises(ValueError):
            validate_name("   ")

    def test_too_long_rejected(self) -> None:
        with pytest.raises(ValueError):
            validate_name("n" * 101)
