# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain layer containing business logic.

Domains:
- auth: Credentials, session tokens and role profiles
"""
