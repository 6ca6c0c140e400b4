"""AmistApp Backend.

Credential and session authority for the AmistApp school platform: account
registration, login, role-aware profiles and the schema migrations they
depend on.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
