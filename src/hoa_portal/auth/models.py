"""
hoa_portal.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated caller identity (`Principal`) injected into endpoints.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, taken from a validated access token.

    `is_super_admin` is read from the caller's profile row at request time so a
    revoked flag takes effect without waiting for token expiry.
    """

    user_id: uuid.UUID
    email: str
    is_super_admin: bool = False
