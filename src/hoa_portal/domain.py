"""
hoa_portal.domain

Vocabulary shared by the backend schema and the client core.

Responsibilities:
- Site roles (`Role`).
- Display languages accepted in `profiles.language`.
"""

from __future__ import annotations

import enum


class Role(enum.StrEnum):
    admin = "admin"
    board_member = "board_member"
    homeowner = "homeowner"


SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "tr", "ru", "de", "nl", "fa", "no", "sv", "fi", "da")


# --- Module Notes -----------------------------------------------------------
# No SQLAlchemy here: the client core imports this module without loading the ORM.
