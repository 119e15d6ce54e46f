"""
hoa_portal.client.language

Display-language preference for the client core.
"""

from __future__ import annotations

import uuid

from hoa_portal.client.backend import BackendClient
from hoa_portal.client.errors import BackendError, RecordDecodeError
from hoa_portal.client.records import ProfileRecord
from hoa_portal.client.storage import LANGUAGE_KEY, ClientStorage
from hoa_portal.domain import SUPPORTED_LANGUAGES
from hoa_portal.observability.logging import get_logger

log = get_logger(__name__)

DEFAULT_LANGUAGE = "en"


class LanguagePreference:
    """
    Display language: restored from client storage, adopted from the profile on
    sign-in, and written back to the profile when changed while signed in.
    """

    def __init__(self, *, storage: ClientStorage, backend: BackendClient) -> None:
        self._storage = storage
        self._backend = backend
        self._language = DEFAULT_LANGUAGE
        self._profile_id: uuid.UUID | None = None

    @property
    def language(self) -> str:
        return self._language

    def restore(self) -> str:
        stored = self._storage.get(LANGUAGE_KEY)
        if stored in SUPPORTED_LANGUAGES:
            self._language = stored
        return self._language

    def adopt(self, profile: ProfileRecord) -> None:
        self._profile_id = profile.id
        if profile.language in SUPPORTED_LANGUAGES:
            self._language = profile.language
            self._storage.set(LANGUAGE_KEY, profile.language)

    def forget_user(self) -> None:
        self._profile_id = None

    async def set_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        self._language = language
        self._storage.set(LANGUAGE_KEY, language)
        if self._profile_id is None:
            return
        try:
            await self._backend.update_profile(self._profile_id, {"language": language})
        except (BackendError, RecordDecodeError) as e:
            log.warning("language.sync_failed", language=language, error=str(e))
