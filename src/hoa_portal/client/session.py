"""
hoa_portal.client.session

Session/Auth Store: mirrors the backend auth session into client memory and
drives the downstream components.

Responsibilities:
- Track `AuthState` across auth events and session expiry.
- Load the profile and resolve sites when the user identity changes; swap the
  token only (no refetch) on `TOKEN_REFRESHED`.
- Report authentication failures as `AuthResult.error` instead of raising.

Ordering:
- Every identity change bumps a generation counter. A profile fetch that
  completes after a newer identity change is discarded.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from hoa_portal.client.auth_api import AuthClient
from hoa_portal.client.backend import BackendClient
from hoa_portal.client.errors import (
    AuthError,
    BackendError,
    RecordDecodeError,
    SessionExpiredError,
)
from hoa_portal.client.events import AuthEvent, AuthState, ListenerSet, Subscription
from hoa_portal.client.language import LanguagePreference
from hoa_portal.client.records import ProfileRecord, SessionRecord, UserRecord
from hoa_portal.client.sites import SiteResolver
from hoa_portal.observability.logging import get_logger

__all__ = ["AuthEvent", "AuthResult", "AuthState", "AuthStore"]

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AuthResult:
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AuthStore:
    def __init__(
        self,
        *,
        auth: AuthClient,
        backend: BackendClient,
        resolver: SiteResolver,
        language: LanguagePreference | None = None,
        refresh_margin_seconds: float = 60.0,
    ) -> None:
        self._auth = auth
        self._backend = backend
        self._resolver = resolver
        self._language = language
        self._refresh_margin = refresh_margin_seconds
        self._listeners: ListenerSet[AuthStore] = ListenerSet("auth_store")
        self._subscription: Subscription | None = None

        self._state = AuthState.anonymous
        self._session: SessionRecord | None = None
        self._profile: ProfileRecord | None = None
        self._loading = True
        self._generation = 0

    # --- read-only view ---------------------------------------------------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def session(self) -> SessionRecord | None:
        return self._session

    @property
    def user(self) -> UserRecord | None:
        return self._session.user if self._session else None

    @property
    def profile(self) -> ProfileRecord | None:
        return self._profile

    @property
    def is_super_admin(self) -> bool:
        return bool(self._profile and self._profile.is_super_admin)

    @property
    def loading(self) -> bool:
        return self._loading

    def on_change(self, cb: Callable[[AuthStore], Awaitable[None]]) -> Subscription:
        return self._listeners.add(cb)

    # --- lifecycle --------------------------------------------------------

    async def start(self) -> None:
        if self._subscription is None:
            self._subscription = self._auth.on_auth_state_change(self._on_auth_event)
        try:
            await self._auth.initialize(refresh_margin_seconds=self._refresh_margin)
        except SessionExpiredError:
            await self._expire()
        self._loading = False
        await self._notify()

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    # --- commands ---------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthResult:
        return await self._authenticate(
            self._auth.sign_in_with_password(email=email, password=password)
        )

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        return await self._authenticate(
            self._auth.sign_up(email=email, password=password, data={"full_name": full_name})
        )

    async def sign_out(self) -> AuthResult:
        await self._auth.sign_out()
        return AuthResult()

    async def update_user(self, data: dict[str, Any]) -> AuthResult:
        try:
            await self._auth.update_user(data=data)
        except AuthError as e:
            return AuthResult(error=e)
        return AuthResult()

    async def refresh_session(self) -> AuthResult:
        try:
            await self._auth.refresh_session()
        except SessionExpiredError as e:
            await self._expire()
            return AuthResult(error=e)
        except AuthError as e:
            log.warning("auth.refresh_failed", error=str(e), status_code=e.status_code)
            return AuthResult(error=e)
        return AuthResult()

    async def ensure_fresh_session(self) -> AuthResult:
        session = self._auth.session
        if session is not None and session.expires_within(self._refresh_margin):
            return await self.refresh_session()
        return AuthResult()

    async def refresh_sites(self) -> None:
        if self.user is not None:
            await self._resolver.resolve(self.user.id, self.is_super_admin)

    # --- event handling ---------------------------------------------------

    async def _authenticate(self, call: Awaitable[SessionRecord]) -> AuthResult:
        previous = self._state
        if previous is not AuthState.authenticated:
            self._state = AuthState.authenticating
            await self._notify()
        try:
            await call
        except AuthError as e:
            log.info("auth.failed", error=str(e), status_code=e.status_code)
            if self._state is AuthState.authenticating:
                self._state = previous
                await self._notify()
            return AuthResult(error=e)
        return AuthResult()

    async def _on_auth_event(self, event: AuthEvent, session: SessionRecord | None) -> None:
        if event is AuthEvent.SIGNED_OUT or session is None:
            await self._clear(forget_selection=event is AuthEvent.SIGNED_OUT)
            return

        same_user = (
            self._state is AuthState.authenticated
            and self.user is not None
            and self.user.id == session.user.id
        )
        self._session = session

        if same_user and event is AuthEvent.USER_UPDATED:
            await self._refetch_profile()
            return
        if same_user:
            # TOKEN_REFRESHED or a repeated sign-in: token swap only.
            await self._notify()
            return
        await self._load_user(session.user.id)

    async def _load_user(self, user_id: uuid.UUID) -> None:
        self._generation += 1
        generation = self._generation
        self._state = AuthState.authenticated
        self._profile = None
        self._loading = True
        if self._resolver.user_id not in (None, user_id):
            # Drop the previous user's sites before anything else is awaited.
            await self._resolver.clear(forget_selection=False)
        await self._notify()

        profile = await self._fetch_profile(user_id)
        if generation != self._generation:
            log.debug("auth.profile_discarded", user_id=str(user_id))
            return
        self._profile = profile
        if self._language is not None and profile is not None:
            self._language.adopt(profile)

        await self._resolver.resolve(user_id, self.is_super_admin)
        if generation != self._generation:
            return
        self._loading = False
        await self._notify()

    async def _refetch_profile(self) -> None:
        generation = self._generation
        user_id = self.user.id  # type: ignore[union-attr]
        was_super_admin = self.is_super_admin
        profile = await self._fetch_profile(user_id)
        if generation != self._generation:
            return
        self._profile = profile
        if self.is_super_admin != was_super_admin:
            await self._resolver.resolve(user_id, self.is_super_admin)
        await self._notify()

    async def _fetch_profile(self, user_id: uuid.UUID) -> ProfileRecord | None:
        try:
            return await self._backend.fetch_profile(user_id)
        except (BackendError, RecordDecodeError) as e:
            log.warning("auth.profile_fetch_failed", user_id=str(user_id), error=str(e))
            return None

    async def _clear(self, *, forget_selection: bool) -> None:
        self._generation += 1
        self._state = AuthState.anonymous
        self._session = None
        self._profile = None
        self._loading = False
        if self._language is not None:
            self._language.forget_user()
        await self._resolver.clear(forget_selection=forget_selection)
        await self._notify()

    async def _expire(self) -> None:
        self._generation += 1
        self._state = AuthState.expired
        self._session = None
        self._profile = None
        self._loading = False
        if self._language is not None:
            self._language.forget_user()
        # The last selected site survives expiry so re-authentication lands on it.
        await self._resolver.clear(forget_selection=False)
        log.info("auth.session_expired")
        await self._notify()

    async def _notify(self) -> None:
        await self._listeners.emit(self)
