"""
hoa_portal.client.auth_api

HTTP client for the backend auth API (`/auth/v1`).

Responsibilities:
- Own the current session and persist it in client storage.
- Emit auth events (`INITIAL_SESSION`, `SIGNED_IN`, `SIGNED_OUT`,
  `TOKEN_REFRESHED`, `USER_UPDATED`) to subscribers, in order.
- Translate backend auth failures into `AuthError` / `SessionExpiredError`.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from hoa_portal.client.errors import AuthError, BackendError, RecordDecodeError, SessionExpiredError
from hoa_portal.client.events import AuthEvent, ListenerSet, Subscription
from hoa_portal.client.http import send_json
from hoa_portal.client.records import SessionRecord, UserRecord, decode_record
from hoa_portal.client.storage import SESSION_KEY, ClientStorage
from hoa_portal.observability.logging import get_logger

log = get_logger(__name__)

AuthCallback = Callable[[AuthEvent, SessionRecord | None], Awaitable[None]]


class AuthClient:
    def __init__(self, *, http: httpx.AsyncClient, storage: ClientStorage) -> None:
        self._http = http
        self._storage = storage
        self._session: SessionRecord | None = None
        self._listeners: ListenerSet[tuple[AuthEvent, SessionRecord | None]] = ListenerSet("auth")

    @property
    def session(self) -> SessionRecord | None:
        return self._session

    @property
    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def auth_headers(self) -> dict[str, str]:
        token = self.access_token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def on_auth_state_change(self, cb: AuthCallback) -> Subscription:
        async def _adapter(item: tuple[AuthEvent, SessionRecord | None]) -> None:
            await cb(*item)

        return self._listeners.add(_adapter)

    async def initialize(self, *, refresh_margin_seconds: float = 0.0) -> SessionRecord | None:
        """
        Restore the cached session and emit `INITIAL_SESSION`.

        A cached session expiring within `refresh_margin_seconds` is refreshed
        first. If its refresh token is rejected the cache is cleared and
        `SessionExpiredError` propagates before any event is emitted.
        """

        self._session = self._load_cached()
        if self._session is not None and self._session.expires_within(refresh_margin_seconds):
            try:
                await self._exchange_refresh_token()
            except SessionExpiredError:
                log.info("auth.cached_session_rejected")
                raise
            except AuthError as e:
                log.warning("auth.initial_refresh_failed", error=str(e), status_code=e.status_code)
        await self._emit(AuthEvent.INITIAL_SESSION)
        return self._session

    async def sign_in_with_password(self, *, email: str, password: str) -> SessionRecord:
        body = await self._auth_call(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._store(self._decode_session(body))
        await self._emit(AuthEvent.SIGNED_IN)
        return self._session  # type: ignore[return-value]

    async def sign_up(
        self, *, email: str, password: str, data: dict[str, Any] | None = None
    ) -> SessionRecord:
        body = await self._auth_call(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "data": data or {}},
        )
        self._store(self._decode_session(body))
        await self._emit(AuthEvent.SIGNED_IN)
        return self._session  # type: ignore[return-value]

    async def sign_out(self) -> None:
        if self._session is not None:
            try:
                await send_json(self._http, "POST", "/auth/v1/logout", headers=self.auth_headers())
            except BackendError as e:
                # The local session is dropped regardless; the refresh token expires server-side.
                log.warning("auth.remote_sign_out_failed", error=str(e), status_code=e.status_code)
        self._store(None)
        await self._emit(AuthEvent.SIGNED_OUT)

    async def refresh_session(self) -> SessionRecord:
        """
        Exchange the refresh token for a new session.

        A rejected refresh token clears the local session and raises
        `SessionExpiredError` without emitting an event; transport failures raise
        `AuthError` and keep the session.
        """

        await self._exchange_refresh_token()
        await self._emit(AuthEvent.TOKEN_REFRESHED)
        return self._session  # type: ignore[return-value]

    async def _exchange_refresh_token(self) -> None:
        if self._session is None:
            raise SessionExpiredError("No session to refresh")
        try:
            body = await send_json(
                self._http,
                "POST",
                "/auth/v1/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": self._session.refresh_token},
            )
        except BackendError as e:
            if e.status_code in (400, 401):
                self._store(None)
                raise SessionExpiredError(str(e), status_code=e.status_code) from e
            raise AuthError(str(e), status_code=e.status_code) from e
        self._store(self._decode_session(body))

    async def update_user(self, *, data: dict[str, Any]) -> UserRecord:
        if self._session is None:
            raise AuthError("Not signed in", status_code=401)
        body = await self._auth_call(
            "PUT", "/auth/v1/user", headers=self.auth_headers(), json={"data": data}
        )
        try:
            user = decode_record(UserRecord, "auth_users", body)
        except RecordDecodeError as e:
            raise AuthError(str(e)) from e
        self._store(self._session.model_copy(update={"user": user}))
        await self._emit(AuthEvent.USER_UPDATED)
        return user

    async def _auth_call(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            return await send_json(self._http, method, url, **kwargs)
        except BackendError as e:
            raise AuthError(str(e), status_code=e.status_code) from e

    @staticmethod
    def _decode_session(body: Any) -> SessionRecord:
        try:
            return decode_record(SessionRecord, "session", body)
        except RecordDecodeError as e:
            raise AuthError(str(e)) from e

    def _load_cached(self) -> SessionRecord | None:
        raw = self._storage.get(SESSION_KEY)
        if not raw:
            return None
        try:
            return SessionRecord.model_validate(json.loads(raw))
        except ValueError:
            # pydantic's ValidationError is a ValueError subclass.
            log.warning("auth.cached_session_invalid")
            self._storage.remove(SESSION_KEY)
            return None

    def _store(self, session: SessionRecord | None) -> None:
        self._session = session
        if session is None:
            self._storage.remove(SESSION_KEY)
        else:
            self._storage.set(SESSION_KEY, session.model_dump_json())

    async def _emit(self, event: AuthEvent) -> None:
        log.info(
            "auth.event",
            auth_event=event.value,
            user_id=str(self._session.user.id) if self._session else None,
        )
        await self._listeners.emit((event, self._session))
