"""
hoa_portal.client.events

Auth state/event vocabulary and a small async listener registry shared by the
client components.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from hoa_portal.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class AuthState(enum.StrEnum):
    anonymous = "anonymous"
    authenticating = "authenticating"
    authenticated = "authenticated"
    expired = "expired"


class AuthEvent(enum.StrEnum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class Subscription:
    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe = unsubscribe
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._unsubscribe()


class ListenerSet(Generic[T]):
    """
    Ordered async callbacks. A failing listener is logged and does not stop the
    others.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: list[Callable[[T], Awaitable[None]]] = []

    def add(self, cb: Callable[[T], Awaitable[None]]) -> Subscription:
        self._callbacks.append(cb)
        return Subscription(lambda: self._callbacks.remove(cb))

    async def emit(self, value: T) -> None:
        for cb in list(self._callbacks):
            try:
                await cb(value)
            except Exception:
                log.exception("client.listener_failed", listeners=self._name)
