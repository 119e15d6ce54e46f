"""
hoa_portal.client.errors

Client-side exception hierarchy.

`AuthError` is reported to callers as a value (`AuthResult.error`); `BackendError`
and `RecordDecodeError` are caught by the state components and collapse to empty
state.
"""

from __future__ import annotations


class ClientError(Exception):
    pass


class BackendError(ClientError):
    """Transport failure or non-2xx response from the backend."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordDecodeError(ClientError):
    """A row returned by the data API does not match its record schema."""

    def __init__(self, table: str, detail: str) -> None:
        super().__init__(f"Malformed {table} row: {detail}")
        self.table = table
        self.detail = detail


class AuthError(ClientError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionExpiredError(AuthError):
    pass
