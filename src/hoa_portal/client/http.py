"""
hoa_portal.client.http

Thin JSON request helper shared by the auth and data clients.
"""

from __future__ import annotations

from typing import Any

import httpx

from hoa_portal.client.errors import BackendError


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


async def send_json(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: Any = None,
    json: Any = None,
) -> Any:
    """
    Returns the decoded JSON body (None for empty responses).
    Raises `BackendError` for transport failures and non-2xx statuses.
    """

    try:
        r = await http.request(method, url, headers=headers, params=params, json=json)
    except httpx.HTTPError as e:
        raise BackendError(f"{method} {url} failed: {e}") from e
    if r.status_code >= 400:
        raise BackendError(_error_message(r), status_code=r.status_code)
    if r.status_code == 204 or not r.content:
        return None
    try:
        return r.json()
    except ValueError as e:
        raise BackendError(f"{method} {url} returned invalid JSON", status_code=r.status_code) from e
