"""
hoa_portal.client.context

Injectable bundle of the client state components.

Responsibilities:
- Own the shared `httpx.AsyncClient` and client storage.
- Wire Auth -> Resolver -> Gate so each re-runs on upstream changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType

import httpx

from hoa_portal.client.auth_api import AuthClient
from hoa_portal.client.backend import BackendClient
from hoa_portal.client.language import LanguagePreference
from hoa_portal.client.permissions import PermissionGate
from hoa_portal.client.session import AuthStore
from hoa_portal.client.sites import SiteResolver
from hoa_portal.client.storage import ClientStorage, MemoryStorage


@dataclass(eq=False)
class ClientContext:
    http: httpx.AsyncClient
    storage: ClientStorage
    auth_client: AuthClient
    backend: BackendClient
    auth: AuthStore
    sites: SiteResolver
    permissions: PermissionGate
    language: LanguagePreference

    @classmethod
    def create(
        cls,
        *,
        base_url: str,
        storage: ClientStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> ClientContext:
        storage = storage if storage is not None else MemoryStorage()
        http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        auth_client = AuthClient(http=http, storage=storage)
        backend = BackendClient(http=http, auth=auth_client)
        sites = SiteResolver(backend=backend, storage=storage)
        permissions = PermissionGate(backend=backend)
        sites.on_change(permissions.on_resolver_change)
        language = LanguagePreference(storage=storage, backend=backend)
        auth = AuthStore(auth=auth_client, backend=backend, resolver=sites, language=language)
        return cls(
            http=http,
            storage=storage,
            auth_client=auth_client,
            backend=backend,
            auth=auth,
            sites=sites,
            permissions=permissions,
            language=language,
        )

    async def start(self) -> None:
        self.language.restore()
        await self.auth.start()

    async def aclose(self) -> None:
        self.auth.close()
        await self.http.aclose()

    async def __aenter__(self) -> ClientContext:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def can_access(self, path: str) -> bool:
        return self.permissions.can_access(path)
