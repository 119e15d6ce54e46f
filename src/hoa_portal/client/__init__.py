"""
hoa_portal.client

Client-side state core for UI processes.

Responsibilities:
- Mirror the backend auth session (AuthStore).
- Resolve accessible sites and the role on the active one (SiteResolver).
- Gate UI paths by the role's allow-list (PermissionGate).
- Bundle the above into an injectable ClientContext.
"""

from hoa_portal.client.context import ClientContext

__all__ = ["ClientContext"]
