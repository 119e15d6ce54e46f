"""
hoa_portal.api

HTTP surface of the portal backend: auth (`/auth/v1`), row-scoped tables
(`/rest/v1`) and server-side functions (`/functions/v1`).

Responsibilities:
- Build the FastAPI app and its lifespan-managed resources.
- Map service errors onto the `{"error": ...}` response envelope.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Authorization lives in the services; routers only parse input and pick the status code.
