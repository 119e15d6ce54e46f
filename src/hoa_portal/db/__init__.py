"""
hoa_portal.db

Persistence for auth users, profiles, sites, role grants, permissions and units.

Responsibilities:
- ORM models and the async engine/session factory.
- Table creation plus default role permissions for dev/test.
- Repositories used by the service layer.
"""
