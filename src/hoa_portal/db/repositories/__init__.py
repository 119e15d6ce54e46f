"""
hoa_portal.db.repositories

One repository per aggregate (auth users/refresh tokens, profiles, sites, role
grants, role permissions, units). Import them from their submodules.
"""


# --- Module Notes -----------------------------------------------------------
# Repositories flush but never commit; the router or service owning the request
# decides the transaction boundary.
