"""
hoa_portal.api.routers.functions

HTTP functions (`/functions/v1/*`): exchange-rate lookup, self-onboarding,
user administration and super-admin bootstrap.
"""

# Package marker.
