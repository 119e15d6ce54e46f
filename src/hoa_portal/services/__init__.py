"""
hoa_portal.services

Service-layer package.

Responsibilities:
- Own transaction boundaries for auth, onboarding and user administration.
- Wrap external calls (central-bank exchange rates).
"""

# Package marker.
