"""
hoa_portal.auth

Backend authentication package.

Responsibilities:
- Access-token issuing/validation (JWT) and password hashing.
- FastAPI dependencies that turn a bearer token into a `Principal`.
"""

# Package marker.
