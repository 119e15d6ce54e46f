"""
hoa_portal

Top-level package for the HOA management portal backend and its client core.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal; the client core is imported by UI processes that never
# start the API server.
