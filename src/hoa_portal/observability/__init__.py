"""
hoa_portal.observability

Logging for the API server and the client core.

Responsibilities:
- structlog setup with credential redaction.
- Per-request ids bound into every log line emitted while serving a request.
"""
