"""
hoa_portal.services.errors

Service-layer exceptions. Routers map these to HTTP status codes; nothing here is
fatal to the process.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class ServiceError(Exception):
    """Base class; `str(exc)` is safe to return to callers."""


class ConfigurationError(ServiceError):
    # The detail stays in logs; callers only ever see "Configuration error".
    def __init__(self, missing: list[str]) -> None:
        super().__init__("Configuration error")
        self.missing = missing


class AuthServiceError(ServiceError):
    pass


class OnboardingError(ServiceError):
    pass


class AlreadyOnboardedError(OnboardingError):
    def __init__(self) -> None:
        super().__init__("You have already completed onboarding")


@dataclass(eq=False)
class UnitConflictError(ServiceError):
    unit_numbers: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__("Some units are already owned")


class RateNotFoundError(ServiceError):
    pass


class UserAdminError(ServiceError):
    pass
