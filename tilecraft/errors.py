"""
Error taxonomy shared by geometry, sampling, services and workflows.
"""

from typing import Optional


class TilecraftError(Exception):
    """Base class for all tilecraft errors."""


class InvalidLayout(TilecraftError, ValueError):
    """Bad grid or crop configuration (caller error, never retried)."""


class RasterizationFailure(TilecraftError):
    """The drawing surface could not be acquired or the source is unusable."""


class DecodeError(TilecraftError, ValueError):
    """Raw input bytes could not be decoded into an image."""


class ServiceError(TilecraftError):
    """Generic failure of an enhancement or segmentation collaborator."""


class AuthError(ServiceError):
    """
    Credential rejected by an external enhancement service.

    Attributes:
        remediation: Actionable message shown to the user
    """

    DEFAULT_REMEDIATION = "Check that a valid API key is configured and has access to the service."

    def __init__(self, message: str, remediation: Optional[str] = None):
        super().__init__(message)
        self.remediation = remediation or self.DEFAULT_REMEDIATION

    def __str__(self) -> str:
        return f"{self.args[0]} ({self.remediation})"
