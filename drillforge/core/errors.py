"""
Error taxonomy for the generation engine.

Every failure carries a machine-readable ``code`` plus a message that is safe to
show to the caller. ``to_payload`` renders the same envelope the HTTP layer uses
for its error responses.
"""
from typing import Any


class DrillError(Exception):
    code = "drill_error"

    def __init__(self, message: str, *, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        }


class ConfigurationError(DrillError):
    """Unknown curriculum or level, count out of range, profile/curriculum mismatch."""

    code = "configuration_error"


class GenerationExhaustionError(DrillError):
    """No fresh exercise could be produced within the attempt bound."""

    code = "generation_exhausted"


class DependencyError(DrillError):
    """Required collaborator data (e.g. adaptive profile) is missing."""

    code = "dependency_error"
