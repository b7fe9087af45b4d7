"""
Custom Exception Hierarchy

Specific exception types for the registry core and its collaborators,
each carrying structured error information for API responses.
"""
from typing import Optional, Dict, Any, List


class MearError(Exception):
    """Base exception for all registry errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class RegistryError(MearError):
    """Errors talking to the registry backend (drafts, cases, auth)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="REGISTRY_ERROR",
            details={"endpoint": endpoint, "status_code": status_code, **(details or {})}
        )
        self.status_code = status_code
        self.endpoint = endpoint


class DraftNotFoundError(RegistryError):
    """The backend has no draft for the requested id / hospital number."""

    def __init__(
        self,
        message: str = "Draft not found",
        draft_id: Optional[str] = None,
        hospital_no: Optional[str] = None
    ):
        super().__init__(
            message=message,
            status_code=404,
            endpoint="/api/draft",
            details={"draft_id": draft_id, "hospital_no": hospital_no}
        )
        self.code = "DRAFT_NOT_FOUND"


class DraftPersistenceError(MearError):
    """Errors reading or writing the local draft mirror."""

    def __init__(
        self,
        message: str,
        key: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="DRAFT_PERSISTENCE_ERROR",
            details={"key": key, **(details or {})}
        )
        self.key = key


class FormValidationError(MearError):
    """Submit-time schema validation failed."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"errors": errors or []}
        )
        self.errors = errors or []


class UnknownPhaseError(MearError):
    """Navigation to a phase id that is not part of the form."""

    def __init__(self, phase_id: str):
        super().__init__(
            message=f"Unknown phase: {phase_id}",
            code="UNKNOWN_PHASE",
            details={"phase_id": phase_id}
        )
        self.phase_id = phase_id


class ReportGenerationError(MearError):
    """Errors during report generation."""

    def __init__(
        self,
        message: str,
        report_type: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="REPORT_ERROR",
            details={"report_type": report_type, **(details or {})}
        )
        self.report_type = report_type
