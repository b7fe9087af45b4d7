"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    MearError,
    RegistryError,
    DraftNotFoundError,
    DraftPersistenceError,
    FormValidationError,
    UnknownPhaseError,
    ReportGenerationError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "MearError",
    "RegistryError",
    "DraftNotFoundError",
    "DraftPersistenceError",
    "FormValidationError",
    "UnknownPhaseError",
    "ReportGenerationError",
]
