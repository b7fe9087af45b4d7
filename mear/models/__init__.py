"""
Data Models — form snapshot schema used at submit time and by the API.
"""
from .form import FormSnapshot, IntubationAttempt, validate_submission

__all__ = [
    "FormSnapshot",
    "IntubationAttempt",
    "validate_submission",
]
