"""
Services Package - Registry backend client, local draft mirror and the
final submission workflow
"""
from .registry import DraftRecord, RegistryClient
from .local_mirror import LocalDraftMirror, mirror_key
from .submission import SubmissionService, SubmitOutcome, SubmitResult

__all__ = [
    "DraftRecord",
    "RegistryClient",
    "LocalDraftMirror",
    "mirror_key",
    "SubmissionService",
    "SubmitOutcome",
    "SubmitResult",
]
