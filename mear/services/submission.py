"""
Final Submission Workflow

    validate → POST /api/mear → DELETE draft → drop local mirror → stop timer

Only this workflow surfaces a failure state to the user.  The outcome tells
"registered but the draft could not be cleared" apart from "nothing saved".
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from mear.models import validate_submission
from mear.utils.exceptions import DraftPersistenceError, RegistryError

logger = logging.getLogger(__name__)

CASES_PATH = "/cases"


class SubmitOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    SAVED_DRAFT_NOT_CLEARED = "saved_draft_not_cleared"
    FAILED = "failed"
    INVALID = "invalid"


@dataclass
class SubmitResult:
    outcome: SubmitOutcome
    case_id: Optional[str] = None
    errors: List[Dict[str, str]] = field(default_factory=list)
    message: str = ""

    @property
    def saved(self) -> bool:
        return self.outcome in (SubmitOutcome.SUCCEEDED, SubmitOutcome.SAVED_DRAFT_NOT_CLEARED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "caseId": self.case_id,
            "errors": list(self.errors),
            "message": self.message,
        }


class SubmissionService:
    def __init__(self, registry, mirror=None):
        self.registry = registry
        self.mirror = mirror

    async def submit(self, store) -> SubmitResult:
        errors = validate_submission(store.data)
        if errors:
            logger.info(f"Submission rejected: {len(errors)} validation error(s)")
            return SubmitResult(SubmitOutcome.INVALID, errors=errors, message="Form has validation errors")

        # no draft write may land between the case POST and the draft DELETE
        store.hold_saves()
        await store.wait_for_save()
        try:
            response = await self.registry.submit_case(store.data)
        except RegistryError as e:
            logger.error(f"Case submission failed: {e.message}")
            store.release_saves()
            return SubmitResult(SubmitOutcome.FAILED, message=e.message)

        case_id = response.get("id")
        case_id = str(case_id) if case_id is not None else None
        logger.info(f"Case registered: {case_id}")

        draft_id = store.draft_id
        hospital_no = store.to_dict()["hospitalNo"]
        outcome = SubmitOutcome.SUCCEEDED
        message = "Case submitted"
        if draft_id is not None or hospital_no:
            try:
                await self.registry.delete_draft(draft_id, hospital_no if draft_id is None else None)
            except RegistryError as e:
                if e.status_code == 404:
                    logger.info(f"No registry draft left to clear for case {case_id}")
                else:
                    logger.warning(f"Case {case_id} saved but draft could not be cleared: {e.message}")
                    outcome = SubmitOutcome.SAVED_DRAFT_NOT_CLEARED
                    message = "Case saved, but the draft could not be cleared"

        if self.mirror is not None:
            try:
                self.mirror.remove(draft_id, hospital_no)
            except DraftPersistenceError as e:
                logger.error(f"Local draft mirror not cleared: {e.message}")

        store.stop_timer()
        store.mark_complete()
        store.navigation.remove("draftId")
        store.navigation.remove("hospitalNo")
        store.navigation.path = CASES_PATH
        return SubmitResult(outcome, case_id=case_id, message=message)
