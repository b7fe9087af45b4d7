"""
Phase Navigation

Moves a FormStore through the ordered proforma phases.  All side effects of
a phase change (alert purge, monitoring timer start) belong to
FormStore.set_current_phase; the navigator only decides where to go.
"""
import logging
from typing import Dict, Optional

from mear.core.phases import FIRST_PHASE, MONITORING_PHASE, PHASE_IDS, PHASES, PhaseDescriptor, get_phase
from mear.utils.exceptions import UnknownPhaseError

logger = logging.getLogger(__name__)

__all__ = [
    "PHASES",
    "PHASE_IDS",
    "FIRST_PHASE",
    "MONITORING_PHASE",
    "PhaseDescriptor",
    "PhaseNavigator",
]


class PhaseNavigator:
    def __init__(self, store):
        self.store = store

    @property
    def current(self) -> PhaseDescriptor:
        phase = get_phase(self.store.current_phase)
        if phase is None:
            # a draft saved with an id we no longer know; fall back to the start
            logger.warning(f"Draft phase {self.store.current_phase!r} unknown; using {FIRST_PHASE}")
            return PHASES[0]
        return phase

    @property
    def index(self) -> int:
        return PHASE_IDS.index(self.current.id)

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(PHASES) - 1

    def goto(self, phase_id: str) -> PhaseDescriptor:
        phase = get_phase(phase_id)
        if phase is None:
            raise UnknownPhaseError(phase_id)
        self.store.set_current_phase(phase.id)
        return phase

    def next(self) -> Optional[PhaseDescriptor]:
        """Advance one phase; None (and no change) on the last phase."""
        if self.is_last:
            return None
        return self.goto(PHASES[self.index + 1].id)

    def previous(self) -> Optional[PhaseDescriptor]:
        if self.is_first:
            return None
        return self.goto(PHASES[self.index - 1].id)

    def complete_current(self) -> Optional[PhaseDescriptor]:
        """Mark the current phase complete and move on."""
        self.store.mark_phase_complete(self.current.id)
        return self.next()

    def progress(self) -> Dict[str, object]:
        completed = [p for p in self.store.completed_phases if p in PHASE_IDS]
        total = len(PHASES)
        return {
            "current": self.current.id,
            "index": self.index,
            "completed": len(completed),
            "total": total,
            "percent": round(100 * len(completed) / total),
        }
