"""
Protocol Activation

Named care bundles switched on purely by the current snapshot:

    sepsis-bundle      medical indication "sepsis" ticked
    neuroprotection    total GCS ≤ 8
    difficult-airway   LEON score ≥ 3

Each bundle appears at most once per evaluation, in the order above.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from mear.core.calculations import calc_leon_score, coerce_flag, total_gcs_from
from mear.core.calculations.scores import GCS_SEVERE_MAX, LEON_PROTOCOL_MIN

from .base import ProtocolActivation


def _sepsis_bundle() -> ProtocolActivation:
    return ProtocolActivation(
        protocol_id="sepsis-bundle",
        name="Sepsis Bundle Protocol",
        indication="Sepsis",
        steps=[
            "Obtain blood cultures before antibiotics",
            "Administer broad-spectrum antibiotics within 1 hour",
            "Measure lactate level",
            "Begin rapid administration of 30ml/kg crystalloid for hypotension or lactate ≥4 mmol/L",
            "Apply vasopressors if hypotension during or after fluid resuscitation to maintain MAP ≥65 mmHg",
        ],
        medications=["Broad-spectrum antibiotics", "Crystalloid fluids", "Vasopressors"],
        monitoring=["Blood pressure", "Urine output", "Lactate levels"],
        consultations=["Infectious disease", "ICU"],
    )


def _neuroprotection() -> ProtocolActivation:
    return ProtocolActivation(
        protocol_id="neuroprotection",
        name="Neuroprotection Protocol",
        indication="Severe brain injury (GCS ≤8)",
        steps=[
            "Maintain MAP >80 mmHg",
            "Target PCO2 35-40 mmHg",
            "Maintain normothermia",
            "Elevate head of bed 30 degrees",
            "Avoid hypotonic fluids",
        ],
        medications=["Propofol", "Mannitol if indicated", "Hypertonic saline if indicated"],
        monitoring=["ICP monitoring", "Frequent neurological checks", "ABG monitoring"],
        consultations=["Neurosurgery", "ICU"],
    )


def _difficult_airway() -> ProtocolActivation:
    return ProtocolActivation(
        protocol_id="difficult-airway",
        name="Difficult Airway Protocol",
        indication="High LEON score (≥3)",
        steps=[
            "Prepare multiple airway devices",
            "Experienced intubator",
            "Video laryngoscopy first line",
            "Surgical airway backup ready",
            "Consider awake intubation if LEON ≥4",
        ],
        medications=["Topical anesthetics for awake intubation"],
        monitoring=["Continuous capnography", "Pulse oximetry"],
        consultations=["ENT", "Anesthesia"],
    )


def get_activated_protocols(snapshot: Mapping[str, Any]) -> List[ProtocolActivation]:
    snapshot = snapshot or {}
    protocols: List[ProtocolActivation] = []

    medical = (snapshot.get("indication") or {}).get("medical") or {}
    if coerce_flag(medical.get("sepsis")):
        protocols.append(_sepsis_bundle())

    total_gcs = total_gcs_from(snapshot.get("gcs"))
    if total_gcs is not None and total_gcs <= GCS_SEVERE_MAX:
        protocols.append(_neuroprotection())

    leon = snapshot.get("leonScore")
    if leon and calc_leon_score(leon) >= LEON_PROTOCOL_MIN:
        protocols.append(_difficult_airway())

    return protocols
