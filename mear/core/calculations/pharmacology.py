"""
RSI Pharmacology Helpers

Weight-based induction / paralytic doses and agent selection for rapid
sequence intubation.  Decision support only — doses are starting points.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .vitals import (
    SHOCK_INDEX_ELEVATED,
    Number,
    calc_shock_index,
    coerce_flag,
    normalize_vital_signs,
    parse_number,
    round_half_up,
)

# medication → (dose per kg, decimals, unit)
DOSE_PER_KG: Dict[str, tuple] = {
    "fentanyl":        (2.0, 0, "mcg"),
    "dexmedetomidine": (0.5, 0, "mcg"),
    "propofol":        (1.5, 0, "mg"),
    "etomidate":       (0.3, 1, "mg"),
    "ketamine":        (1.5, 0, "mg"),
    "rocuronium":      (1.2, 0, "mg"),
    "succinylcholine": (1.5, 0, "mg"),
}


def calc_medication_dose(weight_kg: Any, medication: str) -> Optional[Number]:
    """Weight-based bolus dose; None for unknown agents or a missing weight."""
    weight = parse_number(weight_kg)
    entry = DOSE_PER_KG.get((medication or "").lower())
    if not weight or weight <= 0 or entry is None:
        return None
    per_kg, places, _unit = entry
    dose = round_half_up(weight * per_kg, places)
    if dose is not None and places == 0:
        return int(dose)
    return dose


@dataclass
class InductionRecommendation:
    agent: str
    dose: str
    rationale: str
    contraindications: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "agent": self.agent,
            "dose": self.dose,
            "rationale": self.rationale,
            "contraindications": list(self.contraindications),
        }


def get_recommended_induction_agent(
    indication: Optional[Mapping[str, Any]],
    vitals: Optional[Mapping[str, Any]] = None,
) -> InductionRecommendation:
    """
    Pick an induction agent from the indication and the pre-induction vitals.

    Shock / sepsis wins over head injury, which wins over respiratory and
    cardiac failure; hemodynamically stable patients get propofol.
    """
    indication = indication or {}
    medical = indication.get("medical") or {}
    trauma = indication.get("trauma") or {}

    shock_index = None
    if vitals:
        v = normalize_vital_signs(vitals)
        shock_index = calc_shock_index(v["heartRate"], v["systolicBP"])

    if coerce_flag(medical.get("sepsis")) or (shock_index is not None and shock_index > SHOCK_INDEX_ELEVATED):
        return InductionRecommendation("etomidate", "0.3 mg/kg", "Hemodynamic stability in shock/sepsis")

    if coerce_flag(trauma.get("headInjuryReducedSensorium")):
        return InductionRecommendation("propofol", "1-2 mg/kg", "Neuroprotection and ICP reduction")

    if coerce_flag(medical.get("respiratoryFailure")):
        return InductionRecommendation("ketamine", "1-2 mg/kg", "Bronchodilator properties")

    if coerce_flag(medical.get("cardiacFailure")):
        return InductionRecommendation("etomidate", "0.3 mg/kg", "Minimal cardiac depression")

    return InductionRecommendation("propofol", "1-2 mg/kg", "Standard induction for stable patients")


def check_paralytic_contraindications(
    agent: str,
    comorbidities: Optional[Mapping[str, Any]],
) -> List[str]:
    contraindications: List[str] = []
    if (agent or "").lower() == "succinylcholine":
        if coerce_flag((comorbidities or {}).get("chronicRenalDisease")):
            contraindications.append("Chronic renal disease - hyperkalemia risk")
        contraindications.append("Verify no burns >24h, neuromuscular disease, or MH history")
    return contraindications
