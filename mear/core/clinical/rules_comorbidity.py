"""
Comorbidity Rules

One informational medication alert per comorbidity ticked on the checklist.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from mear.core.calculations import present_comorbidities

from .base import AlertCategory, AlertLevel, ClinicalAlert

# flag → (message, actions)
_COMORBIDITY_GUIDANCE = {
    "diabetes": (
        "Diabetes - monitor glucose levels closely",
        ["Monitor glucose levels closely", "Consider perioperative insulin protocol"],
    ),
    "hypertension": (
        "Hypertension - monitor BP targets post-intubation",
        ["Monitor BP targets post-intubation", "Consider antihypertensive adjustment"],
    ),
    "chronicRenalDisease": (
        "Chronic renal disease - fluid management caution",
        ["Fluid management caution", "Monitor electrolytes closely", "Avoid succinylcholine if hyperkalemic"],
    ),
    "chronicLiverDisease": (
        "Chronic liver disease - drug metabolism warnings",
        ["Drug metabolism warnings", "Coagulation monitoring needed"],
    ),
    "reactiveAirwayDisease": (
        "Reactive airway disease - ventilator settings optimization",
        ["Ventilator settings optimization", "PEEP limitations"],
    ),
    "others": (
        "Additional comorbidity documented - review drug interactions",
        ["Review current medications for interactions"],
    ),
}


def _alert_suffix(flag: str) -> str:
    return {
        "chronicRenalDisease": "renal",
        "chronicLiverDisease": "liver",
        "reactiveAirwayDisease": "reactive-airway",
    }.get(flag, flag)


def evaluate_comorbidity(snapshot: Mapping[str, Any], timestamp: str) -> List[ClinicalAlert]:
    alerts: List[ClinicalAlert] = []
    for flag in present_comorbidities(snapshot.get("comorbidities")):
        message, actions = _COMORBIDITY_GUIDANCE[flag]
        alerts.append(ClinicalAlert(
            alert_id=f"comorbidity-{_alert_suffix(flag)}",
            level=AlertLevel.INFO,
            category=AlertCategory.MEDICATION,
            title="Comorbidity Alert",
            message=message,
            triggers=["comorbidity_present", flag],
            actions=list(actions),
            timestamp=timestamp,
        ))
    return alerts
