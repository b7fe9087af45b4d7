"""
Indication Rules

The indication category selects one of two disjoint rule tables:

    trauma   head injury (reduced sensorium / threatened airway),
             neck-facial trauma, burn / inhalation injury
    medical  sepsis, anaphylaxis, cardiac failure, respiratory failure

Each flag maps to at most one alert.  Several ticked flags raise several
alerts, independently of each other.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from mear.core.calculations import coerce_flag

from .base import AlertCategory, AlertLevel, ClinicalAlert


@dataclass(frozen=True)
class _IndicationRule:
    flag: str
    alert_id: str
    level: AlertLevel
    category: AlertCategory
    title: str
    message: str
    trigger: str
    actions: tuple

    def build(self, timestamp: str) -> ClinicalAlert:
        return ClinicalAlert(
            alert_id=self.alert_id,
            level=self.level,
            category=self.category,
            title=self.title,
            message=self.message,
            triggers=[self.trigger],
            actions=list(self.actions),
            timestamp=timestamp,
        )


TRAUMA_RULES = (
    _IndicationRule(
        flag="headInjuryReducedSensorium",
        alert_id="head-injury-protocol",
        level=AlertLevel.WARNING,
        category=AlertCategory.NEUROLOGICAL,
        title="Head Injury Protocol",
        message="Neuroprotection measures required",
        trigger="head_injury_reduced_sensorium",
        actions=(
            "ICP monitoring setup",
            "CT scan priority",
            "Propofol for induction",
            "Avoid succinylcholine",
            "Target PCO2 35-40 mmHg",
        ),
    ),
    _IndicationRule(
        flag="headInjuryAirwayThreatened",
        alert_id="c-spine-precautions",
        level=AlertLevel.CRITICAL,
        category=AlertCategory.PROCEDURAL,
        title="C-Spine Precautions Required",
        message="Cervical spine injury possible",
        trigger="head_injury_airway_threatened",
        actions=(
            "Manual in-line stabilization",
            "Video laryngoscopy preferred",
            "Minimize neck movement",
            "Surgical airway backup",
        ),
    ),
    _IndicationRule(
        flag="neckFacialTrauma",
        alert_id="difficult-airway-trauma",
        level=AlertLevel.CRITICAL,
        category=AlertCategory.AIRWAY,
        title="Airway Trauma - High Risk",
        message="Consider awake intubation",
        trigger="neck_facial_trauma",
        actions=(
            "ENT consultation",
            "Awake intubation consideration",
            "Flexible bronchoscopy",
            "Emergency cricothyrotomy setup",
        ),
    ),
    _IndicationRule(
        flag="burnInhalation",
        alert_id="burn-inhalation",
        level=AlertLevel.CRITICAL,
        category=AlertCategory.AIRWAY,
        title="Burn/Inhalation Injury",
        message="Early intubation recommended",
        trigger="burn_inhalation",
        actions=(
            "Early intubation before edema",
            "Large ETT size",
            "Airway edema monitoring",
            "Special ventilator settings",
        ),
    ),
)

MEDICAL_RULES = (
    _IndicationRule(
        flag="sepsis",
        alert_id="sepsis-bundle",
        level=AlertLevel.CRITICAL,
        category=AlertCategory.HEMODYNAMIC,
        title="Sepsis Bundle Activation",
        message="Sepsis protocol initiated",
        trigger="sepsis_indication",
        actions=(
            "Fluid resuscitation",
            "Early antibiotic administration",
            "Vasopressor preparation",
            "Lactate monitoring",
            "Etomidate for induction",
        ),
    ),
    _IndicationRule(
        flag="anaphylaxis",
        alert_id="anaphylaxis-protocol",
        level=AlertLevel.CRITICAL,
        category=AlertCategory.MEDICATION,
        title="Anaphylaxis Protocol",
        message="Immediate epinephrine required",
        trigger="anaphylaxis",
        actions=(
            "Epinephrine 1:1000 IM",
            "IV steroids",
            "H1/H2 blockers",
            "Fluid resuscitation",
            "Avoid succinylcholine",
        ),
    ),
    _IndicationRule(
        flag="cardiacFailure",
        alert_id="cardiac-failure",
        level=AlertLevel.WARNING,
        category=AlertCategory.HEMODYNAMIC,
        title="Cardiac Failure Management",
        message="Preload reduction strategies",
        trigger="cardiac_failure",
        actions=(
            "Preload reduction",
            "Inotrope preparation",
            "Etomidate preferred",
            "LVAD/mechanical support consideration",
        ),
    ),
    _IndicationRule(
        flag="respiratoryFailure",
        alert_id="ards-protocol",
        level=AlertLevel.WARNING,
        category=AlertCategory.HEMODYNAMIC,
        title="ARDS Protocol Consideration",
        message="Lung protective ventilation",
        trigger="respiratory_failure",
        actions=(
            "Lung protective ventilation",
            "PEEP optimization",
            "Prone positioning evaluation",
            "ECMO criteria assessment",
        ),
    ),
)

_RULES_BY_CATEGORY: Dict[str, tuple] = {
    "trauma": TRAUMA_RULES,
    "medical": MEDICAL_RULES,
}


def evaluate_indication(snapshot: Mapping[str, Any], timestamp: str) -> List[ClinicalAlert]:
    indication = snapshot.get("indication") or {}
    category = indication.get("category")
    rules = _RULES_BY_CATEGORY.get(category)
    if not rules:
        return []

    flags = indication.get(category) or {}
    return [rule.build(timestamp) for rule in rules if coerce_flag(flags.get(rule.flag))]
