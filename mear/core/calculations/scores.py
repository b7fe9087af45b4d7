"""
Clinical Scores — GCS, LEON, Comorbidity Burden

Score calculators plus the interpretation bands used by the alert rules.

Bands:
    GCS   ≤ 8  severe  | 9–12 moderate | > 12 mild
    LEON  0–1  low     | 2–3  moderate | ≥ 4  high
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .vitals import Number, coerce_flag, parse_number

# ── Thresholds ────────────────────────────────────────────────────────────────
GCS_SEVERE_MAX   = 8
GCS_MODERATE_MAX = 12
INTUBATED_VERBAL = 1    # scored as "T"; an intubated patient cannot vocalise

LEON_ALERT_MIN     = 2  # airway alert raised from this score
LEON_PROTOCOL_MIN  = 3  # difficult-airway protocol from this score
LEON_HIGH_MIN      = 4

LEON_COMPONENTS = ("largeTongue", "thyroMentalDistance", "obstruction", "neckMobility")

# Comorbidity flag → burden weight
COMORBIDITY_WEIGHTS = {
    "diabetes": 1,
    "hypertension": 1,
    "chronicRenalDisease": 2,
    "chronicLiverDisease": 2,
    "reactiveAirwayDisease": 1,
    "others": 1,
}


def _as_int(value: Optional[Number]) -> Optional[Number]:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# ── Glasgow Coma Scale ────────────────────────────────────────────────────────

def calc_total_gcs(
    eye: Any,
    verbal: Any,
    motor: Any,
    is_already_intubated: Any = False,
) -> Optional[Number]:
    """
    Total GCS = eye + verbal + motor.

    Already-intubated patients always score verbal = 1 whatever was stored.
    A missing verbal response also defaults to 1.  Returns None when eye or
    motor is missing or non-numeric.
    """
    eye_value = _as_int(parse_number(eye))
    motor_value = _as_int(parse_number(motor))
    if eye_value is None or motor_value is None:
        return None

    if coerce_flag(is_already_intubated):
        verbal_value = INTUBATED_VERBAL
    else:
        verbal_value = _as_int(parse_number(verbal))
        if verbal_value is None:
            verbal_value = INTUBATED_VERBAL

    return eye_value + verbal_value + motor_value


def total_gcs_from(gcs: Optional[Mapping[str, Any]]) -> Optional[Number]:
    """calc_total_gcs over the snapshot's ``gcs`` record."""
    if not gcs:
        return None
    return calc_total_gcs(
        gcs.get("eyeResponse"),
        gcs.get("verbalResponse"),
        gcs.get("motorResponse"),
        gcs.get("isAlreadyIntubated"),
    )


def gcs_severity(total: Number) -> str:
    if total <= GCS_SEVERE_MAX:
        return "severe"
    if total <= GCS_MODERATE_MAX:
        return "moderate"
    return "mild"


@dataclass
class GCSInterpretation:
    severity: str
    interpretation: str
    alerts: List[str] = field(default_factory=list)


def interpret_gcs(total: Number) -> GCSInterpretation:
    severity = gcs_severity(total)
    if severity == "severe":
        return GCSInterpretation(
            severity="Severe",
            interpretation="Severe brain injury - Critical care needed",
            alerts=[
                "ICU consultation required",
                "Neuroprotection protocol",
                "ICP monitoring consideration",
            ],
        )
    if severity == "moderate":
        return GCSInterpretation(
            severity="Moderate",
            interpretation="Moderate brain injury",
            alerts=["Close neurological monitoring"],
        )
    return GCSInterpretation(severity="Mild", interpretation="Mild brain injury")


# ── LEON difficult-airway score ───────────────────────────────────────────────

def _leon_component(raw: Any) -> int:
    value = parse_number(raw)
    if value is None:
        return 0
    return 1 if value >= 1 else 0


def calc_leon_score(leon: Optional[Mapping[str, Any]]) -> int:
    """Sum of the four LEON components, each constrained to {0, 1}."""
    leon = leon or {}
    return sum(_leon_component(leon.get(name)) for name in LEON_COMPONENTS)


@dataclass
class LeonInterpretation:
    risk_level: str
    recommendations: List[str] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)


def interpret_leon_score(score: int) -> LeonInterpretation:
    if score < LEON_ALERT_MIN:
        return LeonInterpretation(
            risk_level="Low",
            recommendations=["Standard intubation approach"],
        )
    if score < LEON_HIGH_MIN:
        return LeonInterpretation(
            risk_level="Moderate",
            recommendations=[
                "Video laryngoscopy recommended",
                "Experienced intubator preferred",
                "Backup airway devices ready",
            ],
            alerts=["Moderate difficulty predicted"],
        )
    return LeonInterpretation(
        risk_level="High",
        recommendations=[
            "Awake intubation consideration",
            "ENT consultation",
            "Emergency cricothyrotomy setup",
        ],
        alerts=["High difficulty predicted - prepare for surgical airway"],
    )


# ── Comorbidities ─────────────────────────────────────────────────────────────

def present_comorbidities(comorbidities: Optional[Mapping[str, Any]]) -> List[str]:
    """Checklist flags that are set, in checklist order."""
    comorbidities = comorbidities or {}
    return [name for name in COMORBIDITY_WEIGHTS if coerce_flag(comorbidities.get(name))]


def calc_comorbidity_burden(comorbidities: Optional[Mapping[str, Any]]) -> int:
    """Renal and liver disease weigh 2, every other present comorbidity 1."""
    return sum(COMORBIDITY_WEIGHTS[name] for name in present_comorbidities(comorbidities))


def get_comorbidity_alerts(comorbidities: Optional[Mapping[str, Any]]) -> List[str]:
    """Flat list of management reminders for the comorbidities present."""
    reminders = {
        "diabetes": ["Monitor glucose levels closely", "Consider perioperative insulin protocol"],
        "hypertension": ["Monitor BP targets post-intubation", "Consider antihypertensive adjustment"],
        "chronicRenalDisease": ["Fluid management caution", "Monitor electrolytes closely"],
        "chronicLiverDisease": ["Drug metabolism warnings", "Coagulation monitoring needed"],
        "reactiveAirwayDisease": ["Ventilator settings optimization", "PEEP limitations"],
    }
    alerts: List[str] = []
    for name in present_comorbidities(comorbidities):
        alerts.extend(reminders.get(name, []))
    return alerts


# ── Nutrition ─────────────────────────────────────────────────────────────────

def assess_nutritional_status(mid_arm_circumference: Any, sex: Optional[str]) -> Optional[str]:
    """Simplified MUAC screen (cm); not a percentile table."""
    mac = parse_number(mid_arm_circumference)
    if mac is None:
        return None
    severe, moderate = (23, 26) if sex == "M" else (22, 25)
    if mac < severe:
        return "Severe malnutrition"
    if mac < moderate:
        return "Moderate malnutrition"
    return "Normal nutrition"
