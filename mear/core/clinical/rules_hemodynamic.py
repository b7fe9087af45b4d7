"""
Hemodynamic Rules

Evaluates pre-induction vitals.

Rule ordering:
    1. Composite instability  — aggregate tier from shock index, MAP, SBP,
                                heart rate and SpO2 (critical when High)
    2. Severe hypoxemia       — SpO2 < 90 %
    3. Severe hypotension     — SBP < 90 mmHg

The point rules fire independently of the composite one, so overlapping
input (e.g. SBP 80) can legitimately raise two alerts.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from mear.core.calculations import RiskTier, assess_hemodynamic_risk, normalize_vital_signs
from mear.core.calculations.vitals import SBP_HYPOTENSIVE, SPO2_SEVERE_HYPOXEMIA

from .base import AlertCategory, AlertLevel, ClinicalAlert


def _fmt(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def evaluate_hemodynamic(snapshot: Mapping[str, Any], timestamp: str) -> List[ClinicalAlert]:
    vitals = snapshot.get("preInductionVitals")
    if not vitals:
        return []

    alerts: List[ClinicalAlert] = []

    risk = assess_hemodynamic_risk(vitals)
    if risk.risk_level != RiskTier.LOW:
        alerts.append(ClinicalAlert(
            alert_id="hemodynamic-instability",
            level=AlertLevel.CRITICAL if risk.risk_level == RiskTier.HIGH else AlertLevel.WARNING,
            category=AlertCategory.HEMODYNAMIC,
            title="Hemodynamic Instability",
            message=f"{risk.risk_level.value} risk patient",
            triggers=list(risk.findings),
            actions=list(risk.recommendations),
            timestamp=timestamp,
        ))

    v = normalize_vital_signs(vitals)

    if v["spo2"] is not None and v["spo2"] < SPO2_SEVERE_HYPOXEMIA:
        alerts.append(ClinicalAlert(
            alert_id="severe-hypoxemia",
            level=AlertLevel.CRITICAL,
            category=AlertCategory.HEMODYNAMIC,
            title="Severe Hypoxemia",
            message=f"SpO2 {_fmt(v['spo2'])}% - Urgent intervention required",
            triggers=["spo2_below_90"],
            actions=[
                "Immediate preoxygenation",
                "PEEP optimization",
                "Consider BiPAP",
                "Prepare for difficult oxygenation",
            ],
            timestamp=timestamp,
        ))

    if v["systolicBP"] is not None and v["systolicBP"] < SBP_HYPOTENSIVE:
        alerts.append(ClinicalAlert(
            alert_id="severe-hypotension",
            level=AlertLevel.CRITICAL,
            category=AlertCategory.HEMODYNAMIC,
            title="Severe Hypotension",
            message=f"SBP {_fmt(v['systolicBP'])} mmHg - Shock protocol",
            triggers=["sbp_below_90"],
            actions=[
                "Prepare push-dose pressors",
                "Fluid resuscitation",
                "Vasopressor infusion ready",
                "Consider etomidate for induction",
            ],
            timestamp=timestamp,
        ))

    return alerts
