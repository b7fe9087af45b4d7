"""
Post-Intubation Monitoring Rules

Checks one row of the monitoring table (vitals at a fixed time point) and
scores a list of alerts for triage summaries.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from mear.core.calculations import normalize_vital_signs
from mear.core.calculations.vitals import SBP_HYPOTENSIVE

from .base import AlertCategory, AlertLevel, ClinicalAlert, utc_timestamp

SPO2_DESATURATION = 92

# Monitoring table column → interval identifier
TABLE_TIME_POINTS = {
    "post5": "post_5min",
    "post10": "post_10min",
    "post15": "post_15min",
    "post30": "post_30min",
}

_LEVEL_WEIGHT = {
    AlertLevel.CRITICAL: 3,
    AlertLevel.WARNING: 2,
    AlertLevel.INFO: 1,
}


def check_monitoring_alerts(
    vitals: Optional[Mapping[str, Any]],
    time_point: str,
    timestamp: Optional[str] = None,
) -> List[ClinicalAlert]:
    """Alerts for vitals recorded at ``time_point`` (e.g. "post_5min")."""
    v = normalize_vital_signs(vitals)
    timestamp = timestamp or utc_timestamp()
    alerts: List[ClinicalAlert] = []

    if time_point.startswith("post_") and v["systolicBP"] is not None and v["systolicBP"] < SBP_HYPOTENSIVE:
        alerts.append(ClinicalAlert(
            alert_id=f"post-intubation-hypotension-{time_point}",
            level=AlertLevel.CRITICAL,
            category=AlertCategory.HEMODYNAMIC,
            title="Post-Intubation Hypotension",
            message="Immediate intervention required",
            triggers=["post_intubation_hypotension"],
            actions=[
                "Push-dose epinephrine 10-20 mcg",
                "Fluid bolus 250-500 mL",
                "Start vasopressor infusion",
                "Check sedation depth",
            ],
            timestamp=timestamp,
        ))

    if v["spo2"] is not None and v["spo2"] < SPO2_DESATURATION:
        alerts.append(ClinicalAlert(
            alert_id=f"desaturation-{time_point}",
            level=AlertLevel.WARNING,
            category=AlertCategory.HEMODYNAMIC,
            title="Desaturation Alert",
            message=f"SpO2 {v['spo2']}% - Check ventilator settings",
            triggers=["desaturation"],
            actions=[
                "Increase FiO2",
                "Check tube position",
                "Assess for pneumothorax",
                "Optimize PEEP",
            ],
            timestamp=timestamp,
        ))

    return alerts


def evaluate_monitoring_table(snapshot: Mapping[str, Any], timestamp: str) -> List[ClinicalAlert]:
    table = snapshot.get("monitoringTable") or {}
    alerts: List[ClinicalAlert] = []
    for column, time_point in TABLE_TIME_POINTS.items():
        row = table.get(column)
        if row:
            alerts.extend(check_monitoring_alerts(row, time_point, timestamp))
    return alerts


def calculate_alert_severity(alerts: List[ClinicalAlert]) -> Dict[str, Any]:
    """Weighted score (critical 3, warning 2, info 1), highest level, critical count."""
    total = 0
    critical = 0
    highest = AlertLevel.INFO
    for alert in alerts:
        total += _LEVEL_WEIGHT.get(alert.level, 0)
        if alert.level == AlertLevel.CRITICAL:
            critical += 1
            highest = AlertLevel.CRITICAL
        elif alert.level == AlertLevel.WARNING and highest != AlertLevel.CRITICAL:
            highest = AlertLevel.WARNING
    return {
        "total_score": total,
        "highest_level": highest.value,
        "critical_count": critical,
    }
