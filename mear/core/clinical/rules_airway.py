"""
Airway Rules

Difficult-airway prediction from the LEON score.  Score 2–3 raises a
warning, 4 a critical alert; the actions are the tier's recommendations.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from mear.core.calculations import calc_leon_score, interpret_leon_score
from mear.core.calculations.scores import LEON_ALERT_MIN, LEON_HIGH_MIN

from .base import AlertCategory, AlertLevel, ClinicalAlert


def evaluate_airway(snapshot: Mapping[str, Any], timestamp: str) -> List[ClinicalAlert]:
    leon = snapshot.get("leonScore")
    if not leon:
        return []

    score = calc_leon_score(leon)
    if score < LEON_ALERT_MIN:
        return []

    interpretation = interpret_leon_score(score)
    return [
        ClinicalAlert(
            alert_id="difficult-airway",
            level=AlertLevel.CRITICAL if score >= LEON_HIGH_MIN else AlertLevel.WARNING,
            category=AlertCategory.AIRWAY,
            title="Difficult Airway Predicted",
            message=f"LEON Score {score} - {interpretation.risk_level} difficulty",
            triggers=["leon_score_2_plus"],
            actions=list(interpretation.recommendations),
            timestamp=timestamp,
        )
    ]
