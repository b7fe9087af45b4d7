"""
Neurological Rules

Severe brain injury flag from the pre-intubation Glasgow Coma Scale.
"""
from __future__ import annotations

from typing import Any, List, Mapping

from mear.core.calculations import total_gcs_from
from mear.core.calculations.scores import GCS_SEVERE_MAX

from .base import AlertCategory, AlertLevel, ClinicalAlert

GCS_SEVERE_ACTIONS = [
    "ICU consultation",
    "Neuroprotection protocol",
    "ICP monitoring setup",
    "CT scan priority",
]


def evaluate_neuro(snapshot: Mapping[str, Any], timestamp: str) -> List[ClinicalAlert]:
    total = total_gcs_from(snapshot.get("gcs"))
    if total is None or total > GCS_SEVERE_MAX:
        return []

    return [
        ClinicalAlert(
            alert_id="gcs-severe",
            level=AlertLevel.CRITICAL,
            category=AlertCategory.NEUROLOGICAL,
            title="Severe Brain Injury Detected",
            message=f"GCS {total} - Critical neurological status",
            triggers=["gcs_8_or_less"],
            actions=list(GCS_SEVERE_ACTIONS),
            timestamp=timestamp,
        )
    ]
