"""
Clinical Alert Engine

Central dispatcher.  Runs every registered rule group over one form snapshot
and concatenates the alerts they return.

Usage:
    from mear.core.clinical import generate_alerts, get_activated_protocols

    alerts = generate_alerts(snapshot)
    protocols = get_activated_protocols(snapshot)

Adding a rule group:
    1. Create  mear/core/clinical/rules_<group>.py
    2. Implement evaluate_<group>(snapshot, timestamp) -> List[ClinicalAlert]
    3. Register it in _RULE_GROUPS below.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .base import AlertLevel, ClinicalAlert, ProtocolActivation, utc_timestamp
from .monitoring import calculate_alert_severity, evaluate_monitoring_table
from .protocols import get_activated_protocols
from .rules_airway import evaluate_airway
from .rules_comorbidity import evaluate_comorbidity
from .rules_hemodynamic import evaluate_hemodynamic
from .rules_indication import evaluate_indication
from .rules_neuro import evaluate_neuro

logger = logging.getLogger(__name__)

RuleGroup = Callable[[Mapping[str, Any], str], List[ClinicalAlert]]

# ── Registry: group name → evaluator (evaluation order = output order) ──────
_RULE_GROUPS: Dict[str, RuleGroup] = {
    "neurological": evaluate_neuro,
    "airway":       evaluate_airway,
    "hemodynamic":  evaluate_hemodynamic,
    "comorbidity":  evaluate_comorbidity,
    "indication":   evaluate_indication,
    "monitoring":   evaluate_monitoring_table,
}


def generate_alerts(
    snapshot: Optional[Mapping[str, Any]],
    timestamp: Optional[str] = None,
) -> List[ClinicalAlert]:
    """
    Evaluate every rule group against ``snapshot``.

    Groups never short-circuit each other.  A group that raises is logged
    and skipped so one faulty rule cannot hide the others.  Passing the same
    ``timestamp`` twice gives identical output for identical snapshots.
    """
    snapshot = snapshot or {}
    timestamp = timestamp or utc_timestamp()
    alerts: List[ClinicalAlert] = []

    for name, evaluator in _RULE_GROUPS.items():
        try:
            found = evaluator(snapshot, timestamp)
        except Exception as exc:
            logger.error(f"generate_alerts [{name}]: evaluator raised {exc}", exc_info=True)
            continue
        if found:
            logger.debug(f"generate_alerts [{name}]: " + ", ".join(a.alert_id for a in found))
        alerts.extend(found)

    return alerts


class ClinicalAlertEngine:
    """
    Object façade over the rule functions.

    Stateless — safe to share between form sessions.
    """

    def analyze(self, snapshot: Mapping[str, Any], timestamp: Optional[str] = None) -> List[ClinicalAlert]:
        return generate_alerts(snapshot, timestamp)

    def protocols(self, snapshot: Mapping[str, Any]) -> List[ProtocolActivation]:
        return get_activated_protocols(snapshot)

    def analyze_group(self, group: str, snapshot: Mapping[str, Any], timestamp: Optional[str] = None) -> List[ClinicalAlert]:
        """Evaluate one rule group; useful for unit-testing a group in isolation."""
        evaluator = _RULE_GROUPS.get(group)
        if evaluator is None:
            logger.debug(f"ClinicalAlertEngine: no rule group named {group}")
            return []
        return evaluator(snapshot or {}, timestamp or utc_timestamp())

    @staticmethod
    def registered_groups() -> List[str]:
        return list(_RULE_GROUPS.keys())

    @staticmethod
    def summarise(alerts: List[ClinicalAlert]) -> Dict[str, Any]:
        """
        Compact summary for JSON API responses.

        Example output:
        {
            "total_alerts": 3,
            "critical_count": 2,
            "warning_count": 1,
            "info_count": 0,
            "total_score": 8,
            "highest_level": "critical",
            "alerts": [{...}, ...]
        }
        """
        severity = calculate_alert_severity(alerts)
        return {
            "total_alerts": len(alerts),
            "critical_count": severity["critical_count"],
            "warning_count": sum(1 for a in alerts if a.level == AlertLevel.WARNING),
            "info_count": sum(1 for a in alerts if a.level == AlertLevel.INFO),
            "total_score": severity["total_score"],
            "highest_level": severity["highest_level"],
            "alerts": [a.to_dict() for a in alerts],
        }
