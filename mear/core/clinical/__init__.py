"""
Clinical Alert Layer

Maps a form snapshot to clinical alerts and activated care protocols.

Usage:
    from mear.core.clinical import generate_alerts, get_activated_protocols

    alerts = generate_alerts(snapshot)          # List[ClinicalAlert]
    protocols = get_activated_protocols(snapshot)
"""
from .base import AlertCategory, AlertLevel, ClinicalAlert, ProtocolActivation
from .engine import ClinicalAlertEngine, generate_alerts
from .monitoring import calculate_alert_severity, check_monitoring_alerts
from .protocols import get_activated_protocols

__all__ = [
    "AlertCategory",
    "AlertLevel",
    "ClinicalAlert",
    "ProtocolActivation",
    "ClinicalAlertEngine",
    "generate_alerts",
    "get_activated_protocols",
    "check_monitoring_alerts",
    "calculate_alert_severity",
]
