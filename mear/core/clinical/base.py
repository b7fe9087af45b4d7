"""
Clinical Alert Layer — Base Types

Defines the data contracts that every rule module produces.  These are
consumed by the form store, the HTTP layer and the case report generator.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class AlertLevel(str, Enum):
    """
    Severity of an alert.

    CRITICAL – persists until dismissed; survives phase changes
    WARNING  – shown briefly, then auto-dismissed
    INFO     – educational reminder, auto-dismissed
    """
    INFO     = "info"
    WARNING  = "warning"
    CRITICAL = "critical"


class AlertCategory(str, Enum):
    HEMODYNAMIC  = "hemodynamic"
    NEUROLOGICAL = "neurological"
    AIRWAY       = "airway"
    MEDICATION   = "medication"
    PROCEDURAL   = "procedural"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ClinicalAlert:
    """
    One alert raised against the current form snapshot.

    ``alert_id`` is derived from the trigger condition ("gcs-severe",
    "severe-hypotension", ...) so the same condition always yields the same
    id.  The store relies on this to surface only newly introduced alerts.
    """
    # ── Core identity ─────────────────────────────────────────────────────
    alert_id: str
    level: AlertLevel
    category: Optional[AlertCategory]
    title: str
    message: str

    # ── Evidence & remediation ────────────────────────────────────────────
    triggers: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)

    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def is_critical(self) -> bool:
        return self.level == AlertLevel.CRITICAL

    def refreshed(self, timestamp: Optional[str] = None) -> "ClinicalAlert":
        """Copy with a new timestamp (used on upsert)."""
        return replace(self, timestamp=timestamp or utc_timestamp())

    # ── Serialisation ─────────────────────────────────────────────────────
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.alert_id,
            "level": self.level.value,
            "category": self.category.value if self.category else None,
            "title": self.title,
            "message": self.message,
            "triggers": list(self.triggers),
            "actions": list(self.actions),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ClinicalAlert":
        category = data.get("category")
        return cls(
            alert_id=data["id"],
            level=AlertLevel(data.get("level", "info")),
            category=AlertCategory(category) if category else None,
            title=data.get("title", ""),
            message=data.get("message", ""),
            triggers=list(data.get("triggers") or []),
            actions=list(data.get("actions") or []),
            timestamp=data.get("timestamp") or utc_timestamp(),
        )


@dataclass
class ProtocolActivation:
    """A named care bundle switched on by the current snapshot."""
    protocol_id: str
    name: str
    indication: str
    steps: List[str] = field(default_factory=list)
    medications: List[str] = field(default_factory=list)
    monitoring: List[str] = field(default_factory=list)
    consultations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.protocol_id,
            "name": self.name,
            "indication": self.indication,
            "steps": list(self.steps),
            "medications": list(self.medications),
            "monitoring": list(self.monitoring),
            "consultations": list(self.consultations),
        }
