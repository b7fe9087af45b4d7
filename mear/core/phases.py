"""
Form Phases

Ordered phase descriptors, mirroring the blocks of the paper proforma.
Each phase owns one or more snapshot sections.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class PhaseDescriptor:
    id: str
    title: str
    description: str
    sections: Tuple[str, ...] = ()


PHASES: List[PhaseDescriptor] = [
    PhaseDescriptor(
        "demographics", "Demographics",
        "Patient demographics & basic data",
        ("demographics",),
    ),
    PhaseDescriptor(
        "vitals", "Pre-induction Hemodynamics & Labs",
        "Pre-induction vitals, labs & modified shock index",
        ("preInductionVitals", "preInductionLabs"),
    ),
    PhaseDescriptor(
        "indication", "Indication for Intubation",
        "Trauma / Non-trauma indication for intubation",
        ("indication", "gcs"),
    ),
    PhaseDescriptor(
        "leon", "Airway & LEON Score",
        "Airway assessment & difficult airway prediction",
        ("leonScore", "airwayStatus"),
    ),
    PhaseDescriptor(
        "preIntubation", "Pre-intubation Status & Medication",
        "Medications, fluids, pressors & sedation",
        ("preIntubationManagement",),
    ),
    PhaseDescriptor(
        "comorbidities", "Comorbidities & Post-intubation GCS",
        "Comorbidities and post-intubation neurological status",
        ("comorbidities", "postIntubationGcs"),
    ),
    PhaseDescriptor(
        "postIntubation", "ETT/CD & Ventilator Settings",
        "Post-intubation ventilator settings & adverse events",
        ("ventilatorSettings", "postIntubationEvents"),
    ),
    PhaseDescriptor(
        "attempts", "Intubation Attempts",
        "Intubation attempts and technique details",
        ("intubationAttempts",),
    ),
    PhaseDescriptor(
        "monitoring", "Hemodynamics Over Time",
        "Pre-induction and serial post-induction vitals at fixed intervals",
        ("monitoringTable",),
    ),
]

FIRST_PHASE = PHASES[0].id
MONITORING_PHASE = "monitoring"
PHASE_IDS = [p.id for p in PHASES]


def get_phase(phase_id: str) -> Optional[PhaseDescriptor]:
    for phase in PHASES:
        if phase.id == phase_id:
            return phase
    return None
