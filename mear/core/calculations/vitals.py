"""
Hemodynamic & Anthropometric Calculators

Raw vitals arrive as the strings the operator typed ("120", " 80 ", "") and
are parsed only here, at calculation time.  Every calculator is total: a
missing, blank or non-numeric input yields ``None`` ("absent"), never an
exception, NaN or infinity.

Formulas:
    BMI                     weight_kg / (height_cm / 100)^2        → 1 dp
    Shock index             HR / SBP                               → 2 dp
    Mean arterial pressure  DBP + (SBP - DBP) / 3                  → 1 dp
    Pulse pressure          SBP - DBP                              (no rounding)
    Modified shock index    HR / MAP                               → 2 dp
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

Number = Union[int, float]

# ── Thresholds ────────────────────────────────────────────────────────────────
SHOCK_INDEX_ELEVATED = 0.9   # > 0.9 hemodynamic compromise
MAP_HYPOTENSIVE      = 65    # < 65 mmHg organ perfusion at risk
SBP_HYPOTENSIVE      = 90    # < 90 mmHg hypotension
SPO2_SEVERE_HYPOXEMIA = 90   # < 90 % severe hypoxemia
HR_TACHYCARDIA       = 100
HR_BRADYCARDIA       = 60

VITAL_FIELDS = (
    "heartRate",
    "systolicBP",
    "diastolicBP",
    "respiratoryRate",
    "spo2",
    "temperature",
)


# ── Parsing helpers ───────────────────────────────────────────────────────────

def parse_number(raw: Any) -> Optional[Number]:
    """
    Parse raw user input into a finite number.

    Accepts ints, floats and numeric strings (surrounding whitespace allowed).
    Returns None for None, blank strings, booleans, non-numeric text, NaN and
    infinities.  Integral values typed as integers stay ``int``.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else None
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None
        return value if math.isfinite(value) else None
    return None


def coerce_flag(raw: Any) -> bool:
    """Interpret a checkbox-style value (bool, "true"/"on", non-empty list)."""
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() in ("true", "on", "yes", "1")
    if isinstance(raw, (list, tuple, set)):
        return len(raw) > 0
    return bool(raw)


def round_half_up(value: Number, places: int) -> Optional[float]:
    """Round the way the bedside display does (0.125 → 0.13, not banker's).

    Returns None for non-finite input (e.g. an overflowing division).
    """
    if not math.isfinite(value):
        return None
    try:
        quantum = Decimal(1).scaleb(-places)
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None


def normalize_vital_signs(vitals: Optional[Mapping[str, Any]]) -> Dict[str, Optional[Number]]:
    """Parse every known vital field; unknown / blank fields become None."""
    vitals = vitals or {}
    return {name: parse_number(vitals.get(name)) for name in VITAL_FIELDS}


# ── Calculators ───────────────────────────────────────────────────────────────

def calc_bmi(weight_kg: Any, height_cm: Any) -> Optional[float]:
    weight = parse_number(weight_kg)
    height = parse_number(height_cm)
    if weight is None or height is None or weight <= 0 or height <= 0:
        return None
    h = height / 100
    return round_half_up(weight / (h * h), 1)


def calc_shock_index(heart_rate: Any, systolic_bp: Any) -> Optional[float]:
    hr = parse_number(heart_rate)
    sbp = parse_number(systolic_bp)
    if hr is None or not sbp:
        return None
    return round_half_up(hr / sbp, 2)


def calc_mean_arterial_pressure(systolic_bp: Any, diastolic_bp: Any) -> Optional[float]:
    sbp = parse_number(systolic_bp)
    dbp = parse_number(diastolic_bp)
    if not sbp or not dbp:
        return None
    return round_half_up(dbp + (sbp - dbp) / 3, 1)


def calc_pulse_pressure(systolic_bp: Any, diastolic_bp: Any) -> Optional[Number]:
    sbp = parse_number(systolic_bp)
    dbp = parse_number(diastolic_bp)
    if not sbp or not dbp:
        return None
    return sbp - dbp


def calc_modified_shock_index(heart_rate: Any, mean_arterial_pressure: Any) -> Optional[float]:
    """HR / MAP.  MAP must already be computed (see calc_mean_arterial_pressure)."""
    hr = parse_number(heart_rate)
    map_value = parse_number(mean_arterial_pressure)
    if hr is None or not map_value:
        return None
    return round_half_up(hr / map_value, 2)


# ── Hemodynamic risk stratification ───────────────────────────────────────────

class RiskTier(str, Enum):
    LOW      = "Low"
    MODERATE = "Moderate"
    HIGH     = "High"


@dataclass
class HemodynamicAssessment:
    """Aggregate hemodynamic risk derived from one set of vitals."""
    risk_level: RiskTier
    findings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    shock_index: Optional[float] = None
    mean_arterial_pressure: Optional[float] = None


def assess_hemodynamic_risk(vitals: Optional[Mapping[str, Any]]) -> HemodynamicAssessment:
    """
    Stratify hemodynamic risk from pre-induction vitals.

    Each abnormal finding (elevated shock index, SBP < 90, MAP < 65,
    tachycardia, bradycardia, SpO2 < 90) counts once.  No findings → Low,
    one or two → Moderate, more than two → High.
    """
    v = normalize_vital_signs(vitals)
    hr, sbp, dbp, spo2 = v["heartRate"], v["systolicBP"], v["diastolicBP"], v["spo2"]

    shock_index = calc_shock_index(hr, sbp)
    map_value = calc_mean_arterial_pressure(sbp, dbp)

    findings: List[str] = []
    recommendations: List[str] = []

    if shock_index is not None and shock_index > SHOCK_INDEX_ELEVATED:
        findings.append("High shock index - hemodynamic instability")
        recommendations.append("Prepare push-dose pressors")
        recommendations.append("Consider fluid resuscitation")

    if sbp is not None and sbp < SBP_HYPOTENSIVE:
        findings.append("Hypotension - critical")
        recommendations.append("Immediate vasopressor support")

    if map_value is not None and map_value < MAP_HYPOTENSIVE:
        findings.append("MAP below target - organ perfusion at risk")
        recommendations.append("Vasopressor infusion consideration")

    if hr is not None and hr > HR_TACHYCARDIA:
        findings.append("Tachycardia - investigate cause")

    if hr is not None and hr < HR_BRADYCARDIA:
        findings.append("Bradycardia - monitor closely")

    if spo2 is not None and spo2 < SPO2_SEVERE_HYPOXEMIA:
        findings.append("Severe hypoxemia - urgent intervention")
        recommendations.append("Preoxygenation protocol")
        recommendations.append("PEEP optimization")

    if len(findings) > 2:
        tier = RiskTier.HIGH
    elif findings:
        tier = RiskTier.MODERATE
    else:
        tier = RiskTier.LOW

    return HemodynamicAssessment(
        risk_level=tier,
        findings=findings,
        recommendations=recommendations,
        shock_index=shock_index,
        mean_arterial_pressure=map_value,
    )


def get_age_adjusted_normal_ranges(age: Any) -> Optional[Dict[str, Dict[str, int]]]:
    """Heart-rate and SBP reference ranges, widened for patients over 65."""
    years = parse_number(age)
    if years is None:
        return None
    elderly = years > 65
    return {
        "heartRate": {"min": 50 if elderly else 60, "max": 100 if elderly else 120},
        "systolicBP": {"min": 110 if elderly else 90, "max": 160 if elderly else 140},
    }
