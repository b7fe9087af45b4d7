"""
Derived Values

Recomputes every calculated value from a full form snapshot.  Nothing here
is incremental: the store calls calculate_all_values() after each mutation
and replaces the previous result wholesale.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .vitals import (
    Number,
    calc_bmi,
    calc_mean_arterial_pressure,
    calc_modified_shock_index,
    calc_pulse_pressure,
    calc_shock_index,
    normalize_vital_signs,
)
from .scores import calc_comorbidity_burden, calc_leon_score, total_gcs_from

# attribute → wire key (the front end and the PDF payload use camelCase)
_WIRE_KEYS = {
    "bmi": "bmi",
    "shock_index": "shockIndex",
    "modified_shock_index": "modifiedShockIndex",
    "mean_arterial_pressure": "meanArterialPressure",
    "pulse_pressure": "pulsePressure",
    "total_gcs": "totalGCS",
    "leon_total_score": "leonTotalScore",
    "comorbidity_burden": "comorbidityBurden",
}


@dataclass(frozen=True)
class CalculatedValues:
    """Derived clinical numbers.  Each is a finite number or None."""
    bmi: Optional[float] = None
    shock_index: Optional[float] = None
    modified_shock_index: Optional[float] = None
    mean_arterial_pressure: Optional[float] = None
    pulse_pressure: Optional[Number] = None
    total_gcs: Optional[Number] = None
    leon_total_score: Optional[int] = None
    comorbidity_burden: Optional[int] = None

    def to_dict(self) -> Dict[str, Number]:
        """Present values only, camelCase keys."""
        return {
            _WIRE_KEYS[f.name]: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


def calculate_all_values(snapshot: Optional[Mapping[str, Any]]) -> CalculatedValues:
    snapshot = snapshot or {}
    values: Dict[str, Any] = {}

    demographics = snapshot.get("demographics") or {}
    values["bmi"] = calc_bmi(demographics.get("weight"), demographics.get("height"))

    vitals = snapshot.get("preInductionVitals")
    if vitals:
        v = normalize_vital_signs(vitals)
        values["shock_index"] = calc_shock_index(v["heartRate"], v["systolicBP"])
        map_value = calc_mean_arterial_pressure(v["systolicBP"], v["diastolicBP"])
        values["mean_arterial_pressure"] = map_value
        values["pulse_pressure"] = calc_pulse_pressure(v["systolicBP"], v["diastolicBP"])
        if map_value is not None:
            values["modified_shock_index"] = calc_modified_shock_index(v["heartRate"], map_value)

    gcs = snapshot.get("gcs")
    if gcs:
        values["total_gcs"] = total_gcs_from(gcs)

    leon = snapshot.get("leonScore")
    if leon:
        values["leon_total_score"] = calc_leon_score(leon)

    comorbidities = snapshot.get("comorbidities")
    if comorbidities:
        values["comorbidity_burden"] = calc_comorbidity_burden(comorbidities)

    return CalculatedValues(**values)
