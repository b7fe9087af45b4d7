"""
Clinical Calculators

Pure functions turning raw form fields into derived clinical numbers.

Usage:
    from mear.core.calculations import calculate_all_values

    values = calculate_all_values(snapshot)
    values.shock_index, values.to_dict()
"""
from .vitals import (
    parse_number,
    coerce_flag,
    round_half_up,
    normalize_vital_signs,
    calc_bmi,
    calc_shock_index,
    calc_modified_shock_index,
    calc_mean_arterial_pressure,
    calc_pulse_pressure,
    assess_hemodynamic_risk,
    get_age_adjusted_normal_ranges,
    HemodynamicAssessment,
    RiskTier,
)
from .scores import (
    calc_total_gcs,
    total_gcs_from,
    gcs_severity,
    interpret_gcs,
    calc_leon_score,
    interpret_leon_score,
    calc_comorbidity_burden,
    present_comorbidities,
    get_comorbidity_alerts,
    assess_nutritional_status,
)
from .pharmacology import (
    calc_medication_dose,
    get_recommended_induction_agent,
    check_paralytic_contraindications,
    InductionRecommendation,
)
from .derived import CalculatedValues, calculate_all_values

__all__ = [
    "parse_number",
    "coerce_flag",
    "round_half_up",
    "normalize_vital_signs",
    "calc_bmi",
    "calc_shock_index",
    "calc_modified_shock_index",
    "calc_mean_arterial_pressure",
    "calc_pulse_pressure",
    "assess_hemodynamic_risk",
    "get_age_adjusted_normal_ranges",
    "HemodynamicAssessment",
    "RiskTier",
    "calc_total_gcs",
    "total_gcs_from",
    "gcs_severity",
    "interpret_gcs",
    "calc_leon_score",
    "interpret_leon_score",
    "calc_comorbidity_burden",
    "present_comorbidities",
    "get_comorbidity_alerts",
    "assess_nutritional_status",
    "calc_medication_dose",
    "get_recommended_induction_agent",
    "check_paralytic_contraindications",
    "InductionRecommendation",
    "CalculatedValues",
    "calculate_all_values",
]
