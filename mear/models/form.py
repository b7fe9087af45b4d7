"""
Form Snapshot Schema

One optional record per phase, merged into a single aggregate.  The store
keeps the raw nested dict; this schema is applied only at submit time (and
to API bodies), so half-filled phases never block calculations on earlier
ones.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from mear.core.calculations import coerce_flag, parse_number


def _numeric_text(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        if value.strip() and parse_number(value) is None:
            raise ValueError("must be a number")
        return value
    raise ValueError("must be a number")


def _optional_number(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = parse_number(value)
    if parsed is None:
        raise ValueError("must be a number")
    return parsed


# Raw numeric input kept as text; checked only for being numeric (or blank)
NumericText = Annotated[Optional[str], BeforeValidator(_numeric_text)]
Flag = Annotated[bool, BeforeValidator(coerce_flag)]
OptionalNumber = Annotated[Optional[float], BeforeValidator(_optional_number)]
LeonComponent = Annotated[Optional[Literal[0, 1]], BeforeValidator(_optional_number)]


class PhaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Demographics(PhaseModel):
    age: NumericText = None
    sex: Optional[Literal["M", "F", "Other"]] = None
    hospitalNo: Optional[str] = None
    midArmCircumference: NumericText = None
    weight: NumericText = None
    height: NumericText = None
    occupation: Optional[str] = None
    occupationOther: Optional[str] = None
    financialStatus: Optional[str] = None
    financialStatusOther: Optional[str] = None


class Comorbidities(PhaseModel):
    diabetes: Flag = False
    hypertension: Flag = False
    chronicRenalDisease: Flag = False
    chronicLiverDisease: Flag = False
    reactiveAirwayDisease: Flag = False
    others: Flag = False
    othersText: Optional[str] = None


class GCS(PhaseModel):
    eyeResponse: NumericText = None
    verbalResponse: NumericText = None
    motorResponse: NumericText = None
    isAlreadyIntubated: Flag = False


class TraumaIndication(PhaseModel):
    headInjuryReducedSensorium: Flag = False
    headInjuryAirwayThreatened: Flag = False
    neckFacialTrauma: Flag = False
    burnInhalation: Flag = False
    drowning: Flag = False
    chestTrauma: Flag = False
    spinalCordInjury: Flag = False
    majorTrauma: Flag = False
    shock: Flag = False
    other: Flag = False
    otherText: Optional[str] = None


class MedicalIndication(PhaseModel):
    respiratoryFailure: Flag = False
    anaphylaxis: Flag = False
    cardiacFailure: Flag = False
    sepsis: Flag = False
    ichStroke: Flag = False
    seizure: Flag = False
    alteredMentalStatus: Flag = False
    overdosePoison: Flag = False
    giBleed: Flag = False
    airwayObstruction: Flag = False
    sepsisWithHypotension: Flag = False
    other: Flag = False
    otherText: Optional[str] = None


class Indication(PhaseModel):
    category: Optional[Literal["trauma", "medical"]] = None
    trauma: Optional[TraumaIndication] = None
    medical: Optional[MedicalIndication] = None


class LeonScore(PhaseModel):
    largeTongue: LeonComponent = None
    thyroMentalDistance: LeonComponent = None
    obstruction: LeonComponent = None
    neckMobility: LeonComponent = None


class VitalSigns(PhaseModel):
    heartRate: NumericText = None
    systolicBP: NumericText = None
    diastolicBP: NumericText = None
    respiratoryRate: NumericText = None
    spo2: NumericText = None
    temperature: NumericText = None
    timestamp: Optional[str] = None


class LabValues(PhaseModel):
    ph: NumericText = None
    pao2: NumericText = None
    paco2: NumericText = None
    lactate: NumericText = None
    hemoglobin: NumericText = None
    platelets: NumericText = None
    glucose: NumericText = None
    hco3: NumericText = None
    creatinine: NumericText = None
    urea: NumericText = None
    na: NumericText = None
    k: NumericText = None


class AirwayStatus(PhaseModel):
    failureToMaintainProtectAirway: Flag = False
    failureOfVentilationOxygenation: Flag = False
    deteriorationAnticipated: Flag = False
    predictorForDifficultAirway: Flag = False
    safeApneaTime: Optional[str] = None


class MedicationDose(PhaseModel):
    given: Flag = False
    dose: OptionalNumber = None


class PreIntubationManagement(PhaseModel):
    etomidate: Optional[MedicationDose] = None
    propofol: Optional[MedicationDose] = None
    ketamine: Optional[MedicationDose] = None
    midazolam: Optional[MedicationDose] = None
    fentanyl: Optional[MedicationDose] = None
    succinylcholine: Optional[MedicationDose] = None
    rocuronium: Optional[MedicationDose] = None
    vecuronium: Optional[MedicationDose] = None
    atracurium: Optional[MedicationDose] = None
    cisatracurium: Optional[MedicationDose] = None
    sedationDone: Optional[Literal["midazolamKetamine", "propofol"]] = None


class PostIntubationGcs(PhaseModel):
    eye: NumericText = None
    motor: NumericText = None
    verbal: NumericText = None


class VentilatorSettings(PhaseModel):
    ettCdValue: Optional[str] = None
    mode: Optional[str] = None
    peep: OptionalNumber = None
    pPeak: OptionalNumber = None
    minuteVentilation: OptionalNumber = None
    settingsDescription: Optional[str] = None
    changeInSettings: Optional[str] = None


class PostIntubationEvents(PhaseModel):
    postIntubationCardiacArrest: Flag = False
    cardiacArrestDetails: Optional[str] = None
    otherSeriousAdverseEvents: Optional[str] = None


class IntubationAttempt(PhaseModel):
    attemptNumber: int = Field(ge=1, le=10)
    yearsExperience: Literal["<1", "1-3", ">3", "consultant"]
    laryngoscopeType: Literal["direct", "video", "flexible", "fiberoptic", "other"]
    bladeSize: str
    bougieOrStyletUsed: Flag = False
    ettChanged: Flag = False
    remarks: Optional[str] = None


class MonitoringTable(PhaseModel):
    post5: Optional[VitalSigns] = None
    post10: Optional[VitalSigns] = None
    post15: Optional[VitalSigns] = None
    post30: Optional[VitalSigns] = None
    modifiedShockIndex: Optional[Dict[str, Optional[str]]] = None


class FormSnapshot(PhaseModel):
    """The final record as submitted to the registry."""
    demographics: Demographics
    comorbidities: Comorbidities
    gcs: GCS
    indication: Indication
    leonScore: Optional[LeonScore] = None
    preInductionVitals: Optional[VitalSigns] = None
    preInductionLabs: Optional[LabValues] = None
    airwayStatus: Optional[AirwayStatus] = None
    preIntubationManagement: Optional[PreIntubationManagement] = None
    postIntubationGcs: Optional[PostIntubationGcs] = None
    ventilatorSettings: Optional[VentilatorSettings] = None
    postIntubationEvents: Optional[PostIntubationEvents] = None
    intubationAttempts: Optional[List[IntubationAttempt]] = None
    monitoringTable: Optional[MonitoringTable] = None

    @field_validator("indication")
    @classmethod
    def _category_required(cls, value: Indication) -> Indication:
        if value.category is None:
            raise ValueError("indication category is required")
        return value


def validate_submission(snapshot: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Validate a snapshot for final submission.

    Returns a list of ``{"path": "gcs.eyeResponse", "message": ...}`` entries,
    empty when the snapshot is valid.
    """
    try:
        FormSnapshot.model_validate(snapshot or {})
    except ValidationError as exc:
        errors = []
        for err in exc.errors():
            path = ".".join(str(part) for part in err.get("loc", ()))
            errors.append({"path": path, "message": err.get("msg", "invalid value")})
        return errors
    return []
