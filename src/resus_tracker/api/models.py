"""Pydantic models for API payloads."""

from pydantic import BaseModel, Field

from resus_tracker.domain.checklists import HypothermiaStatus
from resus_tracker.domain.dosage import PatientAgeCategory
from resus_tracker.domain.newborn import BirthType


class RhythmRequest(BaseModel):
    """Analysed rhythm payload."""

    rhythm: str = Field(min_length=1)
    shockable: bool


class TimeOffsetRequest(BaseModel):
    """Manual time offset payload."""

    seconds: int


class DrugRequest(BaseModel):
    """Dose payload for the protocol drugs."""

    dosage: str | None = None
    age_category: PatientAgeCategory | None = None


class OtherDrugRequest(BaseModel):
    """Dose payload for any other drug."""

    drug: str = Field(min_length=1)
    dosage: str | None = None


class Etco2Request(BaseModel):
    """End-tidal CO2 reading as entered by the operator."""

    value: str


class HypothermiaRequest(BaseModel):
    """Hypothermia classification payload."""

    status: HypothermiaStatus


class ResetRequest(BaseModel):
    """Options for closing out an episode."""

    should_archive: bool = False
    should_export_summary: bool = False


class PreferencesUpdate(BaseModel):
    """Partial update of protocol preferences."""

    cpr_cycle_duration_seconds: int | None = None
    adrenaline_interval_seconds: int | None = None
    show_dosage_prompts: bool | None = None
    metronome_bpm: int | None = None


class NewbornStartRequest(BaseModel):
    """Birth type chosen when the newborn clock starts."""

    birth_type: BirthType


class BreathingRequest(BaseModel):
    """Outcome of the breathing assessment."""

    breathing: bool


class ChestMovementRequest(BaseModel):
    """Outcome of the chest rise check after inflation breaths."""

    moving: bool


class HeartRateRequest(BaseModel):
    """Heart rate as entered by the operator."""

    value: str


class Fio2Request(BaseModel):
    """Inspired oxygen concentration in percent."""

    percent: int


class NewbornEndRequest(BaseModel):
    """Options for ending a newborn resuscitation."""

    should_export_summary: bool = False
