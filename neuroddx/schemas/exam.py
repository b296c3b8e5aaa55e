import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Every group accepts partial / messy form state: unknown keys are ignored and
# malformed values fall back to the neutral value instead of raising.

_TRUTHY_STRINGS = {"true", "yes", "on", "1"}


def coerce_flag(value: Any) -> bool:
    """Checkbox-style coercion: missing or falsy input is False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return False


class TriState(Enum):
    """
    Three-valued finding: documented present, documented absent, or not examined.
    Serialises to true / false / null.
    """
    TRUE = True
    FALSE = False
    UNSET = None

    @classmethod
    def parse(cls, value: Any) -> "TriState":
        if isinstance(value, TriState):
            return value
        if value is True or value == "true":
            return cls.TRUE
        if value is False or value == "false":
            return cls.FALSE
        return cls.UNSET

    @property
    def is_set(self) -> bool:
        return self is not TriState.UNSET


class LightReaction(str, Enum):
    BRISK = "brisk"
    SLUGGISH = "sluggish"
    NONE = "none"
    UNRECORDED = ""


class RAPDGrade(str, Enum):
    UNRECORDED = ""
    NONE = "none"
    ONE = "1+"
    TWO = "2+"
    THREE = "3+"
    FOUR = "4+"


class Reliability(str, Enum):
    GOOD = "good"
    BORDERLINE = "borderline"
    POOR = "poor"
    UNRECORDED = ""


class Laterality(str, Enum):
    MONO = "mono"
    BINOCULAR = "binocular"
    UNKNOWN = "unknown"
    UNRECORDED = ""


class Congruity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNRECORDED = ""


def _enum_or_default(enum_cls, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls("")


class _ExamGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# 1. Triage
class Triage(_ExamGroup):
    acute_onset: bool = Field(False, alias="acuteOnset")
    painful: bool = Field(False, alias="painful")
    neuro_sx: bool = Field(False, alias="neuroSx", description="Other neurological symptoms")
    trauma: bool = Field(False, alias="trauma", description="Trauma or ocular surgery")

    @field_validator("*", mode="before")
    @classmethod
    def _flags(cls, value):
        return coerce_flag(value)


# 2. Pupils
class Pupils(_ExamGroup):
    # Diameters stay raw here (numbers, numeric strings, blanks); the feature
    # deriver owns parsing so a bad entry can never fail the whole snapshot.
    od_light: Any = Field(None, alias="odLight", description="OD diameter in bright light (mm)")
    os_light: Any = Field(None, alias="osLight", description="OS diameter in bright light (mm)")
    od_dark: Any = Field(None, alias="odDark", description="OD diameter in dim light (mm)")
    os_dark: Any = Field(None, alias="osDark", description="OS diameter in dim light (mm)")

    od_light_rxn: LightReaction = Field(LightReaction.UNRECORDED, alias="odLightRxn")
    os_light_rxn: LightReaction = Field(LightReaction.UNRECORDED, alias="osLightRxn")

    dilation_lag: bool = Field(False, alias="dilationLag")
    anhidrosis: bool = Field(False, alias="anhidrosis")
    light_near_dissociation: bool = Field(False, alias="lightNearDissociation")
    vermiform: bool = Field(False, alias="vermiform")
    anticholinergic_exposure: bool = Field(False, alias="anticholinergicExposure")
    sympathomimetic_exposure: bool = Field(False, alias="sympathomimeticExposure")

    rapd_od: RAPDGrade = Field(RAPDGrade.UNRECORDED, alias="rapdOD")
    rapd_os: RAPDGrade = Field(RAPDGrade.UNRECORDED, alias="rapdOS")

    @field_validator("od_light_rxn", "os_light_rxn", mode="before")
    @classmethod
    def _reaction(cls, value):
        return _enum_or_default(LightReaction, value)

    @field_validator("rapd_od", "rapd_os", mode="before")
    @classmethod
    def _rapd(cls, value):
        return _enum_or_default(RAPDGrade, value)

    @field_validator(
        "dilation_lag", "anhidrosis", "light_near_dissociation", "vermiform",
        "anticholinergic_exposure", "sympathomimetic_exposure",
        mode="before",
    )
    @classmethod
    def _flags(cls, value):
        return coerce_flag(value)


# 3. Optic nerve
class OpticNerve(_ExamGroup):
    disc_pallor_od: bool = Field(False, alias="discPallorOD")
    disc_pallor_os: bool = Field(False, alias="discPallorOS")
    disc_edema_od: bool = Field(False, alias="discEdemaOD")
    disc_edema_os: bool = Field(False, alias="discEdemaOS")
    color_deficit_od: bool = Field(False, alias="colorDeficitOD")
    color_deficit_os: bool = Field(False, alias="colorDeficitOS")
    va_reduced_od: bool = Field(False, alias="vaReducedOD")
    va_reduced_os: bool = Field(False, alias="vaReducedOS")
    optociliary_shunts: bool = Field(False, alias="optociliaryShunts")
    cupping: bool = Field(False, alias="cupping")
    hemorrhages: bool = Field(False, alias="hemorrhages", description="Disc hemorrhages")
    notes: str = Field("", alias="notes")

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, value):
        return value if isinstance(value, str) else ""

    @field_validator(
        "disc_pallor_od", "disc_pallor_os", "disc_edema_od", "disc_edema_os",
        "color_deficit_od", "color_deficit_os", "va_reduced_od", "va_reduced_os",
        "optociliary_shunts", "cupping", "hemorrhages",
        mode="before",
    )
    @classmethod
    def _flags(cls, value):
        return coerce_flag(value)


# 4. Extraocular motility
class EOM(_ExamGroup):
    diplopia: bool = Field(False, alias="diplopia")
    ptosis: bool = Field(False, alias="ptosis")
    fatigable: bool = Field(False, alias="fatigable")
    pain_on_movement: bool = Field(False, alias="painOnMovement")

    comitant: TriState = Field(TriState.UNSET, alias="comitant")
    abduction_deficit: TriState = Field(TriState.UNSET, alias="abductionDeficit")
    adduction_deficit: TriState = Field(TriState.UNSET, alias="adductionDeficit")
    vertical_limitation: TriState = Field(TriState.UNSET, alias="verticalLimitation")

    notes: str = Field("", alias="notes")

    @field_validator("comitant", "abduction_deficit", "adduction_deficit", "vertical_limitation", mode="before")
    @classmethod
    def _tri_state(cls, value):
        return TriState.parse(value)

    @field_validator("diplopia", "ptosis", "fatigable", "pain_on_movement", mode="before")
    @classmethod
    def _flags(cls, value):
        return coerce_flag(value)

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, value):
        return value if isinstance(value, str) else ""


# 5. Visual fields
class VisualFields(_ExamGroup):
    complaint: bool = Field(False, alias="complaint", description="Patient reports a field complaint")
    test_type: str = Field("", alias="testType", description="e.g. HVF_24-2, HVF_10-2, confrontation")
    reliability: Reliability = Field(Reliability.UNRECORDED, alias="reliability")
    new_defect: bool = Field(False, alias="newDefect")
    laterality: Laterality = Field(Laterality.UNRECORDED, alias="laterality")

    respects_vertical_meridian: TriState = Field(TriState.UNSET, alias="respectsVerticalMeridian")
    respects_horizontal_meridian: TriState = Field(TriState.UNSET, alias="respectsHorizontalMeridian")

    homonymous: bool = Field(False, alias="homonymous")
    bitemporal: bool = Field(False, alias="bitemporal")
    altitudinal: bool = Field(False, alias="altitudinal")
    central_scotoma: bool = Field(False, alias="centralScotoma")
    congruity: Congruity = Field(Congruity.UNRECORDED, alias="congruity")

    notes: str = Field("", alias="notes")

    @field_validator("test_type", "notes", mode="before")
    @classmethod
    def _text(cls, value):
        return value if isinstance(value, str) else ""

    @field_validator("reliability", mode="before")
    @classmethod
    def _reliability(cls, value):
        return _enum_or_default(Reliability, value)

    @field_validator("laterality", mode="before")
    @classmethod
    def _laterality(cls, value):
        return _enum_or_default(Laterality, value)

    @field_validator("congruity", mode="before")
    @classmethod
    def _congruity(cls, value):
        return _enum_or_default(Congruity, value)

    @field_validator("respects_vertical_meridian", "respects_horizontal_meridian", mode="before")
    @classmethod
    def _tri_state(cls, value):
        return TriState.parse(value)

    @field_validator("complaint", "new_defect", "homonymous", "bitemporal", "altitudinal", "central_scotoma", mode="before")
    @classmethod
    def _flags(cls, value):
        return coerce_flag(value)


class ExamSnapshot(_ExamGroup):
    """
    One read-only copy of the exam session as the form layer holds it.
    The engine never mutates it.
    """
    triage: Triage = Field(default_factory=Triage)
    pupils: Pupils = Field(default_factory=Pupils)
    optic_nerve: OpticNerve = Field(default_factory=OpticNerve, alias="opticNerve")
    eom: EOM = Field(default_factory=EOM)
    visual_fields: VisualFields = Field(default_factory=VisualFields, alias="visualFields")

    @field_validator("triage", "pupils", "optic_nerve", "eom", "visual_fields", mode="before")
    @classmethod
    def _group(cls, value):
        # A missing or non-object group is treated as an empty one
        if value is None or not isinstance(value, (dict, BaseModel)):
            return {}
        return value
