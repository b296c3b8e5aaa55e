from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from neuroddx.schemas.exam import TriState


class Dominance(str, Enum):
    """Lighting condition with the larger anisocoria."""
    LIGHT = "light"   # larger pupil is the abnormal one
    DARK = "dark"     # smaller pupil is the abnormal one
    EQUAL = "equal"


class Eye(str, Enum):
    OD = "OD"
    OS = "OS"


class FeatureSet(BaseModel):
    """
    Flat, immutable view of one exam snapshot.
    Every field is a pure function of the snapshot; absent numbers are None.
    """
    model_config = ConfigDict(frozen=True)

    # --- Triage ---
    acute: bool = False
    painful: bool = False
    neuro_sx: bool = False
    trauma: bool = False

    # --- Pupils: measurements ---
    aniso_threshold_mm: float = 0.5
    od_light: Optional[float] = None
    os_light: Optional[float] = None
    od_dark: Optional[float] = None
    os_dark: Optional[float] = None
    anis_light: Optional[float] = None
    anis_dark: Optional[float] = None
    light_meets: bool = False
    dark_meets: bool = False
    dominance: Optional[Dominance] = None
    larger_pupil_od: bool = False
    smaller_pupil_od: bool = False

    # --- Pupils: reactivity ---
    od_reactive: bool = False
    os_reactive: bool = False
    od_sluggish: bool = False
    os_sluggish: bool = False
    od_fixed: bool = False
    os_fixed: bool = False
    any_fixed_pupil: bool = False
    any_sluggish_pupil: bool = False

    # --- Pupils: signs and exposures ---
    dilation_lag: bool = False
    anhidrosis: bool = False
    lnd: bool = False
    vermiform: bool = False
    anticholinergic: bool = False
    sympathomimetic: bool = False

    # --- RAPD ---
    rapd_od: str = ""
    rapd_os: str = ""
    rapd_od_grade: int = 0
    rapd_os_grade: int = 0
    has_rapd: bool = False
    significant_rapd: bool = False
    severe_rapd: bool = False
    rapd_eye: Optional[Eye] = None

    # --- Optic nerve ---
    disc_pallor: bool = False
    disc_pallor_od: bool = False
    disc_pallor_os: bool = False
    disc_edema: bool = False
    disc_edema_od: bool = False
    disc_edema_os: bool = False
    color_deficit: bool = False
    color_deficit_od: bool = False
    color_deficit_os: bool = False
    va_reduced: bool = False
    va_reduced_od: bool = False
    va_reduced_os: bool = False
    optociliary_shunts: bool = False
    cupping: bool = False
    disc_hemorrhages: bool = False
    unilateral_pallor_with_rapd: bool = False
    suspected_optic_neuropathy: bool = False

    # --- EOM ---
    diplopia: bool = False
    ptosis: bool = False
    fatigable: bool = False
    pain_on_movement: bool = False
    comitant: TriState = TriState.UNSET
    abduction_deficit: TriState = TriState.UNSET
    adduction_deficit: TriState = TriState.UNSET
    vertical_limitation: TriState = TriState.UNSET

    # --- Visual fields ---
    vf_symptoms: bool = False
    vf_test_type: str = ""
    vf_reliability: str = ""
    vf_new_defect: bool = False
    vf_laterality: str = ""
    vf_respects_vertical: bool = False
    vf_respects_horizontal: bool = False
    vf_homonymous: bool = False
    vf_bitemporal: bool = False
    vf_altitudinal: bool = False
    vf_central_scotoma: bool = False
    vf_congruity: str = ""

    @property
    def large_pupil_pattern(self) -> bool:
        return self.dominance is Dominance.LIGHT

    @property
    def small_pupil_pattern(self) -> bool:
        return self.dominance is Dominance.DARK

    @property
    def pupil_sparing(self) -> bool:
        return not self.large_pupil_pattern and not self.small_pupil_pattern

    @property
    def eom_deficit_count(self) -> int:
        """Number of motility deficits documented as present."""
        return sum(
            1 for d in (self.abduction_deficit, self.adduction_deficit, self.vertical_limitation)
            if d is TriState.TRUE
        )

    @property
    def poor_vf_reliability(self) -> bool:
        return self.vf_reliability == "poor"
