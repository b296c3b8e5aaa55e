"""
Feature derivation.

Turns one raw ExamSnapshot into the flat, immutable FeatureSet consumed by
the differential scorer, test recommender and urgency classifier.

Total and pure: blank, missing or malformed input degrades to None / False,
never to an exception.
"""
import math
from typing import Any, Optional

from neuroddx.core.config import settings
from neuroddx.schemas.assessment import ModuleReadiness
from neuroddx.schemas.exam import ExamSnapshot, LightReaction, TriState
from neuroddx.schemas.features import Dominance, Eye, FeatureSet

# Thompson HS, Corbett JJ, Cox TA. How to measure the relative afferent pupillary defect.
RAPD_GRADES = {
    "": 0,
    "none": 0,
    "1+": 1,
    "2+": 2,
    "3+": 3,
    "4+": 4,
}


def parse_mm(value: Any) -> Optional[float]:
    """Pupil diameter in mm, or None for blank / non-numeric / non-finite input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        # float() also takes "3_5"; a typo must not become 35mm
        if not value or "_" in value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return parsed if math.isfinite(parsed) else None


def abs_diff(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None:
        return None
    return abs(a - b)


def rapd_grade(value: Any) -> int:
    raw = getattr(value, "value", value)
    return RAPD_GRADES.get(raw, 0) if isinstance(raw, str) else 0


def classify_dominance(
    anis_light: Optional[float],
    anis_dark: Optional[float],
    threshold_mm: float,
) -> Optional[Dominance]:
    """
    Which lighting condition carries the anisocoria.

    None unless at least one condition meets the threshold. With both values
    present the strictly larger one wins (tie -> EQUAL); with only one present
    it decides alone.
    """
    light_meets = anis_light is not None and anis_light >= threshold_mm
    dark_meets = anis_dark is not None and anis_dark >= threshold_mm

    if not (light_meets or dark_meets):
        return None
    if anis_light is not None and anis_dark is not None:
        if anis_light > anis_dark:
            return Dominance.LIGHT
        if anis_dark > anis_light:
            return Dominance.DARK
        return Dominance.EQUAL
    return Dominance.LIGHT if light_meets else Dominance.DARK


def derive_features(snapshot: ExamSnapshot, threshold_mm: Optional[float] = None) -> FeatureSet:
    threshold = settings.ANISO_THRESHOLD_MM if threshold_mm is None else threshold_mm

    t = snapshot.triage
    p = snapshot.pupils
    on = snapshot.optic_nerve
    e = snapshot.eom
    vf = snapshot.visual_fields

    # Pupils
    od_l, os_l = parse_mm(p.od_light), parse_mm(p.os_light)
    od_d, os_d = parse_mm(p.od_dark), parse_mm(p.os_dark)
    anis_l = abs_diff(od_l, os_l)
    anis_d = abs_diff(od_d, os_d)

    od_fixed = p.od_light_rxn is LightReaction.NONE
    os_fixed = p.os_light_rxn is LightReaction.NONE
    od_sluggish = p.od_light_rxn is LightReaction.SLUGGISH
    os_sluggish = p.os_light_rxn is LightReaction.SLUGGISH

    # RAPD
    od_grade = rapd_grade(p.rapd_od)
    os_grade = rapd_grade(p.rapd_os)
    if od_grade > os_grade:
        rapd_eye = Eye.OD
    elif os_grade > od_grade:
        rapd_eye = Eye.OS
    else:
        rapd_eye = None
    has_rapd = od_grade > 0 or os_grade > 0

    # Optic nerve
    disc_pallor = on.disc_pallor_od or on.disc_pallor_os
    color_deficit = on.color_deficit_od or on.color_deficit_os
    # Pallor in exactly one eye, and the RAPD sits on that same eye
    unilateral_pallor_with_rapd = (
        (on.disc_pallor_od and not on.disc_pallor_os and od_grade > 0)
        or (on.disc_pallor_os and not on.disc_pallor_od and os_grade > 0)
    )

    return FeatureSet(
        acute=t.acute_onset,
        painful=t.painful,
        neuro_sx=t.neuro_sx,
        trauma=t.trauma,

        aniso_threshold_mm=threshold,
        od_light=od_l,
        os_light=os_l,
        od_dark=od_d,
        os_dark=os_d,
        anis_light=anis_l,
        anis_dark=anis_d,
        light_meets=anis_l is not None and anis_l >= threshold,
        dark_meets=anis_d is not None and anis_d >= threshold,
        dominance=classify_dominance(anis_l, anis_d, threshold),
        larger_pupil_od=od_l is not None and os_l is not None and od_l > os_l,
        smaller_pupil_od=od_d is not None and os_d is not None and od_d < os_d,

        od_reactive=p.od_light_rxn is LightReaction.BRISK,
        os_reactive=p.os_light_rxn is LightReaction.BRISK,
        od_sluggish=od_sluggish,
        os_sluggish=os_sluggish,
        od_fixed=od_fixed,
        os_fixed=os_fixed,
        any_fixed_pupil=od_fixed or os_fixed,
        any_sluggish_pupil=od_sluggish or os_sluggish,

        dilation_lag=p.dilation_lag,
        anhidrosis=p.anhidrosis,
        lnd=p.light_near_dissociation,
        vermiform=p.vermiform,
        anticholinergic=p.anticholinergic_exposure,
        sympathomimetic=p.sympathomimetic_exposure,

        rapd_od=p.rapd_od.value,
        rapd_os=p.rapd_os.value,
        rapd_od_grade=od_grade,
        rapd_os_grade=os_grade,
        has_rapd=has_rapd,
        significant_rapd=od_grade >= 2 or os_grade >= 2,
        severe_rapd=od_grade >= 3 or os_grade >= 3,
        rapd_eye=rapd_eye,

        disc_pallor=disc_pallor,
        disc_pallor_od=on.disc_pallor_od,
        disc_pallor_os=on.disc_pallor_os,
        disc_edema=on.disc_edema_od or on.disc_edema_os,
        disc_edema_od=on.disc_edema_od,
        disc_edema_os=on.disc_edema_os,
        color_deficit=color_deficit,
        color_deficit_od=on.color_deficit_od,
        color_deficit_os=on.color_deficit_os,
        va_reduced=on.va_reduced_od or on.va_reduced_os,
        va_reduced_od=on.va_reduced_od,
        va_reduced_os=on.va_reduced_os,
        optociliary_shunts=on.optociliary_shunts,
        cupping=on.cupping,
        disc_hemorrhages=on.hemorrhages,
        unilateral_pallor_with_rapd=unilateral_pallor_with_rapd,
        suspected_optic_neuropathy=has_rapd or disc_pallor or color_deficit,

        diplopia=e.diplopia,
        ptosis=e.ptosis,
        fatigable=e.fatigable,
        pain_on_movement=e.pain_on_movement,
        comitant=e.comitant,
        abduction_deficit=e.abduction_deficit,
        adduction_deficit=e.adduction_deficit,
        vertical_limitation=e.vertical_limitation,

        vf_symptoms=vf.complaint,
        vf_test_type=vf.test_type,
        vf_reliability=vf.reliability.value,
        vf_new_defect=vf.new_defect,
        vf_laterality=vf.laterality.value,
        vf_respects_vertical=vf.respects_vertical_meridian is TriState.TRUE,
        vf_respects_horizontal=vf.respects_horizontal_meridian is TriState.TRUE,
        vf_homonymous=vf.homonymous,
        vf_bitemporal=vf.bitemporal,
        vf_altitudinal=vf.altitudinal,
        vf_central_scotoma=vf.central_scotoma,
        vf_congruity=vf.congruity.value,
    )


# --- Module readiness -------------------------------------------------------
# Minimum viable data set per exam module. The differential is only scored
# when at least one of these holds.

def has_light_pair(snapshot: ExamSnapshot) -> bool:
    p = snapshot.pupils
    return parse_mm(p.od_light) is not None and parse_mm(p.os_light) is not None


def has_dark_pair(snapshot: ExamSnapshot) -> bool:
    p = snapshot.pupils
    return parse_mm(p.od_dark) is not None and parse_mm(p.os_dark) is not None


def pupils_ready(snapshot: ExamSnapshot) -> bool:
    return has_light_pair(snapshot) and has_dark_pair(snapshot)


def eom_ready(snapshot: ExamSnapshot) -> bool:
    e = snapshot.eom
    return (
        e.diplopia or e.ptosis or e.fatigable or e.pain_on_movement
        or e.abduction_deficit is TriState.TRUE
        or e.adduction_deficit is TriState.TRUE
        or e.vertical_limitation is TriState.TRUE
        or e.comitant.is_set
    )


def visual_fields_ready(snapshot: ExamSnapshot) -> bool:
    vf = snapshot.visual_fields
    return (
        vf.homonymous or vf.bitemporal or vf.altitudinal or vf.central_scotoma
        or vf.respects_vertical_meridian.is_set
        or vf.respects_horizontal_meridian.is_set
    )


def optic_nerve_ready(snapshot: ExamSnapshot) -> bool:
    on = snapshot.optic_nerve
    return (
        on.disc_pallor_od or on.disc_pallor_os or on.disc_edema_od or on.disc_edema_os
        or on.color_deficit_od or on.color_deficit_os or on.va_reduced_od or on.va_reduced_os
        or on.optociliary_shunts or on.cupping or on.hemorrhages
    )


def module_readiness(snapshot: ExamSnapshot) -> ModuleReadiness:
    return ModuleReadiness(
        pupils=pupils_ready(snapshot),
        eom=eom_ready(snapshot),
        visual_fields=visual_fields_ready(snapshot),
        optic_nerve=optic_nerve_ready(snapshot),
    )
