"""
Global urgency banner.

Guards are evaluated in order and the first match wins; nothing is merged.
They are ordered rarest-and-most-dangerous first so that a severe pattern is
never shadowed by a commoner, milder one further down.
"""
from dataclasses import dataclass
from typing import Callable, Tuple

import structlog

from neuroddx.schemas.assessment import ModuleReadiness, UrgencyBanner, UrgencyLevel
from neuroddx.schemas.features import FeatureSet

logger = structlog.get_logger()

NO_DATA_MESSAGE = "Enter clinical findings in any module to generate differential diagnoses."
PUPILS_INCOMPLETE_MESSAGE = (
    "Pupil data incomplete: enter both light and dark measurements for each eye "
    "to determine which pupil is abnormal."
)
NO_PATTERN_MESSAGE = "No high-risk pattern detected. Continue entering findings to refine the differential."


@dataclass(frozen=True)
class UrgencyGuard:
    level: UrgencyLevel
    message: str
    when: Callable[[FeatureSet], bool]


def _red_flag_context(f: FeatureSet) -> bool:
    return f.acute or f.painful or f.neuro_sx


def _sympathetic_sign(f: FeatureSet) -> bool:
    return f.dilation_lag or f.ptosis or f.anhidrosis


URGENCY_GUARDS: Tuple[UrgencyGuard, ...] = (
    # ── critical: immediate life / vision threat ──────────────────────────────
    UrgencyGuard(
        UrgencyLevel.CRITICAL,
        "CRITICAL: Pattern strongly suggests compressive CN III palsy. EMERGENT CTA/MRA head required to "
        "exclude posterior communicating artery aneurysm.",
        lambda f: f.large_pupil_pattern and f.ptosis
        and (f.acute or f.painful) and (f.diplopia or f.neuro_sx),
    ),
    UrgencyGuard(
        UrgencyLevel.CRITICAL,
        "CRITICAL: Acute painful Horner syndrome. EMERGENT carotid imaging (CTA/MRA neck) required to "
        "exclude carotid artery dissection.",
        lambda f: f.small_pupil_pattern and f.acute and f.painful and _sympathetic_sign(f),
    ),
    UrgencyGuard(
        UrgencyLevel.CRITICAL,
        "CRITICAL: Acute painful AION with RAPD. If age >50, start empiric high-dose steroids and obtain "
        "STAT ESR/CRP. GCA can cause bilateral blindness within days.",
        lambda f: f.vf_altitudinal and f.has_rapd and f.painful and f.acute,
    ),
    UrgencyGuard(
        UrgencyLevel.CRITICAL,
        "CRITICAL: Traumatic optic neuropathy suspected. Document baseline VA, color vision, RAPD. "
        "Consider CT orbits/optic canals. Serial monitoring essential.",
        lambda f: f.trauma and f.has_rapd and (f.disc_pallor or f.color_deficit or f.va_reduced),
    ),
    # ── danger: urgent work-up ────────────────────────────────────────────────
    UrgencyGuard(
        UrgencyLevel.DANGER,
        "High concern: Large pupil pattern with acute/painful presentation + ptosis/diplopia. "
        "Consider compressive CN III - imaging indicated.",
        lambda f: f.large_pupil_pattern and (f.ptosis or f.diplopia) and _red_flag_context(f),
    ),
    UrgencyGuard(
        UrgencyLevel.DANGER,
        "URGENT: Acute homonymous visual field defect suggests stroke. Activate stroke protocol, "
        "establish last known well time.",
        lambda f: f.vf_homonymous and f.acute,
    ),
    UrgencyGuard(
        UrgencyLevel.DANGER,
        "RAPD with disc pallor indicates optic nerve damage. MRI brain/orbits recommended to evaluate "
        "for compressive or inflammatory etiology.",
        lambda f: f.has_rapd and f.disc_pallor and not f.trauma,
    ),
    # ── warn: elevated concern ────────────────────────────────────────────────
    UrgencyGuard(
        UrgencyLevel.WARN,
        "Elevated concern: Small pupil pattern with sympathetic signs in acute/painful setting. "
        "Consider Horner syndrome workup including vascular imaging.",
        lambda f: f.small_pupil_pattern and _sympathetic_sign(f) and _red_flag_context(f),
    ),
    UrgencyGuard(
        UrgencyLevel.WARN,
        "Fatigable weakness pattern raises concern for myasthenia gravis. Recommend serology and "
        "consider pyridostigmine trial.",
        lambda f: f.fatigable and (f.ptosis or f.diplopia),
    ),
    UrgencyGuard(
        UrgencyLevel.WARN,
        "RAPD detected without visible disc changes. Consider retrobulbar optic neuropathy, optic tract "
        "lesion, or asymmetric retinal disease. Color vision and VF testing recommended.",
        lambda f: f.has_rapd and not f.disc_pallor and not f.disc_edema,
    ),
    # ── info: notable findings ────────────────────────────────────────────────
    UrgencyGuard(
        UrgencyLevel.INFO,
        "Bitemporal visual field pattern suggests chiasmal pathology. MRI pituitary/sella with contrast "
        "recommended.",
        lambda f: f.vf_bitemporal and not f.poor_vf_reliability,
    ),
    UrgencyGuard(
        UrgencyLevel.INFO,
        "Central scotoma with pain on eye movement suggests optic neuritis. MRI brain/orbits with "
        "contrast recommended.",
        lambda f: f.vf_central_scotoma and f.pain_on_movement,
    ),
    UrgencyGuard(
        UrgencyLevel.INFO,
        "Color deficit with RAPD suggests optic neuropathy. Recommend formal VF testing and OCT RNFL.",
        lambda f: f.color_deficit and f.has_rapd,
    ),
    UrgencyGuard(
        UrgencyLevel.INFO,
        "Acute/painful/neurological context noted. Continue entering findings to refine localization.",
        _red_flag_context,
    ),
)


def pupils_partially_entered(features: FeatureSet, readiness: ModuleReadiness) -> bool:
    """At least one diameter entered, but not the full light + dark set."""
    entered = any(
        v is not None for v in (features.od_light, features.os_light, features.od_dark, features.os_dark)
    )
    return entered and not readiness.pupils


def fallback_banner(features: FeatureSet, readiness: ModuleReadiness) -> UrgencyBanner:
    if pupils_partially_entered(features, readiness):
        return UrgencyBanner(level=UrgencyLevel.NONE, message=PUPILS_INCOMPLETE_MESSAGE)
    if not readiness.any_ready:
        return UrgencyBanner(level=UrgencyLevel.NONE, message=NO_DATA_MESSAGE)
    return UrgencyBanner(level=UrgencyLevel.NONE, message=NO_PATTERN_MESSAGE)


def classify_urgency(features: FeatureSet, readiness: ModuleReadiness) -> UrgencyBanner:
    for guard in URGENCY_GUARDS:
        if guard.when(features):
            logger.debug("urgency_guard_matched", level=guard.level.value)
            return UrgencyBanner(level=guard.level, message=guard.message)
    return fallback_banner(features, readiness)
