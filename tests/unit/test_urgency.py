import pytest

from neuroddx.schemas.assessment import ModuleReadiness, UrgencyLevel
from neuroddx.schemas.exam import ExamSnapshot
from neuroddx.schemas.features import FeatureSet
from neuroddx.services.features import derive_features, module_readiness
from neuroddx.services.urgency import (
    NO_DATA_MESSAGE,
    NO_PATTERN_MESSAGE,
    PUPILS_INCOMPLETE_MESSAGE,
    URGENCY_GUARDS,
    classify_urgency,
)

READY = ModuleReadiness(pupils=True)
NOT_READY = ModuleReadiness()


def _classify(raw):
    snapshot = ExamSnapshot.model_validate(raw)
    return classify_urgency(derive_features(snapshot), module_readiness(snapshot))


def test_guards_are_ordered_most_severe_first():
    ranks = [g.level.rank for g in URGENCY_GUARDS]
    assert ranks == sorted(ranks, reverse=True)
    assert len(URGENCY_GUARDS) == 14


@pytest.mark.parametrize("features, level, prefix", [
    (
        FeatureSet(dominance="light", ptosis=True, acute=True, diplopia=True),
        UrgencyLevel.CRITICAL,
        "CRITICAL: Pattern strongly suggests compressive CN III palsy",
    ),
    (
        FeatureSet(dominance="dark", acute=True, painful=True, dilation_lag=True),
        UrgencyLevel.CRITICAL,
        "CRITICAL: Acute painful Horner syndrome",
    ),
    (
        FeatureSet(vf_altitudinal=True, has_rapd=True, painful=True, acute=True),
        UrgencyLevel.CRITICAL,
        "CRITICAL: Acute painful AION with RAPD",
    ),
    (
        FeatureSet(trauma=True, has_rapd=True, va_reduced=True),
        UrgencyLevel.CRITICAL,
        "CRITICAL: Traumatic optic neuropathy suspected",
    ),
    (
        FeatureSet(dominance="light", diplopia=True, neuro_sx=True),
        UrgencyLevel.DANGER,
        "High concern: Large pupil pattern",
    ),
    (
        FeatureSet(vf_homonymous=True, acute=True),
        UrgencyLevel.DANGER,
        "URGENT: Acute homonymous visual field defect",
    ),
    (
        FeatureSet(has_rapd=True, disc_pallor=True),
        UrgencyLevel.DANGER,
        "RAPD with disc pallor",
    ),
    (
        FeatureSet(dominance="dark", anhidrosis=True, neuro_sx=True),
        UrgencyLevel.WARN,
        "Elevated concern: Small pupil pattern",
    ),
    (
        FeatureSet(fatigable=True, ptosis=True),
        UrgencyLevel.WARN,
        "Fatigable weakness pattern",
    ),
    (
        FeatureSet(has_rapd=True),
        UrgencyLevel.WARN,
        "RAPD detected without visible disc changes",
    ),
    (
        FeatureSet(vf_bitemporal=True, vf_reliability="good"),
        UrgencyLevel.INFO,
        "Bitemporal visual field pattern",
    ),
    (
        FeatureSet(vf_central_scotoma=True, pain_on_movement=True),
        UrgencyLevel.INFO,
        "Central scotoma with pain on eye movement",
    ),
    (
        FeatureSet(painful=True),
        UrgencyLevel.INFO,
        "Acute/painful/neurological context noted",
    ),
])
def test_guard_levels(features, level, prefix):
    banner = classify_urgency(features, READY)
    assert banner.level is level
    assert banner.message.startswith(prefix)


def test_color_deficit_with_rapd_and_edema_is_info():
    # Disc edema keeps the RAPD-without-disc-changes warning quiet
    banner = classify_urgency(FeatureSet(color_deficit=True, has_rapd=True, disc_edema=True), READY)
    assert banner.level is UrgencyLevel.INFO
    assert banner.message.startswith("Color deficit with RAPD")


def test_most_severe_guard_wins():
    # Satisfies the compressive CN III guard and both large-pupil / context guards below it
    features = FeatureSet(dominance="light", ptosis=True, diplopia=True, painful=True, neuro_sx=True)
    assert classify_urgency(features, READY).level is UrgencyLevel.CRITICAL


def test_trauma_with_pallor_is_not_the_non_traumatic_danger_banner(traumatic_optic_neuropathy_snapshot):
    banner = _classify(traumatic_optic_neuropathy_snapshot)
    assert banner.level is UrgencyLevel.CRITICAL
    assert banner.message.startswith("CRITICAL: Traumatic optic neuropathy suspected")


def test_poor_reliability_silences_bitemporal_info(chiasmal_poor_reliability_snapshot):
    banner = _classify(chiasmal_poor_reliability_snapshot)
    assert banner.level is UrgencyLevel.NONE
    assert banner.message == NO_PATTERN_MESSAGE


def test_horner_without_red_flags_is_not_urgent(horner_snapshot):
    banner = _classify(horner_snapshot)
    assert banner.level is UrgencyLevel.NONE
    assert banner.message == NO_PATTERN_MESSAGE


# --- Fallback banner ---

def test_no_data():
    banner = _classify({})
    assert banner.level is UrgencyLevel.NONE
    assert banner.message == NO_DATA_MESSAGE


def test_partial_pupils_take_precedence_over_no_data():
    banner = _classify({"pupils": {"odLight": 4.0, "osLight": 3.0}})
    assert banner.level is UrgencyLevel.NONE
    assert banner.message == PUPILS_INCOMPLETE_MESSAGE


def test_partial_pupils_with_another_module_ready():
    banner = _classify({"pupils": {"odDark": 6.0}, "eom": {"comitant": True}})
    assert banner.message == PUPILS_INCOMPLETE_MESSAGE


def test_exactly_one_banner_per_call():
    banner = classify_urgency(FeatureSet(), NOT_READY)
    assert banner.level is UrgencyLevel.NONE
    assert banner.message == NO_DATA_MESSAGE
