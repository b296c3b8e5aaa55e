import math

import pytest

from neuroddx.schemas.exam import ExamSnapshot, TriState
from neuroddx.schemas.features import Dominance, Eye
from neuroddx.services.features import (
    classify_dominance,
    derive_features,
    module_readiness,
    parse_mm,
    rapd_grade,
)
from neuroddx.services.urgency import pupils_partially_entered


def _features(raw, threshold_mm=None):
    return derive_features(ExamSnapshot.model_validate(raw), threshold_mm)


# --- parse_mm ---

@pytest.mark.parametrize("raw, expected", [
    ("3.5", 3.5),
    (" 2.5 ", 2.5),
    (4, 4.0),
    (0, 0.0),
    ("", None),
    ("   ", None),
    (None, None),
    ("abc", None),
    (True, None),
    ("inf", None),
    (math.nan, None),
    ([3.0], None),
    ("3_5", None),
    (10 ** 400, None),
    ("1e400", None),
])
def test_parse_mm(raw, expected):
    assert parse_mm(raw) == expected


# --- Dominance ---

@pytest.mark.parametrize("anis_light, anis_dark, expected", [
    (1.0, 0.2, Dominance.LIGHT),
    (0.2, 1.0, Dominance.DARK),
    (1.0, 1.0, Dominance.EQUAL),
    (0.6, 0.4, Dominance.LIGHT),   # only light meets, still strictly larger
    (0.4, 0.6, Dominance.DARK),
    (0.2, 0.3, None),              # neither meets
    (0.6, None, Dominance.LIGHT),
    (None, 0.6, Dominance.DARK),
    (0.4, None, None),
    (None, None, None),
])
def test_classify_dominance(anis_light, anis_dark, expected):
    assert classify_dominance(anis_light, anis_dark, 0.5) is expected


def test_threshold_is_inclusive():
    assert classify_dominance(0.5, 0.0, 0.5) is Dominance.LIGHT


def test_horner_pupil_measurements(horner_snapshot):
    f = _features(horner_snapshot)

    assert f.anis_light == pytest.approx(1.0)
    assert f.anis_dark == pytest.approx(2.0)
    assert f.light_meets is True
    assert f.dark_meets is True
    assert f.dominance is Dominance.DARK
    assert f.small_pupil_pattern is True
    assert f.large_pupil_pattern is False
    assert f.pupil_sparing is False
    assert f.larger_pupil_od is True
    assert f.smaller_pupil_od is False
    assert f.od_reactive and f.os_reactive
    assert f.any_fixed_pupil is False


def test_threshold_override_changes_dominance(horner_snapshot):
    f = _features(horner_snapshot, threshold_mm=1.5)

    assert f.aniso_threshold_mm == 1.5
    assert f.light_meets is False
    assert f.dark_meets is True
    assert f.dominance is Dominance.DARK

    f = _features(horner_snapshot, threshold_mm=3.0)
    assert f.dominance is None


def test_missing_eye_leaves_anisocoria_unset():
    f = _features({"pupils": {"odLight": "4", "osLight": "", "odDark": "6"}})

    assert f.od_light == 4.0
    assert f.os_light is None
    assert f.anis_light is None
    assert f.anis_dark is None
    assert f.dominance is None
    assert f.light_meets is False


def test_fixed_and_sluggish_reactions():
    f = _features({"pupils": {"odLightRxn": "none", "osLightRxn": "sluggish"}})

    assert f.od_fixed is True
    assert f.any_fixed_pupil is True
    assert f.os_sluggish is True
    assert f.any_sluggish_pupil is True
    assert f.od_reactive is False


# --- RAPD ---

@pytest.mark.parametrize("raw, grade", [
    ("", 0), ("none", 0), ("1+", 1), ("2+", 2), ("3+", 3), ("4+", 4), ("5+", 0), (None, 0), (3, 0),
])
def test_rapd_grade(raw, grade):
    assert rapd_grade(raw) == grade


def test_rapd_features():
    f = _features({"pupils": {"rapdOD": "2+", "rapdOS": "1+"}})

    assert f.rapd_od_grade == 2
    assert f.rapd_os_grade == 1
    assert f.has_rapd is True
    assert f.significant_rapd is True
    assert f.severe_rapd is False
    assert f.rapd_eye is Eye.OD


def test_equal_rapd_grades_have_no_side():
    f = _features({"pupils": {"rapdOD": "1+", "rapdOS": "1+"}})
    assert f.has_rapd is True
    assert f.rapd_eye is None


def test_unknown_rapd_grade_degrades_to_unrecorded():
    f = _features({"pupils": {"rapdOD": "massive"}})
    assert f.rapd_od == ""
    assert f.has_rapd is False


# --- Optic nerve composites ---

def test_unilateral_pallor_with_ipsilateral_rapd():
    f = _features({"pupils": {"rapdOD": "1+"}, "opticNerve": {"discPallorOD": True}})
    assert f.unilateral_pallor_with_rapd is True
    assert f.suspected_optic_neuropathy is True


def test_pallor_and_rapd_on_opposite_eyes():
    f = _features({"pupils": {"rapdOS": "1+"}, "opticNerve": {"discPallorOD": True}})
    assert f.unilateral_pallor_with_rapd is False


def test_bilateral_pallor_is_not_unilateral():
    f = _features({
        "pupils": {"rapdOD": "2+"},
        "opticNerve": {"discPallorOD": True, "discPallorOS": True},
    })
    assert f.disc_pallor is True
    assert f.unilateral_pallor_with_rapd is False


def test_color_deficit_alone_suggests_optic_neuropathy():
    f = _features({"opticNerve": {"colorDeficitOS": True}})
    assert f.color_deficit is True
    assert f.suspected_optic_neuropathy is True


# --- EOM / visual fields ---

def test_tri_states_pass_through():
    f = _features({"eom": {"comitant": False, "abductionDeficit": "true", "verticalLimitation": "maybe"}})

    assert f.comitant is TriState.FALSE
    assert f.abduction_deficit is TriState.TRUE
    assert f.adduction_deficit is TriState.UNSET
    assert f.vertical_limitation is TriState.UNSET
    assert f.eom_deficit_count == 1


def test_meridian_features_need_explicit_true():
    f = _features({"visualFields": {"respectsVerticalMeridian": False, "respectsHorizontalMeridian": True}})
    assert f.vf_respects_vertical is False
    assert f.vf_respects_horizontal is True


def test_visual_field_strings(chiasmal_poor_reliability_snapshot):
    f = _features(chiasmal_poor_reliability_snapshot)
    assert f.vf_bitemporal is True
    assert f.vf_reliability == "poor"
    assert f.poor_vf_reliability is True
    assert f.vf_congruity == ""


def test_empty_snapshot_is_all_neutral():
    f = derive_features(ExamSnapshot())

    assert f.dominance is None
    assert f.has_rapd is False
    assert f.eom_deficit_count == 0
    assert f.comitant is TriState.UNSET
    assert f.pupil_sparing is True


def test_derivation_is_pure(horner_snapshot):
    snapshot = ExamSnapshot.model_validate(horner_snapshot)
    before = snapshot.model_dump()

    assert derive_features(snapshot) == derive_features(snapshot)
    assert snapshot.model_dump() == before


# --- Module readiness ---

def test_readiness_empty():
    readiness = module_readiness(ExamSnapshot())
    assert readiness.any_ready is False


def test_pupils_need_light_and_dark_pairs():
    light_only = ExamSnapshot.model_validate({"pupils": {"odLight": 4, "osLight": 3}})
    assert module_readiness(light_only).pupils is False
    assert pupils_partially_entered(derive_features(light_only), module_readiness(light_only)) is True

    full = ExamSnapshot.model_validate({"pupils": {"odLight": 4, "osLight": 3, "odDark": 6, "osDark": 5}})
    assert module_readiness(full).pupils is True


def test_pupils_with_non_numeric_entries_are_not_ready():
    snapshot = ExamSnapshot.model_validate(
        {"pupils": {"odLight": "big", "osLight": 3, "odDark": 6, "osDark": 5}}
    )
    assert module_readiness(snapshot).pupils is False


def test_documented_comitance_makes_eom_ready():
    snapshot = ExamSnapshot.model_validate({"eom": {"comitant": False}})
    assert module_readiness(snapshot).eom is True


def test_documented_meridian_makes_fields_ready():
    snapshot = ExamSnapshot.model_validate({"visualFields": {"respectsVerticalMeridian": False}})
    assert module_readiness(snapshot).visual_fields is True


def test_notes_alone_do_not_make_a_module_ready():
    snapshot = ExamSnapshot.model_validate({
        "opticNerve": {"notes": "pale?"},
        "eom": {"notes": "full"},
        "visualFields": {"notes": "n/a", "reliability": "good"},
    })
    assert module_readiness(snapshot).any_ready is False
