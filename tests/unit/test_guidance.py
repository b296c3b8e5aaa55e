from neuroddx.schemas.exam import TriState
from neuroddx.schemas.features import FeatureSet
from neuroddx.services.guidance import (
    build_guidance,
    eom_hints,
    first_match,
    pupil_hints,
    visual_field_hints,
)


def test_first_match_falls_back_to_default():
    table = ((lambda f: f.ptosis, "ptosis"), (lambda f: f.diplopia, "diplopia"))

    assert first_match(table, FeatureSet(ptosis=True, diplopia=True), "none") == "ptosis"
    assert first_match(table, FeatureSet(diplopia=True), "none") == "diplopia"
    assert first_match(table, FeatureSet(), "none") == "none"


def test_empty_exam_guidance():
    guidance = build_guidance(FeatureSet())

    assert guidance.pupils.localize.startswith("Enter both light and dark pupil measurements")
    assert guidance.pupils.quality.startswith("Measure pupils in both light and dark conditions")
    assert guidance.eom.quality == "No EOM symptoms or signs entered yet."
    assert guidance.visual_fields.quality.startswith("Set reliability")


def test_horner_pupil_hints():
    hints = pupil_hints(FeatureSet(
        dominance="dark", dilation_lag=True,
        od_light=3.5, os_light=2.5, od_dark=6.0, os_dark=4.0,
    ))

    assert hints.localize.startswith("Small pupil + dilation lag/anhidrosis/ptosis: Horner syndrome rises")
    assert hints.quality.startswith("Light and dark measurements present")
    assert hints.next.startswith("Confirm with apraclonidine 0.5%")


def test_missing_dark_pair_is_flagged():
    hints = pupil_hints(FeatureSet(od_light=4.0, os_light=3.0))
    assert hints.quality.startswith("Dark measurements missing")


def test_cn6_localization():
    hints = eom_hints(FeatureSet(
        abduction_deficit=TriState.TRUE, diplopia=True, comitant=TriState.FALSE, acute=True,
    ))

    assert hints.localize.startswith("Abduction deficit + diplopia + incomitant: CN VI palsy rises")
    assert hints.quality.startswith("EOM data entered")
    assert hints.next.startswith("Acute CN VI")


def test_unexamined_comitance_is_prompted():
    hints = eom_hints(FeatureSet(abduction_deficit=TriState.TRUE, diplopia=True))

    assert hints.localize.startswith("Abduction deficit + diplopia: CN VI palsy pattern")
    assert hints.quality.startswith("Motility deficit marked. Assess comitance")


def test_myasthenia_hints():
    hints = eom_hints(FeatureSet(fatigable=True, ptosis=True, diplopia=True))
    assert hints.localize.startswith("Fatigable weakness: myasthenia gravis rises")
    assert hints.next.startswith("Fatigable weakness: perform sustained upgaze test")


def test_visual_field_hints_follow_reliability():
    hints = visual_field_hints(FeatureSet(vf_bitemporal=True, vf_reliability="poor"))

    assert hints.localize.startswith("Bitemporal")
    assert hints.quality.startswith("Poor reliability")
    assert hints.next.startswith("Check for optic disc pallor")


def test_congruity_refines_homonymous_localization():
    high = visual_field_hints(FeatureSet(vf_homonymous=True, vf_respects_vertical=True, vf_congruity="high"))
    low = visual_field_hints(FeatureSet(vf_homonymous=True, vf_respects_vertical=True, vf_congruity="low"))

    assert "occipital" in high.localize
    assert "optic tract" in low.localize
