from neuroddx.schemas.assessment import PRIORITY_RANK, Priority
from neuroddx.schemas.exam import ExamSnapshot, TriState
from neuroddx.schemas.features import FeatureSet
from neuroddx.services.features import derive_features
from neuroddx.services.testing import concern_score, recommend_tests

SWINGING_FLASHLIGHT = "Swinging Flashlight Test (RAPD Assessment)"
COMPREHENSIVE = "Comprehensive Neuro-Ophthalmic Examination"


def _names(tests):
    return [t.name for t in tests]


def test_no_findings_no_tests():
    assert recommend_tests(FeatureSet()) == []


def test_horner_tests(horner_snapshot):
    tests = recommend_tests(derive_features(ExamSnapshot.model_validate(horner_snapshot)))

    assert _names(tests) == ["Apraclonidine 0.5% Test", "Cocaine 4-10% Test"]
    assert tests[0].priority is Priority.HIGH
    assert tests[1].priority is Priority.MODERATE


def test_acute_horner_adds_vascular_imaging_first():
    features = FeatureSet(dominance="dark", acute=True)
    tests = recommend_tests(features)

    assert tests[0].name == "CTA or MRA Head/Neck"
    assert tests[0].priority is Priority.CRITICAL


def test_myasthenia_tests(myasthenia_snapshot):
    tests = recommend_tests(derive_features(ExamSnapshot.model_validate(myasthenia_snapshot)))

    assert _names(tests) == [
        "Cover/Uncover and Alternating Cover Test",
        "Prism Cover Testing",
        "Sustained Upgaze Test",
        "Ice Pack Test",
        "Anti-AChR Antibodies",
    ]


def test_traumatic_optic_neuropathy_tests(traumatic_optic_neuropathy_snapshot):
    tests = recommend_tests(derive_features(ExamSnapshot.model_validate(traumatic_optic_neuropathy_snapshot)))
    by_name = {t.name: t for t in tests}

    assert _names(tests) == [
        "Monocular Color Vision (Ishihara)",
        "Visual Acuity with Refraction",
        "CT Orbits and Optic Canal",
        "Red Cap Desaturation Test",
        "Ishihara or HRR Color Plates",
        "OCT RNFL Analysis",
        COMPREHENSIVE,
        "OCT Ganglion Cell Analysis",
    ]
    # RAPD already graded
    assert SWINGING_FLASHLIGHT not in by_name
    # The first rule to add a test fixes it; the trauma rule's copy is ignored
    red_cap = by_name["Red Cap Desaturation Test"]
    assert red_cap.priority is Priority.HIGH
    assert red_cap.rationale.startswith("Quick bedside screen")


def test_swinging_flashlight_when_rapd_not_yet_graded():
    tests = recommend_tests(FeatureSet(disc_pallor=True, disc_pallor_od=True))
    assert _names(tests)[0] == SWINGING_FLASHLIGHT


def test_names_are_unique():
    features = FeatureSet(
        trauma=True, has_rapd=True, disc_pallor=True, color_deficit=True, va_reduced=True,
        vf_central_scotoma=True, vf_altitudinal=True, vf_bitemporal=True, disc_edema=True,
        diplopia=True, fatigable=True, dominance="light", ptosis=True,
    )
    names = _names(recommend_tests(features))
    assert len(names) == len(set(names))


def test_ordered_by_priority():
    features = FeatureSet(
        vf_bitemporal=True, vf_homonymous=True, acute=True, disc_edema=True, optociliary_shunts=True,
    )
    ranks = [PRIORITY_RANK[t.priority] for t in recommend_tests(features)]

    assert ranks == sorted(ranks)
    assert ranks[0] == PRIORITY_RANK[Priority.CRITICAL]


def test_cn4_tests_need_isolated_vertical_limitation():
    isolated = recommend_tests(FeatureSet(vertical_limitation=TriState.TRUE))
    assert "Parks-Bielschowsky Three-Step Test" in _names(isolated)

    with_ptosis = recommend_tests(FeatureSet(vertical_limitation=TriState.TRUE, ptosis=True))
    assert "Parks-Bielschowsky Three-Step Test" not in _names(with_ptosis)


def test_large_pupil_tests_are_conditional():
    isolated = _names(recommend_tests(FeatureSet(dominance="light")))
    assert isolated == ["Pilocarpine 1% Test"]

    adie = _names(recommend_tests(FeatureSet(dominance="light", lnd=True)))
    assert adie == ["Dilute Pilocarpine Test (0.0625-0.125%)"]


def test_concern_score_threshold():
    assert concern_score(FeatureSet(trauma=True, acute=True)) == 3
    assert COMPREHENSIVE not in _names(recommend_tests(FeatureSet(trauma=True, acute=True)))

    features = FeatureSet(trauma=True, acute=True, painful=True)
    assert concern_score(features) == 4
    assert COMPREHENSIVE in _names(recommend_tests(features))
