import pytest

from neuroddx.schemas.assessment import (
    Assessment,
    CatalogInfo,
    Guidance,
    ModuleHints,
    ModuleReadiness,
    UrgencyBanner,
)
from neuroddx.schemas.exam import (
    Congruity,
    ExamSnapshot,
    LightReaction,
    RAPDGrade,
    Reliability,
    TriState,
    coerce_flag,
)
from neuroddx.schemas.features import FeatureSet


@pytest.mark.parametrize("raw, expected", [
    (True, True),
    (False, False),
    (None, False),
    ("true", True),
    ("Yes", True),
    ("on", True),
    ("false", False),
    ("", False),
    (1, True),
    (0, False),
    ({}, False),
    (float("nan"), False),
    (10 ** 400, True),
])
def test_coerce_flag(raw, expected):
    assert coerce_flag(raw) is expected


@pytest.mark.parametrize("raw, expected", [
    (True, TriState.TRUE),
    ("true", TriState.TRUE),
    (False, TriState.FALSE),
    ("false", TriState.FALSE),
    (None, TriState.UNSET),
    ("", TriState.UNSET),
    ("unknown", TriState.UNSET),
    (1, TriState.UNSET),
])
def test_tri_state_parse(raw, expected):
    assert TriState.parse(raw) is expected


def test_tri_state_is_set():
    assert TriState.TRUE.is_set
    assert TriState.FALSE.is_set
    assert not TriState.UNSET.is_set


def test_snapshot_accepts_camel_case_and_field_names():
    by_alias = ExamSnapshot.model_validate({"opticNerve": {"discPallorOD": True}})
    by_name = ExamSnapshot.model_validate({"optic_nerve": {"disc_pallor_od": True}})

    assert by_alias.optic_nerve.disc_pallor_od is True
    assert by_alias == by_name


def test_malformed_groups_become_empty():
    snapshot = ExamSnapshot.model_validate({
        "triage": "acute",
        "pupils": None,
        "eom": [1, 2, 3],
        "visualFields": 42,
    })
    assert snapshot == ExamSnapshot()


def test_malformed_values_fall_back_to_neutral():
    snapshot = ExamSnapshot.model_validate({
        "triage": {"acuteOnset": "yes", "painful": "nope"},
        "pupils": {"odLightRxn": "wobbly", "rapdOS": "9+", "odLight": "n/a"},
        "visualFields": {"reliability": "excellent", "congruity": 3, "testType": None, "notes": ["x"]},
        "eom": {"comitant": "sometimes", "somethingElse": True},
    })

    assert snapshot.triage.acute_onset is True
    assert snapshot.triage.painful is False
    assert snapshot.pupils.od_light_rxn is LightReaction.UNRECORDED
    assert snapshot.pupils.rapd_os is RAPDGrade.UNRECORDED
    assert snapshot.pupils.od_light == "n/a"
    assert snapshot.visual_fields.reliability is Reliability.UNRECORDED
    assert snapshot.visual_fields.congruity is Congruity.UNRECORDED
    assert snapshot.visual_fields.test_type == ""
    assert snapshot.visual_fields.notes == ""
    assert snapshot.eom.comitant is TriState.UNSET


def test_snapshot_is_read_only():
    snapshot = ExamSnapshot()
    with pytest.raises(Exception):
        snapshot.triage.acute_onset = True


def test_feature_set_json_uses_true_false_null_for_tri_states():
    data = FeatureSet(comitant=TriState.FALSE).model_dump(mode="json")
    assert data["comitant"] is False
    assert data["abduction_deficit"] is None


def _hints():
    return ModuleHints(localize="l", quality="q", next="n")


def test_assessment_serialises_camel_case():
    assessment = Assessment(
        features=FeatureSet(),
        urgency=UrgencyBanner(message="m"),
        readiness=ModuleReadiness(visual_fields=True),
        guidance=Guidance(pupils=_hints(), eom=_hints(), visual_fields=_hints()),
        catalog="full",
    )
    data = assessment.model_dump(mode="json", by_alias=True)

    assert data["testingRecommendations"] == []
    assert data["differential"] == []
    assert data["readiness"]["visualFields"] is True
    assert "visualFields" in data["guidance"]
    assert data["urgency"]["level"] == "none"


def test_catalog_info_serialises_camel_case():
    data = CatalogInfo(name="full", max_results=12, rule_count=54).model_dump(by_alias=True)
    assert data["maxResults"] == 12
    assert data["ruleCount"] == 54
