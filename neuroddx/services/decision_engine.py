import structlog
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from neuroddx.core.config import settings
from neuroddx.schemas.assessment import (
    Assessment,
    DiagnosisCandidate,
    ModuleReadiness,
    TestRecommendation,
    UrgencyBanner,
)
from neuroddx.schemas.exam import ExamSnapshot
from neuroddx.schemas.features import FeatureSet
from neuroddx.services import features as feature_deriver
from neuroddx.services.differential.catalog import get_catalog
from neuroddx.services.differential.scorer import score_differential
from neuroddx.services.guidance import build_guidance
from neuroddx.services.testing import recommend_tests
from neuroddx.services.urgency import classify_urgency

logger = structlog.get_logger()

SnapshotInput = Union[ExamSnapshot, Dict[str, Any], None]


class DecisionEngine:

    @staticmethod
    def load_snapshot(raw: SnapshotInput) -> ExamSnapshot:
        """
        Leniently turns a raw dict into an ExamSnapshot.
        Malformed groups degrade to empty ones; the engine never rejects input.
        """
        if isinstance(raw, ExamSnapshot):
            return raw
        if not isinstance(raw, dict):
            return ExamSnapshot()
        try:
            return ExamSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning("snapshot_validation_degraded", error_count=e.error_count())
            return ExamSnapshot()

    @staticmethod
    def derive_features(snapshot: SnapshotInput, threshold_mm: Optional[float] = None) -> FeatureSet:
        return feature_deriver.derive_features(DecisionEngine.load_snapshot(snapshot), threshold_mm)

    @staticmethod
    def score_differential(features: FeatureSet, catalog: Optional[str] = None) -> List[DiagnosisCandidate]:
        return score_differential(features, catalog)

    @staticmethod
    def recommend_tests(features: FeatureSet) -> List[TestRecommendation]:
        return recommend_tests(features)

    @staticmethod
    def classify_urgency(features: FeatureSet, readiness: ModuleReadiness) -> UrgencyBanner:
        return classify_urgency(features, readiness)

    @staticmethod
    def compute(
        snapshot: SnapshotInput,
        catalog: Optional[str] = None,
        threshold_mm: Optional[float] = None,
    ) -> Assessment:
        """
        Full assessment of one exam snapshot.

        The differential is only scored when at least one exam module holds
        its minimum data set; otherwise it is empty. Tests, urgency and
        guidance are always produced.
        """
        # Unknown names fail fast, even when the differential ends up gated off
        catalog_name = get_catalog(catalog or settings.DIFFERENTIAL_CATALOG).name
        exam = DecisionEngine.load_snapshot(snapshot)

        # 1. Features
        features = feature_deriver.derive_features(exam, threshold_mm)
        readiness = feature_deriver.module_readiness(exam)

        # 2. Differential (gated)
        if readiness.any_ready:
            differential = score_differential(features, catalog_name)
        else:
            differential = []

        # 3. Tests, urgency, guidance
        testing = recommend_tests(features)
        urgency = classify_urgency(features, readiness)
        guidance = build_guidance(features)

        logger.info(
            "assessment_computed",
            catalog=catalog_name,
            modules_ready=[name for name, ready in readiness.model_dump().items() if ready],
            candidates=len(differential),
            top=differential[0].name if differential else None,
            urgency=urgency.level.value,
            tests=len(testing),
        )

        return Assessment(
            features=features,
            differential=differential,
            urgency=urgency,
            testing_recommendations=testing,
            readiness=readiness,
            guidance=guidance,
            catalog=catalog_name,
        )


compute = DecisionEngine.compute
