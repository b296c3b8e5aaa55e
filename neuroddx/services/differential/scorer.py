from typing import List, Optional

import structlog

from neuroddx.core.config import settings
from neuroddx.schemas.assessment import DiagnosisCandidate
from neuroddx.schemas.features import FeatureSet

from .catalog import get_catalog

logger = structlog.get_logger()


def score_differential(features: FeatureSet, catalog: Optional[str] = None) -> List[DiagnosisCandidate]:
    """
    Evaluates every rule of the named catalog against one feature set.
    Returns candidates ranked by score (highest first), ties in catalog
    order, truncated to the catalog's cap.
    """
    selected = get_catalog(catalog or settings.DIFFERENTIAL_CATALOG)

    candidates = []
    for rule in selected.rules:
        candidate = rule.evaluate(features)
        if candidate is not None:
            candidates.append(candidate)

    # sorted() is stable: equal scores keep catalog order
    ranked = sorted(candidates, key=lambda c: -c.score)[: selected.max_results]

    logger.debug(
        "differential_scored",
        catalog=selected.name,
        matched=len(candidates),
        returned=len(ranked),
        top=ranked[0].name if ranked else None,
    )
    return ranked
