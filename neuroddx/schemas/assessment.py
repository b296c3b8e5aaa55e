from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from neuroddx.schemas.features import FeatureSet


class Category(str, Enum):
    PUPIL = "pupil"
    OPTIC = "optic"
    EOM = "eom"
    VF = "vf"
    NEURO = "neuro"
    GENERAL = "general"


class MatchTier(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    LOW = "low"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


# Sort order (lower = more urgent -> appears first)
PRIORITY_RANK = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.MODERATE: 2,
    Priority.LOW: 3,
}


class UrgencyLevel(str, Enum):
    """
    Banner severity, totally ordered:
    none < info < warn < danger < critical
    """
    NONE = "none"
    INFO = "info"
    WARN = "warn"
    DANGER = "danger"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _URGENCY_RANK[self]


_URGENCY_RANK = {
    UrgencyLevel.NONE: 0,
    UrgencyLevel.INFO: 1,
    UrgencyLevel.WARN: 2,
    UrgencyLevel.DANGER: 3,
    UrgencyLevel.CRITICAL: 4,
}


class DiagnosisCandidate(BaseModel):
    name: str
    score: int
    evidence: List[str] = Field(default_factory=list, description="Why the rule matched, in rule order")
    next_steps: List[str] = Field(default_factory=list, serialization_alias="nextSteps")
    category: Category = Category.GENERAL
    tier: MatchTier = MatchTier.LOW


class TestRecommendation(BaseModel):
    __test__ = False  # not a pytest class

    name: str = Field(..., description="Unique key within one recommendation list")
    priority: Priority
    rationale: str
    technique: Optional[str] = None


class UrgencyBanner(BaseModel):
    level: UrgencyLevel = UrgencyLevel.NONE
    message: str


class ModuleReadiness(BaseModel):
    """Which exam modules hold their minimum viable data set."""
    pupils: bool = False
    eom: bool = False
    visual_fields: bool = Field(False, serialization_alias="visualFields")
    optic_nerve: bool = Field(False, serialization_alias="opticNerve")

    @property
    def any_ready(self) -> bool:
        return self.pupils or self.eom or self.visual_fields or self.optic_nerve


class ModuleHints(BaseModel):
    localize: str
    quality: str
    next: str


class Guidance(BaseModel):
    pupils: ModuleHints
    eom: ModuleHints
    visual_fields: ModuleHints = Field(..., serialization_alias="visualFields")


class Assessment(BaseModel):
    features: FeatureSet
    differential: List[DiagnosisCandidate] = []
    urgency: UrgencyBanner
    testing_recommendations: List[TestRecommendation] = Field(default_factory=list, serialization_alias="testingRecommendations")
    readiness: ModuleReadiness
    guidance: Guidance
    catalog: str


class CatalogInfo(BaseModel):
    name: str
    max_results: int = Field(..., serialization_alias="maxResults")
    rule_count: int = Field(..., serialization_alias="ruleCount")
    rules: Dict[str, str] = Field(default_factory=dict, description="rule id -> diagnosis name")
