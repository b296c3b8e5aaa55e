"""
Differential rule descriptors.

A diagnosis rule is data, not code paths: an ordered list of weighted
criteria, an ordered list of (optionally conditional) next steps, a category
tag and a qualifying minimum. `DiagnosisRule.evaluate` is the only place a
score is accumulated.

Weight calibration used across the catalog:
  4-7   hallmark / near-pathognomonic findings
  1-3   supportive findings
  < 0   explicit penalties (e.g. poor field reliability)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from neuroddx.core.config import settings
from neuroddx.schemas.assessment import Category, DiagnosisCandidate, MatchTier
from neuroddx.schemas.exam import TriState
from neuroddx.schemas.features import FeatureSet

Predicate = Callable[[FeatureSet], bool]
Evidence = Union[str, Callable[[FeatureSet], str]]


@dataclass(frozen=True)
class Criterion:
    """One weighted finding: if `when` holds, add `weight` and record `evidence`."""
    when: Predicate
    weight: int
    evidence: Evidence

    def describe(self, f: FeatureSet) -> str:
        return self.evidence(f) if callable(self.evidence) else self.evidence


@dataclass(frozen=True)
class NextStep:
    text: str
    when: Optional[Predicate] = None


@dataclass(frozen=True)
class DiagnosisRule:
    rule_id: str
    name: str
    category: Category
    criteria: Tuple[Criterion, ...]
    next_steps: Tuple[NextStep, ...] = ()
    # Score needed before the candidate is surfaced. 1 means "any positive
    # score"; stricter rules suppress weak pattern matches with 3-6.
    minimum: int = 1
    # Optional gate evaluated before any criterion (e.g. needs both lightings)
    applies: Optional[Predicate] = None

    def score(self, f: FeatureSet) -> Tuple[int, List[str]]:
        if self.applies is not None and not self.applies(f):
            return 0, []
        total = 0
        evidence: List[str] = []
        for criterion in self.criteria:
            if criterion.when(f):
                total += criterion.weight
                evidence.append(criterion.describe(f))
        return total, evidence

    def evaluate(self, f: FeatureSet) -> Optional[DiagnosisCandidate]:
        total, evidence = self.score(f)
        if total <= 0 or total < self.minimum:
            return None
        return DiagnosisCandidate(
            name=self.name,
            score=total,
            evidence=evidence,
            next_steps=[s.text for s in self.next_steps if s.when is None or s.when(f)],
            category=self.category,
            tier=match_tier(total),
        )


def match_tier(score: int) -> MatchTier:
    if score >= settings.STRONG_MATCH_THRESHOLD:
        return MatchTier.STRONG
    if score >= settings.MODERATE_MATCH_THRESHOLD:
        return MatchTier.MODERATE
    return MatchTier.LOW


def steps(*texts: str) -> Tuple[NextStep, ...]:
    """Unconditional next steps, in order."""
    return tuple(NextStep(t) for t in texts)


# ── Shared predicates ─────────────────────────────────────────────────────────

def present(tri: TriState) -> bool:
    return tri is TriState.TRUE


def absent(tri: TriState) -> bool:
    """Documented as absent (False), as opposed to not yet examined."""
    return tri is TriState.FALSE


def acute_or_painful(f: FeatureSet) -> bool:
    return f.acute or f.painful


def red_flag_context(f: FeatureSet) -> bool:
    return f.acute or f.painful or f.neuro_sx


# Field reliability penalty, appended last to every visual-field rule
POOR_RELIABILITY = Criterion(
    lambda f: f.poor_vf_reliability, -2, "Poor reliability reduces confidence"
)
