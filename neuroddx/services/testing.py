"""
Confirmatory test recommendations.

Reference: AAO Preferred Practice Patterns; Walsh & Hoyt's Clinical
Neuro-Ophthalmology.

The table below is evaluated top to bottom. The first rule that adds a test
name fixes its priority, rationale and technique; later rules naming the
same test are ignored.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import structlog

from neuroddx.schemas.assessment import PRIORITY_RANK, Priority, TestRecommendation
from neuroddx.schemas.features import FeatureSet

from neuroddx.services.differential.base import present

logger = structlog.get_logger()

Predicate = Callable[[FeatureSet], bool]

# Aggregate concern needed before a full neuro-ophthalmic work-up is advised
CONCERN_SCORE_THRESHOLD = 4


@dataclass(frozen=True)
class TestSpec:
    __test__ = False  # not a pytest class

    name: str
    priority: Priority
    rationale: str
    technique: Optional[str] = None
    when: Optional[Predicate] = None

    def build(self) -> TestRecommendation:
        return TestRecommendation(
            name=self.name,
            priority=self.priority,
            rationale=self.rationale,
            technique=self.technique,
        )


@dataclass(frozen=True)
class TestRule:
    __test__ = False

    when: Predicate
    tests: Tuple[TestSpec, ...]


def concern_score(f: FeatureSet) -> int:
    return (
        (2 if f.has_rapd else 0)
        + (2 if f.disc_pallor else 0)
        + (1 if f.color_deficit else 0)
        + (1 if f.va_reduced else 0)
        + (2 if f.trauma else 0)
        + (1 if f.painful else 0)
        + (1 if f.acute else 0)
    )


def _afferent_concern(f: FeatureSet) -> bool:
    return (
        f.suspected_optic_neuropathy or f.vf_central_scotoma or f.vf_altitudinal
        or f.disc_pallor or f.color_deficit or f.va_reduced
    )


TEST_RULES: Tuple[TestRule, ...] = (
    # ── Afferent pathway ──────────────────────────────────────────────────────
    TestRule(
        when=_afferent_concern,
        tests=(
            TestSpec(
                "Swinging Flashlight Test (RAPD Assessment)",
                Priority.HIGH,
                "Optic nerve pathology suspected - RAPD is the most sensitive clinical sign of unilateral or asymmetric optic neuropathy",
                "In dim room, swing light between eyes every 2-3 seconds. Watch for paradoxical dilation when light shines on affected eye. Grade 1+ to 4+.",
                # already graded
                when=lambda f: not f.has_rapd,
            ),
        ),
    ),
    # Trobe JD. The evaluation of optic neuropathy.
    TestRule(
        when=lambda f: f.has_rapd or f.disc_pallor or f.vf_central_scotoma or f.trauma,
        tests=(
            TestSpec(
                "Red Cap Desaturation Test",
                Priority.HIGH,
                "Quick bedside screen for optic neuropathy - color vision affected early and often disproportionately to VA",
                "Hold red target at equal distance from both eyes. Ask patient to rate 'redness' of each eye as percentage. >25% asymmetry suggests optic neuropathy.",
            ),
            TestSpec(
                "Ishihara or HRR Color Plates",
                Priority.HIGH,
                "Quantitative color vision assessment - dyschromatopsia in optic neuropathy typically red-green (acquired) vs blue-yellow (macular)",
                "Test each eye separately in good lighting. Document number of plates correct. Compare to expected for VA level.",
            ),
        ),
    ),
    TestRule(
        when=lambda f: f.has_rapd and f.disc_pallor,
        tests=(
            TestSpec(
                "OCT RNFL Analysis",
                Priority.HIGH,
                "RAPD + disc pallor indicates optic nerve damage - OCT quantifies RNFL loss and helps localize (sectoral vs diffuse)",
                "Standard circumpapillary RNFL scan. Look for thinning pattern: temporal in ON, superior/inferior in glaucoma, band atrophy in chiasmal.",
            ),
            TestSpec(
                "OCT Ganglion Cell Analysis",
                Priority.MODERATE,
                "GCL-IPL thinning may precede visible pallor and correlates with visual field loss",
                "Macular cube scan with GCC/GCL analysis. Compare to normative database.",
            ),
        ),
    ),
    # Traumatic optic neuropathy
    TestRule(
        when=lambda f: f.trauma and (f.has_rapd or f.disc_pallor or f.color_deficit or f.va_reduced),
        tests=(
            TestSpec(
                "Red Cap Desaturation Test",
                Priority.CRITICAL,
                "URGENT: Traumatic optic neuropathy suspected - early identification critical for potential intervention",
                "Compare red saturation between eyes. Document baseline for serial monitoring.",
            ),
            TestSpec(
                "Monocular Color Vision (Ishihara)",
                Priority.CRITICAL,
                "Quantify color deficit in each eye separately - important baseline for monitoring recovery or progression",
                "Test each eye monocularly. Record number correct out of total plates.",
            ),
            TestSpec(
                "Visual Acuity with Refraction",
                Priority.CRITICAL,
                "Document best-corrected VA in each eye - pinhole if refraction not available",
                "Snellen or ETDRS. Document lighting conditions and testing distance.",
            ),
            TestSpec(
                "CT Orbits and Optic Canal",
                Priority.CRITICAL,
                "Assess for optic canal fracture, orbital hemorrhage, or bone fragment impingement",
                "Thin-cut CT (1-2mm) through orbits and optic canals. Axial and coronal reformats.",
            ),
        ),
    ),
    # ── Large pupil (CN III, Adie, pharmacologic) ─────────────────────────────
    TestRule(
        when=lambda f: f.large_pupil_pattern,
        tests=(
            TestSpec(
                "Complete Cranial Nerve Exam",
                Priority.CRITICAL,
                "Large pupil + ptosis/diplopia - must rule out CN III compression (aneurysm)",
                "Test all EOMs in 9 positions of gaze. Check CN V sensation, VII function.",
                when=lambda f: f.ptosis or f.diplopia or f.acute or f.painful,
            ),
            TestSpec(
                "Dilute Pilocarpine Test (0.0625-0.125%)",
                Priority.HIGH,
                "Light-near dissociation suggests Adie pupil - test for denervation supersensitivity",
                "Instill dilute pilocarpine in both eyes. Adie pupil constricts more than normal due to cholinergic supersensitivity. Wait 30-45 min.",
                when=lambda f: f.lnd or f.vermiform,
            ),
            TestSpec(
                "Pilocarpine 1% Test",
                Priority.HIGH,
                "To differentiate Adie vs pharmacologic mydriasis",
                "Adie pupil constricts to pilocarpine 1%; pharmacologically blocked pupil (atropine) does NOT. Wait 30-45 min.",
                when=lambda f: not f.ptosis and not f.diplopia and not f.lnd,
            ),
        ),
    ),
    # ── Small pupil (Horner) ──────────────────────────────────────────────────
    TestRule(
        when=lambda f: f.small_pupil_pattern,
        tests=(
            TestSpec(
                "Apraclonidine 0.5% Test",
                Priority.HIGH,
                "Confirm Horner syndrome - denervation supersensitivity causes Horner pupil to dilate, reversing anisocoria",
                "Instill in both eyes, wait 45-60 min. Reversal of anisocoria (affected pupil dilates more) confirms Horner. Sensitivity ~90%.",
            ),
            TestSpec(
                "Cocaine 4-10% Test",
                Priority.MODERATE,
                "Alternative Horner confirmation - blocks NE reuptake; normal pupil dilates, Horner pupil fails to dilate",
                "Instill both eyes, wait 45-60 min. Anisocoria ≥1mm confirms Horner. Gold standard but cocaine availability limited.",
            ),
            TestSpec(
                "CTA or MRA Head/Neck",
                Priority.CRITICAL,
                "URGENT: Acute painful Horner - must rule out carotid dissection",
                "CTA from aortic arch through circle of Willis. Look for: dissection flap, intramural hematoma, luminal stenosis.",
                when=lambda f: f.acute or f.painful,
            ),
        ),
    ),
    # ── Optic disc ────────────────────────────────────────────────────────────
    TestRule(
        when=lambda f: f.disc_edema,
        tests=(
            TestSpec(
                "Fundus Photography",
                Priority.HIGH,
                "Document disc edema for baseline and serial comparison",
                "Stereo disc photos if available. Document blurring of disc margins, elevation, hemorrhages, cotton wool spots.",
            ),
            TestSpec(
                "B-scan Ultrasonography",
                Priority.MODERATE,
                "Assess for papilledema vs pseudopapilledema - look for drusen, elevated nerve sheath",
                "30-degree test: pseudopapilledema maintains brightness on tilting; true edema does not. Check for drusen signal.",
            ),
            TestSpec(
                "MRI Brain with MRV",
                Priority.HIGH,
                "Bilateral disc edema without pain - evaluate for increased ICP, venous sinus thrombosis",
                "Look for empty sella, optic nerve sheath dilation, venous sinus stenosis/thrombosis.",
                when=lambda f: not f.painful,
            ),
        ),
    ),
    TestRule(
        when=lambda f: f.optociliary_shunts,
        tests=(
            TestSpec(
                "MRI Orbits with Contrast",
                Priority.CRITICAL,
                "Optociliary shunt vessels suggest chronic optic nerve compression - rule out optic nerve sheath meningioma",
                "Thin cuts through orbits with gadolinium. Look for enhancing mass, 'tram-track' sign.",
            ),
        ),
    ),
    # ── Motility / diplopia ───────────────────────────────────────────────────
    TestRule(
        when=lambda f: f.diplopia,
        tests=(
            TestSpec(
                "Cover/Uncover and Alternating Cover Test",
                Priority.HIGH,
                "Quantify and characterize the deviation - tropia vs phoria",
                "Primary position and 8 cardinal gazes. Note comitance pattern.",
            ),
            TestSpec(
                "Prism Cover Testing",
                Priority.HIGH,
                "Quantify deviation in prism diopters for monitoring and treatment planning",
                "Measure in primary, up, down, left, right gazes. Document near and distance.",
            ),
        ),
    ),
    TestRule(
        when=lambda f: f.fatigable,
        tests=(
            TestSpec(
                "Sustained Upgaze Test",
                Priority.HIGH,
                "Screen for myasthenia gravis - fatigable ptosis worsens over 1-2 minutes",
                "Have patient look up at target for 2 minutes. Watch for progressive ptosis. Positive if ptosis worsens.",
            ),
            TestSpec(
                "Ice Pack Test",
                Priority.HIGH,
                "Bedside MG test - cooling improves neuromuscular transmission",
                "Apply ice pack to closed lid for 2 minutes. Measure ptosis before/after. Improvement ≥2mm suggests MG.",
            ),
            TestSpec(
                "Anti-AChR Antibodies",
                Priority.HIGH,
                "Serologic confirmation of MG - positive in ~50% of ocular MG",
                "Also consider anti-MuSK antibodies if AChR negative and clinical suspicion high.",
            ),
        ),
    ),
    TestRule(
        when=lambda f: present(f.vertical_limitation) and not f.ptosis and not present(f.abduction_deficit),
        tests=(
            TestSpec(
                "Parks-Bielschowsky Three-Step Test",
                Priority.HIGH,
                "Localize which oblique/vertical rectus is affected in CN IV palsy",
                "Step 1: Which eye higher? Step 2: Worse in R or L gaze? Step 3: Worse with R or L head tilt?",
            ),
            TestSpec(
                "Double Maddox Rod Test",
                Priority.MODERATE,
                "Quantify torsion - important in CN IV palsy diagnosis",
                "Red and white Maddox rods. Measure cyclotorsion in degrees.",
            ),
        ),
    ),
    # ── Visual field patterns ─────────────────────────────────────────────────
    TestRule(
        when=lambda f: f.vf_bitemporal,
        tests=(
            TestSpec(
                "MRI Pituitary with Contrast",
                Priority.CRITICAL,
                "Bitemporal hemianopia indicates chiasmal compression until proven otherwise",
                "Dedicated pituitary protocol with thin cuts. Assess for adenoma, meningioma, craniopharyngioma.",
            ),
            TestSpec(
                "Pituitary Hormone Panel",
                Priority.HIGH,
                "Assess for endocrine dysfunction from pituitary mass",
                "Prolactin, TSH, free T4, cortisol (AM), ACTH, IGF-1, LH, FSH, testosterone/estradiol.",
            ),
        ),
    ),
    TestRule(
        when=lambda f: f.vf_homonymous and f.acute,
        tests=(
            TestSpec(
                "STAT MRI Brain (or CT if MRI unavailable)",
                Priority.CRITICAL,
                "Acute homonymous defect - stroke until proven otherwise",
                "DWI/ADC for acute stroke. Establish last known well time for treatment decisions.",
            ),
        ),
    ),
    TestRule(
        when=lambda f: f.vf_altitudinal and f.has_rapd,
        tests=(
            TestSpec(
                "ESR and CRP (STAT if age >50)",
                Priority.CRITICAL,
                "AION pattern with RAPD - must rule out giant cell arteritis urgently",
                "ESR >50 and/or CRP elevated highly suggestive. Consider empiric steroids pending biopsy if clinical suspicion high.",
            ),
            TestSpec(
                "Temporal Artery Biopsy",
                Priority.HIGH,
                "Definitive test for GCA if ESR/CRP elevated or clinical suspicion high",
                "Unilateral biopsy (2-3cm length) within 2 weeks of starting steroids. Steroids don't mask pathology quickly.",
            ),
        ),
    ),
    # ── Aggregate concern ─────────────────────────────────────────────────────
    TestRule(
        when=lambda f: concern_score(f) >= CONCERN_SCORE_THRESHOLD,
        tests=(
            TestSpec(
                "Comprehensive Neuro-Ophthalmic Examination",
                Priority.HIGH,
                "Multiple findings suggest optic nerve or neurological pathology - systematic evaluation recommended",
                "VA, color vision, pupils (including RAPD), confrontation VF, motility, fundoscopy, formal VF, OCT.",
            ),
        ),
    ),
)


def recommend_tests(features: FeatureSet) -> List[TestRecommendation]:
    """
    Deduplicated, priority-ordered confirmatory tests for one feature set.
    Within a priority, tests keep the order in which they were first added.
    """
    added = {}
    for rule in TEST_RULES:
        if not rule.when(features):
            continue
        for entry in rule.tests:
            if entry.name in added:
                continue
            if entry.when is not None and not entry.when(features):
                continue
            added[entry.name] = entry.build()

    recommendations = sorted(added.values(), key=lambda t: PRIORITY_RANK[t.priority])
    logger.debug("tests_recommended", count=len(recommendations))
    return recommendations
