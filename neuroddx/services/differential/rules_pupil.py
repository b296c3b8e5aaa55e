"""
Pupil Rules

Anisocoria localization. The lighting condition that carries the asymmetry
tells which pupil is abnormal:
  - larger in light  -> the large pupil is abnormal (parasympathetic: CN III,
    Adie, pharmacologic, traumatic)
  - larger in dark   -> the small pupil is abnormal (sympathetic: Horner)
"""
from __future__ import annotations

from neuroddx.schemas.assessment import Category
from neuroddx.schemas.features import Dominance, FeatureSet

from .base import (
    Criterion,
    DiagnosisRule,
    NextStep,
    absent,
    acute_or_painful,
    present,
    red_flag_context,
    steps,
)

# Physiologic anisocoria must change by less than this between lightings (mm)
PHYSIOLOGIC_MAX_SHIFT_MM = 0.3

# Argyll Robertson: "small" pupils in light, "poor" dilation in dark (mm)
ARGYLL_SMALL_LIGHT_MM = 3.0
ARGYLL_POOR_DARK_MM = 4.0


# ── Physiologic anisocoria helpers ────────────────────────────────────────────

def _both_lightings(f: FeatureSet) -> bool:
    return f.anis_light is not None and f.anis_dark is not None


def _both_below_threshold(f: FeatureSet) -> bool:
    return _both_lightings(f) and not f.light_meets and not f.dark_meets


def _anisocoria_shift(f: FeatureSet) -> float:
    return abs(f.anis_light - f.anis_dark)


def _stable_across_lightings(f: FeatureSet) -> bool:
    return _anisocoria_shift(f) < PHYSIOLOGIC_MAX_SHIFT_MM


def _physiologic_pattern(f: FeatureSet) -> bool:
    # Only callable with complete light AND dark data
    if not _both_lightings(f):
        return False
    below = _both_below_threshold(f)
    stable = f.dominance is Dominance.EQUAL or (f.dominance is None and below)
    return stable or (below and _stable_across_lightings(f))


def _physiologic_headline(f: FeatureSet) -> str:
    if _both_below_threshold(f):
        return f"Anisocoria <{f.aniso_threshold_mm:g}mm in both light and dark"
    return "Anisocoria stable/equal in light vs dark"


# 1. Physiologic anisocoria
# Loewenfeld IE. The Pupil: Anatomy, Physiology, and Clinical Applications.
# ~20% of the population; stable across lighting conditions.
PHYSIOLOGIC_ANISOCORIA = DiagnosisRule(
    rule_id="pupil.physiologic",
    name="Physiologic anisocoria",
    category=Category.PUPIL,
    applies=_physiologic_pattern,
    criteria=(
        Criterion(lambda f: True, 3, _physiologic_headline),
        Criterion(
            lambda f: _stable_across_lightings(f) and f.anis_light > 0 and f.anis_dark > 0,
            2,
            lambda f: f"Anisocoria change of only {_anisocoria_shift(f):.1f}mm between conditions (stable)",
        ),
        Criterion(
            lambda f: not (f.acute or f.painful or f.neuro_sx or f.diplopia or f.ptosis),
            2,
            "No red flags (acute/pain/neuro/ptosis/diplopia)",
        ),
        Criterion(lambda f: not f.any_fixed_pupil and not f.any_sluggish_pupil, 1, "Both pupils reactive"),
        Criterion(lambda f: not f.has_rapd, 1, "No RAPD (rules out significant afferent defect)"),
        Criterion(
            lambda f: not (f.dilation_lag or f.anhidrosis or f.lnd or f.vermiform),
            1,
            "No pathologic pupil signs (dilation lag, LND, vermiform)",
        ),
    ),
    next_steps=steps(
        "Confirm measurements in consistent lighting conditions",
        "Review old photographs if available to confirm chronicity",
        "Anisocoria should remain relatively constant in light vs dark",
        "No further workup needed if stable and asymptomatic",
    ),
)

# 2. Horner syndrome (oculosympathetic paresis)
# Walton KA, Buono LM. Horner syndrome. Curr Opin Ophthalmol 2003;14:357-363
# Miosis, ptosis (1-2mm), anhidrosis; dilation lag is highly specific.
HORNER_SYNDROME = DiagnosisRule(
    rule_id="pupil.horner",
    name="Horner syndrome",
    category=Category.PUPIL,
    criteria=(
        Criterion(lambda f: f.small_pupil_pattern, 5, "Anisocoria greater in dark (small pupil abnormal)"),
        Criterion(lambda f: f.dilation_lag, 3, "Dilation lag (highly specific for Horner)"),
        Criterion(lambda f: f.ptosis, 2, "Ptosis (typically 1-2mm in Horner)"),
        Criterion(lambda f: f.anhidrosis, 2, "Anhidrosis (suggests preganglionic lesion)"),
        Criterion(lambda f: f.small_pupil_pattern and not f.any_fixed_pupil, 1, "Pupils reactive (expected in Horner)"),
        Criterion(lambda f: f.small_pupil_pattern and not f.has_rapd, 1, "No RAPD (efferent not afferent pathway)"),
    ),
    next_steps=(
        NextStep("Pharmacologic confirmation: Apraclonidine 0.5% (reversal of anisocoria) or cocaine 4-10% (failure to dilate)"),
        NextStep(
            "URGENT: Acute painful Horner requires emergent CTA/MRA neck to rule out carotid dissection",
            when=acute_or_painful,
        ),
        NextStep("If confirmed: Hydroxyamphetamine 1% to localize (preganglionic vs postganglionic)"),
        NextStep("MRI/MRA from hypothalamus to T2 for preganglionic; carotid/skull base imaging for postganglionic"),
    ),
)

# 3. Third nerve palsy, compressive
# Jacobson DM. Pupil involvement in patients with diabetes-associated oculomotor
# nerve palsy. Arch Ophthalmol 1998;116:723-727
# Pupil involvement: PComm aneurysm until proven otherwise.
CN3_COMPRESSIVE = DiagnosisRule(
    rule_id="pupil.cn3_compressive",
    name="CN III palsy - Compressive (aneurysm concern)",
    category=Category.PUPIL,
    criteria=(
        Criterion(lambda f: f.large_pupil_pattern, 5, "Anisocoria greater in light (large pupil abnormal)"),
        Criterion(lambda f: f.any_fixed_pupil and f.large_pupil_pattern, 2, "Fixed/poorly reactive dilated pupil"),
        Criterion(lambda f: f.ptosis, 2, "Ptosis (complete CN III causes severe ptosis)"),
        Criterion(lambda f: f.diplopia, 2, "Diplopia (EOM involvement)"),
        Criterion(lambda f: present(f.adduction_deficit), 2, "Adduction deficit (medial rectus involvement)"),
        Criterion(lambda f: present(f.vertical_limitation), 1, "Vertical limitation (SR/IR/IO involvement)"),
        Criterion(lambda f: f.acute, 2, "Acute onset"),
        Criterion(lambda f: f.painful, 2, "Pain/headache (concerning for aneurysm)"),
        Criterion(lambda f: f.neuro_sx, 2, "Other neurological symptoms"),
    ),
    next_steps=(
        NextStep("EMERGENT: CTA or MRA head to exclude posterior communicating artery aneurysm", when=red_flag_context),
        NextStep("Consider conventional angiography if CTA/MRA negative but suspicion high", when=red_flag_context),
        NextStep("Complete cranial nerve exam including all EOM gazes"),
        NextStep("Check for aberrant regeneration (lid-gaze dyskinesis) if chronic"),
        NextStep("MRI brain with contrast if non-aneurysmal compressive lesion suspected"),
    ),
)

# 4. Third nerve palsy, ischemic / microvascular
# Pupil-sparing in 85-90%; resolves in 3-6 months.
CN3_ISCHEMIC = DiagnosisRule(
    rule_id="pupil.cn3_ischemic",
    name="CN III palsy - Ischemic/Microvascular",
    category=Category.PUPIL,
    criteria=(
        Criterion(
            lambda f: f.ptosis and f.diplopia and not f.large_pupil_pattern,
            4,
            "Ptosis + diplopia with pupil sparing",
        ),
        Criterion(
            lambda f: present(f.adduction_deficit) and not f.large_pupil_pattern,
            2,
            "Adduction deficit without pupil involvement",
        ),
        Criterion(lambda f: absent(f.comitant), 1, "Incomitant deviation"),
        Criterion(
            lambda f: f.painful and not f.neuro_sx and not f.large_pupil_pattern,
            1,
            "Pain (can occur in ischemic CN III)",
        ),
    ),
    next_steps=steps(
        "Document vascular risk factors (diabetes, hypertension, hyperlipidemia)",
        "If pupil completely spared and no other neuro signs: may observe with close follow-up",
        "Check HbA1c, fasting glucose, lipid panel, ESR/CRP if age >50",
        "If any pupil involvement or progression: imaging indicated to exclude compressive lesion",
        "Expected recovery in 3-6 months; if no improvement by 3 months, reconsider diagnosis",
    ),
)

# 5. Adie (tonic) pupil
# Thompson HS. Adie's syndrome: some new observations. Trans Am Ophthalmol Soc 1977;75:587-626
ADIE_PUPIL = DiagnosisRule(
    rule_id="pupil.adie",
    name="Adie (Tonic) pupil",
    category=Category.PUPIL,
    criteria=(
        Criterion(lambda f: f.large_pupil_pattern, 2, "Large pupil pattern"),
        Criterion(lambda f: f.lnd, 4, "Light-near dissociation (pupil constricts better to near than light)"),
        Criterion(lambda f: f.vermiform, 3, "Segmental/vermiform iris movements (pathognomonic)"),
        Criterion(
            lambda f: f.any_sluggish_pupil and not f.any_fixed_pupil,
            1,
            "Sluggish but present light reaction",
        ),
        Criterion(
            lambda f: not f.painful and not f.ptosis and f.large_pupil_pattern,
            1,
            "Painless without ptosis (typical for Adie)",
        ),
    ),
    next_steps=steps(
        "Slit lamp exam for segmental vermiform iris movements",
        "Test accommodation: slow but tonically sustained constriction",
        "Pharmacologic confirmation: Dilute pilocarpine 0.0625-0.125% (constriction = denervation supersensitivity)",
        "Check deep tendon reflexes (Holmes-Adie syndrome if absent)",
        "Reassurance: benign condition, may progress to bilateral over years",
    ),
)

# 6. Pharmacologic mydriasis
# Tropicamide, cyclopentolate, atropine, scopolamine patches, sympathomimetics.
PHARMACOLOGIC_MYDRIASIS = DiagnosisRule(
    rule_id="pupil.pharmacologic",
    name="Pharmacologic mydriasis",
    category=Category.PUPIL,
    criteria=(
        Criterion(lambda f: f.large_pupil_pattern, 2, "Large pupil pattern"),
        Criterion(lambda f: f.anticholinergic, 5, "Anticholinergic/mydriatic exposure suspected"),
        Criterion(lambda f: f.sympathomimetic, 3, "Sympathomimetic exposure suspected"),
        Criterion(lambda f: f.any_fixed_pupil and f.large_pupil_pattern, 2, "Fixed dilated pupil"),
        Criterion(
            lambda f: not f.ptosis and not f.diplopia and f.large_pupil_pattern,
            1,
            "No ptosis or diplopia (isolated pupil finding)",
        ),
    ),
    next_steps=steps(
        "Detailed medication and exposure history",
        "Ask about: eye drops, scopolamine patches, jimsonweed, nebulizers, handling medications",
        "Pilocarpine 1% test: pharmacologically blocked pupil will NOT constrict",
        "If positive history and fails pilocarpine: no further workup needed",
        "Effect typically resolves in 24-72 hours depending on agent",
    ),
)

# 7. Traumatic mydriasis / iris sphincter damage
TRAUMATIC_MYDRIASIS = DiagnosisRule(
    rule_id="pupil.traumatic_mydriasis",
    name="Traumatic mydriasis / Iris damage",
    category=Category.PUPIL,
    criteria=(
        Criterion(lambda f: f.trauma, 4, "History of trauma/surgery"),
        Criterion(lambda f: f.large_pupil_pattern and f.trauma, 2, "Large pupil in setting of trauma"),
        Criterion(lambda f: f.any_fixed_pupil and f.trauma, 2, "Fixed pupil post-trauma"),
    ),
    next_steps=steps(
        "Slit lamp examination for iris sphincter tears, iridodialysis",
        "Check for hyphema, lens subluxation, angle recession",
        "Gonioscopy to assess angle structures",
        "Document baseline and follow IOP (angle recession glaucoma risk)",
        "May be permanent if significant sphincter damage",
    ),
)


def _bilateral_small_pupils(f: FeatureSet) -> bool:
    return (
        f.anis_light is not None
        and f.anis_light < f.aniso_threshold_mm
        and f.od_light is not None and f.os_light is not None
        and f.od_light < ARGYLL_SMALL_LIGHT_MM and f.os_light < ARGYLL_SMALL_LIGHT_MM
    )


def _poor_dark_dilation(f: FeatureSet) -> bool:
    return (
        f.od_dark is not None and f.os_dark is not None
        and f.od_dark < ARGYLL_POOR_DARK_MM and f.os_dark < ARGYLL_POOR_DARK_MM
    )


# 8. Argyll Robertson pupils
# Bilateral small irregular pupils with light-near dissociation; neurosyphilis,
# diabetes, dorsal midbrain.
ARGYLL_ROBERTSON = DiagnosisRule(
    rule_id="pupil.argyll_robertson",
    name="Argyll Robertson pupils",
    category=Category.PUPIL,
    minimum=4,
    criteria=(
        Criterion(lambda f: f.lnd, 3, "Light-near dissociation"),
        Criterion(_bilateral_small_pupils, 2, "Bilateral small pupils"),
        Criterion(_poor_dark_dilation, 1, "Poor dilation in dark"),
    ),
    next_steps=steps(
        "Characteristic: bilateral, small, irregular, light-near dissociation",
        "Order syphilis serology (RPR/VDRL, FTA-ABS or TP-PA)",
        "If positive: lumbar puncture for CSF VDRL",
        "Check HbA1c (diabetic autonomic neuropathy can cause similar findings)",
        "Consider MRI brain if dorsal midbrain lesion suspected",
    ),
)

# 36. Benign episodic unilateral mydriasis
# Jacobson DM. Benign episodic unilateral mydriasis.
BENIGN_EPISODIC_MYDRIASIS = DiagnosisRule(
    rule_id="pupil.benign_episodic_mydriasis",
    name="Benign episodic unilateral mydriasis",
    category=Category.PUPIL,
    minimum=6,
    criteria=(
        Criterion(lambda f: f.large_pupil_pattern, 2, "Large pupil pattern"),
        Criterion(
            lambda f: not f.any_fixed_pupil and f.large_pupil_pattern,
            2,
            "Pupil still reactive (distinguishes from fixed pathology)",
        ),
        Criterion(
            lambda f: not f.diplopia and not f.ptosis and f.large_pupil_pattern,
            3,
            "No diplopia or ptosis (isolated pupil finding)",
        ),
        Criterion(
            lambda f: f.painful and f.large_pupil_pattern and not f.ptosis and not f.diplopia,
            1,
            "Headache present (common association)",
        ),
        Criterion(lambda f: not f.neuro_sx and f.large_pupil_pattern, 1, "No neurological symptoms"),
    ),
    next_steps=steps(
        "Intermittent episodes of unilateral pupil dilation",
        "Pupil typically reactive during episodes",
        "Associated with migraine in many cases",
        "No ptosis, no diplopia, no other neurological signs",
        "Diagnosis of exclusion - rule out CN III pathology first",
        "Reassurance appropriate if workup negative",
    ),
)

# 37. Tadpole pupil
# Thompson HS, Zackon DH, Czarnecki JS. Tadpole-shaped pupils.
TADPOLE_PUPIL = DiagnosisRule(
    rule_id="pupil.tadpole",
    name="Tadpole pupil (consider)",
    category=Category.PUPIL,
    minimum=3,
    criteria=(
        Criterion(
            lambda f: f.small_pupil_pattern or f.dilation_lag,
            3,
            "Small pupil pattern or dilation lag (associated Horner)",
        ),
        Criterion(
            lambda f: not f.acute and (f.small_pupil_pattern or f.dilation_lag),
            1,
            "Chronic/intermittent pattern",
        ),
    ),
    next_steps=steps(
        "Segmental iris dilator muscle spasm causing peaked pupil",
        "Often associated with underlying Horner syndrome",
        "Transient distortion of pupil shape",
        "Check for signs of Horner: ptosis, anhidrosis, dilation lag",
        "If Horner confirmed: standard Horner workup indicated",
    ),
)
