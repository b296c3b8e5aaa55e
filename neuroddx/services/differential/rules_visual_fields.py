"""
Visual Field Rules

Localization by field pattern along the afferent pathway:
  bitemporal            -> chiasm
  homonymous, low cong. -> optic tract
  homonymous, wedge     -> LGN
  homonymous, moderate  -> optic radiations
  homonymous, high      -> occipital cortex
  altitudinal / central -> optic nerve or macula

Every anatomic pattern rule carries the poor-reliability penalty as its last
criterion. Retinal mimics close the module.
"""
from __future__ import annotations

from neuroddx.schemas.assessment import Category
from neuroddx.schemas.features import FeatureSet

from .base import POOR_RELIABILITY, Criterion, DiagnosisRule, NextStep, steps


def _monocular(f: FeatureSet) -> bool:
    return f.vf_laterality == "mono"


def _no_anatomic_pattern(f: FeatureSet) -> bool:
    return not (
        f.vf_homonymous or f.vf_bitemporal or f.vf_altitudinal
        or f.vf_respects_vertical or f.vf_respects_horizontal
    )


def _acute(f: FeatureSet) -> bool:
    return f.acute


def _radiation_congruity(f: FeatureSet) -> str:
    label = "Lower" if f.vf_congruity == "low" else "Moderate"
    return f"{label} congruity (anterior radiations)"


# 19. Chiasmal compression (pituitary adenoma, craniopharyngioma, meningioma)
# Foroozan R. Chiasmal syndromes. Curr Opin Ophthalmol 2003;14:325-331
CHIASMAL_COMPRESSION = DiagnosisRule(
    rule_id="vf.chiasmal",
    name="Chiasmal compression",
    category=Category.VF,
    criteria=(
        Criterion(lambda f: f.vf_bitemporal, 7, "Bitemporal field pattern (classic chiasmal sign)"),
        Criterion(lambda f: f.vf_respects_vertical, 2, "Respects vertical meridian"),
        Criterion(lambda f: f.vf_laterality == "binocular", 1, "Binocular involvement"),
        Criterion(lambda f: f.vf_new_defect, 1, "New defect vs baseline"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "MRI pituitary/sella with and without contrast (dedicated protocol)",
        "Pituitary hormone panel: prolactin, TSH, free T4, ACTH, cortisol, IGF-1, LH, FSH",
        "Formal visual field testing with reliable indices",
        "OCT RNFL to assess optic nerve damage",
        "Refer to neuro-ophthalmology and neurosurgery/endocrinology as appropriate",
    ),
)

# 20. Optic tract
# Newman SA, Miller NR. Optic tract syndrome.
# Incongruous homonymous hemianopia with a contralateral RAPD.
OPTIC_TRACT_LESION = DiagnosisRule(
    rule_id="vf.optic_tract",
    name="Optic tract lesion",
    category=Category.VF,
    criteria=(
        Criterion(lambda f: f.vf_homonymous, 5, "Homonymous pattern"),
        Criterion(lambda f: f.vf_congruity == "low", 3, "Low congruity (suggests optic tract)"),
        Criterion(lambda f: f.vf_respects_vertical, 2, "Respects vertical meridian"),
        Criterion(
            lambda f: f.has_rapd and f.vf_homonymous,
            3,
            "RAPD present (optic tract lesions produce contralateral RAPD - key distinguishing feature)",
        ),
        POOR_RELIABILITY,
    ),
    next_steps=(
        NextStep("MRI brain with attention to optic tract"),
        NextStep("Look for bow-tie (band) atrophy on OCT/fundoscopy"),
        NextStep("If acute: consider stroke protocol", when=_acute),
        NextStep("Common etiologies: tumor, stroke, demyelination, trauma"),
    ),
)

# 21. Lateral geniculate nucleus
# Luco C, et al. Visual field defects from lesions of the lateral geniculate body.
LGN_LESION = DiagnosisRule(
    rule_id="vf.lgn",
    name="Lateral geniculate nucleus (LGN) lesion",
    category=Category.VF,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.vf_homonymous, 4, "Homonymous pattern"),
        Criterion(
            lambda f: f.vf_respects_horizontal and f.vf_homonymous,
            3,
            "Respects horizontal (suggests LGN sectoranopia)",
        ),
        Criterion(lambda f: f.vf_congruity == "moderate", 1, "Moderate congruity"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "MRI brain with attention to thalamus/LGN",
        "Dual blood supply (anterior/posterior choroidal): can produce sector defects",
        "Consider stroke, tumor, demyelination",
        "Pattern: homonymous horizontal sectoranopia (wedge-shaped) is characteristic",
    ),
)

# 22. Optic radiations (temporal and parietal)
# Zhang X, et al. Visual field defects of optic radiation lesions.
OPTIC_RADIATION_LESION = DiagnosisRule(
    rule_id="vf.optic_radiation",
    name="Optic radiation lesion",
    category=Category.VF,
    criteria=(
        Criterion(lambda f: f.vf_homonymous, 5, "Homonymous pattern"),
        Criterion(lambda f: f.vf_respects_vertical, 2, "Respects vertical meridian"),
        Criterion(lambda f: f.vf_congruity in ("moderate", "low"), 2, _radiation_congruity),
        Criterion(lambda f: not f.has_rapd and f.vf_homonymous, 1, "No RAPD (lesion is retrochiasmal)"),
        POOR_RELIABILITY,
    ),
    next_steps=(
        NextStep("MRI brain with attention to temporal/parietal lobes"),
        NextStep("If acute: stroke protocol, check last known well time", when=_acute),
        NextStep("Superior quadrantanopia: temporal lobe (Meyer's loop)"),
        NextStep("Inferior quadrantanopia: parietal lobe"),
        NextStep("Common etiologies: stroke (MCA territory), tumor, demyelination"),
    ),
)

# 23. Occipital cortex
# Gray LG, et al. Visual field defects after cerebral hemispherectomy.
OCCIPITAL_CORTEX_LESION = DiagnosisRule(
    rule_id="vf.occipital",
    name="Occipital cortex lesion",
    category=Category.VF,
    criteria=(
        Criterion(lambda f: f.vf_homonymous, 5, "Homonymous pattern"),
        Criterion(lambda f: f.vf_congruity == "high", 3, "High congruity (characteristic of occipital cortex)"),
        Criterion(lambda f: f.vf_respects_vertical, 2, "Respects vertical meridian"),
        Criterion(lambda f: not f.has_rapd and f.vf_homonymous, 1, "No RAPD (retrochiasmal lesion)"),
        POOR_RELIABILITY,
    ),
    next_steps=(
        NextStep("URGENT: Stroke protocol - posterior circulation (PCA territory)", when=_acute),
        NextStep("Check last known well time for thrombolysis/thrombectomy window", when=_acute),
        NextStep("MRI brain (DWI sequence if acute) with attention to occipital lobes"),
        NextStep("Macular sparing may occur (dual blood supply from MCA/PCA)"),
        NextStep("Complete homonymous hemianopia with macular sparing: occipital pole"),
    ),
)

# 24. Anterior ischemic optic neuropathy, arteritic (GCA)
# Hayreh SS. Ischemic optic neuropathies. Prog Retin Eye Res 2009;28:34-62
AION = DiagnosisRule(
    rule_id="vf.aion",
    name="Anterior Ischemic Optic Neuropathy (AION)",
    category=Category.VF,
    criteria=(
        Criterion(
            lambda f: f.vf_altitudinal and f.vf_respects_horizontal,
            6,
            "Altitudinal defect respecting horizontal meridian (classic AION)",
        ),
        Criterion(lambda f: f.vf_altitudinal and not f.vf_respects_horizontal, 4, "Altitudinal pattern"),
        Criterion(_monocular, 2, "Monocular (unilateral optic nerve)"),
        Criterion(lambda f: f.has_rapd, 3, "RAPD present (key finding in optic neuropathy)"),
        Criterion(lambda f: f.disc_edema, 2, "Disc edema present"),
        Criterion(lambda f: f.painful, 1, "Headache/pain (consider GCA)"),
        Criterion(lambda f: f.acute, 1, "Acute onset"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "URGENT if age >50: ESR and CRP immediately (GCA screening)",
        "Examine optic disc: pallid edema (arteritic) vs hyperemic edema (non-arteritic)",
        "Ask about jaw claudication, scalp tenderness, polymyalgia symptoms",
        "If GCA suspected: start high-dose IV methylprednisolone pending temporal artery biopsy",
        "Temporal artery biopsy within 2 weeks (steroids don't mask pathology)",
        "Assess fellow eye risk: very high in untreated GCA",
    ),
)

# 25. Non-arteritic AION
# Hayreh SS. Non-arteritic anterior ischemic optic neuropathy.
NAION = DiagnosisRule(
    rule_id="vf.naion",
    name="Non-arteritic AION (NAION)",
    category=Category.VF,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.vf_altitudinal, 4, "Altitudinal pattern"),
        Criterion(_monocular, 1, "Monocular"),
        Criterion(lambda f: f.has_rapd, 3, "RAPD present"),
        Criterion(lambda f: not f.painful and f.vf_altitudinal, 1, "Painless (typical for NAION)"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "Examine disc: hyperemic edema, small cup ('disc at risk')",
        "ESR/CRP to exclude GCA (mandatory if age >50)",
        "Assess vascular risk factors: HTN, DM, hyperlipidemia, sleep apnea",
        "No proven treatment; optimize vascular risk factors",
        "Fellow eye risk ~15% over 5 years",
        "Avoid nocturnal hypotension, consider sleep study",
    ),
)

# 26. Optic neuritis
# Optic Neuritis Treatment Trial (ONTT). Arch Ophthalmol 1991.
OPTIC_NEURITIS = DiagnosisRule(
    rule_id="vf.optic_neuritis",
    name="Optic neuritis",
    category=Category.VF,
    criteria=(
        Criterion(lambda f: f.vf_central_scotoma, 5, "Central scotoma"),
        Criterion(lambda f: f.pain_on_movement, 4, "Pain on eye movement (90% of optic neuritis)"),
        Criterion(lambda f: f.has_rapd, 3, "RAPD present (hallmark of unilateral optic neuropathy)"),
        Criterion(lambda f: f.color_deficit, 2, "Color vision deficit (often disproportionate to VA)"),
        Criterion(_monocular, 1, "Monocular (typically unilateral)"),
        Criterion(lambda f: f.vf_new_defect, 1, "New defect"),
        Criterion(lambda f: f.acute, 1, "Acute/subacute onset"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "Check visual acuity, color vision (red cap desaturation, Ishihara), RAPD grade",
        "MRI brain and orbits with contrast (fat suppression for orbits)",
        "Disc may be normal (retrobulbar) or swollen (papillitis)",
        "If MRI shows demyelinating lesions: discuss MS risk and treatment",
        "ONTT: IV steroids speed recovery but don't change final outcome",
        "Consider NMO-IgG (aquaporin-4), MOG antibodies if atypical features",
    ),
)

# 27. Macular disease (AMD, macular hole, CSR)
# Central scotoma without a significant RAPD favours macula over nerve.
MACULAR_DISEASE = DiagnosisRule(
    rule_id="vf.macular",
    name="Macular disease",
    category=Category.VF,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.vf_central_scotoma, 4, "Central scotoma"),
        Criterion(_monocular, 1, "Monocular"),
        Criterion(
            lambda f: f.vf_central_scotoma and not f.significant_rapd,
            3,
            "No significant RAPD (strongly favors macular over optic nerve)",
        ),
        Criterion(lambda f: not f.pain_on_movement and f.vf_central_scotoma, 1, "Painless"),
        Criterion(lambda f: not f.color_deficit and f.vf_central_scotoma, 1, "No color deficit (favors macular)"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "Dilated fundus exam with attention to macula",
        "OCT macula: assess for AMD, macular hole, epiretinal membrane, CME",
        "Amsler grid: metamorphopsia suggests macular pathology",
        "Check for distortion, not just scotoma",
        "If RAPD present: consider combined or optic nerve pathology",
    ),
)

# 28. Glaucomatous optic neuropathy
# Foster PJ, et al. The definition and classification of glaucoma.
GLAUCOMATOUS_OPTIC_NEUROPATHY = DiagnosisRule(
    rule_id="vf.glaucoma",
    name="Glaucomatous optic neuropathy",
    category=Category.VF,
    minimum=4,
    criteria=(
        Criterion(
            lambda f: f.vf_respects_horizontal and _monocular(f),
            3,
            "Respects horizontal meridian (nerve fiber layer pattern)",
        ),
        Criterion(lambda f: f.vf_altitudinal and _monocular(f), 2, "Altitudinal/arcuate pattern"),
        Criterion(lambda f: f.cupping, 3, "Optic disc cupping noted"),
        Criterion(lambda f: not f.acute and not f.painful, 1, "Chronic, painless"),
        POOR_RELIABILITY,
    ),
    next_steps=steps(
        "Check IOP, gonioscopy, optic nerve head evaluation",
        "OCT RNFL for structural correlation with VF defect",
        "Typical patterns: arcuate scotoma, nasal step, paracentral scotomas",
        "Progressive: compare to prior fields",
        "If diagnosis confirmed: IOP-lowering treatment",
    ),
)

# 29. Functional (non-organic) visual field loss
# Bruce BB, Newman NJ. Functional visual loss.
# Poor reliability is evidence here, not a penalty.
FUNCTIONAL_VF_LOSS = DiagnosisRule(
    rule_id="vf.functional",
    name="Functional visual field loss (consider)",
    category=Category.VF,
    minimum=4,
    criteria=(
        Criterion(lambda f: f.poor_vf_reliability, 2, "Poor reliability"),
        Criterion(
            lambda f: _no_anatomic_pattern(f) and f.vf_symptoms,
            2,
            "No clear anatomic pattern",
        ),
        Criterion(
            lambda f: f.vf_symptoms and not f.has_rapd and not f.pain_on_movement,
            1,
            "Visual complaints without objective findings",
        ),
    ),
    next_steps=steps(
        "Look for tubular fields (don't expand with distance)",
        "Spiral or star pattern on kinetic perimetry",
        "Inconsistency between VF and mobility/behavior",
        "Normal pupils, normal fundus",
        "This is a diagnosis of exclusion - rule out organic causes first",
        "Approach with empathy; may coexist with real pathology",
    ),
)


# ── Retinal conditions mimicking optic nerve disease ──────────────────────────

# 48. Central / branch retinal artery occlusion
# Hayreh SS. Acute retinal arterial occlusive disorders.
RETINAL_ARTERY_OCCLUSION = DiagnosisRule(
    rule_id="vf.retinal_artery_occlusion",
    name="Retinal artery occlusion (CRAO/BRAO)",
    category=Category.VF,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.has_rapd, 3, "RAPD present"),
        Criterion(lambda f: f.acute, 3, "Acute onset"),
        Criterion(
            lambda f: f.vf_altitudinal and _monocular(f),
            2,
            "Altitudinal or sectoral VF loss, monocular",
        ),
        Criterion(lambda f: not f.painful and f.acute and f.has_rapd, 1, "Painless (typical for CRAO)"),
    ),
    next_steps=steps(
        "EMERGENT: Acute painless monocular vision loss",
        "Fundus: retinal whitening, cherry red spot (CRAO), cattle-trucking",
        "Time-sensitive: retinal tolerance ~90-120 minutes",
        "Acute CRAO: consider ocular massage, AC paracentesis, IOP lowering",
        "Workup: carotid imaging, echocardiogram, ESR (GCA if >50)",
        "GCA: must rule out if age >50 (ESR/CRP, temporal artery biopsy)",
        "Stroke workup indicated - embolic source evaluation",
    ),
)

# 49. Central / branch retinal vein occlusion
# The Central Vein Occlusion Study Group.
RETINAL_VEIN_OCCLUSION = DiagnosisRule(
    rule_id="vf.retinal_vein_occlusion",
    name="Retinal vein occlusion (CRVO/BRVO)",
    category=Category.VF,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.has_rapd and f.acute, 3, "RAPD with acute onset"),
        Criterion(lambda f: f.disc_edema and _monocular(f), 2, "Disc edema, monocular"),
        Criterion(lambda f: f.vf_symptoms and _monocular(f), 2, "Visual symptoms, monocular"),
        Criterion(lambda f: not f.painful and f.acute, 1, "Painless"),
    ),
    next_steps=steps(
        "Fundus: dilated tortuous veins, hemorrhages, cotton wool spots, disc edema",
        "CRVO: all quadrants; BRVO: distribution of affected vein",
        "Check for macular edema (OCT) - treat with anti-VEGF",
        "RAPD in ischemic CRVO indicates poor visual prognosis",
        "Monitor for neovascularization (NVI, NVE, NVG)",
        "Workup: HTN, DM, glaucoma, hypercoagulable states if young",
        "Refer retina for anti-VEGF and/or PRP if ischemic",
    ),
)

# 50. Acute zonal occult outer retinopathy
# Gass JD. Acute zonal occult outer retinopathy.
AZOOR = DiagnosisRule(
    rule_id="vf.azoor",
    name="AZOOR (Acute zonal occult outer retinopathy)",
    category=Category.VF,
    minimum=4,
    criteria=(
        Criterion(lambda f: f.vf_symptoms and _monocular(f), 2, "Visual symptoms, monocular"),
        Criterion(
            lambda f: (f.vf_altitudinal or f.vf_respects_horizontal) and not f.has_rapd,
            2,
            "VF defect without significant RAPD",
        ),
        Criterion(lambda f: f.acute, 1, "Acute/subacute onset"),
    ),
    next_steps=steps(
        "White dot syndrome family - photoreceptor dysfunction",
        "Symptoms: photopsias, scotomas, visual field loss",
        "Fundus often normal or minimal changes initially",
        "ERG: reduced a-wave amplitude in affected zones",
        "FAF: hyper/hypo-autofluorescence in affected areas",
        "OCT: loss of ellipsoid zone (photoreceptor damage)",
        "Usually stabilizes; may have recurrences",
    ),
)
