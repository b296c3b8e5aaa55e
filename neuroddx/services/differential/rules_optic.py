"""
Optic Nerve Rules

Afferent-pathway disorders anchored on RAPD, disc appearance, colour vision
and acuity: trauma, compression, atrophy, raised ICP, and the hereditary and
toxic optic neuropathies.
"""
from __future__ import annotations

from neuroddx.schemas.assessment import Category
from neuroddx.schemas.features import FeatureSet

from .base import Criterion, DiagnosisRule, steps


def _central_or_afferent_loss(f: FeatureSet) -> bool:
    return f.has_rapd or f.vf_central_scotoma or f.color_deficit


def _bilateral_symmetric(f: FeatureSet) -> bool:
    return (f.color_deficit_od and f.color_deficit_os) or (f.disc_pallor_od and f.disc_pallor_os)


# 9. Traumatic optic neuropathy
# Steinsapir KD, Goldberg RA. Traumatic optic neuropathy. Surv Ophthalmol 1994;38:487-518
TRAUMATIC_OPTIC_NEUROPATHY = DiagnosisRule(
    rule_id="optic.traumatic",
    name="Traumatic Optic Neuropathy",
    category=Category.OPTIC,
    criteria=(
        Criterion(lambda f: f.trauma, 3, "History of trauma"),
        Criterion(lambda f: f.has_rapd and f.trauma, 4, "RAPD in setting of trauma (indicates optic nerve damage)"),
        Criterion(lambda f: f.disc_pallor and f.trauma, 3, "Disc pallor (may be delayed 4-6 weeks post-injury)"),
        Criterion(lambda f: f.color_deficit and f.trauma, 2, "Color vision deficit"),
        Criterion(lambda f: f.va_reduced and f.trauma, 2, "Reduced visual acuity"),
        Criterion(
            lambda f: f.unilateral_pallor_with_rapd and f.trauma,
            2,
            "Unilateral pallor with ipsilateral RAPD (classic TON)",
        ),
    ),
    next_steps=steps(
        "Immediate: Document VA, color vision (red cap/Ishihara), RAPD grade",
        "CT orbits/optic canals: assess for fracture, hemorrhage, bone fragment",
        "Serial exams: monitor for improvement or worsening",
        "Controversial: High-dose IV methylprednisolone (CRASH trial showed harm in TBI)",
        "Optic canal decompression rarely indicated; consult neurosurgery if severe",
        "OCT RNFL at 4-6 weeks to document damage extent",
    ),
)

# 10. Compressive optic neuropathy
# Miller NR. The clinical spectrum of optic nerve sheath meningiomas.
COMPRESSIVE_OPTIC_NEUROPATHY = DiagnosisRule(
    rule_id="optic.compressive",
    name="Compressive Optic Neuropathy",
    category=Category.OPTIC,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.has_rapd and not f.trauma, 3, "RAPD present (afferent pathway dysfunction)"),
        Criterion(
            lambda f: f.disc_pallor and not f.disc_edema,
            2,
            "Disc pallor without edema (suggests chronic compression)",
        ),
        Criterion(
            lambda f: f.optociliary_shunts,
            4,
            "Optociliary shunt vessels (highly specific for chronic compression)",
        ),
        Criterion(lambda f: f.color_deficit, 2, "Color vision deficit"),
        Criterion(lambda f: f.va_reduced, 2, "Reduced visual acuity"),
        Criterion(
            lambda f: not f.painful and f.suspected_optic_neuropathy,
            1,
            "Painless progression (favors compressive over inflammatory)",
        ),
    ),
    next_steps=steps(
        "MRI orbits with contrast (fat suppression): optic nerve sheath meningioma, glioma",
        "MRI brain: intracranial extension, other lesions",
        "Visual field testing: look for junctional scotoma if near chiasm",
        "OCT RNFL to quantify damage",
        "Neuro-ophthalmology referral for management planning",
    ),
)

# 11. Optic atrophy
# Sadun AA. Acquired mitochondrial impairment as a cause of optic nerve disease.
OPTIC_ATROPHY = DiagnosisRule(
    rule_id="optic.atrophy",
    name="Optic Atrophy",
    category=Category.OPTIC,
    minimum=6,
    criteria=(
        Criterion(lambda f: f.disc_pallor, 4, "Disc pallor (optic atrophy)"),
        Criterion(lambda f: f.has_rapd, 3, "RAPD present"),
        Criterion(lambda f: f.color_deficit, 2, "Color vision deficit (dyschromatopsia)"),
        Criterion(lambda f: not f.disc_edema, 1, "No disc edema (established atrophy, not acute)"),
        Criterion(lambda f: not f.acute and not f.painful, 1, "Chronic, painless course"),
    ),
    next_steps=steps(
        "Determine pattern: diffuse vs temporal (bow-tie) vs sectoral",
        "Temporal pallor: MS, compressive, toxic/nutritional",
        "Bow-tie (band) atrophy: chiasmal lesion",
        "OCT RNFL to quantify and pattern nerve fiber loss",
        "Workup: MRI brain/orbits, consider B12, folate, copper if nutritional suspected",
        "Family history: consider hereditary optic neuropathies (LHON, DOA)",
    ),
)

# 43. Papilledema
# Friedman DI, et al. Revised diagnostic criteria for pseudotumor cerebri syndrome.
PAPILLEDEMA = DiagnosisRule(
    rule_id="optic.papilledema",
    name="Papilledema (elevated ICP)",
    category=Category.OPTIC,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.disc_edema, 4, "Disc edema present"),
        Criterion(lambda f: f.disc_edema_od and f.disc_edema_os, 2, "Bilateral disc edema"),
        Criterion(lambda f: not f.has_rapd and f.disc_edema, 2, "No RAPD (symmetric involvement)"),
        Criterion(lambda f: f.painful and f.disc_edema, 2, "Headache present"),
        Criterion(lambda f: f.vf_symptoms and f.disc_edema, 1, "Visual symptoms"),
    ),
    next_steps=steps(
        "Bilateral disc edema from increased intracranial pressure",
        "MRI brain + MRV to rule out mass, venous sinus thrombosis",
        "LP with opening pressure (after imaging rules out mass)",
        "IIH criteria: elevated OP >25cm H2O, normal CSF, no other cause",
        "IIH risk factors: obesity, young woman, vitamin A, tetracyclines",
        "Monitor visual fields - can cause progressive optic neuropathy",
        "Treatment: weight loss, acetazolamide, topiramate; shunt/ONSF if severe",
    ),
)

# 44. Leber hereditary optic neuropathy
# Yu-Wai-Man P, et al. Leber hereditary optic neuropathy.
LHON = DiagnosisRule(
    rule_id="optic.lhon",
    name="Leber hereditary optic neuropathy (LHON)",
    category=Category.OPTIC,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.has_rapd, 2, "RAPD present"),
        Criterion(lambda f: f.vf_central_scotoma, 3, "Central scotoma"),
        Criterion(lambda f: f.disc_edema and not f.painful, 2, "Disc edema/hyperemia without pain"),
        Criterion(lambda f: f.color_deficit, 2, "Color vision deficit"),
        Criterion(
            lambda f: not f.painful and _central_or_afferent_loss(f),
            1,
            "Painless (typical for LHON)",
        ),
    ),
    next_steps=steps(
        "Mitochondrial DNA mutations (most common: 11778, 3460, 14484)",
        "Typical: young male with painless sequential vision loss",
        "Exam: circumpapillary telangiectatic vessels, pseudoedema",
        "No disc leakage on FA (distinguishes from true papillitis)",
        "Maternal inheritance pattern - ask family history",
        "Genetic testing for mtDNA mutations",
        "Idebenone may help if started early; avoid smoking, alcohol",
    ),
)

# 45. Dominant optic atrophy (Kjer type)
# Votruba M, et al. Clinical features of autosomal dominant optic atrophy.
DOMINANT_OPTIC_ATROPHY = DiagnosisRule(
    rule_id="optic.doa",
    name="Dominant optic atrophy (DOA)",
    category=Category.OPTIC,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.disc_pallor, 3, "Disc pallor (optic atrophy)"),
        Criterion(lambda f: f.color_deficit, 2, "Color vision deficit (blue-yellow axis typically)"),
        Criterion(lambda f: f.vf_central_scotoma, 2, "Central/cecocentral scotoma"),
        Criterion(lambda f: f.disc_pallor_od and f.disc_pallor_os, 2, "Bilateral optic atrophy"),
        Criterion(lambda f: not f.acute and not f.painful and f.disc_pallor, 1, "Chronic, painless course"),
    ),
    next_steps=steps(
        "OPA1 gene mutation (autosomal dominant)",
        "Onset typically in first decade, slowly progressive",
        "Temporal disc pallor, reduced VA (often 20/40-20/200)",
        "Blue-yellow color defects more than red-green",
        "Central or cecocentral scotomas",
        "Family history of vision loss (autosomal dominant)",
        "Genetic testing for OPA1 mutations",
        "No proven treatment; low vision rehabilitation",
    ),
)

# 46. Toxic / nutritional optic neuropathy
# Sharma P, Sharma R. Toxic optic neuropathy.
TOXIC_NUTRITIONAL_OPTIC_NEUROPATHY = DiagnosisRule(
    rule_id="optic.toxic_nutritional",
    name="Toxic/Nutritional optic neuropathy",
    category=Category.OPTIC,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.vf_central_scotoma, 3, "Central/cecocentral scotoma"),
        Criterion(lambda f: f.color_deficit, 2, "Color vision deficit"),
        Criterion(lambda f: f.disc_pallor, 2, "Disc pallor"),
        Criterion(_bilateral_symmetric, 2, "Bilateral, symmetric involvement"),
        Criterion(lambda f: not f.painful, 1, "Painless"),
    ),
    next_steps=steps(
        "Common toxins: ethambutol, methanol, ethylene glycol, linezolid",
        "Nutritional: B12, folate, thiamine, copper deficiency",
        "Tobacco-alcohol amblyopia (B12/folate related)",
        "Labs: B12, folate, MMA, homocysteine, CBC, copper, zinc",
        "Cecocentral scotoma typical (involves fixation and blind spot)",
        "Stop offending agent; replete deficiencies",
        "Recovery depends on duration and severity",
    ),
)

# 47. Optic disc drusen
# Auw-Haedrich C, et al. Optic disk drusen.
OPTIC_DISC_DRUSEN = DiagnosisRule(
    rule_id="optic.disc_drusen",
    name="Optic disc drusen",
    category=Category.OPTIC,
    minimum=4,
    criteria=(
        Criterion(
            lambda f: (f.vf_altitudinal or f.vf_respects_horizontal) and not f.has_rapd,
            3,
            "Arcuate/altitudinal VF defect without RAPD",
        ),
        Criterion(
            lambda f: not f.significant_rapd and (f.vf_altitudinal or f.vf_symptoms),
            2,
            "No significant RAPD despite VF changes",
        ),
        Criterion(lambda f: not f.acute and not f.painful, 1, "Chronic, stable course"),
        Criterion(lambda f: not f.disc_edema and not f.disc_pallor, 1, "No true disc edema or pallor"),
    ),
    next_steps=steps(
        "Calcified deposits in optic nerve head",
        "Can cause pseudopapilledema or be buried (not visible)",
        "VF defects: arcuate, enlarged blind spot, altitudinal",
        "B-scan ultrasound: highly reflective lesions with shadowing",
        "OCT: signal-poor core with hyperreflective margins (EDI-OCT)",
        "Autofluorescence: drusen autofluoresce",
        "Usually benign; monitor VF for rare progressive loss",
    ),
)
