"""
Neurological Rules

Patterns that span several exam modules: polyneuropathy and nutritional
ophthalmoplegias, parasellar and orbital apex syndromes, and brainstem gaze
disorders.
"""
from __future__ import annotations

from neuroddx.schemas.assessment import Category
from neuroddx.schemas.features import FeatureSet

from .base import Criterion, DiagnosisRule, present, steps


def _cranial_nerve_count(f: FeatureSet) -> int:
    # Parasympathetic pupil, levator and each documented duction deficit
    return int(f.large_pupil_pattern) + int(f.ptosis) + f.eom_deficit_count


# 30. Miller Fisher syndrome
# Fisher M. An unusual variant of acute idiopathic polyneuritis.
MILLER_FISHER = DiagnosisRule(
    rule_id="neuro.miller_fisher",
    name="Miller Fisher syndrome",
    category=Category.NEURO,
    minimum=5,
    criteria=(
        Criterion(lambda f: f.diplopia, 2, "Diplopia/ophthalmoplegia"),
        Criterion(lambda f: f.eom_deficit_count >= 2, 2, "Multiple EOM involvement"),
        Criterion(lambda f: f.ptosis, 1, "Ptosis"),
        Criterion(lambda f: not f.pupil_sparing, 1, "Pupil abnormality (can occur in MFS)"),
        Criterion(lambda f: f.neuro_sx, 2, "Other neurological symptoms (ataxia?)"),
    ),
    next_steps=steps(
        "Clinical triad: ophthalmoplegia, ataxia, areflexia",
        "Check deep tendon reflexes (typically absent)",
        "Anti-GQ1b antibodies (positive in >90%)",
        "Often preceded by respiratory/GI infection",
        "LP: albuminocytologic dissociation",
        "Usually self-limited; IVIG may speed recovery",
    ),
)

# 31. Wernicke encephalopathy
# Sechi G, Serra A. Wernicke's encephalopathy: new clinical settings and recent advances.
WERNICKE = DiagnosisRule(
    rule_id="neuro.wernicke",
    name="Wernicke encephalopathy",
    category=Category.NEURO,
    minimum=5,
    criteria=(
        Criterion(
            lambda f: present(f.abduction_deficit),
            2,
            "Abduction deficit (CN VI involvement common)",
        ),
        Criterion(lambda f: f.diplopia, 1, "Diplopia"),
        Criterion(lambda f: f.neuro_sx, 3, "Neurological symptoms (confusion, ataxia)"),
        Criterion(lambda f: f.pupil_sparing and present(f.abduction_deficit), 1, "Pupil-sparing"),
    ),
    next_steps=steps(
        "Classic triad: ophthalmoplegia, confusion, ataxia (complete triad in <20%)",
        "Risk factors: alcoholism, malnutrition, bariatric surgery, hyperemesis",
        "URGENT: Thiamine 500mg IV TID before glucose administration",
        "MRI: T2/FLAIR hyperintensity in mammillary bodies, periaqueductal gray",
        "Prevent Korsakoff syndrome with prompt treatment",
    ),
)

# 34. Cavernous sinus syndrome (parasellar view)
# Keane JR. Cavernous sinus syndrome.
CAVERNOUS_SINUS_PARASELLAR = DiagnosisRule(
    rule_id="neuro.cavernous_sinus",
    name="Cavernous sinus syndrome",
    category=Category.NEURO,
    minimum=5,
    criteria=(
        Criterion(lambda f: _cranial_nerve_count(f) >= 2, 4, "Multiple cranial nerve involvement"),
        Criterion(lambda f: f.diplopia and f.ptosis, 2, "Diplopia + ptosis"),
        Criterion(lambda f: f.painful, 2, "Pain (V1/V2 involvement or mass effect)"),
        Criterion(
            lambda f: f.small_pupil_pattern,
            2,
            "Small pupil pattern (sympathetic involvement in cavernous sinus)",
        ),
        Criterion(lambda f: f.acute, 1, "Acute onset"),
    ),
    next_steps=steps(
        "Structures in cavernous sinus: CN III, IV, VI, V1, V2, sympathetics, ICA",
        "MRI brain with attention to cavernous sinus, fat-saturated T1 with contrast",
        "Etiologies: tumor (meningioma, pituitary), infection, CCF, thrombosis, Tolosa-Hunt",
        "Check for proptosis, conjunctival injection (CCF), facial sensory loss (V1/V2)",
        "If infectious: emergent - can spread from sinusitis",
        "Tolosa-Hunt: painful ophthalmoplegia, responds to steroids",
    ),
)

# 35. Orbital apex syndrome
# Yeh S, Foroozan R. Orbital apex syndrome.
# Cavernous sinus findings plus optic neuropathy.
ORBITAL_APEX = DiagnosisRule(
    rule_id="neuro.orbital_apex",
    name="Orbital apex syndrome",
    category=Category.NEURO,
    minimum=6,
    criteria=(
        Criterion(lambda f: f.has_rapd, 4, "RAPD (optic nerve involvement - key feature)"),
        Criterion(lambda f: f.disc_pallor or f.disc_edema, 2, "Disc changes (pallor or edema)"),
        Criterion(lambda f: f.color_deficit or f.va_reduced, 2, "Visual function affected (color/VA)"),
        Criterion(lambda f: f.diplopia, 2, "Diplopia (EOM involvement)"),
        Criterion(lambda f: f.painful, 2, "Pain"),
        Criterion(lambda f: f.ptosis, 1, "Ptosis"),
    ),
    next_steps=steps(
        "Orbital apex = cavernous sinus syndrome + optic neuropathy",
        "CN II, III, IV, VI, V1 all affected",
        "MRI orbits and brain with contrast, fat suppression",
        "Etiologies: tumor, infection (mucormycosis in diabetics), inflammation",
        "If diabetic with sinusitis: consider mucormycosis (EMERGENT)",
        "Visual prognosis depends on prompt treatment",
    ),
)

# 51. Parinaud (dorsal midbrain) syndrome
# Keane JR. The pretectal syndrome.
PARINAUD = DiagnosisRule(
    rule_id="neuro.parinaud",
    name="Parinaud syndrome (dorsal midbrain)",
    category=Category.NEURO,
    minimum=5,
    criteria=(
        Criterion(lambda f: present(f.vertical_limitation), 3, "Vertical gaze limitation (upgaze palsy)"),
        Criterion(lambda f: f.lnd, 4, "Light-near dissociation"),
        Criterion(lambda f: f.large_pupil_pattern and f.lnd, 2, "Large pupils with LND (Parinaud pattern)"),
        Criterion(lambda f: f.neuro_sx, 1, "Neurological symptoms"),
    ),
    next_steps=steps(
        "Dorsal midbrain lesion at level of superior colliculus",
        "Classic findings: upgaze palsy, LND, lid retraction (Collier sign)",
        "Convergence-retraction nystagmus on attempted upgaze",
        "Etiologies: pineal tumor, stroke, MS, hydrocephalus",
        "MRI brain with attention to posterior commissure, pineal region",
        "If hydrocephalus: may need shunting",
    ),
)

# 52. Progressive supranuclear palsy
# Litvan I, et al. Clinical research criteria for PSP.
PSP = DiagnosisRule(
    rule_id="neuro.psp",
    name="Progressive supranuclear palsy (PSP)",
    category=Category.NEURO,
    minimum=5,
    criteria=(
        Criterion(
            lambda f: present(f.vertical_limitation),
            3,
            "Vertical gaze limitation (especially downgaze)",
        ),
        Criterion(lambda f: f.pupil_sparing and present(f.vertical_limitation), 1, "Pupil-sparing"),
        Criterion(lambda f: f.neuro_sx, 2, "Neurological symptoms (postural instability, falls)"),
        Criterion(lambda f: not f.acute and present(f.vertical_limitation), 1, "Chronic progressive course"),
    ),
    next_steps=steps(
        "Neurodegenerative: tau protein accumulation",
        "Vertical gaze palsy (downgaze > upgaze initially)",
        "Square wave jerks, slowed saccades",
        "Postural instability with backward falls",
        "Pseudobulbar affect, dysarthria, dysphagia",
        "MRI: hummingbird sign (midbrain atrophy), Mickey Mouse sign",
        "Neurology referral; supportive care, fall prevention",
    ),
)

# 53. Skew deviation
# Brandt T, Dieterich M. Skew deviation.
SKEW_DEVIATION = DiagnosisRule(
    rule_id="neuro.skew",
    name="Skew deviation",
    category=Category.NEURO,
    minimum=5,
    criteria=(
        Criterion(
            lambda f: present(f.vertical_limitation) and f.diplopia,
            3,
            "Vertical diplopia with vertical deviation",
        ),
        Criterion(
            lambda f: present(f.comitant) and f.diplopia,
            2,
            "Comitant vertical deviation (unlike CN IV palsy)",
        ),
        Criterion(lambda f: f.neuro_sx, 2, "Neurological symptoms (brainstem/cerebellar)"),
        Criterion(lambda f: f.acute, 2, "Acute onset"),
    ),
    next_steps=steps(
        "Vertical misalignment from brainstem/cerebellar/vestibular lesion",
        "Comitant (same in all gazes) - unlike CN IV palsy",
        "Often part of ocular tilt reaction (head tilt, skew, torsion)",
        "Differentiating from CN IV: head tilt test opposite (skew opposite to CN IV)",
        "Associated with stroke, MS, or posterior fossa lesions",
        "MRI brain with attention to brainstem and cerebellum",
    ),
)
