"""
Ocular Motility Rules

Cranial neuropathies (IV, VI), neuromuscular junction (MG), supranuclear
(INO), restrictive and orbital disease, and congenital / chronic
ophthalmoplegias. Deficits are tri-state: only a documented `True` counts.
"""
from __future__ import annotations

from neuroddx.schemas.assessment import Category
from neuroddx.schemas.features import FeatureSet

from .base import Criterion, DiagnosisRule, NextStep, absent, present, steps


def _cavernous_nerve_count(f: FeatureSet) -> int:
    # VI, then III (medial or vertical recti), then levator
    return (
        int(present(f.abduction_deficit))
        + int(present(f.adduction_deficit) or present(f.vertical_limitation))
        + int(f.ptosis)
    )


def _ptosis_or_diplopia(f: FeatureSet) -> bool:
    return f.ptosis or f.diplopia


def _acute(f: FeatureSet) -> bool:
    return f.acute


def _trauma(f: FeatureSet) -> bool:
    return f.trauma


# 12. CN VI (abducens) palsy
# Moster ML, Savino PJ, Sergott RC. Isolated sixth-nerve palsies in younger adults.
CN6_PALSY = DiagnosisRule(
    rule_id="eom.cn6",
    name="CN VI (Abducens) palsy",
    category=Category.EOM,
    criteria=(
        Criterion(lambda f: f.diplopia and present(f.abduction_deficit), 4, "Diplopia + abduction deficit"),
        Criterion(
            lambda f: present(f.abduction_deficit)
            and not present(f.adduction_deficit)
            and not present(f.vertical_limitation),
            2,
            "Isolated abduction deficit",
        ),
        Criterion(lambda f: absent(f.comitant), 1, "Incomitant deviation"),
        Criterion(
            lambda f: f.pupil_sparing and present(f.abduction_deficit),
            1,
            "Pupil sparing (expected in CN VI)",
        ),
    ),
    next_steps=(
        NextStep("Quantify deviation with prism cover testing in primary and lateral gazes"),
        NextStep(
            "If acute: MRI brain with attention to cavernous sinus, petrous apex, skull base",
            when=_acute,
        ),
        NextStep("LP if papilledema or signs of elevated ICP", when=_acute),
        NextStep("Check vascular risk factors; isolated CN VI in adults >50 with diabetes/HTN may be observed"),
        NextStep("If bilateral: evaluate for increased ICP, skull base pathology"),
        NextStep("Expected recovery 3-6 months if microvascular"),
    ),
)

# 13. CN IV (trochlear) palsy
# Brazis PW. Isolated palsies of cranial nerves III, IV, and VI.
CN4_PALSY = DiagnosisRule(
    rule_id="eom.cn4",
    name="CN IV (Trochlear) palsy",
    category=Category.EOM,
    criteria=(
        Criterion(
            lambda f: f.diplopia and present(f.vertical_limitation),
            3,
            "Diplopia + vertical limitation",
        ),
        Criterion(
            lambda f: present(f.vertical_limitation)
            and not present(f.abduction_deficit)
            and not present(f.adduction_deficit),
            2,
            "Isolated vertical deficit (consider CN IV)",
        ),
        Criterion(lambda f: absent(f.comitant), 1, "Incomitant deviation"),
        Criterion(lambda f: f.pupil_sparing and present(f.vertical_limitation), 1, "Pupil sparing"),
    ),
    next_steps=(
        NextStep("Three-step test: hypertropia worse with contralateral gaze and ipsilateral head tilt"),
        NextStep("Check for head tilt in old photographs (longstanding vs acquired)"),
        NextStep("Double Maddox rod test to assess torsion"),
        NextStep("Trauma history: CN IV most susceptible to closed head injury", when=_trauma),
        NextStep("MRI brain if no trauma history and no vascular risk factors"),
    ),
)

# 14. Ocular myasthenia gravis
# Kupersmith MJ. Ocular myasthenia gravis: treatment and prognosis.
# Ptosis+diplopia / ptosis alone / diplopia alone are mutually exclusive.
OCULAR_MYASTHENIA = DiagnosisRule(
    rule_id="eom.myasthenia",
    name="Myasthenia Gravis - Ocular",
    category=Category.EOM,
    criteria=(
        Criterion(lambda f: f.fatigable, 5, "Fatigable weakness (hallmark of MG)"),
        Criterion(lambda f: f.ptosis and f.diplopia, 3, "Ptosis + diplopia combination"),
        Criterion(lambda f: f.ptosis and not f.diplopia, 2, "Ptosis present"),
        Criterion(lambda f: f.diplopia and not f.ptosis, 2, "Diplopia present"),
        Criterion(
            lambda f: _ptosis_or_diplopia(f) and f.pupil_sparing,
            2,
            "Pupil-sparing pattern (required for MG diagnosis)",
        ),
        Criterion(
            lambda f: not f.has_rapd and _ptosis_or_diplopia(f),
            1,
            "No RAPD (MG doesn't affect afferent pathway)",
        ),
        Criterion(
            lambda f: present(f.comitant) and f.diplopia,
            1,
            "Comitant strabismus (can mimic any pattern in MG)",
        ),
    ),
    next_steps=steps(
        "Sustained upgaze test: observe for ptosis worsening over 1-2 minutes",
        "Ice pack test: improvement of ptosis after 2 minutes of ice",
        "Cogan lid twitch: brief overshoot on return from downgaze",
        "Serology: Anti-AChR antibodies (positive in ~50% ocular MG)",
        "If seronegative: Anti-MuSK antibodies, repetitive nerve stimulation, single-fiber EMG",
        "CT chest to evaluate for thymoma",
        "Systemic MG develops in ~50% within 2 years; consider pyridostigmine trial",
    ),
)

# 15. Internuclear ophthalmoplegia
# Frohman EM, et al. The medial longitudinal fasciculus in ocular motor physiology.
INO = DiagnosisRule(
    rule_id="eom.ino",
    name="Internuclear Ophthalmoplegia (INO)",
    category=Category.EOM,
    minimum=4,
    criteria=(
        Criterion(lambda f: present(f.adduction_deficit), 4, "Adduction deficit (key feature of INO)"),
        Criterion(
            lambda f: f.diplopia and present(f.adduction_deficit),
            2,
            "Diplopia with adduction weakness",
        ),
        Criterion(
            lambda f: present(f.adduction_deficit) and not f.ptosis and not f.large_pupil_pattern,
            2,
            "No ptosis, pupil sparing (unlike CN III)",
        ),
        Criterion(lambda f: f.neuro_sx, 1, "Other neurological symptoms"),
    ),
    next_steps=steps(
        "Test convergence: typically preserved in INO (distinguishes from CN III)",
        "Observe for abducting nystagmus in contralateral eye",
        "MRI brain with attention to MLF in dorsal pons/midbrain",
        "If young patient: evaluate for multiple sclerosis (LP, additional MRI)",
        "If elderly: consider brainstem stroke",
        "If bilateral (WEBINO): consider MS, stroke, Wernicke encephalopathy",
    ),
)

# 16. Thyroid eye disease
# Bartley GB, Gorman CA. Diagnostic criteria for Graves' ophthalmopathy.
# Lid retraction is not captured by the exam model.
THYROID_EYE_DISEASE = DiagnosisRule(
    rule_id="eom.ted",
    name="Thyroid Eye Disease",
    category=Category.EOM,
    minimum=3,
    criteria=(
        Criterion(
            lambda f: present(f.vertical_limitation),
            2,
            "Vertical limitation (common in TED: IR restriction)",
        ),
        Criterion(lambda f: f.diplopia, 2, "Diplopia (restrictive strabismus)"),
        Criterion(lambda f: f.pain_on_movement, 1, "Pain on movement (active inflammation)"),
    ),
    next_steps=steps(
        "Examine for lid retraction, lid lag, proptosis, chemosis",
        "Check thyroid function tests (TSH, free T4, T3)",
        "TSH receptor antibodies (TRAb) if clinical suspicion high",
        "CT orbits (no contrast): enlarged EOMs with tendon sparing",
        "Clinical Activity Score to assess inflammatory phase",
        "Refer to oculoplastics/neuro-ophthalmology for management",
    ),
)

# 17. Orbital inflammatory disease
# Rootman J, Nugent R. The classification and management of acute orbital pseudotumors.
ORBITAL_INFLAMMATION = DiagnosisRule(
    rule_id="eom.orbital_inflammation",
    name="Orbital inflammatory disease",
    category=Category.EOM,
    criteria=(
        Criterion(lambda f: f.pain_on_movement, 4, "Pain on eye movement"),
        Criterion(lambda f: f.diplopia and f.pain_on_movement, 2, "Diplopia + pain combination"),
        Criterion(lambda f: f.painful, 2, "Orbital/periocular pain"),
        Criterion(lambda f: f.acute, 1, "Acute onset"),
    ),
    next_steps=steps(
        "Examine for proptosis, chemosis, lid edema, conjunctival injection",
        "CT orbits with contrast: diffuse or localized inflammation",
        "MRI orbits with fat suppression for soft tissue detail",
        "Labs: CBC, ESR, CRP, ANA, ANCA, ACE level",
        "Consider biopsy if atypical features or poor response to steroids",
        "Trial of systemic corticosteroids often diagnostic and therapeutic",
    ),
)

# 18. Cavernous sinus syndrome (motility view)
# Kline LB, Hoyt WF. The Tolosa-Hunt syndrome.
CAVERNOUS_SINUS_MOTILITY = DiagnosisRule(
    rule_id="eom.cavernous_sinus",
    name="Cavernous sinus syndrome",
    category=Category.EOM,
    minimum=4,
    criteria=(
        Criterion(lambda f: _cavernous_nerve_count(f) >= 2, 4, "Multiple cranial nerve involvement"),
        Criterion(lambda f: f.painful, 2, "Painful ophthalmoplegia"),
        Criterion(
            lambda f: not f.pupil_sparing,
            1,
            "Pupil involvement (sympathetic or parasympathetic)",
        ),
        Criterion(lambda f: f.neuro_sx, 1, "Other neurological symptoms"),
    ),
    next_steps=steps(
        "MRI brain with contrast, thin cuts through cavernous sinus",
        "MRA/CTA to evaluate carotid and cavernous sinus",
        "Consider: tumor, infection, thrombosis, CCF, Tolosa-Hunt syndrome",
        "If Tolosa-Hunt suspected: dramatic response to steroids expected",
        "Check V1/V2 sensation (forehead, cheek numbness)",
    ),
)

# 32. Thyroid eye disease (Graves'), restrictive pattern
# Bartalena L, et al. Consensus statement of the European Group on Graves' orbitopathy.
GRAVES_ORBITOPATHY = DiagnosisRule(
    rule_id="eom.graves",
    name="Thyroid Eye Disease (Graves')",
    category=Category.EOM,
    minimum=4,
    criteria=(
        Criterion(lambda f: f.diplopia, 2, "Diplopia present"),
        Criterion(
            lambda f: present(f.vertical_limitation),
            3,
            "Vertical limitation (IR restriction causes upgaze limitation)",
        ),
        Criterion(
            lambda f: present(f.comitant),
            2,
            "Comitant deviation (suggests restrictive rather than neurogenic)",
        ),
        Criterion(lambda f: f.pain_on_movement, 2, "Pain on eye movement (active inflammatory phase)"),
        Criterion(lambda f: f.pupil_sparing and f.diplopia, 1, "Pupil-sparing"),
        Criterion(lambda f: f.ptosis, -1, "Note: Ptosis unusual in TED (lid retraction typical)"),
    ),
    next_steps=steps(
        "Exam: proptosis (Hertel), lid retraction, lagophthalmos, conjunctival injection",
        "Check thyroid function: TSH, free T4, T3, TSH receptor antibodies",
        "CT orbits: enlarged extraocular muscles with tendon sparing",
        "Pattern: IR > MR > SR > LR (mnemonic: I'M SLow)",
        "Active vs inactive: CAS (Clinical Activity Score)",
        "Mild: lubricants, selenium; Moderate-severe: IV steroids, orbital radiation, surgery",
    ),
)

# 33. Idiopathic orbital inflammation (pseudotumor)
# Yuen SJ, Rubin PA. Idiopathic orbital inflammation.
ORBITAL_PSEUDOTUMOR = DiagnosisRule(
    rule_id="eom.orbital_pseudotumor",
    name="Orbital inflammatory disease (pseudotumor)",
    category=Category.EOM,
    minimum=5,
    criteria=(
        Criterion(
            lambda f: f.pain_on_movement,
            4,
            "Pain on eye movement (hallmark of orbital inflammation)",
        ),
        Criterion(lambda f: f.painful, 2, "Pain/headache present"),
        Criterion(lambda f: f.diplopia, 2, "Diplopia (myositis component)"),
        Criterion(lambda f: f.acute, 1, "Acute onset"),
        Criterion(lambda f: f.eom_deficit_count >= 1, 1, "EOM limitation present"),
    ),
    next_steps=steps(
        "Exam: proptosis, chemosis, injection, restricted motility, pain",
        "CT/MRI orbits with contrast: enhancing mass, may involve any orbital structure",
        "Subtypes: myositis, dacryoadenitis, diffuse, apical",
        "Dramatic response to corticosteroids (diagnostic and therapeutic)",
        "If poor steroid response: biopsy to exclude lymphoma, IgG4-related disease",
        "Rule out: thyroid eye disease, lymphoma, sarcoidosis, granulomatosis",
    ),
)

# 38. Internuclear ophthalmoplegia, MLF-specific scoring
# Keane JR. Internuclear ophthalmoplegia.
INO_MLF = DiagnosisRule(
    rule_id="eom.ino_mlf",
    name="Internuclear ophthalmoplegia (INO)",
    category=Category.EOM,
    minimum=6,
    criteria=(
        Criterion(lambda f: present(f.adduction_deficit), 5, "Adduction deficit (hallmark of INO)"),
        Criterion(
            lambda f: f.diplopia and present(f.adduction_deficit),
            2,
            "Diplopia with adduction deficit",
        ),
        Criterion(
            lambda f: not f.ptosis and present(f.adduction_deficit),
            2,
            "No ptosis (distinguishes from CN III)",
        ),
        Criterion(
            lambda f: f.pupil_sparing and present(f.adduction_deficit),
            2,
            "Pupil-sparing (distinguishes from CN III)",
        ),
        Criterion(
            lambda f: absent(f.comitant) and present(f.adduction_deficit),
            1,
            "Incomitant deviation",
        ),
    ),
    next_steps=steps(
        "Lesion in MLF (medial longitudinal fasciculus)",
        "Test convergence: typically preserved in INO (distinguishes from CN III)",
        "Look for contralateral abducting nystagmus",
        "Young patient: multiple sclerosis (bilateral INO common)",
        "Older patient: stroke (usually unilateral)",
        "MRI brain with attention to brainstem/MLF",
    ),
)


def _duane_criteria(deficit: str, headline: str):
    """Shared Duane scoring; `deficit` names the limited duction field."""

    def limited(f: FeatureSet) -> bool:
        return present(getattr(f, deficit))

    return (
        Criterion(limited, 4, headline),
        Criterion(lambda f: not f.acute and limited(f), 2, "Non-acute presentation (congenital)"),
        Criterion(lambda f: not f.painful and limited(f), 1, "Painless"),
        Criterion(lambda f: f.pupil_sparing and limited(f), 1, "Pupil-sparing"),
        Criterion(lambda f: not f.diplopia and limited(f), 1, "No diplopia in primary gaze"),
        Criterion(lambda f: absent(f.comitant) and limited(f), 1, "Incomitant deviation"),
    )


# 39. Duane retraction syndrome type I
# DeRespinis PA, et al. Duane's retraction syndrome.
DUANE_TYPE_1 = DiagnosisRule(
    rule_id="eom.duane_1",
    name="Duane retraction syndrome Type I",
    category=Category.EOM,
    minimum=6,
    criteria=_duane_criteria("abduction_deficit", "Abduction deficit"),
    next_steps=steps(
        "Congenital CN VI aplasia with aberrant CN III innervation to LR",
        "Type I: limited abduction (most common)",
        "Globe retraction and palpebral fissure narrowing on adduction",
        "Usually unilateral (left > right), female predominance",
        "Face turn toward affected side to maintain binocularity",
        "No treatment needed if aligned in primary; surgery for large deviation",
    ),
)

# 40. Duane retraction syndrome type II
DUANE_TYPE_2 = DiagnosisRule(
    rule_id="eom.duane_2",
    name="Duane retraction syndrome Type II",
    category=Category.EOM,
    minimum=6,
    criteria=_duane_criteria("adduction_deficit", "Adduction deficit"),
    next_steps=steps(
        "Congenital misinnervation of LR by CN III",
        "Type II: limited adduction (less common)",
        "Globe retraction and palpebral fissure narrowing on adduction",
        "Often esotropia in primary with paradoxical upshoot/downshoot",
        "Usually unilateral; face turn to maintain binocularity",
        "Surgery for significant primary position deviation",
    ),
)

# 41. Brown syndrome
# Wright KW. Brown's syndrome: diagnosis and management.
BROWN_SYNDROME = DiagnosisRule(
    rule_id="eom.brown",
    name="Brown syndrome (consider)",
    category=Category.EOM,
    minimum=4,
    criteria=(
        Criterion(lambda f: present(f.vertical_limitation), 3, "Vertical limitation"),
        Criterion(
            lambda f: not f.painful and present(f.vertical_limitation),
            1,
            "Painless (congenital type)",
        ),
        Criterion(
            lambda f: f.pain_on_movement and present(f.vertical_limitation),
            2,
            "Pain on movement (acquired/inflammatory type)",
        ),
        Criterion(lambda f: not f.ptosis and present(f.vertical_limitation), 1, "No ptosis"),
    ),
    next_steps=steps(
        "Restricted SO tendon: limited elevation in adduction",
        "Positive forced duction test",
        "Congenital: usually stable, observe if small",
        "Acquired: RA, trauma, sinus surgery, inflammation around trochlea",
        "Inflammatory: may respond to steroids or NSAIDs",
        "Surgery if significant hypotropia in primary gaze",
    ),
)

# 42. Ocular neuromyotonia
# Yee RD, et al. Ocular neuromyotonia.
OCULAR_NEUROMYOTONIA = DiagnosisRule(
    rule_id="eom.neuromyotonia",
    name="Ocular neuromyotonia (consider)",
    category=Category.EOM,
    minimum=4,
    criteria=(
        Criterion(lambda f: f.diplopia, 2, "Diplopia present"),
        Criterion(lambda f: f.eom_deficit_count >= 1, 2, "EOM deficit present"),
        Criterion(lambda f: not f.painful and f.diplopia, 1, "Painless"),
    ),
    next_steps=steps(
        "Episodic sustained contraction of EOM (spasm)",
        "Often history of parasellar radiation or skull base surgery",
        "Triggered by sustained gaze in direction of action of affected muscle",
        "Lasts seconds to minutes",
        "Treatment: carbamazepine or other membrane stabilizers",
        "MRI to evaluate prior treatment site",
    ),
)

# 55. Chronic progressive external ophthalmoplegia
# DiMauro S, et al. Mitochondrial myopathies.
CPEO = DiagnosisRule(
    rule_id="eom.cpeo",
    name="Chronic progressive external ophthalmoplegia (CPEO)",
    category=Category.EOM,
    minimum=6,
    criteria=(
        Criterion(lambda f: f.ptosis, 3, "Ptosis present"),
        Criterion(lambda f: f.diplopia or f.eom_deficit_count >= 1, 2, "EOM limitation"),
        Criterion(lambda f: f.ptosis and not f.fatigable, 2, "Non-fatigable (distinguishes from MG)"),
        Criterion(lambda f: not f.acute and f.ptosis, 2, "Chronic progressive course"),
        Criterion(lambda f: f.pupil_sparing and f.ptosis, 1, "Pupil-sparing"),
    ),
    next_steps=steps(
        "Mitochondrial myopathy affecting EOM and levator",
        "Bilateral, symmetric ptosis and ophthalmoplegia",
        "Slowly progressive over years; often no diplopia (symmetric)",
        "May have orbicularis weakness, pigmentary retinopathy",
        "Kearns-Sayre: CPEO + pigmentary retinopathy + heart block + onset <20",
        "Genetic testing for mtDNA deletions",
        "Cardiac evaluation important (heart block in KSS)",
    ),
)
