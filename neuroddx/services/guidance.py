"""
Per-module clinical guidance.

Each exam module gets three short hints: where the findings localize, how
trustworthy the entered data is, and which finding would best discriminate
next. Every hint table is first-match with a trailing default.
"""
from typing import Callable, Sequence, Tuple

from neuroddx.schemas.assessment import Guidance, ModuleHints
from neuroddx.schemas.features import Dominance, FeatureSet

from neuroddx.services.differential.base import absent, present

Hint = Tuple[Callable[[FeatureSet], bool], str]


def first_match(table: Sequence[Hint], f: FeatureSet, default: str) -> str:
    for when, text in table:
        if when(f):
            return text
    return default


def _has_light_pair(f: FeatureSet) -> bool:
    return f.od_light is not None and f.os_light is not None


def _has_dark_pair(f: FeatureSet) -> bool:
    return f.od_dark is not None and f.os_dark is not None


def _any_deficit(f: FeatureSet) -> bool:
    return f.eom_deficit_count > 0


# ── Pupils ────────────────────────────────────────────────────────────────────

PUPIL_LOCALIZE: Tuple[Hint, ...] = (
    (lambda f: f.large_pupil_pattern and (f.ptosis or f.diplopia),
     "Large pupil + ptosis/diplopia: CN III pathway rises (compressive vs ischemic). Check all EOM gazes."),
    (lambda f: f.large_pupil_pattern and (f.lnd or f.vermiform),
     "Large pupil + light-near dissociation/vermiform: Adie tonic pupil pattern rises."),
    (lambda f: f.large_pupil_pattern and f.anticholinergic,
     "Large pupil + anticholinergic exposure: pharmacologic mydriasis most likely."),
    (lambda f: f.large_pupil_pattern,
     "Large pupil pattern (anisocoria greater in light): the larger pupil is abnormal. "
     "Consider CN III, Adie, or pharmacologic."),
    (lambda f: f.small_pupil_pattern and (f.dilation_lag or f.anhidrosis or f.ptosis),
     "Small pupil + dilation lag/anhidrosis/ptosis: Horner syndrome rises. "
     "Localize: central vs preganglionic vs postganglionic."),
    (lambda f: f.small_pupil_pattern,
     "Small pupil pattern (anisocoria greater in dark): the smaller pupil is abnormal. Consider Horner syndrome."),
    (lambda f: f.dominance is Dominance.EQUAL,
     "Equal anisocoria in light and dark: less localizing. "
     "Consider mechanical iris damage, prior surgery, or early pathology."),
)

PUPIL_QUALITY: Tuple[Hint, ...] = (
    (lambda f: not _has_light_pair(f) and not _has_dark_pair(f),
     "Measure pupils in both light and dark conditions for accurate pattern determination."),
    (lambda f: not _has_light_pair(f),
     "Light measurements missing: needed to identify large pupil patterns (CN III, Adie, pharmacologic)."),
    (lambda f: not _has_dark_pair(f),
     "Dark measurements missing: needed to identify small pupil patterns (Horner syndrome)."),
)

PUPIL_NEXT: Tuple[Hint, ...] = (
    (lambda f: f.large_pupil_pattern and f.ptosis and (f.acute or f.painful),
     "Acute painful large pupil + ptosis is CN III compression until proven otherwise. Emergent imaging indicated."),
    (lambda f: f.large_pupil_pattern and f.lnd,
     "Light-near dissociation present. Check slit lamp for vermiform iris movements to support Adie diagnosis."),
    (lambda f: f.large_pupil_pattern and not f.vermiform and not f.anticholinergic,
     "Test light-near dissociation: does pupil constrict better to near target than light? "
     "Check for anticholinergic exposure."),
    (lambda f: f.large_pupil_pattern,
     "Consider dilute pilocarpine 0.125% testing: Adie pupil will constrict (denervation supersensitivity), "
     "pharmacologic will not."),
    (lambda f: f.small_pupil_pattern and (f.acute or f.painful),
     "Acute/painful Horner: strongly consider carotid dissection. "
     "Ask about neck pain, recent trauma, consider urgent CTA/MRA."),
    (lambda f: f.small_pupil_pattern and not f.dilation_lag,
     "Check for dilation lag: observe pupil for 15-20 seconds after lights off. Delayed dilation supports Horner."),
    (lambda f: f.small_pupil_pattern,
     "Confirm with apraclonidine 0.5%: reversal of anisocoria (Horner pupil dilates) is diagnostic."),
)


# ── Ocular motility ───────────────────────────────────────────────────────────

EOM_LOCALIZE: Tuple[Hint, ...] = (
    (lambda f: f.large_pupil_pattern and f.ptosis
     and (present(f.adduction_deficit) or present(f.vertical_limitation)),
     "Large pupil + ptosis + adduction/vertical deficit: CN III palsy pattern. Rule out compressive lesion (aneurysm)."),
    (lambda f: f.large_pupil_pattern and f.ptosis,
     "Large pupil + ptosis: partial CN III involvement possible. Assess all extraocular movements."),
    (lambda f: present(f.adduction_deficit) and not f.ptosis and not f.large_pupil_pattern,
     "Adduction deficit without ptosis/pupil involvement: consider INO. Test convergence (typically preserved in INO)."),
    (lambda f: present(f.abduction_deficit) and f.diplopia and absent(f.comitant),
     "Abduction deficit + diplopia + incomitant: CN VI palsy rises. "
     "Consider skull base, cavernous sinus, or microvascular."),
    (lambda f: present(f.abduction_deficit) and f.diplopia,
     "Abduction deficit + diplopia: CN VI palsy pattern. Quantify with prism cover testing."),
    (lambda f: present(f.vertical_limitation) and not f.ptosis
     and not present(f.abduction_deficit) and not present(f.adduction_deficit),
     "Isolated vertical limitation (especially with head tilt compensation): consider CN IV palsy. "
     "Check for hypertropia worse in contralateral gaze."),
    (lambda f: f.fatigable,
     "Fatigable weakness: myasthenia gravis rises. Assess sustained upgaze, ice pack test, "
     "check anti-AChR antibodies."),
    (lambda f: f.ptosis and not f.large_pupil_pattern and f.diplopia,
     "Ptosis + diplopia without pupil involvement: consider myasthenia gravis, partial CN III, or levator dehiscence."),
    (lambda f: f.ptosis and not f.large_pupil_pattern,
     "Isolated ptosis: consider MG, Horner (check pupil in dark), levator dehiscence, or mechanical ptosis."),
    (lambda f: f.pain_on_movement,
     "Pain on eye movement: consider orbital inflammation, thyroid eye disease (active), or optic neuritis."),
    (lambda f: f.diplopia and present(f.comitant),
     "Comitant deviation + diplopia: less likely cranial nerve palsy. "
     "Consider decompensated phoria or thyroid eye disease."),
    (lambda f: f.diplopia,
     "Diplopia present. Determine which movements are limited to localize the cranial nerve(s) involved."),
)

EOM_QUALITY: Tuple[Hint, ...] = (
    (lambda f: not (f.diplopia or f.ptosis or _any_deficit(f) or f.fatigable or f.pain_on_movement),
     "No EOM symptoms or signs entered yet."),
    (lambda f: f.diplopia and not _any_deficit(f),
     "Diplopia reported but no motility deficits marked. Perform cover testing and ductions in all gazes."),
    (lambda f: _any_deficit(f) and not f.comitant.is_set,
     "Motility deficit marked. Assess comitance (same deviation in all gazes vs worse in certain directions)."),
    (lambda f: f.fatigable and not f.ptosis and not f.diplopia,
     "Fatigable marked but no specific symptoms. Specify what is fatigable (ptosis, diplopia, or both)."),
)

EOM_NEXT: Tuple[Hint, ...] = (
    (lambda f: f.large_pupil_pattern and f.ptosis and (f.acute or f.painful),
     "Acute painful CN III with pupil: aneurysm until proven otherwise. Strongly consider emergent CTA/MRA."),
    (lambda f: f.fatigable,
     "Fatigable weakness: perform sustained upgaze test (1-2 min), ice pack test, "
     "check anti-AChR/anti-MuSK antibodies."),
    (lambda f: f.ptosis and f.diplopia and f.dominance is None,
     "Ptosis + diplopia without pupil involvement: assess for fatigue, ice pack test, or anti-AChR antibodies for MG."),
    (lambda f: present(f.adduction_deficit) and not f.ptosis,
     "Adduction deficit: test convergence. If preserved, suggests INO. MRI brain with attention to MLF."),
    (lambda f: present(f.abduction_deficit) and f.diplopia and f.acute,
     "Acute CN VI: if isolated with vascular risk factors, may observe. "
     "Otherwise, MRI brain with attention to skull base."),
    (lambda f: present(f.abduction_deficit) and f.diplopia,
     "CN VI palsy: check for papilledema (IIH), history of head trauma, or recent LP."),
    (lambda f: f.pain_on_movement,
     "Pain on eye movement: examine for proptosis, chemosis. Consider MRI orbits, thyroid function tests."),
    (lambda f: f.diplopia and not _any_deficit(f),
     "Diplopia without specific deficits: perform full motility exam including versions, ductions, and cover testing."),
    (lambda f: f.ptosis and not f.diplopia,
     "Isolated ptosis: check levator function (MRD1), fatigue with sustained upgaze, and lid crease height."),
)


# ── Visual fields ─────────────────────────────────────────────────────────────

VF_LOCALIZE: Tuple[Hint, ...] = (
    (lambda f: f.vf_bitemporal,
     "Bitemporal → chiasmal process rises (confirm pattern + correlate with optic nerve/RAPD, symptoms)."),
    (lambda f: f.vf_homonymous and f.vf_respects_vertical and f.vf_congruity == "high",
     "Highly congruous homonymous → occipital lobe more likely (vs tract/radiations)."),
    (lambda f: f.vf_homonymous and f.vf_respects_vertical and f.vf_congruity == "low",
     "Low congruity homonymous → optic tract/radiations rise (combine with neuro signs)."),
    (lambda f: f.vf_homonymous and f.vf_respects_vertical,
     "Homonymous + vertical meridian → retrochiasmal pathway rises."),
    (lambda f: f.vf_altitudinal and f.vf_respects_horizontal,
     "Altitudinal + horizontal meridian → optic nerve/anterior ischemic pattern rises."),
    (lambda f: f.vf_central_scotoma,
     "Central scotoma → macula/optic nerve (optic neuritis/toxic/nutritional) rises."),
    (lambda f: f.vf_respects_vertical,
     "Vertical meridian respect → chiasmal/retrochiasmal localization rises."),
)

VF_QUALITY: Tuple[Hint, ...] = (
    (lambda f: f.vf_reliability == "poor",
     "Poor reliability: re-test / confirm with repeat strategy before hard localization."),
    (lambda f: f.vf_reliability == "borderline",
     "Borderline reliability: interpret with caution; correlate with structure and symptoms."),
    (lambda f: f.vf_reliability == "good",
     "Good reliability: pattern-based localization is more trustworthy."),
)

VF_NEXT: Tuple[Hint, ...] = (
    (lambda f: f.vf_bitemporal,
     "Check for optic disc pallor, color desaturation, and consider endocrine/sellar symptoms if present."),
    (lambda f: f.vf_homonymous,
     "Ask timing/vascular risk, neuro symptoms; assess congruity and look for macular sparing clues."),
    (lambda f: f.vf_altitudinal,
     "Correlate with optic disc edema/pallor and acuity/color; consider arteritic vs non-arteritic context."),
    (lambda f: f.vf_central_scotoma,
     "Correlate with acuity/color desaturation, RAPD, pain on eye movement, and OCT RNFL/GCC if available."),
)


def pupil_hints(f: FeatureSet) -> ModuleHints:
    return ModuleHints(
        localize=first_match(
            PUPIL_LOCALIZE, f,
            "Enter both light and dark pupil measurements to determine pattern (which pupil is abnormal).",
        ),
        quality=first_match(
            PUPIL_QUALITY, f,
            "Light and dark measurements present. Confirm consistent technique and room lighting.",
        ),
        next=first_match(
            PUPIL_NEXT, f,
            "Complete light/dark measurements, then check triage flags and special signs to refine the differential.",
        ),
    )


def eom_hints(f: FeatureSet) -> ModuleHints:
    return ModuleHints(
        localize=first_match(EOM_LOCALIZE, f, "Enter EOM findings to generate localization guidance."),
        quality=first_match(
            EOM_QUALITY, f,
            "EOM data entered. Consider quantifying deviation with prism and alternating cover test.",
        ),
        next=first_match(EOM_NEXT, f, "Complete EOM assessment and triage flags to refine guidance."),
    )


def visual_field_hints(f: FeatureSet) -> ModuleHints:
    return ModuleHints(
        localize=first_match(
            VF_LOCALIZE, f,
            "Add pattern flags (vertical/homonymous/bitemporal/altitudinal/central) to generate stronger localization.",
        ),
        quality=first_match(VF_QUALITY, f, "Set reliability to guide how strongly the engine weighs VF features."),
        next=first_match(
            VF_NEXT, f,
            "Toggle one hallmark feature (homonymous/bitemporal/altitudinal/central scotoma) to refine the differential.",
        ),
    )


def build_guidance(features: FeatureSet) -> Guidance:
    return Guidance(
        pupils=pupil_hints(features),
        eom=eom_hints(features),
        visual_fields=visual_field_hints(features),
    )
