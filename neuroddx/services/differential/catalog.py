"""
Differential catalogs.

A catalog is an ordered tuple of rules plus a result cap. Order matters:
candidates with equal scores keep catalog order after the stable sort.

Adding a rule:
    1. Define it as a module-level DiagnosisRule in the matching rules_<area>.py
    2. Append it to FULL_RULES at its canonical position
    3. Add it to STARTER_RULES only if it belongs to the core teaching set
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from neuroddx.schemas.assessment import CatalogInfo

from . import rules_eom, rules_neuro, rules_optic, rules_pupil, rules_visual_fields
from .base import DiagnosisRule


class UnknownCatalogError(KeyError):
    """Raised when a catalog name is not registered."""


@dataclass(frozen=True)
class Catalog:
    name: str
    rules: Tuple[DiagnosisRule, ...]
    max_results: int

    def info(self) -> CatalogInfo:
        return CatalogInfo(
            name=self.name,
            max_results=self.max_results,
            rule_count=len(self.rules),
            rules={r.rule_id: r.name for r in self.rules},
        )


FULL_RULES: Tuple[DiagnosisRule, ...] = (
    # Pupil
    rules_pupil.PHYSIOLOGIC_ANISOCORIA,
    rules_pupil.HORNER_SYNDROME,
    rules_pupil.CN3_COMPRESSIVE,
    rules_pupil.CN3_ISCHEMIC,
    rules_pupil.ADIE_PUPIL,
    rules_pupil.PHARMACOLOGIC_MYDRIASIS,
    rules_pupil.TRAUMATIC_MYDRIASIS,
    rules_pupil.ARGYLL_ROBERTSON,
    # Optic nerve
    rules_optic.TRAUMATIC_OPTIC_NEUROPATHY,
    rules_optic.COMPRESSIVE_OPTIC_NEUROPATHY,
    rules_optic.OPTIC_ATROPHY,
    # Motility
    rules_eom.CN6_PALSY,
    rules_eom.CN4_PALSY,
    rules_eom.OCULAR_MYASTHENIA,
    rules_eom.INO,
    rules_eom.THYROID_EYE_DISEASE,
    rules_eom.ORBITAL_INFLAMMATION,
    rules_eom.CAVERNOUS_SINUS_MOTILITY,
    # Visual fields
    rules_visual_fields.CHIASMAL_COMPRESSION,
    rules_visual_fields.OPTIC_TRACT_LESION,
    rules_visual_fields.LGN_LESION,
    rules_visual_fields.OPTIC_RADIATION_LESION,
    rules_visual_fields.OCCIPITAL_CORTEX_LESION,
    rules_visual_fields.AION,
    rules_visual_fields.NAION,
    rules_visual_fields.OPTIC_NEURITIS,
    rules_visual_fields.MACULAR_DISEASE,
    rules_visual_fields.GLAUCOMATOUS_OPTIC_NEUROPATHY,
    rules_visual_fields.FUNCTIONAL_VF_LOSS,
    # Combined / overlapping
    rules_neuro.MILLER_FISHER,
    rules_neuro.WERNICKE,
    # Orbital and thyroid
    rules_eom.GRAVES_ORBITOPATHY,
    rules_eom.ORBITAL_PSEUDOTUMOR,
    rules_neuro.CAVERNOUS_SINUS_PARASELLAR,
    rules_neuro.ORBITAL_APEX,
    # Additional pupil
    rules_pupil.BENIGN_EPISODIC_MYDRIASIS,
    rules_pupil.TADPOLE_PUPIL,
    # Additional motility
    rules_eom.INO_MLF,
    rules_eom.DUANE_TYPE_1,
    rules_eom.DUANE_TYPE_2,
    rules_eom.BROWN_SYNDROME,
    rules_eom.OCULAR_NEUROMYOTONIA,
    # Additional optic nerve
    rules_optic.PAPILLEDEMA,
    rules_optic.LHON,
    rules_optic.DOMINANT_OPTIC_ATROPHY,
    rules_optic.TOXIC_NUTRITIONAL_OPTIC_NEUROPATHY,
    rules_optic.OPTIC_DISC_DRUSEN,
    # Retinal mimics
    rules_visual_fields.RETINAL_ARTERY_OCCLUSION,
    rules_visual_fields.RETINAL_VEIN_OCCLUSION,
    rules_visual_fields.AZOOR,
    # Additional neurological
    rules_neuro.PARINAUD,
    rules_neuro.PSP,
    rules_neuro.SKEW_DEVIATION,
    rules_eom.CPEO,
)

STARTER_RULES: Tuple[DiagnosisRule, ...] = (
    rules_pupil.PHYSIOLOGIC_ANISOCORIA,
    rules_pupil.HORNER_SYNDROME,
    rules_pupil.CN3_COMPRESSIVE,
    rules_pupil.CN3_ISCHEMIC,
    rules_pupil.ADIE_PUPIL,
    rules_pupil.PHARMACOLOGIC_MYDRIASIS,
    rules_optic.TRAUMATIC_OPTIC_NEUROPATHY,
    rules_optic.OPTIC_ATROPHY,
    rules_eom.CN6_PALSY,
    rules_eom.CN4_PALSY,
    rules_eom.OCULAR_MYASTHENIA,
    rules_visual_fields.CHIASMAL_COMPRESSION,
    rules_visual_fields.OCCIPITAL_CORTEX_LESION,
    rules_visual_fields.AION,
    rules_visual_fields.OPTIC_NEURITIS,
)

# ── Registry: name → catalog ──────────────────────────────────────────────────
CATALOGS: Dict[str, Catalog] = {
    "full": Catalog(name="full", rules=FULL_RULES, max_results=12),
    "starter": Catalog(name="starter", rules=STARTER_RULES, max_results=8),
}


def get_catalog(name: str) -> Catalog:
    try:
        return CATALOGS[name]
    except KeyError:
        raise UnknownCatalogError(name) from None


def catalog_info() -> list:
    return [c.info() for c in CATALOGS.values()]
