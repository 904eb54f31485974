"""
Drug reference lookups: name normalization, keyword detection from free
text, and per-phenotype CPIC guidance text.
"""

import logging
import re
from typing import Dict, List, Optional

from models.constants import CPIC_GUIDANCE, DRUG_ALIASES
from pipeline.rules_loader import get_rules

logger = logging.getLogger(__name__)

GUIDANCE_PHENOTYPES = ("PM", "IM", "NM", "RM", "URM", "Unknown")


def normalize_drug_name(drug_name: str) -> str:
    """
    Normalize drug name to standard form.
    Handles brand names and common variations.

    Args:
        drug_name: Raw drug name input

    Returns:
        Normalized drug name (uppercase)
    """
    drug_upper = (drug_name or "").strip().upper()
    if not drug_upper:
        return drug_upper

    if drug_upper in DRUG_ALIASES:
        return DRUG_ALIASES[drug_upper]

    if drug_upper in get_rules().supported_drugs:
        return drug_upper

    # Whole-word match inside a longer input, e.g. "PLAVIX 75MG"
    candidates = list(DRUG_ALIASES.items()) + [(d, d) for d in get_rules().supported_drugs]
    for name, standard in sorted(candidates, key=lambda c: len(c[0]), reverse=True):
        if re.search(rf"(?<![A-Z0-9]){re.escape(name)}(?![A-Z0-9])", drug_upper):
            return standard

    return drug_upper


def parse_drug_list(drugs: str) -> List[str]:
    """Split a comma-separated drug list, normalize and de-duplicate it in order."""
    seen = set()
    out = []
    for raw in (drugs or "").split(","):
        if not raw.strip():
            continue
        canonical = normalize_drug_name(raw)
        if canonical in seen:
            continue
        seen.add(canonical)
        out.append(canonical)
    return out


def detect_drugs_from_text(text: str) -> Dict:
    """
    Keyword match of supported drug names in free text.
    Confidence is 0.6 with at least one hit, 0.2 otherwise.
    """
    upper = (text or "").upper()
    hits = [drug for drug in get_rules().supported_drugs if drug in upper]
    return {
        "supported_drugs": list(dict.fromkeys(hits)),
        "other_drugs": [],
        "confidence": 0.6 if hits else 0.2,
        "notes": "Keyword match fallback",
    }


def find_guidance(drug: str, phenotype: Optional[str]) -> Optional[Dict]:
    """
    CPIC guidance label/details for a drug and phenotype.
    Unrecognized phenotypes fall back to the Unknown entry; unsupported
    drugs return None.
    """
    entry = CPIC_GUIDANCE.get(normalize_drug_name(drug))
    if entry is None:
        return None

    key = phenotype if phenotype in GUIDANCE_PHENOTYPES else "Unknown"
    label, details = entry["phenotypes"].get(key, entry["phenotypes"]["Unknown"])
    return {
        "drug": normalize_drug_name(drug),
        "gene": entry["gene"],
        "phenotype": key,
        "label": label,
        "details": details,
        "general_note": entry["general_note"],
    }
