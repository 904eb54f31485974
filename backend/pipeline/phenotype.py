"""
Stage 3: Phenotype Deriver
Maps a pair of allele functions to a metabolizer phenotype using a fixed
decision table, with the CYP2D6 duplication override.
"""

import logging
from typing import Dict, Optional, Tuple

from pipeline.rules_loader import get_rules

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
DEFAULT_ALLELE_FUNCTION = "normal"

# Keys are lexicographically sorted function pairs.
PHENOTYPE_TABLE: Dict[Tuple[str, str], str] = {
    ("no_function", "no_function"): "PM",
    ("decreased", "no_function"): "PM",
    ("no_function", "normal"): "IM",
    ("increased", "no_function"): "IM",
    ("decreased", "decreased"): "IM",
    ("decreased", "normal"): "IM",
    ("decreased", "increased"): "NM",
    ("normal", "normal"): "NM",
    ("increased", "normal"): "RM",
    ("increased", "increased"): "URM",
}


def allele_function(gene: str, allele: str) -> str:
    """Function of one star allele; unrecognized alleles are treated as normal."""
    table = get_rules().star_allele_function.get(gene, {})
    return table.get(allele, DEFAULT_ALLELE_FUNCTION)


def derive_phenotype(func1: str, func2: str) -> str:
    pair = tuple(sorted((func1, func2)))
    return PHENOTYPE_TABLE.get(pair, UNKNOWN)


def split_diplotype(diplotype: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return the two alleles of a diplotype, or None when it is not exactly two parts."""
    if not diplotype or diplotype == UNKNOWN:
        return None
    parts = diplotype.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def phenotype_for_diplotype(gene: str, diplotype: str, has_duplication: bool = False) -> str:
    """
    Derive the phenotype of a resolved diplotype.

    A CYP2D6 carrier with a duplication tag whose alleles derive to NM
    is reported as URM.
    """
    alleles = split_diplotype(diplotype)
    if alleles is None:
        return UNKNOWN

    phenotype = derive_phenotype(
        allele_function(gene, alleles[0]),
        allele_function(gene, alleles[1]),
    )
    if gene == "CYP2D6" and has_duplication and phenotype == "NM":
        logger.info(f"CYP2D6 duplication detected for {diplotype}: NM -> URM")
        phenotype = "URM"
    return phenotype
