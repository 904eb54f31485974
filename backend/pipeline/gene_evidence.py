"""
Stage 2: Gene Evidence Resolver
Groups parsed variants by supported gene and resolves each group's
star alleles into a diplotype and phenotype.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from models.schemas import ParsedVariant
from pipeline.phenotype import UNKNOWN, phenotype_for_diplotype, split_diplotype
from pipeline.rules_loader import get_rules

logger = logging.getLogger(__name__)

DUPLICATION_VALUES = ("yes", "true")
HOMOZYGOUS_ALT = ("1/1", "1|1")


@dataclass(frozen=True)
class GeneEvidence:
    gene: str
    variants: Tuple[ParsedVariant, ...]
    star_alleles: Tuple[str, ...]
    diplotype: str
    phenotype: str
    has_duplication: bool


@dataclass
class _GeneFold:
    """Per-gene accumulator, only alive while build_gene_evidence runs."""
    variants: List[ParsedVariant]
    star_alleles: List[str]
    direct_diplotype: Optional[str] = None
    has_duplication: bool = False


def _star_tokens(star: str) -> List[str]:
    if "|" in star:
        return [piece for piece in star.split("|") if piece]
    return [star]


def _fold_variant(gene: str, acc: _GeneFold, variant: ParsedVariant) -> None:
    acc.variants.append(variant)

    if variant.info.get("DUP") in DUPLICATION_VALUES:
        acc.has_duplication = True

    star = variant.star
    if not star:
        return
    if "/" in star:
        if split_diplotype(star) is None:
            logger.warning(f"{gene}: ignoring malformed diplotype '{star}' at line {variant.line_number}")
            return
        # Takes precedence over single-allele tokens; last one wins.
        acc.direct_diplotype = star
        return
    acc.star_alleles.extend(_star_tokens(star))


def resolve_diplotype(star_alleles: Iterable[str], variants: Iterable[ParsedVariant]) -> str:
    """
    Resolve accumulated single-allele tokens into a diplotype.

    Two or more unique tokens: the first two in order of appearance.
    One token: homozygous when any variant is 1/1, otherwise paired with *1.
    """
    unique = list(dict.fromkeys(star_alleles))
    if len(unique) >= 2:
        return f"{unique[0]}/{unique[1]}"
    if len(unique) == 1:
        allele = unique[0]
        if any(v.genotype in HOMOZYGOUS_ALT for v in variants):
            return f"{allele}/{allele}"
        return f"*1/{allele}"
    return UNKNOWN


def _finalize(gene: str, acc: _GeneFold) -> GeneEvidence:
    if acc.direct_diplotype is not None:
        diplotype = acc.direct_diplotype
    else:
        diplotype = resolve_diplotype(acc.star_alleles, acc.variants)

    phenotype = phenotype_for_diplotype(gene, diplotype, acc.has_duplication)
    logger.info(f"{gene}: diplotype {diplotype}, phenotype {phenotype} from {len(acc.variants)} variant(s)")

    return GeneEvidence(
        gene=gene,
        variants=tuple(acc.variants),
        star_alleles=tuple(acc.star_alleles),
        diplotype=diplotype,
        phenotype=phenotype,
        has_duplication=acc.has_duplication,
    )


def build_gene_evidence(variants: Iterable[ParsedVariant]) -> Dict[str, GeneEvidence]:
    """
    Build one GeneEvidence per supported gene, in first-seen order.
    Variants without a gene or with an unsupported gene are skipped.
    """
    supported = set(get_rules().target_genes)
    folds: Dict[str, _GeneFold] = {}

    for variant in variants:
        gene = variant.gene
        if not gene or gene not in supported:
            continue
        acc = folds.get(gene)
        if acc is None:
            acc = folds[gene] = _GeneFold(variants=[], star_alleles=[])
        _fold_variant(gene, acc, variant)

    return {gene: _finalize(gene, acc) for gene, acc in folds.items()}
