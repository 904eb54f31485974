"""
Analysis orchestrator.
Combines gene evidence, the decision table and explanation templates into
one PharmaResult per requested drug. Pure apart from the run timestamp.
"""

import logging
from datetime import datetime, UTC
from typing import Dict, List, Optional, Sequence

from models.schemas import (
    DetectedVariant,
    ParsedVariant,
    PharmaResult,
    PharmacoGenomicProfile,
    QualityMetrics,
)
from pipeline.explainer import generate_explanation
from pipeline.gene_evidence import GeneEvidence, build_gene_evidence
from pipeline.risk_engine import (
    adjust_confidence,
    build_clinical_recommendation,
    build_risk_assessment,
    get_drug_decision,
    get_primary_gene,
)

logger = logging.getLogger(__name__)

QUALITY_MISSING_TAG_LIMIT = 10


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def to_detected_variant(variant: ParsedVariant) -> DetectedVariant:
    return DetectedVariant(
        rsid=variant.rsid or f"pos:{variant.chrom}:{variant.pos}",
        gene=variant.gene or "Unknown",
        star=variant.star or "unknown",
        genotype=variant.genotype,
        chrom=variant.chrom,
        pos=variant.pos,
        ref=variant.ref,
        alt=variant.alt,
    )


def missing_tag_lines(variants: Sequence[ParsedVariant]) -> List[str]:
    """'Line N: missing X, Y' for every incomplete variant, in input order."""
    out = []
    for ordinal, variant in enumerate(variants, start=1):
        missing = variant.missing_tags()
        if missing:
            line = variant.line_number if variant.line_number is not None else ordinal
            out.append(f"Line {line}: missing {', '.join(missing)}")
    return out


def build_notes(
    variants: Sequence[ParsedVariant],
    primary_gene: str,
    evidence: Optional[GeneEvidence],
) -> str:
    notes = ""
    if any(not v.star for v in variants):
        notes += "Some variants missing STAR; phenotype confidence reduced. "
    if evidence is not None:
        notes += (
            f"Primary gene {primary_gene} detected with {len(evidence.variants)} variant(s). "
            f"Diplotype: {evidence.diplotype}, Phenotype: {evidence.phenotype}."
        )
    else:
        notes += (
            f"Primary gene {primary_gene} not detected in VCF data. "
            "Risk assessment based on insufficient data."
        )
    return notes


def analyze_drug(
    drug: str,
    patient_id: str,
    timestamp: str,
    variants: Sequence[ParsedVariant],
    evidence_map: Dict[str, GeneEvidence],
    file_size_mb: float,
    missing_tags: List[str],
    variants_with_tags: int,
) -> PharmaResult:
    """
    Analyze a single drug against the run's gene evidence.
    """
    primary_gene = get_primary_gene(drug)
    evidence = evidence_map.get(primary_gene)
    phenotype = evidence.phenotype if evidence else "Unknown"
    diplotype = evidence.diplotype if evidence else "Unknown"

    decision = get_drug_decision(drug, phenotype)
    detected = [to_detected_variant(v) for v in (evidence.variants if evidence else ())]
    confidence = adjust_confidence(decision.confidence_base, evidence is not None, diplotype, phenotype)

    result = PharmaResult(
        patient_id=patient_id,
        drug=drug,
        timestamp=timestamp,
        risk_assessment=build_risk_assessment(decision, confidence),
        pharmacogenomic_profile=PharmacoGenomicProfile(
            primary_gene=primary_gene,
            diplotype=diplotype,
            phenotype=phenotype,
            detected_variants=detected,
        ),
        clinical_recommendation=build_clinical_recommendation(drug, decision),
        llm_generated_explanation=generate_explanation(drug, evidence, decision, detected),
        quality_metrics=QualityMetrics(
            vcf_parsing_success=True,
            file_size_mb=file_size_mb,
            variants_total=len(variants),
            variants_with_required_tags=variants_with_tags,
            genes_covered=list(evidence_map.keys()),
            missing_required_tags=missing_tags[:QUALITY_MISSING_TAG_LIMIT],
            notes=build_notes(variants, primary_gene, evidence),
        ),
    )
    logger.info(
        f"{drug}: gene={primary_gene} diplotype={diplotype} phenotype={phenotype} "
        f"risk={decision.risk_label} confidence={confidence}"
    )
    return result


def analyze_variants(
    variants: Sequence[ParsedVariant],
    drugs: Sequence[str],
    patient_id: str,
    file_size_mb: float,
) -> List[PharmaResult]:
    """
    Run the per-drug pipeline for every requested drug.

    Args:
        variants: Parsed variants in file order
        drugs: Requested drug names (upper-cased here)
        patient_id: Identifier copied into every result
        file_size_mb: Reported in quality metrics

    Returns:
        One PharmaResult per drug, all sharing one timestamp
    """
    timestamp = utc_timestamp()
    variants = list(variants)
    evidence_map = build_gene_evidence(variants)
    missing_tags = missing_tag_lines(variants)
    variants_with_tags = sum(1 for v in variants if v.has_required_tags)

    return [
        analyze_drug(
            drug=(drug or "").strip().upper(),
            patient_id=patient_id,
            timestamp=timestamp,
            variants=variants,
            evidence_map=evidence_map,
            file_size_mb=file_size_mb,
            missing_tags=missing_tags,
            variants_with_tags=variants_with_tags,
        )
        for drug in drugs
    ]
