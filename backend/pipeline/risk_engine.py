"""
Stage 5: Risk Engine
Maps drug + phenotype to a static decision record with clinical recommendations.
"""

import logging
from typing import Any, Dict, List, Optional

from models.schemas import ClinicalRecommendation, RiskAssessment
from pipeline.rules_loader import DrugDecision, get_rules

logger = logging.getLogger(__name__)

UNKNOWN_GENE = "Unknown"

NO_EVIDENCE_CONFIDENCE = 0.15
UNKNOWN_DIPLOTYPE_CAP = 0.35
UNKNOWN_PHENOTYPE_CAP = 0.30


def get_drug_decision(drug: str, phenotype: str) -> DrugDecision:
    """
    Look up the decision for a drug/phenotype pair.

    Args:
        drug: Drug name (upper-cased before lookup)
        phenotype: PM, IM, NM, RM, URM or Unknown

    Returns:
        The matching DrugDecision, or the shared Unknown default
    """
    rules = get_rules()
    if phenotype == "Unknown":
        return rules.unknown_decision

    decision = rules.drug_decisions.get((drug or "").upper(), {}).get(phenotype)
    if decision is None:
        logger.warning(f"No decision for ({drug}, {phenotype}), returning Unknown")
        return rules.unknown_decision
    return decision


def get_primary_gene(drug: str) -> str:
    return get_rules().drug_primary_gene.get((drug or "").upper(), UNKNOWN_GENE)


def get_guideline_links(drug: str) -> List[str]:
    return list(get_rules().cpic_links.get((drug or "").upper(), ()))


def is_drug_supported(drug: str) -> bool:
    return (drug or "").upper() in get_rules().supported_drugs


def get_all_supported_drugs() -> List[str]:
    return list(get_rules().supported_drugs)


def adjust_confidence(
    base: float,
    has_evidence: bool,
    diplotype: Optional[str],
    phenotype: Optional[str],
) -> float:
    """
    Clamp the decision's base confidence by the quality of the gene evidence.
    No evidence pins it to 0.15; an Unknown diplotype caps it at 0.35 and an
    Unknown phenotype at 0.30. Result is in [0, 1], rounded to 2 decimals.
    """
    confidence = base
    if not has_evidence:
        confidence = NO_EVIDENCE_CONFIDENCE
    elif diplotype == "Unknown":
        confidence = min(confidence, UNKNOWN_DIPLOTYPE_CAP)
    elif phenotype == "Unknown":
        confidence = min(confidence, UNKNOWN_PHENOTYPE_CAP)
    return round(max(0.0, min(1.0, confidence)), 2)


def build_risk_assessment(decision: DrugDecision, confidence: float) -> RiskAssessment:
    return RiskAssessment(
        risk_label=decision.risk_label,
        confidence_score=confidence,
        severity=decision.severity,
    )


def build_clinical_recommendation(drug: str, decision: DrugDecision) -> ClinicalRecommendation:
    """
    Build complete clinical recommendation object.
    Unsupported drugs get no guideline links.
    """
    return ClinicalRecommendation(
        recommendation=decision.recommendation,
        dose_guidance=decision.dose_guidance,
        alternative_drugs=list(decision.alternative_drugs),
        guideline_source="CPIC",
        guideline_links=get_guideline_links(drug),
    )


def get_severity_rank(severity: str) -> int:
    """
    Get numeric rank for severity level.
    Higher = more severe.
    """
    ranks = {
        "none": 0,
        "low": 1,
        "moderate": 2,
        "high": 3,
        "critical": 4,
    }
    return ranks.get(severity, -1)


def aggregate_risk_assessments(assessments: List[RiskAssessment]) -> Dict[str, Any]:
    """
    Aggregate multiple risk assessments into summary.

    Args:
        assessments: List of RiskAssessment objects

    Returns:
        Summary dict with highest risk, average confidence, etc.
    """
    if not assessments:
        return {
            "highest_risk": "Unknown",
            "highest_severity": "none",
            "average_confidence": 0.0,
            "count": 0
        }

    max_severity = max(assessments, key=lambda x: get_severity_rank(x.severity))
    avg_confidence = sum(a.confidence_score for a in assessments) / len(assessments)

    return {
        "highest_risk": max_severity.risk_label,
        "highest_severity": max_severity.severity,
        "average_confidence": round(avg_confidence, 2),
        "count": len(assessments)
    }
