"""
Stage 6: Explanation templates
Deterministic, template-based explanation for one drug result.
"""

from typing import List, Optional

from models.schemas import DetectedVariant, GeneratedExplanation
from pipeline.gene_evidence import GeneEvidence
from pipeline.rules_loader import DrugDecision

_REDUCED = ("PM", "IM")


def _mechanism(drug: str, gene: str, diplotype: str, phenotype: str) -> str:
    reduced = phenotype in _REDUCED

    if drug == "CODEINE":
        if phenotype == "URM":
            effect = "causes excessive and rapid morphine formation"
        elif reduced:
            effect = "results in insufficient morphine production"
        else:
            effect = "provides normal morphine conversion"
        return (
            "Codeine is a prodrug that requires CYP2D6-mediated O-demethylation to morphine for "
            f"analgesic effect. The {diplotype} diplotype results in {phenotype} metabolizer status, "
            f"which {effect}."
        )
    if drug == "CLOPIDOGREL":
        effect = (
            "leading to reduced formation of the active metabolite and diminished antiplatelet effect"
            if reduced else "supporting adequate prodrug activation"
        )
        return (
            "Clopidogrel is a prodrug requiring CYP2C19-mediated bioactivation to its active thiol "
            f"metabolite. The {diplotype} diplotype produces {phenotype} metabolizer status, {effect}."
        )
    if drug == "WARFARIN":
        effect = (
            "reducing warfarin clearance and increasing sensitivity, requiring lower doses to achieve "
            "therapeutic INR" if reduced else "supporting standard warfarin metabolism"
        )
        return (
            "Warfarin's S-enantiomer (the more potent form) is primarily metabolized by CYP2C9. "
            f"The {diplotype} diplotype yields {phenotype} metabolizer status, {effect}. "
            "Note: VKORC1 pharmacodynamic effects are not assessed here."
        )
    if drug == "SIMVASTATIN":
        effect = (
            "decreased transporter function, increasing systemic simvastatin exposure and myopathy risk"
            if reduced else "normal hepatic uptake of simvastatin"
        )
        return (
            "SLCO1B1 encodes the hepatic uptake transporter OATP1B1, which mediates simvastatin acid "
            f"uptake into hepatocytes. The {diplotype} diplotype results in {effect}."
        )
    if drug == "AZATHIOPRINE":
        if phenotype == "PM":
            effect = "causing dangerous accumulation of cytotoxic metabolites leading to severe myelosuppression"
        elif phenotype == "IM":
            effect = "resulting in elevated thioguanine nucleotide levels with increased toxicity risk"
        else:
            effect = "providing adequate drug inactivation"
        return (
            "TPMT catalyzes the S-methylation of thiopurine drugs, diverting metabolism away from "
            f"cytotoxic thioguanine nucleotides. The {diplotype} diplotype indicates {phenotype} "
            f"activity, {effect}."
        )
    if drug == "FLUOROURACIL":
        effect = (
            "severely impairing fluorouracil degradation and leading to prolonged drug exposure with "
            "high toxicity risk" if reduced else "supporting normal fluorouracil catabolism"
        )
        return (
            "DPYD encodes dihydropyrimidine dehydrogenase, responsible for catabolizing >80% of "
            f"administered fluorouracil. The {diplotype} diplotype indicates {phenotype} enzyme "
            f"activity, {effect}."
        )
    return f"{drug} is metabolized by {gene}. The {diplotype} diplotype results in {phenotype} metabolizer phenotype."


def _patient_meaning(drug: str, gene: str, risk_label: str) -> str:
    name = drug.lower()
    if risk_label == "Safe":
        return (
            f"Your genetic profile suggests normal {gene} function. "
            f"Standard {name} dosing is expected to be appropriate for you."
        )
    if risk_label == "Adjust Dosage":
        return (
            f"Your genetic profile indicates altered {gene} function that may affect how your body "
            f"processes {name}. A dose adjustment may be needed to optimize safety and effectiveness."
        )
    if risk_label == "Toxic":
        return (
            f"Your genetic profile indicates significantly altered {gene} function that increases the "
            f"risk of serious adverse effects with {name}. Alternative medications or substantial dose "
            "modifications should be strongly considered."
        )
    if risk_label == "Ineffective":
        return (
            f"Your genetic profile suggests that {name} may not work effectively for you due to "
            f"altered {gene} function. Alternative medications should be considered."
        )
    return "Insufficient data to determine how your body processes this medication. Standard guidelines should be followed."


def citations_for(detected_variants: List[DetectedVariant]) -> List[str]:
    return [f"{v.rsid} ({v.gene} {v.star})" for v in detected_variants]


def generate_explanation(
    drug: str,
    evidence: Optional[GeneEvidence],
    decision: DrugDecision,
    detected_variants: List[DetectedVariant],
) -> GeneratedExplanation:
    """
    Build the explanation block for one drug.

    Without evidence, or with an Unknown phenotype, a generic
    insufficient-data explanation is returned.
    """
    citations = citations_for(detected_variants)

    if evidence is None or evidence.phenotype == "Unknown":
        return GeneratedExplanation(
            summary=(
                f"Analysis for {drug}: Insufficient pharmacogenomic data available for the primary "
                "metabolizing gene. The risk assessment is based on limited variant information."
            ),
            mechanism=(
                f"{drug} metabolism depends on enzymatic activity that could not be fully "
                "characterized from the provided genetic data."
            ),
            variant_citations=citations,
            what_this_means_for_patient=(
                "Without clear genetic variant data for the relevant gene, standard prescribing "
                "guidelines should be followed. Consider comprehensive pharmacogenomic testing."
            ),
            limitations=(
                "Limited variant data available. This analysis may not capture all relevant genetic "
                "variations. VKORC1, HLA, and other modifier genes are not assessed."
            ),
        )

    gene = evidence.gene
    diplotype = evidence.diplotype
    phenotype = evidence.phenotype

    warfarin_note = (
        "VKORC1 genotype, which significantly affects warfarin sensitivity, is not included in this analysis. "
        if drug == "WARFARIN" else ""
    )

    return GeneratedExplanation(
        summary=(
            f"Based on {gene} {diplotype} ({phenotype} metabolizer), the patient's predicted response "
            f"to {drug} is: {decision.risk_label}. {decision.recommendation}"
        ),
        mechanism=_mechanism(drug, gene, diplotype, phenotype),
        variant_citations=citations,
        what_this_means_for_patient=_patient_meaning(drug, gene, decision.risk_label),
        limitations=(
            f"This analysis is based on {gene} genotype only. Other genes, environmental factors, "
            "drug interactions, organ function, and clinical context are not assessed. "
            f"{warfarin_note}This is for educational purposes and should not replace clinical judgment."
        ),
    )
