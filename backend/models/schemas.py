"""
Pydantic models for PharmaGuard - parsed variants, pre-check/parse reports
and the Stage 7 result schema.
These schemas enforce the exact JSON output format of an analysis run.
"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Any, Literal, List, Optional, Dict


RiskLabelValue = Literal["Safe", "Adjust Dosage", "Toxic", "Ineffective", "Unknown"]
SeverityValue = Literal["none", "low", "moderate", "high", "critical"]
PhenotypeValue = Literal["PM", "IM", "NM", "RM", "URM", "Unknown"]


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class FrozenModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ReadOnlyDict(dict):
    """dict that rejects mutation after construction; serializes like a dict."""

    def _readonly(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return (type(self), (dict(self),))


# =============================================================================
# Stage 0 - Structural Pre-check Models
# =============================================================================

class PrecheckStats(StrictModel):
    has_fileformat: bool
    has_header: bool
    columns_ok: bool
    sample_name: Optional[str] = None
    variant_lines: int = 0
    missing_gene_count: int = 0
    missing_rsid_count: int = 0
    missing_star_count: int = 0


class VCFPrecheck(StrictModel):
    """Structural pre-check report; ok is true only when errors is empty."""
    ok: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    stats: PrecheckStats


# =============================================================================
# Stage 1 - VCF Parser Models
# =============================================================================

class ParsedVariant(FrozenModel):
    """A single VCF data row plus its GENE/STAR/RS annotations."""
    chrom: str = Field(..., description="Chromosome")
    pos: int = Field(..., description="1-based position")
    id: str = Field(default=".", description="ID column")
    ref: str = Field(..., description="Reference allele")
    alt: str = Field(..., description="Alternate allele")
    qual: str = Field(default=".", description="QUAL column, kept verbatim")
    filter: str = Field(default=".", description="FILTER column")
    info: Dict[str, str] = Field(default_factory=dict, description="INFO key/value pairs")
    genotype: str = Field(default="0/0", description="Genotype (0/0, 0/1, 1/1)")
    gene: Optional[str] = Field(default=None, description="Gene symbol from INFO")
    star: Optional[str] = Field(default=None, description="Star allele, diplotype or |-list from INFO")
    rsid: Optional[str] = Field(default=None, description="rsID from INFO or the ID column")
    line_number: Optional[int] = Field(default=None, description="1-based source line")

    @field_validator('info')
    @classmethod
    def freeze_info(cls, v):
        return ReadOnlyDict(v)

    @property
    def has_required_tags(self) -> bool:
        return bool(self.gene and self.star and self.rsid)

    def missing_tags(self) -> List[str]:
        missing = []
        if not self.gene:
            missing.append("GENE")
        if not self.star:
            missing.append("STAR")
        if not self.rsid:
            missing.append("RS")
        return missing


class VCFValidation(StrictModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    patient_id: str
    variant_count: int
    genes_detected: List[str] = Field(default_factory=list)


class VCFParseResult(StrictModel):
    validation: VCFValidation
    variants: List[ParsedVariant]
    file_size_mb: float


# =============================================================================
# Stage 5 - Risk Assessment Models
# =============================================================================

class RiskAssessment(StrictModel):
    """Risk assessment output from Stage 5."""
    risk_label: RiskLabelValue
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    severity: SeverityValue

    @field_validator('confidence_score')
    @classmethod
    def round_confidence(cls, v):
        return round(v, 2)


class DetectedVariant(StrictModel):
    """Individual variant contributing to the primary gene."""
    rsid: str
    gene: str
    star: str
    genotype: str
    chrom: str
    pos: int
    ref: str
    alt: str


class PharmacoGenomicProfile(StrictModel):
    """Pharmacogenomic profile for a patient-drug analysis."""
    primary_gene: str
    diplotype: str
    phenotype: PhenotypeValue
    detected_variants: List[DetectedVariant]

    @field_validator('diplotype')
    @classmethod
    def check_diplotype(cls, v):
        if v == "Unknown":
            return v
        parts = v.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"diplotype must be 'Unknown' or two '/'-joined alleles, got '{v}'")
        return v


# =============================================================================
# Clinical Recommendation Models
# =============================================================================

class ClinicalRecommendation(StrictModel):
    """Clinical recommendation output."""
    recommendation: str
    dose_guidance: str
    alternative_drugs: List[str] = Field(default_factory=list)
    guideline_source: Literal["CPIC"] = "CPIC"
    guideline_links: List[str] = Field(default_factory=list)


# =============================================================================
# Stage 6 - Explanation Models
# =============================================================================

class GeneratedExplanation(StrictModel):
    """Template-generated clinical explanation."""
    summary: str = Field(..., description="One-paragraph result summary")
    mechanism: str = Field(..., description="Biological mechanism explanation")
    variant_citations: List[str] = Field(default_factory=list, description="'rsid (gene star)' strings")
    what_this_means_for_patient: str = Field(..., description="Simple explanation for patient")
    limitations: str = Field(..., description="Scope and caveats")


# =============================================================================
# Quality Metrics Models
# =============================================================================

class QualityMetrics(StrictModel):
    """Quality metrics shared by every result of one run."""
    vcf_parsing_success: bool = True
    file_size_mb: float = Field(..., ge=0.0)
    variants_total: int = Field(..., ge=0)
    variants_with_required_tags: int = Field(..., ge=0)
    genes_covered: List[str] = Field(default_factory=list)
    missing_required_tags: List[str] = Field(default_factory=list)
    notes: str = ""


# =============================================================================
# Main Analysis Result Model
# =============================================================================

class PharmaResult(StrictModel):
    """Complete analysis result - the main output schema."""
    patient_id: str
    drug: str
    timestamp: str
    risk_assessment: RiskAssessment
    pharmacogenomic_profile: PharmacoGenomicProfile
    clinical_recommendation: ClinicalRecommendation
    llm_generated_explanation: GeneratedExplanation
    quality_metrics: QualityMetrics

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "patient_id": "PATIENT_001",
                "drug": "CODEINE",
                "timestamp": "2026-02-19T12:00:00.000000Z",
                "risk_assessment": {
                    "risk_label": "Ineffective",
                    "confidence_score": 0.85,
                    "severity": "moderate"
                },
                "pharmacogenomic_profile": {
                    "primary_gene": "CYP2D6",
                    "diplotype": "*1/*4",
                    "phenotype": "IM",
                    "detected_variants": []
                },
                "clinical_recommendation": {
                    "recommendation": "Use codeine with caution.",
                    "dose_guidance": "Monitor for reduced analgesia.",
                    "alternative_drugs": ["Morphine"],
                    "guideline_source": "CPIC",
                    "guideline_links": []
                },
                "llm_generated_explanation": {
                    "summary": "Based on CYP2D6 *1/*4 (IM metabolizer)...",
                    "mechanism": "Codeine is a prodrug...",
                    "variant_citations": ["rs3892097 (CYP2D6 *4)"],
                    "what_this_means_for_patient": "...",
                    "limitations": "..."
                },
                "quality_metrics": {
                    "vcf_parsing_success": True,
                    "file_size_mb": 0.001,
                    "variants_total": 1,
                    "variants_with_required_tags": 1,
                    "genes_covered": ["CYP2D6"],
                    "missing_required_tags": [],
                    "notes": ""
                }
            }
        },
    )


# =============================================================================
# API Request/Response Models
# =============================================================================

class AnalyzeResponse(StrictModel):
    """Response model wrapping one run's results."""
    success: bool
    patient_id: str
    results: List[PharmaResult]
    unsupported_drugs: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(StrictModel):
    """Health check response."""
    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    rules_version: str
    timestamp: str


class SupportedDrugsResponse(StrictModel):
    """Supported drugs list response."""
    drugs: List[str]
    count: int


class DrugNormalizationResponse(StrictModel):
    """Drug name normalization response."""
    original: str
    normalized: str
    confidence: float
    is_supported: bool


class DrugDetectionResponse(StrictModel):
    """Keyword-based drug detection response."""
    supported_drugs: List[str]
    other_drugs: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    notes: str = ""


class GuidanceResponse(StrictModel):
    """CPIC guidance text for one drug/phenotype pair."""
    drug: str
    gene: str
    phenotype: PhenotypeValue
    label: str
    details: str
    general_note: str


class BuilderVariant(StrictModel):
    """One row requested from the VCF builder."""
    chrom: str
    pos: int = Field(..., ge=1)
    id: str = "."
    ref: str
    alt: str
    gene: str
    star: str
    rs: str
    genotype: str = "0/1"


class BuildVCFRequest(StrictModel):
    patient_id: str = Field(..., min_length=1)
    variants: List[BuilderVariant] = Field(..., min_length=1)


class BuildVCFResponse(StrictModel):
    patient_id: str
    file_name: str
    vcf_content: str
