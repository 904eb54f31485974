"""
PharmaGuard - FastAPI Backend
Pharmacogenomics Risk Analysis Platform

Main application entry point with all API routes.
"""

import os
import logging
from pathlib import Path
from datetime import datetime, UTC
from typing import List, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, UploadFile, Form, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from dotenv import load_dotenv

# Load environment variables from backend/.env regardless of launch directory
_ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=_ENV_PATH)

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Import pipeline modules
from pipeline.vcf_validator import validate_vcf
from pipeline.vcf_parser import parse_vcf
from pipeline.analysis import analyze_variants
from pipeline.schema_validator import ResultSchemaError, validate_pharma_results
from pipeline.risk_engine import (
    aggregate_risk_assessments,
    get_all_supported_drugs,
    is_drug_supported,
)
from pipeline.drug_lookup import (
    detect_drugs_from_text,
    find_guidance,
    normalize_drug_name,
    parse_drug_list,
)
from pipeline.vcf_builder import generate_profile_vcf, generate_vcf_content, vcf_file_name
from pipeline.rules_loader import get_rules
from models.constants import SAMPLE_PROFILES

# Import schemas
from models.schemas import (
    AnalyzeResponse,
    BuildVCFRequest,
    BuildVCFResponse,
    DrugDetectionResponse,
    DrugNormalizationResponse,
    GuidanceResponse,
    HealthResponse,
    PharmaResult,
    SupportedDrugsResponse,
    VCFParseResult,
    VCFPrecheck,
)

APP_VERSION = "1.0.0"
MAX_VCF_SIZE_MB = float(os.getenv("MAX_VCF_SIZE_MB", "5"))

_RULES = get_rules()


# Application lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info(f"PharmaGuard starting up (rules {_RULES.rules_version})...")
    yield
    logger.info("PharmaGuard shutting down...")


# Create FastAPI application
app = FastAPI(
    title="PharmaGuard",
    description="Pharmacogenomics Risk Analysis Platform - Analyzes patient genetic variants to predict drug response and risk",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """
    Health check endpoint for deployment monitoring.
    """
    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        rules_version=_RULES.rules_version,
        timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z")
    )


# =============================================================================
# Reference Endpoints
# =============================================================================

@app.get("/supported-drugs", response_model=SupportedDrugsResponse, tags=["Reference"])
async def get_supported_drugs():
    """
    Get list of all supported drugs for analysis.
    """
    drugs = get_all_supported_drugs()
    return SupportedDrugsResponse(
        drugs=drugs,
        count=len(drugs)
    )


@app.post("/normalize-drug", response_model=DrugNormalizationResponse, tags=["Reference"])
async def normalize_drug(drug_name: str = Form(...)):
    """
    Normalize a drug name (handles brand names and variations).

    - **drug_name**: Input drug name (e.g., "Plavix", "5-FU")

    Returns normalized drug name and whether it's supported.
    """
    normalized = normalize_drug_name(drug_name)
    supported = is_drug_supported(normalized)

    # Simple confidence based on exact match
    confidence = 1.0 if drug_name.strip().upper() == normalized else 0.85

    return DrugNormalizationResponse(
        original=drug_name,
        normalized=normalized,
        confidence=confidence,
        is_supported=supported
    )


@app.post("/detect-drugs", response_model=DrugDetectionResponse, tags=["Reference"])
async def detect_drugs(text: str = Form(..., description="Free text, e.g. a medication list")):
    """
    Keyword detection of supported drugs in free text.
    """
    return DrugDetectionResponse(**detect_drugs_from_text(text))


@app.get("/guidance/{drug}", response_model=GuidanceResponse, tags=["Reference"])
async def get_guidance(drug: str, phenotype: str = Query(default="Unknown")):
    """
    CPIC guidance text for a drug and phenotype (PM|IM|NM|RM|URM|Unknown).
    """
    guidance = find_guidance(drug, phenotype)
    if guidance is None:
        raise HTTPException(status_code=404, detail=f"No guidance for drug '{drug}'")
    return GuidanceResponse(**guidance)


# =============================================================================
# VCF Builder Endpoints
# =============================================================================

@app.post("/build-vcf", response_model=BuildVCFResponse, tags=["Builder"])
async def build_vcf(request: BuildVCFRequest):
    """
    Render a VCF file from annotated variant rows.
    """
    content = generate_vcf_content(request.patient_id, request.variants)
    return BuildVCFResponse(
        patient_id=request.patient_id,
        file_name=vcf_file_name(request.patient_id),
        vcf_content=content,
    )


@app.get("/sample-vcf/{profile}", tags=["Builder"])
async def get_sample_vcf(profile: str):
    """
    Download a sample VCF file for testing.

    - **profile**: One of the builder sample profiles (codeine_urm, dpyd_risk)
    """
    if profile not in SAMPLE_PROFILES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid profile. Must be one of: {sorted(SAMPLE_PROFILES)}"
        )
    patient_id = SAMPLE_PROFILES[profile]["patient_id"]
    return PlainTextResponse(
        content=generate_profile_vcf(profile),
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{vcf_file_name(patient_id)}"'},
    )


# =============================================================================
# VCF Pre-check / Parse Endpoints
# =============================================================================

async def _read_vcf_upload(vcf_file: UploadFile) -> tuple[str, int]:
    content = await vcf_file.read()
    if len(content) > MAX_VCF_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=400, detail=f"VCF file exceeds {MAX_VCF_SIZE_MB:g}MB limit")
    try:
        return content.decode("utf-8"), len(content)
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Invalid VCF file encoding")


@app.post("/validate-vcf", response_model=VCFPrecheck, tags=["VCF"])
async def validate_vcf_upload(
    vcf_file: UploadFile = File(..., description="VCF file to pre-check"),
):
    """
    Structural pre-check only. Always 200; inspect `ok` and `errors`.
    """
    text, _ = await _read_vcf_upload(vcf_file)
    return validate_vcf(text)


@app.post("/parse-vcf", response_model=VCFParseResult, tags=["VCF"])
async def parse_vcf_upload(
    vcf_file: UploadFile = File(..., description="VCF file to parse"),
):
    """
    Parse a VCF into variants plus a validation report.
    """
    text, size = await _read_vcf_upload(vcf_file)
    return parse_vcf(text, vcf_file.filename or "upload.vcf", size)


# =============================================================================
# Main Analysis Endpoints
# =============================================================================

@app.post("/analyze", response_model=AnalyzeResponse, tags=["Analysis"])
async def analyze_vcf(
    vcf_file: UploadFile = File(..., description="VCF file containing genetic variants"),
    drugs: str = Form(..., description="Comma-separated list of drug names to analyze"),
    patient_id: Optional[str] = Form(default=None, description="Optional patient identifier"),
):
    """
    Analyze a VCF file for pharmacogenomic drug risks.

    Pipeline:
    1. Structural pre-check
    2. VCF Parsing
    3. Gene evidence and phenotype resolution
    4. Decision table lookup per drug
    5. Explanation
    6. Schema validation

    - **vcf_file**: VCF file upload (max 5MB by default)
    - **drugs**: Comma-separated drug names (e.g., "codeine,warfarin")
    - **patient_id**: Optional patient identifier (defaults to the sample column)

    Returns analysis results for each drug.
    """
    return await _run_analysis(vcf_file, drugs, patient_id)


@app.post("/analyze-strict", response_model=List[PharmaResult], tags=["Analysis"])
async def analyze_vcf_strict(
    vcf_file: UploadFile = File(..., description="VCF file containing genetic variants"),
    drugs: str = Form(..., description="Comma-separated list of drug names to analyze"),
    patient_id: Optional[str] = Form(default=None, description="Optional patient identifier"),
):
    """
    Strict evaluator-friendly endpoint.
    Returns only PharmaResult[] and fails if any requested drug is unsupported.
    """
    response = await _run_analysis(vcf_file, drugs, patient_id)
    if response.unsupported_drugs:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Strict analysis failed for one or more drugs",
                "errors": [f"Drug '{d}' is not supported" for d in response.unsupported_drugs],
            },
        )
    return response.results


async def _run_analysis(
    vcf_file: UploadFile,
    drugs: str,
    patient_id: Optional[str],
) -> AnalyzeResponse:
    drug_list = parse_drug_list(drugs)
    if not drug_list:
        raise HTTPException(status_code=400, detail="No drugs specified")

    vcf_content, size_bytes = await _read_vcf_upload(vcf_file)

    precheck = validate_vcf(vcf_content)
    if not precheck.ok:
        raise HTTPException(
            status_code=400,
            detail={"message": "Invalid VCF", "errors": precheck.errors, "warnings": precheck.warnings},
        )

    parsed = parse_vcf(vcf_content, vcf_file.filename or "upload.vcf", size_bytes)
    if not parsed.validation.valid:
        raise HTTPException(
            status_code=400,
            detail={"message": "VCF parsing failed", "errors": parsed.validation.errors},
        )

    if not parsed.variants:
        logger.warning("No variants found in VCF, all drugs will resolve to Unknown")

    run_patient_id = patient_id or parsed.validation.patient_id
    unsupported = [d for d in drug_list if not is_drug_supported(d)]
    if unsupported:
        logger.warning(f"Unsupported drugs requested: {unsupported}")

    results = analyze_variants(parsed.variants, drug_list, run_patient_id, parsed.file_size_mb)

    try:
        results = validate_pharma_results(results)
    except ResultSchemaError as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})

    summary = aggregate_risk_assessments([r.risk_assessment for r in results])
    logger.info(
        f"Analysis complete for {run_patient_id}: {summary['count']} drug(s), "
        f"highest severity {summary['highest_severity']}"
    )

    return AnalyzeResponse(
        success=not unsupported,
        patient_id=run_patient_id,
        results=results,
        unsupported_drugs=unsupported,
        warnings=precheck.warnings + parsed.validation.warnings,
        summary=summary,
    )


# =============================================================================
# Run Application
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV", "development") == "development"
    )
