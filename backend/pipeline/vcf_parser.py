"""
Stage 1: VCF File Parser
Parses VCF (Variant Call Format) text into ParsedVariant records and a
validation report. Tolerant of missing header lines; never raises for
malformed input.
"""

import re
import logging
from pathlib import Path
from typing import List, Optional

from models.schemas import ParsedVariant, VCFParseResult, VCFValidation
from pipeline.rules_loader import get_rules
from pipeline.vcf_validator import parse_info_field, split_lines

logger = logging.getLogger(__name__)

MIN_PARSE_COLUMNS = 8
SAMPLE_INDEX = 9
VALIDATION_MISSING_TAG_LIMIT = 5

_VERSION_RE = re.compile(r"VCFv4\.\d")
_SUFFIX_RE = re.compile(r"\.(vcf|txt)$", re.IGNORECASE)
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def patient_id_from_file_name(file_name: str) -> str:
    """PATIENT_ + sanitized, upper-cased file stem (first 20 characters)."""
    base = _NON_ALNUM_RE.sub("_", _SUFFIX_RE.sub("", file_name or ""))
    return f"PATIENT_{base.upper()[:20]}"


def extract_genotype(sample_field: Optional[str], format_field: Optional[str]) -> str:
    """
    Extract genotype from FORMAT and sample columns.
    FORMAT: GT:DP:GQ:...
    SAMPLE: 0/1:30:99:...
    """
    if not sample_field or sample_field == ".":
        return "0/0"

    sample_values = sample_field.split(":")
    if not format_field:
        return sample_values[0] or "0/0"

    format_fields = format_field.split(":")
    if "GT" in format_fields:
        gt_idx = format_fields.index("GT")
        if gt_idx < len(sample_values):
            return sample_values[gt_idx]
    return sample_values[0] or "0/0"


def parse_vcf(content: str, file_name: str, file_size_bytes: int) -> VCFParseResult:
    """
    Parse VCF text into variants plus a validation report.

    Args:
        content: Raw VCF file content as string
        file_name: Upload name, used for the patient ID when no sample column exists
        file_size_bytes: Size of the upload, reported back in MB

    Returns:
        VCFParseResult with validation, ordered variants and file_size_mb
    """
    lines = split_lines(content)
    errors: List[str] = []
    warnings: List[str] = []
    variants: List[ParsedVariant] = []
    patient_id = ""
    header_found = False

    format_line = next((line for line in lines if line.startswith("##fileformat=")), None)
    if format_line is None:
        warnings.append("Missing ##fileformat= header line - assuming VCF format")
    elif not _VERSION_RE.search(format_line):
        warnings.append(f"Non-standard VCF version: {format_line}")

    header_idx = next((i for i, line in enumerate(lines) if line.startswith("#CHROM")), -1)
    if header_idx == -1:
        warnings.append("Missing #CHROM column header line - attempting to parse data lines")
        header_found = True
    else:
        cols = lines[header_idx].split("\t")
        if len(cols) < 5:
            errors.append("Column header must have at least CHROM, POS, ID, REF, ALT columns")
        else:
            header_found = True
        if "INFO" not in cols:
            warnings.append("INFO column not found in header - annotation-based analysis will be limited")
        if len(cols) > SAMPLE_INDEX:
            patient_id = cols[SAMPLE_INDEX]
        else:
            warnings.append("No sample column found in header")

    if not patient_id:
        patient_id = patient_id_from_file_name(file_name)

    if header_idx >= 0:
        data_start = header_idx + 1
    else:
        data_start = next(
            (i for i, line in enumerate(lines) if line.strip() and not line.startswith("#")),
            len(lines),
        )

    genes_seen: List[str] = []
    missing_tags: List[str] = []

    for i in range(data_start, len(lines)):
        line_number = i + 1
        line = lines[i].strip()
        if not line or line.startswith("#"):
            continue

        cols = line.split("\t")
        if len(cols) < MIN_PARSE_COLUMNS:
            warnings.append(f"Line {line_number}: insufficient columns ({len(cols)}), skipping")
            continue

        try:
            pos = int(cols[1])
        except ValueError:
            warnings.append(f"Line {line_number}: invalid POS '{cols[1]}', skipping")
            logger.warning(f"Line {line_number}: invalid POS '{cols[1]}', skipping")
            continue

        variant_id = cols[2] or "."
        info = parse_info_field(cols[7] or ".")
        if len(cols) > SAMPLE_INDEX:
            genotype = extract_genotype(cols[SAMPLE_INDEX], cols[8])
        else:
            genotype = "0/0"

        gene = info.get("GENE") or None
        star = info.get("STAR") or None
        rsid = info.get("RS") or None
        if not rsid and variant_id.startswith("rs"):
            rsid = variant_id

        variant = ParsedVariant(
            chrom=cols[0],
            pos=pos,
            id=variant_id,
            ref=cols[3],
            alt=cols[4],
            qual=cols[5] or ".",
            filter=cols[6] or ".",
            info=info,
            genotype=genotype,
            gene=gene,
            star=star,
            rsid=rsid,
            line_number=line_number,
        )

        if gene and gene not in genes_seen:
            genes_seen.append(gene)
        missing = variant.missing_tags()
        if missing:
            missing_tags.append(f"Line {line_number}: missing {', '.join(missing)}")

        variants.append(variant)

    supported = set(get_rules().target_genes)
    validation = VCFValidation(
        valid=not errors and header_found,
        errors=errors,
        warnings=warnings + missing_tags[:VALIDATION_MISSING_TAG_LIMIT],
        patient_id=patient_id,
        variant_count=len(variants),
        genes_detected=[g for g in genes_seen if g in supported],
    )

    logger.info(f"Parsed {len(variants)} variants from VCF ({len(missing_tags)} with missing tags)")
    return VCFParseResult(
        validation=validation,
        variants=variants,
        file_size_mb=round(file_size_bytes / (1024 * 1024), 3),
    )


def parse_vcf_file(file_path: str) -> VCFParseResult:
    """
    Parse VCF file from disk.
    """
    path = Path(file_path)
    raw = path.read_bytes()
    return parse_vcf(raw.decode("utf-8"), path.name, len(raw))
