"""
Stage 0: VCF Structural Pre-check
Cheap structural validation of an uploaded VCF before the full parse.
Problems are reported as corrective messages; nothing here raises.
"""

import logging
from typing import Dict, List

from models.schemas import PrecheckStats, VCFPrecheck

logger = logging.getLogger(__name__)

REQUIRED_FILEFORMAT = "##fileformat=VCFv4.2"
REQUIRED_HEADER_PREFIX = ["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO"]
MIN_DATA_COLUMNS = 10


def split_lines(content: str) -> List[str]:
    """Split on LF and drop one trailing CR per line."""
    return [line[:-1] if line.endswith("\r") else line for line in content.split("\n")]


def parse_info_field(info: str) -> Dict[str, str]:
    """
    Parse INFO column from VCF.
    Format: KEY1=VAL1;KEY2;...  A bare key is a flag with value "true".
    """
    result: Dict[str, str] = {}
    if not info or info == ".":
        return result

    for item in info.split(";"):
        if not item:
            continue
        idx = item.find("=")
        if idx > 0:
            result[item[:idx]] = item[idx + 1:]
        else:
            result[item] = "true"
    return result


def validate_vcf(content: str) -> VCFPrecheck:
    """
    Structural pre-check of raw VCF text.

    Checks the fileformat line, the tab-separated #CHROM header and its
    sample column, and that every data line has at least 10 columns.
    Also tallies data lines missing GENE, RS (with no rs ID column) or STAR.
    """
    lines = split_lines(content)
    errors: List[str] = []
    warnings: List[str] = []

    has_fileformat = False
    has_header = False
    columns_ok = False
    sample_name = None
    variant_lines = 0
    missing_gene = 0
    missing_rsid = 0
    missing_star = 0

    first_non_blank = next((line for line in lines if line.strip()), "")
    if first_non_blank.startswith(REQUIRED_FILEFORMAT):
        has_fileformat = True
    else:
        errors.append(f'Missing VCFv4.2 header → add "{REQUIRED_FILEFORMAT}" as the first line')

    header = next((line for line in lines if line.startswith("#CHROM")), None)
    if header is not None:
        has_header = True
        cols = header.split("\t")
        prefix_ok = cols[:len(REQUIRED_HEADER_PREFIX)] == REQUIRED_HEADER_PREFIX
        if not prefix_ok:
            errors.append(
                "Header row must be TAB-separated → ensure columns are separated by tabs, not spaces"
            )
        has_format = "FORMAT" in cols
        sample_cols = len(cols) - cols.index("FORMAT") - 1 if has_format else 0
        if sample_cols < 1:
            errors.append("No sample column found → include FORMAT and a sample genotype column")
        else:
            sample_name = cols[-1]
        columns_ok = prefix_ok and sample_cols >= 1
    else:
        errors.append(
            'Missing header line → add a line starting with '
            '"#CHROM\\tPOS\\tID\\tREF\\tALT\\tQUAL\\tFILTER\\tINFO\\tFORMAT\\t<SAMPLE>"'
        )

    for idx, line in enumerate(lines):
        if not line.strip() or line.startswith("#"):
            continue
        parts = line.split("\t")
        if len(parts) < MIN_DATA_COLUMNS:
            errors.append(
                f"Data line {idx + 1} has fewer than {MIN_DATA_COLUMNS} TAB-separated columns "
                "→ export a full VCF with FORMAT and sample genotype"
            )
            continue

        variant_lines += 1
        info = parse_info_field(parts[7])
        if not info.get("GENE"):
            missing_gene += 1
        if not info.get("RS") and not parts[2].startswith("rs"):
            missing_rsid += 1
        if not info.get("STAR"):
            missing_star += 1

    pieces = []
    if missing_gene:
        pieces.append(f"{missing_gene} without GENE")
    if missing_rsid:
        pieces.append(f"{missing_rsid} without RSID")
    if missing_star:
        pieces.append(f"{missing_star} without STAR")
    if pieces:
        warnings.append(f"Some annotations are missing ({', '.join(pieces)}) - results may be Unknown")

    logger.debug(f"Pre-check: {variant_lines} variant lines, {len(errors)} errors, {len(warnings)} warnings")

    return VCFPrecheck(
        ok=not errors,
        errors=errors,
        warnings=warnings,
        stats=PrecheckStats(
            has_fileformat=has_fileformat,
            has_header=has_header,
            columns_ok=columns_ok,
            sample_name=sample_name,
            variant_lines=variant_lines,
            missing_gene_count=missing_gene,
            missing_rsid_count=missing_rsid,
            missing_star_count=missing_star,
        ),
    )
