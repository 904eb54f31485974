"""
VCF builder: renders annotated variant rows as VCFv4.2 text that the
parser and pre-check accept.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Union

from models.constants import SAMPLE_PROFILES
from models.schemas import BuilderVariant

logger = logging.getLogger(__name__)

META_LINES = [
    "##source=PharmaGuard_VCFBuilder",
    '##INFO=<ID=GENE,Number=1,Type=String,Description="Gene symbol">',
    '##INFO=<ID=STAR,Number=.,Type=String,Description="Star allele designation">',
    '##INFO=<ID=RS,Number=1,Type=String,Description="dbSNP ID">',
    '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">',
]


def _as_builder_variant(variant: Union[BuilderVariant, Dict]) -> BuilderVariant:
    if isinstance(variant, BuilderVariant):
        return variant
    return BuilderVariant(**variant)


def generate_vcf_content(
    patient_id: str,
    variants: Iterable[Union[BuilderVariant, Dict]],
    file_date: Optional[date] = None,
) -> str:
    """
    Render a VCF with the patient as the sample column.

    Each row gets QUAL 100, FILTER PASS, INFO GENE/STAR/RS and FORMAT GT.
    file_date defaults to today.
    """
    stamp = (file_date or date.today()).strftime("%Y%m%d")
    lines: List[str] = ["##fileformat=VCFv4.2", f"##fileDate={stamp}"]
    lines.extend(META_LINES)
    lines.append(f"#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\t{patient_id}")

    count = 0
    for raw in variants:
        v = _as_builder_variant(raw)
        info = f"GENE={v.gene};STAR={v.star};RS={v.rs}"
        lines.append(f"{v.chrom}\t{v.pos}\t{v.id}\t{v.ref}\t{v.alt}\t100\tPASS\t{info}\tGT\t{v.genotype}")
        count += 1

    logger.debug(f"Built VCF for {patient_id} with {count} variant(s)")
    return "\n".join(lines) + "\n"


def vcf_file_name(patient_id: str) -> str:
    return f"{patient_id}.vcf"


def generate_profile_vcf(profile: str, file_date: Optional[date] = None) -> str:
    """
    Render one of the named sample profiles.

    Raises:
        KeyError: unknown profile name
    """
    entry = SAMPLE_PROFILES[profile]
    return generate_vcf_content(entry["patient_id"], entry["variants"], file_date=file_date)
