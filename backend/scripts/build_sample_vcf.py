"""
Write VCF builder sample profiles (or a custom variant list) to disk.

Input format for --variants (JSON list):
[{"chrom": "chr22", "pos": 42128945, "id": "rs3892097", "ref": "C", "alt": "T",
  "gene": "CYP2D6", "star": "*4", "rs": "rs3892097", "genotype": "0/1"}]

Usage:
  uv run python scripts/build_sample_vcf.py --profile codeine_urm --out-dir ../sample_vcf
  uv run python scripts/build_sample_vcf.py --patient-id PATIENT_X --variants rows.json
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Optional

from models.constants import SAMPLE_PROFILES
from pipeline.vcf_builder import generate_profile_vcf, generate_vcf_content, vcf_file_name


def write_profile(profile: str, out_dir: Path) -> Path:
    patient_id = SAMPLE_PROFILES[profile]["patient_id"]
    target = out_dir / vcf_file_name(patient_id)
    target.write_text(generate_profile_vcf(profile), encoding="utf-8")
    return target


def write_custom(patient_id: str, variants_path: Path, out_dir: Path) -> Path:
    with variants_path.open("r", encoding="utf-8") as fh:
        rows = json.load(fh)
    target = out_dir / vcf_file_name(patient_id)
    target.write_text(generate_vcf_content(patient_id, rows), encoding="utf-8")
    return target


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--profile", choices=sorted(SAMPLE_PROFILES) + ["all"], help="Named sample profile")
    parser.add_argument("--patient-id", help="Sample column name for a custom file")
    parser.add_argument("--variants", help="Path to JSON list of builder variants")
    parser.add_argument("--out-dir", default=".", help="Output directory")
    args = parser.parse_args(argv)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    if args.profile:
        profiles = sorted(SAMPLE_PROFILES) if args.profile == "all" else [args.profile]
        written.extend(write_profile(p, out_dir) for p in profiles)
    elif args.patient_id and args.variants:
        written.append(write_custom(args.patient_id, Path(args.variants), out_dir))
    else:
        parser.error("use --profile, or --patient-id together with --variants")

    print(json.dumps({"written": [str(p) for p in written]}, indent=2))


if __name__ == "__main__":
    main()
