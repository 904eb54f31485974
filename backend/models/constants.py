"""
Constants for PharmaGuard: drug aliases, VCF builder presets and the
per-phenotype CPIC guidance text shown next to results.
Clinical decision tables live in data/clinical_rules/rules.v1.json.
"""

from typing import Dict, List

# Drug name aliases for normalization
DRUG_ALIASES = {
    # Codeine aliases
    "TYLENOL 3": "CODEINE",
    "TYLENOL-3": "CODEINE",
    "TYLENOL WITH CODEINE": "CODEINE",
    "CODEINE PHOSPHATE": "CODEINE",
    "CODEINE SULFATE": "CODEINE",
    # Clopidogrel aliases
    "PLAVIX": "CLOPIDOGREL",
    # Warfarin aliases
    "COUMADIN": "WARFARIN",
    "JANTOVEN": "WARFARIN",
    # Simvastatin aliases
    "ZOCOR": "SIMVASTATIN",
    # Azathioprine aliases
    "IMURAN": "AZATHIOPRINE",
    "AZASAN": "AZATHIOPRINE",
    # Fluorouracil aliases
    "5-FU": "FLUOROURACIL",
    "5-FLUOROURACIL": "FLUOROURACIL",
    "ADRUCIL": "FLUOROURACIL",
    "EFUDEX": "FLUOROURACIL",
    "CARAC": "FLUOROURACIL",
}


# VCF builder presets, one list per supported gene (GRCh38 positions)
AVAILABLE_VARIANTS: Dict[str, List[Dict]] = {
    "CYP2D6": [
        {"chrom": "chr22", "pos": 42128945, "id": "rs3892097", "ref": "C", "alt": "T", "gene": "CYP2D6", "star": "*4", "rs": "rs3892097", "genotype": "0/1"},
        {"chrom": "chr22", "pos": 42126611, "id": "rs16947", "ref": "G", "alt": "A", "gene": "CYP2D6", "star": "*2", "rs": "rs16947", "genotype": "0/1"},
        {"chrom": "chr22", "pos": 42127941, "id": "rs1135840", "ref": "C", "alt": "G", "gene": "CYP2D6", "star": "*1", "rs": "rs1135840", "genotype": "0/1"},
        {"chrom": "chr22", "pos": 42130692, "id": "rs5030655", "ref": "T", "alt": ".", "gene": "CYP2D6", "star": "*6", "rs": "rs5030655", "genotype": "0/1"},
        {"chrom": "chr22", "pos": 42127803, "id": "rs1065852", "ref": "C", "alt": "T", "gene": "CYP2D6", "star": "*10", "rs": "rs1065852", "genotype": "0/1"},
        {"chrom": "chr22", "pos": 42126938, "id": "rs28371706", "ref": "C", "alt": "T", "gene": "CYP2D6", "star": "*17", "rs": "rs28371706", "genotype": "0/1"},
    ],
    "CYP2C19": [
        {"chrom": "chr10", "pos": 96541616, "id": "rs4244285", "ref": "G", "alt": "A", "gene": "CYP2C19", "star": "*2", "rs": "rs4244285", "genotype": "0/1"},
        {"chrom": "chr10", "pos": 96540410, "id": "rs4986893", "ref": "G", "alt": "A", "gene": "CYP2C19", "star": "*3", "rs": "rs4986893", "genotype": "0/1"},
        {"chrom": "chr10", "pos": 96522463, "id": "rs12248560", "ref": "C", "alt": "T", "gene": "CYP2C19", "star": "*17", "rs": "rs12248560", "genotype": "0/1"},
    ],
    "CYP2C9": [
        {"chrom": "chr10", "pos": 96702047, "id": "rs1799853", "ref": "C", "alt": "T", "gene": "CYP2C9", "star": "*2", "rs": "rs1799853", "genotype": "0/1"},
        {"chrom": "chr10", "pos": 96741053, "id": "rs1057910", "ref": "A", "alt": "C", "gene": "CYP2C9", "star": "*3", "rs": "rs1057910", "genotype": "0/1"},
    ],
    "SLCO1B1": [
        {"chrom": "chr12", "pos": 21331549, "id": "rs4149056", "ref": "T", "alt": "C", "gene": "SLCO1B1", "star": "*5", "rs": "rs4149056", "genotype": "0/1"},
        {"chrom": "chr12", "pos": 21329738, "id": "rs2306283", "ref": "A", "alt": "G", "gene": "SLCO1B1", "star": "*1b", "rs": "rs2306283", "genotype": "0/1"},
    ],
    "TPMT": [
        {"chrom": "chr6", "pos": 18130918, "id": "rs1800462", "ref": "C", "alt": "G", "gene": "TPMT", "star": "*2", "rs": "rs1800462", "genotype": "0/1"},
        {"chrom": "chr6", "pos": 18143724, "id": "rs1800460", "ref": "T", "alt": "C", "gene": "TPMT", "star": "*3B", "rs": "rs1800460", "genotype": "0/1"},
        {"chrom": "chr6", "pos": 18139228, "id": "rs1142345", "ref": "A", "alt": "G", "gene": "TPMT", "star": "*3C", "rs": "rs1142345", "genotype": "0/1"},
    ],
    "DPYD": [
        {"chrom": "chr1", "pos": 97915614, "id": "rs3918290", "ref": "C", "alt": "T", "gene": "DPYD", "star": "*2A", "rs": "rs3918290", "genotype": "0/1"},
        {"chrom": "chr1", "pos": 97981395, "id": "rs55886062", "ref": "A", "alt": "C", "gene": "DPYD", "star": "*13", "rs": "rs55886062", "genotype": "0/1"},
        {"chrom": "chr1", "pos": 97547947, "id": "rs75017182", "ref": "G", "alt": "C", "gene": "DPYD", "star": "HapB3", "rs": "rs75017182", "genotype": "0/1"},
    ],
}


def _preset(gene: str, index: int, genotype: str) -> Dict:
    return {**AVAILABLE_VARIANTS[gene][index], "genotype": genotype}


# Named builder profiles, keyed by URL-friendly slug
SAMPLE_PROFILES: Dict[str, Dict] = {
    "codeine_urm": {
        "name": "Codeine URM Risk",
        "description": "CYP2D6 ultrarapid metabolizer - high morphine conversion risk with codeine",
        "patient_id": "PATIENT_CYP2D6_URM",
        "variants": [
            _preset("CYP2D6", 1, "1/1"),  # *2 homozygous
            _preset("CYP2D6", 2, "1/1"),  # *1 homozygous
        ],
    },
    "dpyd_risk": {
        "name": "Fluorouracil DPYD Risk",
        "description": "DPYD deficiency - severe fluorouracil toxicity risk",
        "patient_id": "PATIENT_DPYD_RISK",
        "variants": [
            _preset("DPYD", 0, "0/1"),  # *2A heterozygous
            _preset("DPYD", 2, "0/1"),  # HapB3
        ],
    },
}


_GENERIC_NOTE = "Educational only. Always consult the latest CPIC guideline and a qualified clinician."

# drug -> (gene, {phenotype: (label, details)})
CPIC_GUIDANCE: Dict[str, Dict] = {
    "CODEINE": {
        "gene": "CYP2D6",
        "phenotypes": {
            "PM": ("Avoid codeine; consider alternative", "Poor metabolizers have reduced activation to morphine; use alternative analgesic."),
            "IM": ("Consider alternative or standard dose with caution", "Intermediate activity may reduce analgesia; monitor response."),
            "NM": ("Use standard dosing", "Normal CYP2D6 activity; routine monitoring."),
            "RM": ("Consider lower dose / increased monitoring", "Rapid metabolizers may have increased morphine exposure; monitor for adverse effects."),
            "URM": ("Avoid codeine; consider alternative", "Ultra-rapid conversion can cause toxicity; choose non-CYP2D6 analgesic."),
            "Unknown": ("Unknown phenotype: guidance unavailable", "Verify annotations and consider standard care with monitoring."),
        },
        "general_note": _GENERIC_NOTE,
    },
    "WARFARIN": {
        "gene": "CYP2C9",
        "phenotypes": {
            "PM": ("Reduce starting dose / increased monitoring", "Reduced clearance increases bleeding risk; lower initial dose and monitor INR closely."),
            "IM": ("Consider dose reduction", "Intermediate activity may require lower dose; monitor INR."),
            "NM": ("Use standard dosing with usual monitoring", "Normal CYP2C9 activity; routine INR checks."),
            "RM": ("Consider standard dose; monitor", "Rare phenotype for CYP2C9; tailor to INR response."),
            "URM": ("Standard to higher dose may be required; monitor", "If increased metabolism suspected, adjust per INR response."),
            "Unknown": ("Unknown phenotype: guidance unavailable", "Verify annotations and follow standard warfarin dosing with INR monitoring."),
        },
        "general_note": _GENERIC_NOTE,
    },
    "CLOPIDOGREL": {
        "gene": "CYP2C19",
        "phenotypes": {
            "PM": ("Consider alternative antiplatelet", "Reduced activation decreases antiplatelet effect; consider prasugrel or ticagrelor if appropriate."),
            "IM": ("Consider alternative or enhanced monitoring", "Intermediate activation may reduce efficacy; assess thrombosis risk."),
            "NM": ("Use standard dosing", "Normal activation; routine care."),
            "RM": ("Use standard dosing", "Faster activation typically acceptable; monitor bleeding risk as usual."),
            "URM": ("Use standard dosing", "Higher activation generally acceptable; standard monitoring."),
            "Unknown": ("Unknown phenotype: guidance unavailable", "Verify annotations and consider standard therapy with clinical judgment."),
        },
        "general_note": _GENERIC_NOTE,
    },
    "SIMVASTATIN": {
        "gene": "SLCO1B1",
        "phenotypes": {
            "PM": ("Consider lower dose or alternative statin", "Reduced hepatic uptake increases myopathy risk; consider dose reduction or alternate statin."),
            "IM": ("Consider lower dose", "Intermediate function may elevate exposure; monitor for muscle symptoms."),
            "NM": ("Use standard dosing", "Normal transporter function; routine monitoring."),
            "RM": ("Use standard dosing", "Higher function typically not clinically significant; standard care."),
            "URM": ("Use standard dosing", "Limited evidence for ultra-rapid; monitor clinically."),
            "Unknown": ("Unknown phenotype: guidance unavailable", "Verify annotations; use standard statin care and monitoring."),
        },
        "general_note": _GENERIC_NOTE,
    },
    "AZATHIOPRINE": {
        "gene": "TPMT",
        "phenotypes": {
            "PM": ("Consider alternative therapy or drastically reduced dose", "Low TPMT activity raises toxicity risk; alternative or reduced dosing with close monitoring."),
            "IM": ("Consider dose reduction", "Intermediate activity increases myelosuppression risk; reduce dose and monitor counts."),
            "NM": ("Use standard dosing", "Normal TPMT activity; routine monitoring."),
            "RM": ("Use standard dosing", "Rapid phenotype uncommon; treat as normal unless otherwise indicated."),
            "URM": ("Use standard dosing", "Treat as normal; evidence limited."),
            "Unknown": ("Unknown phenotype: guidance unavailable", "Verify annotations; use clinical judgment and monitoring."),
        },
        "general_note": _GENERIC_NOTE,
    },
    "FLUOROURACIL": {
        "gene": "DPYD",
        "phenotypes": {
            "PM": ("Avoid or greatly reduce dose; consider alternative", "Absent/low DPD activity risks severe toxicity; avoid or drastically reduce with specialist oversight."),
            "IM": ("Consider dose reduction", "Reduced DPD activity increases toxicity risk; use lowered dose and monitor closely."),
            "NM": ("Use standard dosing", "Normal DPD activity; routine monitoring."),
            "RM": ("Use standard dosing", "Rapid phenotype uncommon/uncertain; standard care with monitoring."),
            "URM": ("Use standard dosing", "Evidence limited; manage as normal with caution."),
            "Unknown": ("Unknown phenotype: guidance unavailable", "Verify annotations; follow standard practice with monitoring."),
        },
        "general_note": _GENERIC_NOTE,
    },
}
