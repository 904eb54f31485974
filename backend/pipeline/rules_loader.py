"""
Clinical rules loader.
Loads the versioned static tables (allele functions, drug decisions,
drug-gene map, guideline links) from JSON once per process.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

ALLELE_FUNCTIONS = ("normal", "increased", "decreased", "no_function")


@dataclass(frozen=True)
class DrugDecision:
    """Static recommendation record for one (drug, phenotype) pair."""
    risk_label: str
    severity: str
    confidence_base: float
    recommendation: str
    dose_guidance: str
    alternative_drugs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LoadedRules:
    rules_version: str
    target_genes: Tuple[str, ...]
    supported_drugs: Tuple[str, ...]
    drug_primary_gene: Mapping[str, str]
    cpic_links: Mapping[str, Tuple[str, ...]]
    star_allele_function: Mapping[str, Mapping[str, str]]
    unknown_decision: DrugDecision
    drug_decisions: Mapping[str, Mapping[str, DrugDecision]]


_RULES: Optional[LoadedRules] = None


def _rules_path() -> Path:
    configured = os.getenv("CLINICAL_RULES_PATH", "").strip()
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent.parent / "data" / "clinical_rules" / "rules.v1.json"


def _to_decision(row: Dict[str, Any]) -> DrugDecision:
    return DrugDecision(
        risk_label=str(row["risk_label"]),
        severity=str(row["severity"]),
        confidence_base=float(row["confidence_base"]),
        recommendation=str(row.get("recommendation", "")),
        dose_guidance=str(row.get("dose_guidance", "")),
        alternative_drugs=tuple(row.get("alternative_drugs", [])),
    )


def _normalize_decisions(raw: Dict[str, Dict[str, Dict[str, Any]]]) -> Mapping[str, Mapping[str, DrugDecision]]:
    out: Dict[str, Mapping[str, DrugDecision]] = {}
    for drug, by_phenotype in raw.items():
        out[drug.upper()] = MappingProxyType(
            {phenotype: _to_decision(row) for phenotype, row in by_phenotype.items()}
        )
    return MappingProxyType(out)


def _normalize_allele_functions(raw: Dict[str, Dict[str, str]]) -> Mapping[str, Mapping[str, str]]:
    out: Dict[str, Mapping[str, str]] = {}
    for gene, mapping in raw.items():
        bad = sorted({v for v in mapping.values() if v not in ALLELE_FUNCTIONS})
        if bad:
            raise ValueError(f"Unknown allele function(s) for {gene}: {bad}")
        out[gene] = MappingProxyType(dict(mapping))
    return MappingProxyType(out)


def _validate_required(data: Dict[str, Any]) -> None:
    required = [
        "rules_version",
        "target_genes",
        "supported_drugs",
        "drug_primary_gene",
        "cpic_links",
        "star_allele_function",
        "unknown_decision",
        "drug_decisions",
    ]
    missing = [k for k in required if k not in data]
    if missing:
        raise ValueError(f"Clinical rules file missing keys: {missing}")


def load_rules(force_reload: bool = False) -> LoadedRules:
    global _RULES
    if _RULES is not None and not force_reload:
        return _RULES

    path = _rules_path()
    if not path.exists():
        raise FileNotFoundError(f"Clinical rules file not found: {path}")

    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)

    _validate_required(data)

    links: Dict[str, Tuple[str, ...]] = {
        drug.upper(): tuple(urls) for drug, urls in data["cpic_links"].items()
    }
    _RULES = LoadedRules(
        rules_version=str(data["rules_version"]),
        target_genes=tuple(data["target_genes"]),
        supported_drugs=tuple(d.upper() for d in data["supported_drugs"]),
        drug_primary_gene=MappingProxyType(
            {drug.upper(): gene for drug, gene in data["drug_primary_gene"].items()}
        ),
        cpic_links=MappingProxyType(links),
        star_allele_function=_normalize_allele_functions(dict(data["star_allele_function"])),
        unknown_decision=_to_decision(dict(data["unknown_decision"])),
        drug_decisions=_normalize_decisions(dict(data["drug_decisions"])),
    )
    logger.info(f"Loaded clinical rules version {_RULES.rules_version} from {path}")
    return _RULES


def get_rules() -> LoadedRules:
    return load_rules()


def supported_genes() -> List[str]:
    return list(get_rules().target_genes)
