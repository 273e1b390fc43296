"""
Chromosome name matching utilities for svrefine.

Region files and whole-genome alignments are often produced against the
same assembly under different naming conventions ('chr1' vs '1'). These
helpers map region chromosome names onto the alignment's reference entry
names.
"""

import re
import warnings
from typing import Dict, Iterable, List, Set, Tuple

from .regions import Region

_MITO_NAMES = {"M", "MITO", "MITOCHONDRION"}


def normalize_chromosome_name(chrom_name: str) -> str:
    """
    Normalize chromosome name to a standard format.

    Args:
        chrom_name: Raw chromosome name from a BED file or delta header

    Returns:
        Name without 'chr' prefix, uppercase, with mitochondrial aliases as 'MT'

    Examples:
        'chr1' -> '1'
        'chrX' -> 'X'
        'chrM' -> 'MT'
    """
    normalized = re.sub(r"^chr", "", str(chrom_name).strip(), flags=re.IGNORECASE).upper()
    if normalized in _MITO_NAMES:
        normalized = "MT"
    return normalized


def _toggle_chr_prefix(name: str) -> str:
    return name[3:] if name.lower().startswith("chr") else f"chr{name}"


def create_chromosome_mapping(
    reference_chroms: Iterable[str], region_chroms: Iterable[str]
) -> Tuple[Dict[str, str], Set[str]]:
    """
    Create a mapping from region chromosome names to reference entry names.

    Candidates are tried in order:
    1. Exact match
    2. Case-insensitive match
    3. With the 'chr' prefix added or removed
    4. Normalized match (handles mitochondrial aliases)

    Args:
        reference_chroms: Reference entry names from the alignments
        region_chroms: Chromosome names used by the regions

    Returns:
        Tuple of (mapping dict, unmatched set)
    """
    reference_chroms = list(reference_chroms)
    by_lower = {}
    by_normalized = {}
    for ref_chrom in reference_chroms:
        by_lower.setdefault(ref_chrom.lower(), ref_chrom)
        by_normalized.setdefault(normalize_chromosome_name(ref_chrom), ref_chrom)
    exact = set(reference_chroms)

    mapping = {}
    unmatched = set()
    for chrom in region_chroms:
        if chrom in exact:
            mapping[chrom] = chrom
        elif chrom.lower() in by_lower:
            mapping[chrom] = by_lower[chrom.lower()]
        elif _toggle_chr_prefix(chrom).lower() in by_lower:
            mapping[chrom] = by_lower[_toggle_chr_prefix(chrom).lower()]
        elif normalize_chromosome_name(chrom) in by_normalized:
            mapping[chrom] = by_normalized[normalize_chromosome_name(chrom)]
        else:
            unmatched.add(chrom)

    return mapping, unmatched


def match_chromosomes_with_report(
    reference_chroms: Iterable[str], region_chroms: Iterable[str], verbose: bool = True
) -> Tuple[Dict[str, str], Set[str]]:
    """
    Match chromosomes and optionally print the renamed ones.

    Args:
        reference_chroms: Reference entry names from the alignments
        region_chroms: Chromosome names used by the regions
        verbose: Whether to print renamed chromosomes

    Returns:
        Tuple of (mapping dict, unmatched set)
    """
    mapping, unmatched = create_chromosome_mapping(reference_chroms, region_chroms)

    if verbose:
        for region_chrom, ref_chrom in sorted(mapping.items()):
            if region_chrom != ref_chrom:
                print(
                    f"Region chromosome '{region_chrom}' matched to "
                    f"alignment entry '{ref_chrom}'"
                )

    if unmatched:
        warnings.warn(
            f"Could not match {len(unmatched)} region chromosomes to aligned reference entries: "
            f"{sorted(unmatched)}. These regions will be reported as NOCOV."
        )

    return mapping, unmatched


def apply_chromosome_mapping(regions: List[Region], mapping: Dict[str, str]) -> List[Region]:
    """Rename region chromosomes with mapping, leaving unmatched names unchanged."""
    return [
        region.with_chrom(mapping[region.chrom]) if region.chrom in mapping else region
        for region in regions
    ]
