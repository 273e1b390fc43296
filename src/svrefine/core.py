"""
Core constants, configuration and error types for svrefine.

This module provides the orientation constants, the run configuration
and the exception hierarchy used throughout the package.
"""

from dataclasses import dataclass
from typing import Optional

# Contig orientation relative to the reference ("comp" in MUMmer terms)
FORWARD = 0
REVERSE = 1

# Variant types produced by the breakpoint classifier
INSERTION_TYPES = ("INS", "DUP")
DELETION_TYPES = ("DEL", "CON")
SV_TYPES = ("INS", "DEL", "DUP", "CON", "SUBSINS", "SUBSDEL", "SUBS")

# Bases allowed in contig sequence extracted on the reverse strand
VALID_BASES = frozenset("ACGTN")


@dataclass(frozen=True)
class RefineConfig:
    """
    Options shared by every stage of the refinement run.

    Attributes:
        buffer: Distance from region boundary to the outer edge of each flank window
        bufseg: Width of each flank probe window
        include_seqs: Retrieve REF/ALT bases instead of symbolic alleles
        verbose: Print per-region diagnostics
        sample_name: Name of the genotype column in the VCF header
        ref_name: Optional value for the ##reference header line
        write_header: Emit the VCF header
        artifact_factor: Breakpoints with homology above this multiple of
            the SV size are dropped as alignment artifacts
    """

    buffer: int = 1000
    bufseg: int = 50
    include_seqs: bool = False
    verbose: bool = False
    sample_name: str = "SAMPLE"
    ref_name: Optional[str] = None
    write_header: bool = True
    artifact_factor: int = 100

    def __post_init__(self):
        if self.buffer < 1:
            raise ValueError(f"buffer must be positive, got {self.buffer}")
        if self.bufseg < 1:
            raise ValueError(f"bufseg must be positive, got {self.bufseg}")


class SVRefineError(ValueError):
    """Fatal error that aborts the whole refinement run."""

    kind = "SVRefineError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.kind}: {self.message}"


class MalformedInputError(SVRefineError):
    """Alignment or region input that cannot be parsed."""

    kind = "MalformedInput"


class MismatchedCoordinatesError(SVRefineError):
    """Projected and observed breakpoint coordinates disagree."""

    kind = "MismatchedCoordinates"


class InvalidSequenceDataError(SVRefineError):
    """Sequence retrieved for a variant contains unexpected characters."""

    kind = "InvalidSequenceData"
