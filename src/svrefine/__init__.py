"""
svrefine: refine structural-variant breakpoints from whole-genome
alignments of an assembly to a reference.

This package provides functionality for:
- Reading MUMmer delta alignments and BED candidate regions
- Selecting contigs that span a region and classifying their breakpoints
- Widening breakpoint coordinates across homology
- Writing refined variants as VCF
"""

# Version
__version__ = "0.1.0"

# Import core components
from .core import (
    FORWARD,
    REVERSE,
    RefineConfig,
    SVRefineError,
    MalformedInputError,
    MismatchedCoordinatesError,
    InvalidSequenceDataError,
)

# Import alignment and region inputs
from .alignment_index import AlignmentSegment, EntryPair, AlignmentIndex, read_delta
from .regions import Region, Window, read_regions
from .sequence_utils import SequenceAccessor, rc_str, complement_str

# Import the refinement stages
from .span_validator import RegionSpanValidator, ValidatedEntryPair, find_valid_entry_pairs
from .breakpoints import (
    BreakpointClassifier,
    BreakpointCandidate,
    classify_breakpoint,
    classify_gaps,
    make_contig_comparator,
)
from .refine import CoordinateRefiner, RefinedBreakpoint
from .vcf_writer import (
    VariantRecord,
    VariantRecordBuilder,
    write_vcf_header,
    read_vcf,
    parse_vcf_info,
)
from .engine import SVRefiner, RegionResult, diagnostic_path

# Package metadata
__description__ = (
    "Refine structural-variant breakpoints from assembly-to-reference alignments"
)
