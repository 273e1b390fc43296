"""
Breakpoint discovery and classification for svrefine.

Given the alignments of one contig that spans a region, this module picks
out the segments lying across the region, decides which breakpoint
pattern they form, and classifies each break between adjacent segments
from the signed gaps it leaves in reference and contig coordinates.

Gap conventions (per breakpoint, left segment before right segment in
contig order):
    ref_gap    = ref2 - ref1 - 1       reference bases between the segments
    contig_gap = query2 - query1 - 1   contig bases between the segments
                 (query1 - query2 - 1 for reverse-oriented contigs)
    signed_size = ref_gap - contig_gap

A negative gap means the two segments overlap by that many bases. The
sign of signed_size is positive for net loss of reference sequence; it is
flipped for VCF output, where deletions carry a negative SVLEN.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, List, Tuple

from .alignment_index import AlignmentSegment
from .core import REVERSE, INSERTION_TYPES, DELETION_TYPES, RefineConfig
from .regions import Region, Window

# Region patterns
HOMREF = "HOMREF"
SIMPLE = "SIMPLE"
INVERSION = "INVERSION"
UNSUPPORTED = "UNSUPPORTED"


def make_contig_comparator(orientation: int) -> Callable[[AlignmentSegment, AlignmentSegment], int]:
    """
    Build an ordering function for a contig's segments.

    Args:
        orientation: FORWARD sorts by increasing contig start, REVERSE by
            decreasing contig start, so that segments always run left to
            right along the reference

    Returns:
        A cmp-style function of two segments
    """
    sign = -1 if orientation == REVERSE else 1

    def compare(a: AlignmentSegment, b: AlignmentSegment) -> int:
        return sign * ((a.query_start > b.query_start) - (a.query_start < b.query_start))

    return compare


def sort_contig_segments(
    segments: List[AlignmentSegment], orientation: int
) -> List[AlignmentSegment]:
    """Stable sort of segments along the contig in the given orientation."""
    return sorted(segments, key=cmp_to_key(make_contig_comparator(orientation)))


def collect_region_segments(
    sorted_segments: List[AlignmentSegment], chrom: str, left_window: Window, right_window: Window
) -> List[AlignmentSegment]:
    """
    Keep the run of contig segments that crosses the region.

    Collection starts at the first segment on chrom ending past the left
    window, and stops (without including it) at the first later segment on
    chrom starting past the right window start. Segments on other
    chromosomes inside the run are kept so that callers can reject them.
    """
    region_segments = []
    in_region = False
    for segment in sorted_segments:
        on_chrom = segment.ref_entry == chrom
        if not in_region:
            if on_chrom and segment.ref_end > left_window.end:
                in_region = True
        elif on_chrom and segment.ref_start > right_window.start:
            break

        if in_region:
            region_segments.append(segment)
    return region_segments


@dataclass(frozen=True)
class RegionPattern:
    """Outcome of inspecting one contig's segments across one region."""
    kind: str                                          # HOMREF, SIMPLE, INVERSION or UNSUPPORTED
    segments: Tuple[AlignmentSegment, ...]
    pairs: Tuple[Tuple[AlignmentSegment, AlignmentSegment], ...] = ()
    reason: str = ""


def classify_pattern(
    region_segments: List[AlignmentSegment], chrom: str, left_window: Window, right_window: Window
) -> RegionPattern:
    """
    Decide which breakpoint pattern a contig's region segments form.

    Args:
        region_segments: Output of collect_region_segments
        chrom: Region chromosome
        left_window: Left flank probe window
        right_window: Right flank probe window

    Returns:
        RegionPattern whose pairs hold the adjacent segments to classify
        (one pair for two segments, two consecutive pairs for three
        same-orientation segments)
    """
    segments = tuple(region_segments)
    on_chrom = [s for s in segments if s.ref_entry == chrom]

    if (
        len(on_chrom) == 1
        and on_chrom[0].ref_start < left_window.start
        and on_chrom[0].ref_end > right_window.end
    ):
        return RegionPattern(HOMREF, segments)

    if len(segments) > 3:
        return RegionPattern(UNSUPPORTED, segments, reason=f"{len(segments)} aligned segments")
    if len(on_chrom) != len(segments):
        return RegionPattern(UNSUPPORTED, segments, reason="segments on other reference entries")

    comps = [s.orientation for s in segments]
    if len(segments) == 2 and comps[0] == comps[1]:
        return RegionPattern(SIMPLE, segments, pairs=((segments[0], segments[1]),))
    if len(segments) == 3:
        if comps[0] == comps[1] == comps[2]:
            return RegionPattern(
                SIMPLE, segments, pairs=((segments[0], segments[1]), (segments[1], segments[2]))
            )
        if comps[0] != comps[1] and comps[1] != comps[2]:
            return RegionPattern(INVERSION, segments)

    return RegionPattern(
        UNSUPPORTED, segments, reason=f"{len(segments)} segments with orientations {comps}"
    )


def classify_gaps(ref_gap: int, contig_gap: int) -> str:
    """
    Variant type for a breakpoint with the given signed gaps.

    Both gaps non-positive means the segments overlap on both sequences: a
    duplication when the contig overlap is the larger, a contraction
    otherwise. Substitution types take precedence when the unaligned
    stretch is present on both sequences or the sizes cancel out.
    """
    signed_size = ref_gap - contig_gap
    if ref_gap <= 0 and contig_gap <= 0:
        sv_type = "DUP" if signed_size < 0 else "CON"
    else:
        sv_type = "INS" if signed_size < 0 else "DEL"

    if signed_size < 0 and ref_gap > 0:
        sv_type = "SUBSINS"
    elif signed_size > 0 and contig_gap > 0:
        sv_type = "SUBSDEL"
    elif signed_size == 0:
        sv_type = "SUBS"
    return sv_type


@dataclass(frozen=True)
class BreakpointCandidate:
    """One break between two adjacent same-orientation segments."""
    left: AlignmentSegment
    right: AlignmentSegment
    orientation: int
    ref1: int          # last reference base of the left segment
    ref2: int          # first reference base of the right segment
    query1: int        # last contig base of the left segment
    query2: int        # first contig base of the right segment
    ref_gap: int
    contig_gap: int
    signed_size: int
    sv_type: str
    size: int
    homology: int

    @property
    def chrom(self) -> str:
        return self.left.ref_entry

    @property
    def contig(self) -> str:
        return self.left.query_entry

    def is_artifact(self, factor: int = 100) -> bool:
        """Homology far larger than the event itself indicates alignment noise."""
        return self.homology > factor * self.size

    def __str__(self):
        return (
            f"TYPE {self.sv_type} size {self.size} "
            f"(REFJUMP {self.ref_gap} QUERYJUMP {self.contig_gap})"
        )


def classify_breakpoint(
    left: AlignmentSegment, right: AlignmentSegment, orientation: int
) -> BreakpointCandidate:
    """
    Measure and type the break between two adjacent segments.

    Args:
        left: Segment preceding the break in contig order
        right: Segment following the break
        orientation: Orientation of the contig relative to the reference

    Returns:
        BreakpointCandidate with gaps, type, unsigned size and homology length
    """
    ref1 = left.ref_end
    ref2 = right.ref_start
    query1 = left.query_end
    query2 = right.query_start

    ref_gap = ref2 - ref1 - 1
    if orientation == REVERSE:
        contig_gap = query1 - query2 - 1
    else:
        contig_gap = query2 - query1 - 1
    signed_size = ref_gap - contig_gap
    sv_type = classify_gaps(ref_gap, contig_gap)

    if sv_type in INSERTION_TYPES:
        homology = -ref_gap
    elif sv_type in DELETION_TYPES:
        homology = -contig_gap
    else:
        homology = 0

    return BreakpointCandidate(
        left=left,
        right=right,
        orientation=orientation,
        ref1=ref1,
        ref2=ref2,
        query1=query1,
        query2=query2,
        ref_gap=ref_gap,
        contig_gap=contig_gap,
        signed_size=signed_size,
        sv_type=sv_type,
        size=abs(signed_size),
        homology=homology,
    )


class BreakpointClassifier:
    """
    Turn one validated contig's alignments into breakpoint candidates.
    """

    def __init__(self, config: RefineConfig):
        self.config = config

    def region_pattern(
        self, contig_segments: List[AlignmentSegment], orientation: int, region: Region
    ) -> RegionPattern:
        """
        Collect the contig's region segments and classify their pattern.

        Args:
            contig_segments: All segments of the contig, in any order
            orientation: Orientation resolved for the contig in this region
            region: Region being refined

        Returns:
            RegionPattern for the contig
        """
        left_window = region.left_window(self.config)
        right_window = region.right_window(self.config)
        ordered = sort_contig_segments(contig_segments, orientation)
        region_segments = collect_region_segments(ordered, region.chrom, left_window, right_window)

        if self.config.verbose:
            refs = ":".join(s.ref_entry for s in region_segments)
            contig = contig_segments[0].query_entry if contig_segments else ""
            print(f"CONTIG {contig} matches to ref entries {refs}")
            if len(region_segments) > 1:
                for s in region_segments:
                    print(f"ALIGN\t{region}\t{s.ref_entry}\t{s.ref_start}\t{s.ref_end}\t"
                          f"{s.query_entry}\t{s.query_start}\t{s.query_end}")

        return classify_pattern(region_segments, region.chrom, left_window, right_window)

    def candidates(self, pattern: RegionPattern, orientation: int) -> List[BreakpointCandidate]:
        """
        Classify each breakpoint pair of a SIMPLE pattern, dropping artifacts.

        Args:
            pattern: RegionPattern of kind SIMPLE
            orientation: Orientation resolved for the contig

        Returns:
            Candidates that pass the homology artifact filter
        """
        kept = []
        for left, right in pattern.pairs:
            candidate = classify_breakpoint(left, right, orientation)
            if candidate.is_artifact(self.config.artifact_factor):
                if self.config.verbose:
                    print(
                        f"Dropping likely alignment artifact: {candidate}, "
                        f"homology {candidate.homology}"
                    )
                continue
            if self.config.verbose:
                print(candidate)
            kept.append(candidate)
        return kept
