"""
Breakpoint coordinate refinement by reciprocal projection.

When the sequence flanking a breakpoint is repeated, both segments align
it, and the true breakpoint can sit anywhere within the repeat. Projecting
each breakpoint coordinate through the opposite segment recovers the full
extent of that shared interval.
"""

from dataclasses import dataclass
from typing import Optional

from .breakpoints import BreakpointCandidate
from .core import INSERTION_TYPES, DELETION_TYPES, RefineConfig, MismatchedCoordinatesError


@dataclass(frozen=True)
class RefinedBreakpoint:
    """
    A breakpoint candidate with its homology-widened coordinates.

    For insertions and duplications query1p/query2p are set (contig
    coordinates of ref1/ref2 on the opposite segments); for deletions and
    contractions ref1p/ref2p are set (reference coordinates of
    query1/query2 on the opposite segments). Other types carry neither.
    """
    candidate: BreakpointCandidate
    query1p: Optional[int] = None
    query2p: Optional[int] = None
    ref1p: Optional[int] = None
    ref2p: Optional[int] = None


class CoordinateRefiner:
    """
    Widen INS/DUP breakpoints in contig space and DEL/CON breakpoints in
    reference space.
    """

    def __init__(self, config: RefineConfig):
        self.config = config

    def refine(self, candidate: BreakpointCandidate) -> RefinedBreakpoint:
        """
        Compute widened coordinates for a breakpoint candidate.

        Args:
            candidate: Classified breakpoint

        Returns:
            RefinedBreakpoint

        Raises:
            MismatchedCoordinatesError: If a segment does not project its own
                boundary coordinate onto the observed value
        """
        if candidate.sv_type in INSERTION_TYPES:
            return self._refine_insertion(candidate)
        if candidate.sv_type in DELETION_TYPES:
            return self._refine_deletion(candidate)
        return RefinedBreakpoint(candidate)

    def _log(self, candidate, message):
        if self.config.verbose:
            print(f"{message} at {candidate.chrom}:{candidate.ref1}-{candidate.ref2} "
                  f"({candidate.contig}:{candidate.query1}-{candidate.query2})")

    def _refine_insertion(self, c: BreakpointCandidate) -> RefinedBreakpoint:
        observed1 = c.left.query_coord_for_ref(c.ref1)
        if observed1 is None or observed1 != c.query1:
            raise MismatchedCoordinatesError(
                f"QUERY1 {c.query1} doesn't match {observed1} projected from "
                f"{c.chrom}:{c.ref1} on alignment {c.left}"
            )
        observed2 = c.right.query_coord_for_ref(c.ref2)
        if observed2 is None or observed2 != c.query2:
            raise MismatchedCoordinatesError(
                f"QUERY2 {c.query2} doesn't match {observed2} projected from "
                f"{c.chrom}:{c.ref2} on alignment {c.right}"
            )

        query1p = c.right.query_coord_for_ref(c.ref1)
        query2p = c.left.query_coord_for_ref(c.ref2)
        if query1p is None:
            self._log(c, "Non-repetitive insertion")
            query1p = c.query2 - 1
        if query2p is None:
            self._log(c, "Non-repetitive insertion")
            query2p = c.query1 - 1

        return RefinedBreakpoint(c, query1p=query1p, query2p=query2p)

    def _refine_deletion(self, c: BreakpointCandidate) -> RefinedBreakpoint:
        observed1 = c.left.ref_coord_for_query(c.query1)
        if observed1 is None or observed1 != c.ref1:
            raise MismatchedCoordinatesError(
                f"REF1 {c.ref1} doesn't match {observed1} projected from "
                f"{c.contig}:{c.query1} on alignment {c.left}"
            )
        observed2 = c.right.ref_coord_for_query(c.query2)
        if observed2 is None or observed2 != c.ref2:
            raise MismatchedCoordinatesError(
                f"REF2 {c.ref2} doesn't match {observed2} projected from "
                f"{c.contig}:{c.query2} on alignment {c.right}"
            )

        ref1p = c.right.ref_coord_for_query(c.query1)
        ref2p = c.left.ref_coord_for_query(c.query2)
        if ref1p is None:
            self._log(c, "Non-repetitive deletion")
            ref1p = c.ref2 - 1
        if ref2p is None:
            self._log(c, "Non-repetitive deletion")
            ref2p = c.ref1 - 1

        return RefinedBreakpoint(c, ref1p=ref1p, ref2p=ref2p)
