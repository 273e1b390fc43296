"""
Selection of contigs whose alignments span both flanks of a region.
"""

from dataclasses import dataclass
from typing import Iterable, List

from .alignment_index import AlignmentSegment, EntryPair
from .core import FORWARD, REVERSE, RefineConfig
from .regions import Window


@dataclass(frozen=True)
class ValidatedEntryPair:
    """An entry pair accepted for one region, with its resolved orientation."""
    entry_pair: EntryPair
    orientation: int

    @property
    def contig(self) -> str:
        return self.entry_pair.query_entry


def spans_window(segment: AlignmentSegment, window: Window) -> bool:
    """True if the segment extends past both ends of the window."""
    return segment.ref_start < window.start and segment.ref_end > window.end


class RegionSpanValidator:
    """
    Find entry pairs with alignments continuing through both flank windows.

    A pair is accepted when some segment spans the left window, some
    (possibly different) segment spans the right window, and the two sides
    share exactly one orientation. A pair whose flanks agree on both
    orientations is ambiguous and skipped.
    """

    def __init__(self, config: RefineConfig):
        self.config = config

    def validate(
        self, entry_pairs: Iterable[EntryPair], left_window: Window, right_window: Window
    ) -> List[ValidatedEntryPair]:
        """
        Filter entry pairs down to those consistently spanning the region.

        Args:
            entry_pairs: Entry pairs aligned to the region's chromosome
            left_window: Left flank probe window
            right_window: Right flank probe window

        Returns:
            Accepted pairs in input order, each with its orientation
        """
        valid = []
        for entry_pair in entry_pairs:
            left_span = [s for s in entry_pair.segments if spans_window(s, left_window)]
            right_span = [s for s in entry_pair.segments if spans_window(s, right_window)]
            if not left_span or not right_span:
                continue

            if len(left_span) != 1 or len(right_span) != 1:
                if self.config.verbose:
                    print(
                        f"Found {len(left_span)} left aligns and {len(right_span)} right aligns "
                        f"for contig {entry_pair.query_entry}"
                    )

            left_comps = {s.orientation for s in left_span}
            right_comps = {s.orientation for s in right_span}
            shared = [
                comp
                for comp in (FORWARD, REVERSE)
                if comp in left_comps and comp in right_comps
            ]
            if len(shared) == 1:
                valid.append(ValidatedEntryPair(entry_pair, shared[0]))
            elif self.config.verbose:
                reason = "ambiguous" if shared else "inconsistent"
                print(f"Skipping contig {entry_pair.query_entry}: {reason} alignment pattern")

        return valid


def find_valid_entry_pairs(entry_pairs, left_window, right_window, config=None):
    """Convenience wrapper around RegionSpanValidator.validate."""
    return RegionSpanValidator(config or RefineConfig()).validate(
        entry_pairs, left_window, right_window
    )
