"""
Alignment segment records and the read-only index built over them.

Segments come from a MUMmer delta file: every alignment between one
reference entry and one contig (query) entry becomes an AlignmentSegment,
and all segments of the same (reference, contig) pair are grouped into an
EntryPair. The AlignmentIndex keeps entry pairs in a single tuple and
looks them up by reference name or contig name.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .core import FORWARD, REVERSE, MalformedInputError


@dataclass(frozen=True)
class AlignmentSegment:
    """
    One gapped alignment between a reference entry and a contig.

    Contig coordinates are stored as the aligner reports them, so for a
    reverse-strand alignment query_start is greater than query_end.
    """
    ref_entry: str
    ref_start: int             # 1-based, inclusive
    ref_end: int               # 1-based, inclusive
    query_entry: str
    query_start: int
    query_end: int
    orientation: int = None    # FORWARD or REVERSE, inferred from query coords if omitted
    deltas: Tuple[int, ...] = field(default=(), repr=False)  # MUMmer indel offsets

    def __post_init__(self):
        if self.ref_start > self.ref_end:
            raise MalformedInputError(
                f"Alignment {self.ref_entry}:{self.ref_start}-{self.ref_end} to "
                f"{self.query_entry} has reference start after end"
            )
        if self.orientation is None:
            comp = REVERSE if self.query_start > self.query_end else FORWARD
            object.__setattr__(self, "orientation", comp)
        elif self.orientation not in (FORWARD, REVERSE):
            raise MalformedInputError(
                f"Alignment orientation must be {FORWARD} or {REVERSE}, got {self.orientation}"
            )
        object.__setattr__(self, "deltas", tuple(int(d) for d in self.deltas))

    @property
    def query_step(self) -> int:
        """+1 when contig coordinates increase along the alignment, -1 otherwise."""
        return -1 if self.query_start > self.query_end else 1

    def _indel_events(self):
        """
        Offsets of each indel event along the alignment.

        Returns:
            Tuple of (is_ref_gap, ref_event, query_event) numpy arrays. For an
            event where a reference base is aligned to a gap, ref_event is
            the offset of that base; for a contig base aligned to a gap,
            query_event is the offset of that base.
        """
        d = np.asarray(self.deltas, dtype=np.int64)
        ref_gap = d > 0
        runs = np.abs(d) - 1
        ref_after = np.cumsum(runs + ref_gap)
        query_after = np.cumsum(runs + ~ref_gap)
        return ref_gap, ref_after - ref_gap, query_after - ~ref_gap

    def query_coord_for_ref(self, ref_pos: int) -> Optional[int]:
        """
        Project a reference position onto this segment's contig coordinates.

        Args:
            ref_pos: 1-based reference position

        Returns:
            Contig position aligned to ref_pos, or None if ref_pos lies
            outside the segment or is aligned to a gap in the contig
        """
        if not self.ref_start <= ref_pos <= self.ref_end:
            return None
        offset = ref_pos - self.ref_start
        if self.deltas:
            ref_gap, ref_event, _ = self._indel_events()
            if np.any(ref_gap & (ref_event == offset)):
                return None
            shift = int(np.sum(~ref_gap & (ref_event <= offset)))
            shift -= int(np.sum(ref_gap & (ref_event < offset)))
            offset += shift
        return self.query_start + self.query_step * offset

    def ref_coord_for_query(self, query_pos: int) -> Optional[int]:
        """
        Project a contig position onto this segment's reference coordinates.

        Args:
            query_pos: 1-based contig position

        Returns:
            Reference position aligned to query_pos, or None if query_pos
            lies outside the segment or is aligned to a gap in the reference
        """
        offset = (query_pos - self.query_start) * self.query_step
        if not 0 <= offset <= abs(self.query_end - self.query_start):
            return None
        if self.deltas:
            ref_gap, _, query_event = self._indel_events()
            if np.any(~ref_gap & (query_event == offset)):
                return None
            shift = int(np.sum(ref_gap & (query_event <= offset)))
            shift -= int(np.sum(~ref_gap & (query_event < offset)))
            offset += shift
        return self.ref_start + offset

    def __str__(self):
        return (
            f"{self.ref_entry}:{self.ref_start}-{self.ref_end} "
            f"{self.query_entry}:{self.query_start}-{self.query_end}"
        )


@dataclass(frozen=True)
class EntryPair:
    """All alignment segments between one reference entry and one contig."""
    ref_entry: str
    query_entry: str
    segments: Tuple[AlignmentSegment, ...]
    ref_length: Optional[int] = None
    query_length: Optional[int] = None


class AlignmentIndex:
    """
    Immutable lookup of entry pairs by reference entry and by contig entry.

    Entry pairs are kept in insertion order in a single tuple; the name
    lookups map each entry name to the positions of its pairs in that
    tuple.
    """

    def __init__(self, entry_pairs: Iterable[EntryPair], reference_file=None, query_file=None):
        self._entry_pairs = tuple(entry_pairs)
        self.reference_file = reference_file
        self.query_file = query_file

        by_ref: Dict[str, List[int]] = {}
        by_query: Dict[str, List[int]] = {}
        ref_lengths: Dict[str, int] = {}
        query_lengths: Dict[str, int] = {}
        for i, pair in enumerate(self._entry_pairs):
            by_ref.setdefault(pair.ref_entry, []).append(i)
            by_query.setdefault(pair.query_entry, []).append(i)
            if pair.ref_length is not None:
                ref_lengths[pair.ref_entry] = pair.ref_length
            if pair.query_length is not None:
                query_lengths[pair.query_entry] = pair.query_length

        self._by_ref = {name: tuple(idx) for name, idx in by_ref.items()}
        self._by_query = {name: tuple(idx) for name, idx in by_query.items()}
        self._ref_lengths = ref_lengths
        self._query_lengths = query_lengths

    @classmethod
    def from_segments(
        cls,
        segments: Iterable[AlignmentSegment],
        ref_lengths=None,
        query_lengths=None,
        reference_file=None,
        query_file=None,
    ):
        """
        Group a flat stream of segments into entry pairs.

        Args:
            segments: AlignmentSegment records in aligner output order
            ref_lengths: Optional mapping of reference entry name to length
            query_lengths: Optional mapping of contig entry name to length
            reference_file: Reference FASTA path recorded with the alignments
            query_file: Contig FASTA path recorded with the alignments

        Returns:
            AlignmentIndex with one entry pair per (reference, contig) combination,
            ordered by first appearance
        """
        ref_lengths = ref_lengths or {}
        query_lengths = query_lengths or {}
        grouped: Dict[Tuple[str, str], List[AlignmentSegment]] = {}
        for segment in segments:
            grouped.setdefault((segment.ref_entry, segment.query_entry), []).append(segment)

        entry_pairs = [
            EntryPair(
                ref_entry=ref,
                query_entry=query,
                segments=tuple(segs),
                ref_length=ref_lengths.get(ref),
                query_length=query_lengths.get(query),
            )
            for (ref, query), segs in grouped.items()
        ]
        return cls(entry_pairs, reference_file=reference_file, query_file=query_file)

    @classmethod
    def from_delta(cls, path: str):
        """Build an index from a MUMmer delta file."""
        return read_delta(path)

    @property
    def entry_pairs(self) -> Tuple[EntryPair, ...]:
        return self._entry_pairs

    @property
    def reference_entries(self) -> List[str]:
        return list(self._by_ref)

    def entry_pairs_for_reference(self, ref_entry: str) -> List[EntryPair]:
        """Entry pairs aligned to a reference entry, in insertion order."""
        return [self._entry_pairs[i] for i in self._by_ref.get(ref_entry, ())]

    def entry_pairs_for_contig(self, query_entry: str) -> List[EntryPair]:
        """Entry pairs involving a contig, in insertion order."""
        return [self._entry_pairs[i] for i in self._by_query.get(query_entry, ())]

    def segments_for_contig(self, query_entry: str) -> List[AlignmentSegment]:
        """Every segment of a contig, across all reference entries."""
        segments = []
        for pair in self.entry_pairs_for_contig(query_entry):
            segments.extend(pair.segments)
        return segments

    def reference_length(self, ref_entry: str) -> Optional[int]:
        return self._ref_lengths.get(ref_entry)

    def contig_length(self, query_entry: str) -> Optional[int]:
        return self._query_lengths.get(query_entry)

    def __len__(self):
        return len(self._entry_pairs)


def _parse_ints(fields, line_no, what):
    try:
        return [int(f) for f in fields]
    except ValueError:
        raise MalformedInputError(f"Delta line {line_no}: non-integer {what}: {' '.join(fields)}")


def read_delta(path: str) -> AlignmentIndex:
    """
    Read a MUMmer delta file into an AlignmentIndex.

    Args:
        path: Path to a .delta file written by nucmer or promer

    Returns:
        AlignmentIndex over every alignment in the file

    Raises:
        MalformedInputError: If the file does not follow the delta format

    Notes:
        Each header line ">ref query reflen querylen" is followed by one or
        more alignment lines "rs re qs qe errors simerrors stops", each
        followed by its indel offsets and a terminating 0.
    """
    with open(path, "r") as f:
        lines = [line.rstrip("\n") for line in f]

    if len(lines) < 2:
        raise MalformedInputError(
            f"Delta file '{path}' is missing its file and program header lines"
        )

    file_fields = lines[0].split()
    if len(file_fields) != 2:
        raise MalformedInputError(
            f"Delta file '{path}' line 1 should name the reference and query files"
        )
    reference_file, query_file = file_fields

    ref_entry = query_entry = None
    ref_lengths: Dict[str, int] = {}
    query_lengths: Dict[str, int] = {}
    segments: List[AlignmentSegment] = []
    current = None  # coordinates of the alignment whose deltas are being read
    deltas: List[int] = []

    for line_no, line in enumerate(lines[2:], start=3):
        fields = line.split()
        if not fields:
            continue

        if line.startswith(">"):
            if current is not None:
                raise MalformedInputError(f"Delta line {line_no}: alignment not terminated by 0")
            if len(fields) != 4:
                raise MalformedInputError(f"Delta line {line_no}: malformed header '{line}'")
            ref_entry, query_entry = fields[0][1:], fields[1]
            ref_length, query_length = _parse_ints(fields[2:], line_no, "entry lengths")
            ref_lengths[ref_entry] = ref_length
            query_lengths[query_entry] = query_length
            continue

        if ref_entry is None:
            raise MalformedInputError(f"Delta line {line_no}: alignment before any '>' header")

        if current is None:
            if len(fields) != 7:
                raise MalformedInputError(
                    f"Delta line {line_no}: expected 7 alignment fields, got {len(fields)}"
                )
            rs, re_, qs, qe = _parse_ints(fields[:4], line_no, "alignment coordinates")
            current = (rs, re_, qs, qe)
            deltas = []
            continue

        if len(fields) != 1:
            raise MalformedInputError(
                f"Delta line {line_no}: expected one indel offset, got '{line}'"
            )
        (value,) = _parse_ints(fields, line_no, "indel offset")
        if value != 0:
            deltas.append(value)
            continue

        rs, re_, qs, qe = current
        segments.append(
            AlignmentSegment(
                ref_entry=ref_entry,
                ref_start=rs,
                ref_end=re_,
                query_entry=query_entry,
                query_start=qs,
                query_end=qe,
                deltas=tuple(deltas),
            )
        )
        current = None

    if current is not None:
        raise MalformedInputError(f"Delta file '{path}' ends inside an alignment record")
    # a repeated ">ref query" header continues the same entry pair
    return AlignmentIndex.from_segments(
        segments,
        ref_lengths,
        query_lengths,
        reference_file=reference_file,
        query_file=query_file,
    )
