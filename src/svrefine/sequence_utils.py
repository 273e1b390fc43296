"""
Sequence retrieval utilities for svrefine.

This module wraps pyfaidx FASTA access with the 1-based, strand-aware
interface the variant builder uses, plus small string helpers.
"""

from typing import Union
from pyfaidx import Fasta

from .core import VALID_BASES

_COMPLEMENT = str.maketrans("ACGTacgt", "TGCAtgca")


def complement_str(seq):
    """
    Complement a nucleotide string without reversing it.

    Args:
        seq: A string of nucleotides

    Returns:
        The complemented string
    """
    return seq.translate(_COMPLEMENT)


def rc_str(seq):
    """
    Reverse complement a nucleotide string.

    Args:
        seq: A string of nucleotides

    Returns:
        The reverse complement string
    """
    return complement_str(seq)[::-1]


def has_invalid_bases(seq: str) -> bool:
    """Return True if seq contains anything other than A, C, G, T or N."""
    return any(base not in VALID_BASES for base in seq.upper())


class SequenceAccessor:
    """
    Read-only access to the entries of a multi-FASTA file.

    Coordinates are 1-based and inclusive. When start is greater than end
    the interval is read from end to start and reverse complemented, so a
    contig aligned on the reverse strand can be read in reference order.
    A single base (start == end) carries no direction and is always
    returned as stored.
    """

    def __init__(self, fasta: Union[str, Fasta]):
        if isinstance(fasta, str):
            fasta = Fasta(fasta, sequence_always_upper=True, as_raw=True)
        self.fasta = fasta

    def __contains__(self, entry):
        return entry in self.fasta.keys()

    def length(self, entry: str) -> int:
        """Length of a FASTA entry in bases."""
        return len(self.fasta[entry])

    def seq(self, entry: str, start: int, end: int) -> str:
        """
        Retrieve bases from a FASTA entry.

        Args:
            entry: FASTA entry name
            start: 1-based first position
            end: 1-based last position (inclusive)

        Returns:
            Uppercase sequence, reverse complemented when start > end
        """
        if start > end:
            return rc_str(self.seq(entry, end, start))
        bases = self.fasta[entry][start - 1 : end]
        if hasattr(bases, "seq"):  # pyfaidx Sequence objects
            bases = bases.seq
        return str(bases).upper()
