"""
Shared fixtures for svrefine tests.

Synthetic data: a 3000 bp reference chromosome 'chr1' and a 3100 bp
contig 'ctg1', plus helpers to write delta, BED and FASTA files.
"""

import numpy as np
import pytest

from svrefine.alignment_index import AlignmentSegment, AlignmentIndex
from svrefine.core import RefineConfig

CHROM_LENGTH = 3000
CONTIG_LENGTH = 3100


def random_seq(length, seed):
    rng = np.random.RandomState(seed)
    return "".join(rng.choice(list("ACGT"), length))


def write_fasta(path, entries, width=60):
    """Write {name: sequence} to a FASTA file with fixed line width."""
    with open(path, "w") as f:
        for name, seq in entries.items():
            f.write(f">{name}\n")
            for i in range(0, len(seq), width):
                f.write(seq[i : i + width] + "\n")
    return str(path)


def write_delta(
    path,
    segments,
    ref_fasta="ref.fa",
    query_fasta="qry.fa",
    ref_lengths=None,
    query_lengths=None,
):
    """Write AlignmentSegments as a delta file, one header per (ref, query) pair."""
    ref_lengths = ref_lengths or {}
    query_lengths = query_lengths or {}
    grouped = {}
    for seg in segments:
        grouped.setdefault((seg.ref_entry, seg.query_entry), []).append(seg)

    lines = [f"{ref_fasta} {query_fasta}", "NUCMER"]
    for (ref, query), segs in grouped.items():
        ref_len = ref_lengths.get(ref, CHROM_LENGTH)
        query_len = query_lengths.get(query, CONTIG_LENGTH)
        lines.append(f">{ref} {query} {ref_len} {query_len}")
        for seg in segs:
            coords = (seg.ref_start, seg.ref_end, seg.query_start, seg.query_end)
            lines.append(" ".join(str(c) for c in coords) + " 0 0 0")
            lines.extend(str(d) for d in seg.deltas)
            lines.append("0")
    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")
    return str(path)


def write_bed(path, lines):
    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")
    return str(path)


def seg(ref_start, ref_end, query_start, query_end, ref="chr1", contig="ctg1", deltas=()):
    """Shorthand AlignmentSegment constructor."""
    return AlignmentSegment(ref, ref_start, ref_end, contig, query_start, query_end, deltas=deltas)


def make_index(segments, chrom_length=CHROM_LENGTH):
    refs = {s.ref_entry for s in segments}
    return AlignmentIndex.from_segments(segments, ref_lengths={r: chrom_length for r in refs})


@pytest.fixture
def config():
    """Small flanks so a region at chr1:1000-1005 fits on a 3000 bp chromosome."""
    return RefineConfig(buffer=100, bufseg=20)


@pytest.fixture
def reference_seq():
    return random_seq(CHROM_LENGTH, seed=1)


@pytest.fixture
def contig_seq():
    return random_seq(CONTIG_LENGTH, seed=2)


@pytest.fixture
def fasta_files(tmp_path, reference_seq, contig_seq):
    ref_fa = write_fasta(
        tmp_path / "ref.fa", {"chr1": reference_seq, "chr2": random_seq(500, seed=3)}
    )
    qry_fa = write_fasta(tmp_path / "qry.fa", {"ctg1": contig_seq})
    return ref_fa, qry_fa
