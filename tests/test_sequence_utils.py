"""
Tests for FASTA access and nucleotide string helpers.
"""

from svrefine.sequence_utils import SequenceAccessor, complement_str, has_invalid_bases, rc_str


class TestStringHelpers:
    def test_rc_str(self):
        assert rc_str("AACG") == "CGTT"
        assert rc_str("acgN") == "Ncgt"

    def test_complement_str(self):
        assert complement_str("AACG") == "TTGC"

    def test_has_invalid_bases(self):
        assert not has_invalid_bases("ACGTNacgtn")
        assert has_invalid_bases("ACGX")
        assert has_invalid_bases("AC-G")


class TestSequenceAccessor:
    """Test 1-based, strand-aware FASTA retrieval."""

    def test_forward_interval(self, fasta_files, reference_seq):
        accessor = SequenceAccessor(fasta_files[0])
        assert accessor.seq("chr1", 1, 10) == reference_seq[:10]
        assert accessor.seq("chr1", 1000, 1050) == reference_seq[999:1050]

    def test_reverse_interval(self, fasta_files, contig_seq):
        accessor = SequenceAccessor(fasta_files[1])
        assert accessor.seq("ctg1", 2050, 2000) == rc_str(contig_seq[1999:2050])

    def test_single_base(self, fasta_files, reference_seq):
        accessor = SequenceAccessor(fasta_files[0])
        assert accessor.seq("chr1", 1000, 1000) == reference_seq[999]

    def test_lengths_and_membership(self, fasta_files):
        accessor = SequenceAccessor(fasta_files[0])
        assert accessor.length("chr1") == 3000
        assert accessor.length("chr2") == 500
        assert "chr1" in accessor
        assert "chrUn" not in accessor
