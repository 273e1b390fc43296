"""
Tests for VCF record construction, header output and VCF reading.
"""

import datetime
import io

import pytest

from svrefine.breakpoints import classify_breakpoint
from svrefine.core import FORWARD, REVERSE, RefineConfig, InvalidSequenceDataError
from svrefine.refine import CoordinateRefiner
from svrefine.sequence_utils import SequenceAccessor, complement_str, rc_str
from svrefine.vcf_writer import (
    VariantRecordBuilder,
    parse_vcf_info,
    read_vcf,
    write_vcf_header,
)

from conftest import seg, write_fasta


def build(left, right, orientation=FORWARD, config=None, ref_accessor=None, contig_accessor=None):
    config = config or RefineConfig(buffer=100, bufseg=20)
    refined = CoordinateRefiner(config).refine(classify_breakpoint(left, right, orientation))
    return VariantRecordBuilder(config, ref_accessor, contig_accessor).build(refined)


class TestSymbolicRecords:
    """Test VCF lines written without sequences."""

    def test_deletion(self):
        record = build(seg(1, 1000, 1, 1000), seg(1051, 3000, 1001, 2950))
        assert record.to_vcf_line() == "\t".join([
            "chr1", "1000", ".", "N", "<DEL>", ".", "PASS",
            "END=1050;SVTYPE=DEL;SVLEN=-50;HOMAPPLEN=0;REFWIDENED=chr1:1000-1050;"
            "CONTIGALTPOS=ctg1:1000;CONTIGWIDENED=ctg1:1000-1000",
            "GT", "1",
        ])

    def test_insertion(self):
        record = build(seg(1, 1000, 1, 1000), seg(1001, 3000, 1051, 3050))
        assert record.pos == 1001
        assert record.alt_seq == "<INS>"
        assert record.info == (
            "END=1001;SVTYPE=INS;SVLEN=50;HOMAPPLEN=0;REFWIDENED=chr1:1001-1000;"
            "CONTIGALTPOS=ctg1:999-1051;CONTIGWIDENED=ctg1:999-1050"
        )

    def test_contraction(self):
        record = build(seg(1, 1000, 1, 1000), seg(1001, 3000, 951, 2950))
        assert record.pos == 951
        assert record.info == (
            "END=1001;SVTYPE=CON;SVLEN=-50;HOMAPPLEN=50;REFWIDENED=chr1:951-1050;"
            "CONTIGALTPOS=ctg1:951;CONTIGWIDENED=ctg1:951-1000"
        )

    def test_repetitive_insertion(self):
        record = build(seg(1, 1000, 1, 1000), seg(981, 3000, 1031, 3050))
        assert (record.pos, record.end) == (981, 981)
        assert record.sv_len == 50
        assert record.homology == 20
        assert record.contig_alt_pos == "ctg1:981-1031"
        assert "REFWIDENED=chr1:981-1000" in record.info
        assert "CONTIGWIDENED=ctg1:981-1050" in record.info

    def test_duplication(self):
        record = build(seg(1, 1000, 1, 1000), seg(951, 3000, 1001, 3050))
        assert record.sv_type == "DUP"
        assert record.pos == 951
        assert record.sv_len == 50
        assert record.contig_widened == (951, 1050)

    def test_reverse_deletion_marks_complement(self):
        record = build(seg(1, 1000, 3000, 2001), seg(1051, 3000, 2000, 51), REVERSE)
        assert record.pos == 1000
        assert record.info == (
            "END=1050;SVTYPE=DEL;SVLEN=-50;HOMAPPLEN=0;REFWIDENED=chr1:1000-1050;"
            "CONTIGALTPOS=ctg1:2001;CONTIGWIDENED=ctg1:2001-2001_comp"
        )

    def test_substitution_record(self):
        record = build(seg(1, 1000, 1, 1000), seg(1021, 3000, 1011, 3000))
        assert record.sv_type == "SUBSDEL"
        assert (record.pos, record.end) == (1000, 1020)
        assert record.sv_len == -10
        assert record.homology == 0
        assert (record.ref_seq, record.alt_seq) == ("N", "N")

    def test_deletion_svlen_is_negative(self):
        for right in (seg(1051, 3000, 1001, 2950), seg(1001, 3000, 951, 2950)):
            record = build(seg(1, 1000, 1, 1000), right)
            assert record.sv_len < 0


class TestSequenceRecords:
    """Test REF/ALT retrieval with include_seqs."""

    @pytest.fixture
    def accessors(self, fasta_files):
        ref_fa, qry_fa = fasta_files
        return SequenceAccessor(ref_fa), SequenceAccessor(qry_fa)

    @pytest.fixture
    def seq_config(self):
        return RefineConfig(buffer=100, bufseg=20, include_seqs=True)

    def test_requires_accessors(self, seq_config):
        with pytest.raises(ValueError):
            VariantRecordBuilder(seq_config)

    def test_deletion_sequences(self, seq_config, accessors, reference_seq):
        record = build(seg(1, 1000, 1, 1000), seg(1051, 3000, 1001, 2950), FORWARD, seq_config, *accessors)
        # REF covers the preceding base plus the 50 deleted bases
        assert record.ref_seq == reference_seq[999:1050]
        assert record.alt_seq == reference_seq[999]
        assert record.ref_seq[0] == record.alt_seq

    def test_insertion_sequences(self, seq_config, accessors, reference_seq, contig_seq):
        record = build(seg(1, 1000, 1, 1000), seg(1001, 3000, 1051, 3050), FORWARD, seq_config, *accessors)
        assert record.ref_seq == reference_seq[1000]
        assert record.alt_seq == contig_seq[998:1051]

    def test_reverse_insertion_sequences(self, seq_config, accessors, contig_seq):
        record = build(seg(1, 1000, 3050, 2051), seg(1001, 3000, 2000, 1), REVERSE, seq_config, *accessors)
        assert (record.alt_pos, record.alt_end) == (2050, 2000)
        assert record.alt_seq == rc_str(contig_seq[1999:2050])
        assert len(record.alt_seq) == 51

    def test_reverse_single_base_is_complemented(self, seq_config, accessors, contig_seq):
        # a reference base aligned to a gap inside the overlap leaves the
        # ALT interval a single contig base
        left = seg(1, 1000, 3050, 2052, deltas=(991,))
        right = seg(981, 3000, 2070, 51)
        record = build(left, right, REVERSE, seq_config, *accessors)
        assert (record.sv_type, record.homology) == ("DUP", 20)
        assert record.alt_pos == record.alt_end == 2070
        assert record.alt_seq == complement_str(contig_seq[2069])

    def test_invalid_reverse_sequence(self, tmp_path, seq_config, reference_seq, contig_seq):
        bad_contig = contig_seq[:2009] + "X" + contig_seq[2010:]
        ref_fa = write_fasta(tmp_path / "ref_bad.fa", {"chr1": reference_seq})
        qry_fa = write_fasta(tmp_path / "qry_bad.fa", {"ctg1": bad_contig})
        with pytest.raises(InvalidSequenceDataError, match="non ATGC char"):
            build(
                seg(1, 1000, 3050, 2051), seg(1001, 3000, 2000, 1), REVERSE, seq_config,
                SequenceAccessor(ref_fa), SequenceAccessor(qry_fa),
            )


class TestHeader:
    """Test VCF header output."""

    def test_header_lines(self):
        fh = io.StringIO()
        config = RefineConfig(sample_name="HG002", ref_name="GRCh38")
        write_vcf_header(fh, config, date=datetime.date(2024, 3, 5))
        lines = fh.getvalue().splitlines()
        assert lines[0] == "##fileformat=VCFv4.2"
        assert lines[1] == "##fileDate=20240305"
        assert "##reference=GRCh38" in lines
        assert any(l.startswith("##INFO=<ID=HOMAPPLEN") for l in lines)
        assert any(l.startswith("##FORMAT=<ID=GT") for l in lines)
        assert lines[-1].split("\t") == [
            "#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT", "HG002"
        ]

    def test_no_reference_line_without_name(self):
        fh = io.StringIO()
        write_vcf_header(fh, RefineConfig())
        assert "##reference" not in fh.getvalue()
        assert fh.getvalue().rstrip().endswith("SAMPLE")


class TestReadVcf:
    """Test parsing svrefine VCF output back into a DataFrame."""

    def test_parse_vcf_info(self):
        info = parse_vcf_info("END=1050;SVTYPE=DEL;SVLEN=-50;REFWIDENED=chr1:1000-1050;FLAG")
        assert info == {
            "END": 1050,
            "SVTYPE": "DEL",
            "SVLEN": -50,
            "REFWIDENED": "chr1:1000-1050",
            "FLAG": True,
        }
        assert parse_vcf_info(".") == {}

    def test_read_vcf(self, tmp_path):
        record = build(seg(1, 1000, 1, 1000), seg(1051, 3000, 1001, 2950))
        path = tmp_path / "out.vcf"
        with open(path, "w") as fh:
            write_vcf_header(fh, RefineConfig())
            fh.write(record.to_vcf_line() + "\n")

        df = read_vcf(str(path))
        assert len(df) == 1
        row = df.iloc[0]
        assert row["chrom"] == "chr1"
        assert row["pos"] == 1000
        assert row["alt"] == "<DEL>"
        assert row["SVTYPE"] == "DEL"
        assert row["SVLEN"] == -50
        assert row["CONTIGWIDENED"] == "ctg1:1000-1000"

    def test_read_empty_vcf(self, tmp_path):
        path = tmp_path / "empty.vcf"
        with open(path, "w") as fh:
            write_vcf_header(fh, RefineConfig())
        df = read_vcf(str(path))
        assert df.empty
        assert list(df.columns)[:2] == ["chrom", "pos"]
