"""
VCF output for refined structural variants.

This module turns refined breakpoints into VCF 4.2 records, writes the
header, and reads svrefine VCF files back into pandas DataFrames.
"""

import io
import re
import datetime
import pandas as pd
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .core import (
    REVERSE,
    INSERTION_TYPES,
    DELETION_TYPES,
    RefineConfig,
    InvalidSequenceDataError,
)
from .refine import RefinedBreakpoint
from .sequence_utils import SequenceAccessor, complement_str, has_invalid_bases

VCF_COLUMNS = ["chrom", "pos", "id", "ref", "alt", "qual", "filter", "info", "format", "sample"]


@dataclass
class VariantRecord:
    """A single refined SV, ready to be written as a VCF data line."""
    chrom: str
    pos: int
    end: int
    sv_type: str
    sv_len: int                           # negative for deletions
    homology: int
    contig: str
    alt_pos: int
    alt_end: int
    ref_widened: Tuple[int, int]
    contig_widened: Tuple[int, int]
    orientation: int
    ref_seq: str = "N"
    alt_seq: str = "N"

    @property
    def contig_alt_pos(self) -> str:
        if self.sv_type in INSERTION_TYPES:
            return f"{self.contig}:{self.alt_pos}-{self.alt_end}"
        return f"{self.contig}:{self.alt_pos}"

    @property
    def info(self) -> str:
        comp = "_comp" if self.orientation == REVERSE else ""
        return (
            f"END={self.end};SVTYPE={self.sv_type};SVLEN={self.sv_len};HOMAPPLEN={self.homology};"
            f"REFWIDENED={self.chrom}:{self.ref_widened[0]}-{self.ref_widened[1]};"
            f"CONTIGALTPOS={self.contig_alt_pos};"
            f"CONTIGWIDENED={self.contig}:{self.contig_widened[0]}-{self.contig_widened[1]}{comp}"
        )

    def to_vcf_line(self) -> str:
        return "\t".join(
            [
                self.chrom,
                str(self.pos),
                ".",
                self.ref_seq,
                self.alt_seq,
                ".",
                "PASS",
                self.info,
                "GT",
                "1",
            ]
        )


class VariantRecordBuilder:
    """
    Build VCF records from refined breakpoints.

    Sequence accessors are only consulted when include_seqs is set in the
    configuration; otherwise REF is 'N' and ALT is symbolic.
    """

    def __init__(
        self,
        config: RefineConfig,
        ref_accessor: Optional[SequenceAccessor] = None,
        contig_accessor: Optional[SequenceAccessor] = None,
    ):
        if config.include_seqs and (ref_accessor is None or contig_accessor is None):
            raise ValueError("Reference and contig FASTA files are required to include sequences")
        self.config = config
        self.ref_accessor = ref_accessor
        self.contig_accessor = contig_accessor

    def build(self, refined: RefinedBreakpoint) -> VariantRecord:
        """
        Assemble and normalize the VCF record for a refined breakpoint.

        Args:
            refined: Output of CoordinateRefiner.refine

        Returns:
            VariantRecord with VCF coordinates and, if requested, sequences
        """
        c = refined.candidate
        if c.sv_type in INSERTION_TYPES:
            record = self._insertion_record(refined)
        elif c.sv_type in DELETION_TYPES:
            record = self._deletion_record(refined)
        else:
            record = self._generic_record(refined)
        return record

    def _insertion_record(self, refined: RefinedBreakpoint) -> VariantRecord:
        c = refined.candidate
        record = VariantRecord(
            chrom=c.chrom,
            pos=c.ref2,
            end=c.ref2,
            sv_type=c.sv_type,
            sv_len=abs(c.size),
            homology=c.homology,
            contig=c.contig,
            alt_pos=refined.query2p,
            alt_end=c.query2,
            ref_widened=(c.ref2, c.ref1),
            contig_widened=(refined.query2p, refined.query1p),
            orientation=c.orientation,
            alt_seq="<INS>",
        )
        if self.config.include_seqs:
            record.ref_seq = self.ref_accessor.seq(record.chrom, record.pos, record.pos)
            record.alt_seq = self._contig_seq(
                record.contig, record.alt_pos, record.alt_end, c.orientation
            )
        return record

    def _deletion_record(self, refined: RefinedBreakpoint) -> VariantRecord:
        c = refined.candidate
        pos, end = refined.ref2p, c.ref2
        ref2p = refined.ref2p
        query2 = c.query2
        if not c.homology:
            # REF must start with the unchanged base preceding the deleted interval
            pos += 1
            end -= 1
            ref2p += 1
            query2 += 1 if c.orientation == REVERSE else -1

        record = VariantRecord(
            chrom=c.chrom,
            pos=pos,
            end=end,
            sv_type=c.sv_type,
            sv_len=-abs(c.size),
            homology=c.homology,
            contig=c.contig,
            alt_pos=query2,
            alt_end=query2,
            ref_widened=(ref2p, refined.ref1p),
            contig_widened=(query2, c.query1),
            orientation=c.orientation,
            alt_seq="<DEL>",
        )
        if self.config.include_seqs:
            record.ref_seq = self.ref_accessor.seq(record.chrom, record.pos, record.end)
            record.alt_seq = self.ref_accessor.seq(record.chrom, record.pos, record.pos)
        return record

    def _generic_record(self, refined: RefinedBreakpoint) -> VariantRecord:
        c = refined.candidate
        alt_end = c.query2 + 1 if c.orientation == REVERSE else c.query2 - 1
        sv_len = -abs(c.size) if "DEL" in c.sv_type else abs(c.size)
        record = VariantRecord(
            chrom=c.chrom,
            pos=c.ref1,
            end=c.ref2 - 1,
            sv_type=c.sv_type,
            sv_len=sv_len,
            homology=0,
            contig=c.contig,
            alt_pos=c.query1,
            alt_end=alt_end,
            ref_widened=(c.ref1, c.ref2),
            contig_widened=(c.query1, c.query2),
            orientation=c.orientation,
        )
        if self.config.include_seqs:
            record.ref_seq = self.ref_accessor.seq(record.chrom, record.pos, record.end)
            record.alt_seq = self.contig_accessor.seq(record.contig, record.alt_pos, record.alt_end)
        return record

    def _contig_seq(self, contig: str, alt_pos: int, alt_end: int, orientation: int) -> str:
        """
        Contig bases from alt_pos to alt_end, reverse complemented when
        alt_pos > alt_end.

        Raises:
            InvalidSequenceDataError: If a reverse interval holds characters
                other than A, C, G, T or N
        """
        if alt_pos > alt_end:
            forward = self.contig_accessor.seq(contig, alt_end, alt_pos)
            if has_invalid_bases(forward):
                raise InvalidSequenceDataError(
                    f"Seq {contig}:{alt_end}-{alt_pos} has non ATGC char!"
                )
        if self.config.verbose:
            print(f"Retrieving {contig}:{alt_pos}-{alt_end}")
        seq = self.contig_accessor.seq(contig, alt_pos, alt_end)
        if orientation == REVERSE and alt_pos == alt_end:
            # a single base carries no direction for the accessor
            seq = complement_str(seq)
        return seq


def write_vcf_header(fh, config: RefineConfig, date: Optional[datetime.date] = None):
    """
    Write the VCF 4.2 meta-information and column header lines.

    Args:
        fh: Writable text file handle
        config: Run configuration supplying sample and reference names
        date: File date (default: today)
    """
    date = date or datetime.date.today()
    lines = [
        "##fileformat=VCFv4.2",
        f"##fileDate={date.strftime('%Y%m%d')}",
        "##source=svrefine",
    ]
    if config.ref_name:
        lines.append(f"##reference={config.ref_name}")
    lines.extend([
        '##ALT=<ID=DEL,Description="Deletion">',
        '##ALT=<ID=INS,Description="Insertion">',
        '##INFO=<ID=END,Number=1,Type=Integer,Description="End coordinate of SV">',
        '##INFO=<ID=SVTYPE,Number=1,Type=String,Description="Type of SV:DEL=Deletion, CON=Contraction, INS=Insertion, DUP=Duplication">',
        '##INFO=<ID=SVLEN,Number=.,Type=Integer,Description="Difference in length between ALT and REF alleles (negative for deletions from reference)">',
        '##INFO=<ID=HOMAPPLEN,Number=.,Type=Integer,Description="Length of alignable homology at event breakpoints as determined by the aligner">',
        '##INFO=<ID=REFWIDENED,Number=1,Type=String,Description="Reference interval of the breakpoint widened across homology">',
        '##INFO=<ID=CONTIGALTPOS,Number=1,Type=String,Description="Contig position or interval of the ALT allele">',
        '##INFO=<ID=CONTIGWIDENED,Number=1,Type=String,Description="Contig interval of the breakpoint widened across homology, _comp for reverse-aligned contigs">',
        '##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">',
        "\t".join(["#CHROM", "POS", "ID", "REF", "ALT", "QUAL", "FILTER", "INFO", "FORMAT", config.sample_name]),
    ])
    fh.write("\n".join(lines) + "\n")


def parse_vcf_info(info_string: str) -> Dict:
    """
    Parse a VCF INFO field.

    Args:
        info_string: INFO field string (e.g., "END=1050;SVTYPE=DEL;SVLEN=-50")

    Returns:
        dict: INFO values, with integer-looking values converted to int

    Examples:
        parse_vcf_info("END=1050;SVTYPE=DEL;SVLEN=-50")
        → {'END': 1050, 'SVTYPE': 'DEL', 'SVLEN': -50}
    """
    info_dict = {}
    if not info_string or info_string == ".":
        return info_dict

    for field in info_string.split(";"):
        field = field.strip()
        if not field:
            continue
        if "=" not in field:
            info_dict[field] = True
            continue
        key, value = field.split("=", 1)
        key, value = key.strip(), value.strip()
        info_dict[key] = int(value) if re.fullmatch(r"-?\d+", value) else value
    return info_dict


def read_vcf(path, include_info=True):
    """
    Read an svrefine VCF file into a pandas DataFrame.

    Args:
        path: Path to VCF file
        include_info: Whether to add one column per INFO key (default: True)

    Returns:
        DataFrame with columns: chrom, pos, id, ref, alt, qual, filter, info,
        format, sample, [END, SVTYPE, SVLEN, ...]
    """
    with open(path, "r") as f:
        lines = [l for l in f if not l.startswith("#")]

    if not lines:
        return pd.DataFrame(columns=VCF_COLUMNS)

    df = pd.read_csv(
        io.StringIO("".join(lines)),
        sep="\t",
        header=None,
        names=VCF_COLUMNS,
        dtype={"chrom": str, "ref": str, "alt": str, "sample": str},
        keep_default_na=False,
    )

    if include_info:
        info_df = pd.DataFrame([parse_vcf_info(info) for info in df["info"]])
        df = pd.concat([df, info_df], axis=1)
    return df
