"""
Command line interface for svrefine.

Reads regions from a BED file and uses MUMmer alignments of an assembly
to the reference to refine structural variants, writing them in VCF
format. Regions without spanning alignments and regions covered by a
single unbroken alignment are written to a BED file named after the VCF.
"""

import argparse
import os
import sys

from pyfaidx import FastaIndexingError

from . import __version__
from .alignment_index import read_delta
from .core import RefineConfig, SVRefineError
from .engine import SVRefiner, diagnostic_path
from .regions import read_regions
from .sequence_utils import SequenceAccessor


def create_arg_parser():
    parser = argparse.ArgumentParser(
        prog="svrefine",
        description=(
            "Refine structural variants in BED regions from "
            "assembly-to-reference MUMmer alignments."
        ),
    )
    parser.add_argument(
        "--delta",
        required=True,
        help="MUMmer delta file of contig alignments to the reference",
    )
    parser.add_argument("--regions", required=True, help="BED file of regions to refine")
    parser.add_argument(
        "--outvcf", required=True, help="output VCF path (overwritten if present)"
    )
    parser.add_argument(
        "--ref_fasta",
        help="reference multi-FASTA (default: path recorded in the delta file)",
    )
    parser.add_argument(
        "--query_fasta",
        help="contig multi-FASTA (default: path recorded in the delta file)",
    )
    parser.add_argument(
        "--buffer",
        type=int,
        default=1000,
        help="distance from each region boundary to the outer edge of its flank window [1000]",
    )
    parser.add_argument(
        "--bufseg", type=int, default=50, help="width of each flank window [50]"
    )
    parser.add_argument(
        "--includeseqs",
        action="store_true",
        help="write REF/ALT sequences instead of symbolic alleles",
    )
    parser.add_argument(
        "--samplename",
        default="SAMPLE",
        help="sample name for the VCF genotype column [SAMPLE]",
    )
    parser.add_argument("--refname", help="value for the ##reference header line")
    parser.add_argument(
        "--noheader", action="store_true", help="do not write the VCF header"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="print per-region diagnostics"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def _open_accessor(path, label, required):
    if path and os.path.exists(path):
        return SequenceAccessor(path)
    if required:
        raise SVRefineError(
            f"{label} FASTA file '{path}' not found; it is required with --includeseqs"
        )
    return None


def main(argv=None):
    args = create_arg_parser().parse_args(argv)

    try:
        config = RefineConfig(
            buffer=args.buffer,
            bufseg=args.bufseg,
            include_seqs=args.includeseqs,
            verbose=args.verbose,
            sample_name=args.samplename,
            ref_name=args.refname,
            write_header=not args.noheader,
        )
    except ValueError as e:
        sys.exit(f"ERROR: {e}")

    try:
        index = read_delta(args.delta)
        ref_accessor = _open_accessor(
            args.ref_fasta or index.reference_file, "Reference", args.includeseqs
        )
        contig_accessor = _open_accessor(
            args.query_fasta or index.query_file, "Query", args.includeseqs
        )
        regions = read_regions(args.regions)

        refiner = SVRefiner(index, config, ref_accessor, contig_accessor)
        with open(args.outvcf, "w") as vcf_fh, open(
            diagnostic_path(args.outvcf), "w"
        ) as diag_fh:
            summary = refiner.run(regions, vcf_fh, diag_fh)
    except (SVRefineError, FastaIndexingError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        print(
            f"Processed {summary['regions']} regions: {summary['records']} variants, "
            f"{summary['nocov']} without coverage, "
            f"{summary['homref']} reference-covered contigs, "
            f"{summary['inversions']} possible inversions"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
