"""
Region-by-region structural variant refinement.

SVRefiner walks the candidate regions in input order. For each region it
checks the flank windows fit on the chromosome, selects contigs whose
alignments span both flanks, classifies the breakpoint pattern of each
such contig, refines breakpoint coordinates and builds VCF records.
Regions without a spanning contig, and contigs aligned without a break,
are reported as diagnostic lines (NOCOV / HOMREF).
"""

import re
import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from .alignment_index import AlignmentIndex
from .breakpoints import BreakpointClassifier, HOMREF, SIMPLE, INVERSION
from .chromosome_utils import match_chromosomes_with_report, apply_chromosome_mapping
from .core import RefineConfig
from .refine import CoordinateRefiner
from .regions import Region
from .sequence_utils import SequenceAccessor
from .span_validator import RegionSpanValidator
from .vcf_writer import VariantRecord, VariantRecordBuilder, write_vcf_header

NOCOV = "NOCOV"
PROCESSED = "PROCESSED"


@dataclass
class RegionResult:
    """Records and diagnostic lines produced for one region."""
    region: Region
    status: str                                             # NOCOV or PROCESSED
    records: List[VariantRecord] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    inversions: List[str] = field(default_factory=list)     # contigs flagged as inversions


def diagnostic_path(vcf_path: str) -> str:
    """Path of the NOCOV/HOMREF file written next to a VCF ('out.vcf.gz' -> 'out.bed')."""
    return re.sub(r"\.vcf.*$", "", vcf_path) + ".bed"


class SVRefiner:
    """
    Refine SV breakpoints in candidate regions from contig alignments.

    Args:
        index: Alignments of the assembly contigs to the reference
        config: Run configuration
        ref_accessor: Reference FASTA access (chromosome lengths and REF bases)
        contig_accessor: Contig FASTA access (ALT bases)
    """

    def __init__(
        self,
        index: AlignmentIndex,
        config: Optional[RefineConfig] = None,
        ref_accessor: Optional[SequenceAccessor] = None,
        contig_accessor: Optional[SequenceAccessor] = None,
    ):
        self.index = index
        self.config = config or RefineConfig()
        self.ref_accessor = ref_accessor
        self.validator = RegionSpanValidator(self.config)
        self.classifier = BreakpointClassifier(self.config)
        self.refiner = CoordinateRefiner(self.config)
        self.builder = VariantRecordBuilder(self.config, ref_accessor, contig_accessor)

    def chrom_length(self, chrom: str) -> Optional[int]:
        """Chromosome length from the reference FASTA, falling back to the delta header."""
        if self.ref_accessor is not None and chrom in self.ref_accessor:
            return self.ref_accessor.length(chrom)
        return self.index.reference_length(chrom)

    def refine_region(self, region: Region) -> RegionResult:
        """
        Refine a single region.

        Args:
            region: Candidate region with chromosome named as in the alignments

        Returns:
            RegionResult with any VCF records and diagnostic lines

        Raises:
            MismatchedCoordinatesError: If alignment projections are inconsistent
            InvalidSequenceDataError: If retrieved contig sequence is invalid
        """
        verbose = self.config.verbose
        nocov = RegionResult(region, NOCOV, diagnostics=[f"{NOCOV}\t{region}"])

        if not region.in_bounds(self.chrom_length(region.chrom), self.config):
            if verbose:
                print(f"SKIPPING REGION {region} because it is too close to chromosome end!")
            return nocov

        left_window = region.left_window(self.config)
        right_window = region.right_window(self.config)
        valid_pairs = self.validator.validate(
            self.index.entry_pairs_for_reference(region.chrom), left_window, right_window
        )
        if not valid_pairs:
            return nocov

        if verbose and len(valid_pairs) > 1:
            contigs = ":".join(pair.contig for pair in valid_pairs)
            print(f"VALID PAIRS {region} {len(valid_pairs)} aligning contigs: {contigs}")

        result = RegionResult(region, PROCESSED)
        for pair in valid_pairs:
            contig_segments = self.index.segments_for_contig(pair.contig)
            pattern = self.classifier.region_pattern(contig_segments, pair.orientation, region)

            if pattern.kind == HOMREF:
                (align,) = [s for s in pattern.segments if s.ref_entry == region.chrom]
                result.diagnostics.append(
                    f"{HOMREF}\t{region}\t{align.ref_entry}\t{align.ref_start}\t{align.ref_end}\t"
                    f"{align.query_entry}\t{align.query_start}\t{align.query_end}"
                )
                continue

            if pattern.kind == INVERSION:
                warnings.warn(
                    f"Possible inversion in contig {pair.contig} across region "
                    f"{region.chrom}:{region.start}-{region.end}; inversions are not reported"
                )
                result.inversions.append(pair.contig)
                continue

            if pattern.kind != SIMPLE:
                if verbose:
                    print(f"Skipping contig {pair.contig} in region {region}: {pattern.reason}")
                continue

            if verbose:
                print("ONE SIMPLE BREAK" if len(pattern.pairs) == 1 else "TWO SIMPLE BREAKS")

            for candidate in self.classifier.candidates(pattern, pair.orientation):
                refined = self.refiner.refine(candidate)
                result.records.append(self.builder.build(refined))

        return result

    def iter_results(self, regions: Iterable[Region]) -> Iterator[RegionResult]:
        """
        Refine regions in input order, yielding one result per region.

        Region chromosome names are first matched to the alignment's
        reference entry names.
        """
        regions = list(regions)
        mapping, _ = match_chromosomes_with_report(
            self.index.reference_entries,
            sorted({region.chrom for region in regions}),
            verbose=self.config.verbose,
        )
        for region in apply_chromosome_mapping(regions, mapping):
            yield self.refine_region(region)

    def refine_regions(self, regions: Iterable[Region]) -> List[RegionResult]:
        return list(self.iter_results(regions))

    def run(self, regions: Iterable[Region], vcf_fh, diag_fh) -> Dict[str, int]:
        """
        Refine regions and write VCF records and diagnostic lines.

        Args:
            regions: Candidate regions
            vcf_fh: Writable handle for the VCF output
            diag_fh: Writable handle for NOCOV/HOMREF lines

        Returns:
            Counts of regions, NOCOV regions, HOMREF lines, inversions and records
        """
        if self.config.write_header:
            write_vcf_header(vcf_fh, self.config)

        summary = {"regions": 0, "nocov": 0, "homref": 0, "inversions": 0, "records": 0}
        for result in self.iter_results(regions):
            summary["regions"] += 1
            summary["nocov"] += result.status == NOCOV
            summary["homref"] += sum(line.startswith(HOMREF) for line in result.diagnostics)
            summary["inversions"] += len(result.inversions)
            summary["records"] += len(result.records)
            for line in result.diagnostics:
                diag_fh.write(line + "\n")
            for record in result.records:
                vcf_fh.write(record.to_vcf_line() + "\n")
        return summary
