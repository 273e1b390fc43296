"""
Candidate region handling for svrefine.

Regions arrive as BED (0-based, half-open) and are held 1-based and
inclusive. Each region derives a left and a right flank probe window from
the configured buffer and bufseg sizes.
"""

import pandas as pd
from dataclasses import dataclass
from typing import List, NamedTuple, Union

from .core import RefineConfig, MalformedInputError


class Window(NamedTuple):
    """Closed 1-based reference interval."""
    start: int
    end: int


@dataclass(frozen=True)
class Region:
    """A candidate SV region, 1-based inclusive."""
    chrom: str
    start: int
    end: int

    def __post_init__(self):
        if self.end < self.start:
            raise MalformedInputError(
                f"Region {self.chrom}:{self.start}-{self.end} has end before start"
            )

    def left_window(self, config: RefineConfig) -> Window:
        """Flank probe window ending bufseg bases into the left buffer."""
        start = self.start - config.buffer
        return Window(start, start + config.bufseg - 1)

    def right_window(self, config: RefineConfig) -> Window:
        """Flank probe window ending buffer bases past the region end."""
        end = self.end + config.buffer
        return Window(end - config.bufseg + 1, end)

    def in_bounds(self, chrom_length, config: RefineConfig) -> bool:
        """
        Check that both flank windows fit on the chromosome.

        Args:
            chrom_length: Length of the region's chromosome, or None if unknown
            config: Run configuration supplying the buffer size

        Returns:
            False if the region is too close to either chromosome end
        """
        if chrom_length is None:
            return False
        return self.start - config.buffer > 0 and chrom_length >= self.end + config.buffer

    def with_chrom(self, chrom: str) -> "Region":
        return Region(chrom, self.start, self.end)

    def __str__(self):
        return f"{self.chrom}\t{self.start}\t{self.end}"


def _read_bed_file(bed_regions: Union[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Read BED file or validate BED DataFrame format.

    Args:
        bed_regions: Path to BED file or DataFrame with BED format

    Returns:
        DataFrame with columns: chrom, start, end (BED coordinates, unchanged)

    Raises:
        MalformedInputError: If a line has fewer than three fields or
            non-integer coordinates
    """
    columns = ["chrom", "start", "end"]

    if isinstance(bed_regions, pd.DataFrame):
        missing = [col for col in columns if col not in bed_regions.columns]
        if missing:
            raise MalformedInputError(
                f"BED DataFrame must contain columns {columns}. "
                f"Found columns: {list(bed_regions.columns)}"
            )
        bed_df = bed_regions[columns].copy()
    else:
        try:
            bed_df = pd.read_csv(
                bed_regions,
                sep=r"\s+",
                header=None,
                comment="#",
                usecols=[0, 1, 2],  # BED3+: extra columns are ignored
                names=columns,
                dtype={"chrom": str},
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=columns)
        except (pd.errors.ParserError, ValueError) as e:
            raise MalformedInputError(f"Error reading BED file '{bed_regions}': {e}")

        bed_df = bed_df[~bed_df["chrom"].isin(["track", "browser"])].copy()

    short = bed_df[columns].isna().any(axis=1)
    if short.any():
        first = bed_df[short].iloc[0]
        raise MalformedInputError(
            f"BED line with fewer than 3 fields: {first['chrom']}\t{first['start']}"
        )

    try:
        bed_df["start"] = pd.to_numeric(bed_df["start"], errors="raise").astype(int)
        bed_df["end"] = pd.to_numeric(bed_df["end"], errors="raise").astype(int)
    except (ValueError, TypeError) as e:
        raise MalformedInputError(f"Invalid BED coordinates: {e}")

    return bed_df


def read_regions(bed_regions: Union[str, pd.DataFrame]) -> List[Region]:
    """
    Read candidate regions from a BED file.

    Args:
        bed_regions: Path to a BED3+ file, or a DataFrame with chrom/start/end columns

    Returns:
        Regions in input order, converted to 1-based inclusive coordinates

    Raises:
        MalformedInputError: If any region ends before it starts
    """
    bed_df = _read_bed_file(bed_regions)

    regions = []
    for row in bed_df.itertuples(index=False):
        start = int(row.start) + 1
        if row.end < start:
            raise MalformedInputError(
                f"End less than start, illegal BED region: {row.chrom}\t{row.start}\t{row.end}"
            )
        regions.append(Region(str(row.chrom), start, int(row.end)))
    return regions
