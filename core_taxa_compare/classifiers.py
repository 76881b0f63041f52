"""
Core membership rules for Core Taxa Compare.

Every function here takes the abundance table (taxa as index, samples as
columns) and returns either per-taxon statistics or the set of taxon ids that
are "core" under one definition. The table is never modified.
"""

import logging
from typing import Any, Dict, Set

import pandas as pd

# Set up module-level logger
logger = logging.getLogger(__name__)

PROPORTION_OF_READS = "Proportion of Reads"
PROPORTION_OF_REPLICATES = "Proportion of Replicates"
PROPORTION_OF_READS_AND_REPLICATES = "Proportion of Reads and Replicates"
HARD_CUTOFF = "Hard Cutoff"

# Display order used for the combined table and the figure facets
METHOD_ORDER = [
    PROPORTION_OF_READS,
    PROPORTION_OF_REPLICATES,
    PROPORTION_OF_READS_AND_REPLICATES,
    HARD_CUTOFF,
]


def summarize_taxa(table: pd.DataFrame) -> pd.DataFrame:
    """
    Calculate per-taxon mean, sample variance and coefficient of variation.

    The coefficient of variation is variance / mean. Taxa with a mean of zero
    get NaN, which downstream code treats as an absent taxon.

    Args:
        table: Abundance table with taxon ids as index

    Returns:
        DataFrame indexed by taxon id with mean, variance and coefficient_of_variation

    Raises:
        ValueError: If a sample column is not numeric
    """
    for col_name in table.columns:
        if not pd.api.types.is_numeric_dtype(table[col_name]):
            raise ValueError(f"Sample column '{col_name}' contains non-numeric data")

    mean = table.mean(axis=1)
    variance = table.var(axis=1, ddof=1)

    return pd.DataFrame({
        "mean": mean,
        "variance": variance,
        "coefficient_of_variation": variance / mean,
    }, index=table.index)


def proportion_of_reads(table: pd.DataFrame, threshold: float = 0.75) -> Set[str]:
    """
    Select the most abundant taxa that together hold at most `threshold` of all reads.

    Taxa are ranked by total abundance (descending, ties by taxon id), and a
    taxon is core while the running share of the grand total is <= threshold.
    """
    totals = table.sum(axis=1).sort_index()
    ranked = totals.sort_values(ascending=False, kind="mergesort")

    grand_total = ranked.sum()
    if grand_total == 0:
        return set()

    cumulative_share = (ranked / grand_total).cumsum()
    return set(cumulative_share.index[cumulative_share <= threshold])


def proportion_of_replicates(table: pd.DataFrame, multiplier: float = 10) -> Set[str]:
    """Taxa whose total abundance exceeds `multiplier` reads per sample."""
    totals = table.sum(axis=1)
    return set(totals.index[totals > multiplier * table.shape[1]])


def proportion_of_reads_and_replicates(table: pd.DataFrame, occupancy: float = 0.5) -> Set[str]:
    """Taxa present (abundance > 0) in at least `occupancy` of the samples."""
    n_present = (table > 0).sum(axis=1)
    return set(n_present.index[n_present >= occupancy * table.shape[1]])


def hard_cutoff(table: pd.DataFrame, abundance: float = 25, min_samples: int = 5) -> Set[str]:
    """Taxa with more than `abundance` reads in at least `min_samples` samples."""
    n_above = (table > abundance).sum(axis=1)
    return set(n_above.index[n_above >= min_samples])


def run_classifiers(table: pd.DataFrame, thresholds: Dict[str, Any]) -> Dict[str, Set[str]]:
    """Apply every core definition to the same table, keyed by method name."""
    core_sets = {
        PROPORTION_OF_READS: proportion_of_reads(
            table, threshold=thresholds["reads_fraction"]),
        PROPORTION_OF_REPLICATES: proportion_of_replicates(
            table, multiplier=thresholds["replicate_multiplier"]),
        PROPORTION_OF_READS_AND_REPLICATES: proportion_of_reads_and_replicates(
            table, occupancy=thresholds["occupancy_fraction"]),
        HARD_CUTOFF: hard_cutoff(
            table, abundance=thresholds["cutoff_abundance"], min_samples=thresholds["cutoff_min_samples"]),
    }

    for method_name in METHOD_ORDER:
        logger.info(f"   {method_name}: {len(core_sets[method_name])}/{len(table)} core taxa")

    return core_sets
