"""
Core Taxa Compare: which taxa are "core" under four common definitions?

For every configured abundance dataset this tool:
1. Loads and validates the OTU table and the JSON configuration
2. Computes per-taxon mean, variance and coefficient of variation
3. Applies four core-membership rules (proportion of reads, proportion of
   replicates, proportion of reads and replicates, hard cutoff)
4. Merges the results into one long table and exports it
5. Draws one figure comparing all datasets and methods

Usage:
    core-taxa-compare <config_file> <visualization_file> [--log-level INFO] [--max-taxa N]
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import fire
import pandas as pd

from .classifiers import METHOD_ORDER, run_classifiers, summarize_taxa
from .data_loading import load_abundance_table, resolve_dataset_paths, validate_config, validate_thresholds
from .plots import create_visualization

# Set up module-level logger
logger = logging.getLogger(__name__)

COMBINED_COLUMNS = [
    "taxon_id",
    "mean",
    "variance",
    "coefficient_of_variation",
    "method_name",
    "included",
]


def combine_core_methods(table: pd.DataFrame, thresholds: Dict[str, Any]) -> pd.DataFrame:
    """
    Run all core definitions and merge them with the taxon statistics.

    Args:
        table: Abundance table with taxon ids as index
        thresholds: Validated classifier thresholds

    Returns:
        Long-format DataFrame with one row per (taxon, method), methods in display order
    """
    summary = summarize_taxa(table)
    core_sets = run_classifiers(table, thresholds)

    frames = []
    for method_name in METHOD_ORDER:
        method_df = summary.copy()
        method_df["method_name"] = method_name
        method_df["included"] = summary.index.isin(list(core_sets[method_name])).astype(int)
        frames.append(method_df)

    combined = pd.concat(frames)
    combined.index.name = "taxon_id"
    combined = combined.reset_index()
    combined["method_name"] = pd.Categorical(combined["method_name"], categories=METHOD_ORDER, ordered=True)

    return combined[COMBINED_COLUMNS]


def summarize_methods(combined: pd.DataFrame, table: pd.DataFrame) -> pd.DataFrame:
    """Count core taxa per method and the share of all reads they hold."""
    totals = table.sum(axis=1)
    grand_total = totals.sum()

    rows = []
    for method_name in METHOD_ORDER:
        method_df = combined[combined["method_name"] == method_name]
        core_ids = method_df.loc[method_df["included"] == 1, "taxon_id"]
        n_core = len(core_ids)
        n_taxa = len(method_df)
        core_reads = totals.loc[core_ids].sum()
        rows.append({
            "method_name": method_name,
            "n_core": n_core,
            "n_taxa": n_taxa,
            "core_fraction": n_core / n_taxa if n_taxa else 0.0,
            "read_fraction": core_reads / grand_total if grand_total > 0 else 0.0,
        })

    return pd.DataFrame(rows)


def export_combined(combined: pd.DataFrame, output_file: str) -> None:
    """Write a combined (or summary) table as TSV."""
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)
    combined.to_csv(output_file, sep='\t', index=False, na_rep='NaN')
    logger.info(f"💾 Results saved to: {output_file}")


def compare_core_methods_api(
    table: pd.DataFrame,
    thresholds: Optional[Dict[str, Any]] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Python API to compare core definitions on one abundance table.

    Args:
        table: Abundance table with taxon ids as index and one column per sample
        thresholds: Classifier thresholds, missing keys take their defaults

    Returns:
        Tuple of (combined long-format table, per-method summary)
    """
    thresholds = validate_thresholds(thresholds)
    logger.info(f"🏆 Classifying {len(table)} taxa across {table.shape[1]} samples...")

    combined = combine_core_methods(table, thresholds)
    summary = summarize_methods(combined, table)

    for _, row in summary.iterrows():
        logger.debug(f"   {row['method_name']}: {row['read_fraction']:.1%} of reads in core taxa")

    return combined, summary


def compare_core_sets(
    config_file: str,
    visualization_file: str,
    log_level: str = "INFO",
    max_taxa: Optional[int] = None,
) -> Dict[str, pd.DataFrame]:
    """
    CLI interface to compare core definitions across the configured datasets.

    Args:
        config_file: Path to JSON configuration with thresholds and datasets
        visualization_file: Output SVG file for the comparison figure
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_taxa: Limit analysis to the first N taxa of each table (for testing)

    Returns:
        Dictionary mapping dataset name to its combined table
    """
    # Set up logging
    package_logger = logging.getLogger("core_taxa_compare")
    package_logger.setLevel(log_level.upper())
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)

    logger.info(f"⚙️ Config file: {config_file}")
    with open(config_file) as f:
        config = json.load(f)
    config = validate_config(config)
    config = resolve_dataset_paths(config, Path(config_file).parent)

    results = {}
    palettes = {}
    for dataset in config["datasets"]:
        name = dataset["name"]
        logger.info(f"\n📊 {name}: {dataset['file']}")

        table = load_abundance_table(dataset["file"], index_col=dataset.get("index"))

        # Apply max_taxa for debugging (reduce dataset size early)
        if max_taxa:
            logger.debug(f"🔧 Debug mode: Limiting to first {max_taxa} taxa")
            table = table.head(max_taxa)

        combined, summary = compare_core_methods_api(table, config["thresholds"])

        export_combined(combined, dataset["output"])
        if "summary_output" in dataset:
            export_combined(summary, dataset["summary_output"])

        results[name] = combined
        if "palette" in dataset:
            palettes[name] = dataset["palette"]

    logger.info("\n🎨 Drawing comparison figure...")
    create_visualization(results, visualization_file, palettes=palettes)

    logger.info(f"\n✅ Compared {len(METHOD_ORDER)} core definitions on {len(results)} datasets!")

    return results


def main():
    fire.Fire(compare_core_sets)


if __name__ == "__main__":
    main()
