"""
Core Taxa Compare: which taxa are "core" under four common definitions?

This tool compares core-community definitions on OTU abundance tables using a
JSON-configured workflow:
1. Loading and validating configuration and abundance tables
2. Computing per-taxon mean, variance and coefficient of variation
3. Classifying taxa with four core-membership rules
4. Exporting a long-format comparison table per dataset
5. Drawing one faceted comparison figure across datasets
"""

__version__ = "0.1.0"

from .classifiers import (
    METHOD_ORDER,
    hard_cutoff,
    proportion_of_reads,
    proportion_of_reads_and_replicates,
    proportion_of_replicates,
    run_classifiers,
    summarize_taxa,
)
from .data_loading import load_abundance_table, validate_config, validate_thresholds
from .main import combine_core_methods, compare_core_methods_api, compare_core_sets, summarize_methods
from .plots import create_visualization

__all__ = [
    "METHOD_ORDER",
    "load_abundance_table",
    "validate_config",
    "validate_thresholds",
    "summarize_taxa",
    "proportion_of_reads",
    "proportion_of_replicates",
    "proportion_of_reads_and_replicates",
    "hard_cutoff",
    "run_classifiers",
    "combine_core_methods",
    "summarize_methods",
    "compare_core_methods_api",
    "compare_core_sets",
    "create_visualization",
]
