"""
Data loading utilities for Core Taxa Compare.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
from schema import And, Or, Schema, SchemaError
from schema import Optional as SchemaOptional


def load_abundance_table(abundance_file: str, index_col: Optional[str] = None) -> pd.DataFrame:
    """Load an OTU abundance table (taxa as rows, samples as columns)."""
    try:
        # Try to detect file format and load accordingly
        if str(abundance_file).endswith('.csv'):
            table = pd.read_csv(abundance_file)
        else:
            # Assume space/tab separated
            table = pd.read_csv(abundance_file, sep=None, engine='python')

        if len(table) == 0:
            raise ValueError("Abundance table is empty")

        if index_col is None:
            index_col = table.columns[0]
        assert index_col in table.columns, f"Index column '{index_col}' not found in table {table.columns=}"
        table = table.set_index(index_col)

        return validate_abundance_table(table)
    except Exception as e:
        raise ValueError(f"Error loading abundance table: {e}")


def validate_abundance_table(table: pd.DataFrame) -> pd.DataFrame:
    """Check taxon ids and sample values, return a float copy of the table."""
    if table.shape[1] == 0:
        raise ValueError("Abundance table has no sample columns")

    duplicated = table.index[table.index.duplicated()].unique().tolist()
    if duplicated:
        raise ValueError(f"Duplicated taxon ids: {duplicated[:10]}")

    for col_name in table.columns:
        if not pd.api.types.is_numeric_dtype(table[col_name]):
            raise ValueError(f"Sample column '{col_name}' contains non-numeric data")

    table = table.astype(float)

    if table.isna().any().any():
        raise ValueError("Abundance table contains missing values")
    if (table < 0).any().any():
        raise ValueError("Abundance table contains negative values")

    return table


THRESHOLD_DEFAULTS = {
    'reads_fraction': 0.75,
    'replicate_multiplier': 10,
    'occupancy_fraction': 0.5,
    'cutoff_abundance': 25,
    'cutoff_min_samples': 5,
}

fraction = And(Or(int, float), lambda n: not isinstance(n, bool), lambda n: 0 <= n <= 1)
non_negative = And(Or(int, float), lambda n: not isinstance(n, bool), lambda n: n >= 0)

THRESHOLDS_SCHEMA = Schema({
    SchemaOptional('reads_fraction', default=THRESHOLD_DEFAULTS['reads_fraction']): fraction,
    SchemaOptional('replicate_multiplier', default=THRESHOLD_DEFAULTS['replicate_multiplier']): non_negative,
    SchemaOptional('occupancy_fraction', default=THRESHOLD_DEFAULTS['occupancy_fraction']): fraction,
    SchemaOptional('cutoff_abundance', default=THRESHOLD_DEFAULTS['cutoff_abundance']): non_negative,
    SchemaOptional('cutoff_min_samples', default=THRESHOLD_DEFAULTS['cutoff_min_samples']):
        And(int, lambda n: not isinstance(n, bool), lambda n: n >= 0),
})

# Define the configuration schema
CONFIG_SCHEMA = Schema({
    SchemaOptional('thresholds', default=dict(THRESHOLD_DEFAULTS)): THRESHOLDS_SCHEMA,
    'datasets': And([{
        'name': And(str, len),
        'file': And(str, len),
        'output': And(str, len),
        SchemaOptional('index'): str,
        SchemaOptional('palette'): str,
        SchemaOptional('summary_output'): str,
    }], len, error="'datasets' must be a non-empty list"),
})


def validate_thresholds(thresholds: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Validate classifier thresholds and fill in the defaults."""
    return THRESHOLDS_SCHEMA.validate(dict(thresholds or {}))


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize JSON configuration against schema."""
    validated_config = CONFIG_SCHEMA.validate(config)

    names = [dataset['name'] for dataset in validated_config['datasets']]
    if len(set(names)) != len(names):
        raise SchemaError(f"Dataset names must be unique, got {names}")

    return validated_config


def resolve_dataset_paths(config: Dict[str, Any], base_dir: str) -> Dict[str, Any]:
    """Make relative dataset paths relative to the config file's directory."""
    base = Path(base_dir)
    datasets = []
    for dataset in config['datasets']:
        dataset = dict(dataset)
        for key in ('file', 'output', 'summary_output'):
            if key in dataset and not Path(dataset[key]).is_absolute():
                dataset[key] = str(base / dataset[key])
        datasets.append(dataset)
    return {**config, 'datasets': datasets}
