"""
Integration tests for Core Taxa Compare end-to-end workflows.
"""

import json

# Add src to path for imports
import sys
import tempfile
import unittest
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from core_taxa_compare.classifiers import METHOD_ORDER
from core_taxa_compare.main import COMBINED_COLUMNS, compare_core_sets

DATA_DIR = Path(__file__).parent / "data"


class TestIntegration(unittest.TestCase):
    """Test complete workflows from start to finish."""

    def setUp(self):
        """Set up a temporary working directory and config."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)
        self.work_dir = Path(self.temp_dir.name)

        # Input files are absolute, outputs are relative to the config file
        self.config = {
            'thresholds': {
                'reads_fraction': 0.75,
                'replicate_multiplier': 10,
                'occupancy_fraction': 0.5,
                'cutoff_abundance': 25,
                'cutoff_min_samples': 5
            },
            'datasets': [
                {
                    'name': 'Human',
                    'file': str(DATA_DIR / "human.tsv"),
                    'index': 'OTU',
                    'output': 'out/human_core.tsv',
                    'summary_output': 'out/human_summary.tsv',
                    'palette': 'Blues'
                },
                {
                    'name': 'Plant',
                    'file': str(DATA_DIR / "plant.csv"),
                    'output': 'out/plant_core.tsv',
                    'palette': 'Greens'
                }
            ]
        }

    def write_config(self, config) -> str:
        """Write the config next to the expected outputs."""
        config_file = self.work_dir / "config.json"
        with open(config_file, 'w') as f:
            json.dump(config, f, indent=2)
        return str(config_file)

    def test_complete_workflow(self):
        """Test that both exports and the figure are written."""
        config_file = self.write_config(self.config)
        visualization_file = self.work_dir / "core_comparison.svg"

        results = compare_core_sets(config_file, str(visualization_file), log_level="CRITICAL")

        self.assertEqual(list(results.keys()), ['Human', 'Plant'])
        self.assertEqual(len(results['Human']), 4 * 6)
        self.assertEqual(len(results['Plant']), 4 * 4)

        human_export = pd.read_csv(self.work_dir / "out" / "human_core.tsv", sep='\t')
        plant_export = pd.read_csv(self.work_dir / "out" / "plant_core.tsv", sep='\t')
        self.assertEqual(list(human_export.columns), COMBINED_COLUMNS)
        self.assertEqual(len(plant_export), 16)
        self.assertTrue(set(human_export['included'].unique()) <= {0, 1})

        summary = pd.read_csv(self.work_dir / "out" / "human_summary.tsv", sep='\t')
        self.assertEqual(summary['method_name'].tolist(), METHOD_ORDER)
        self.assertFalse((self.work_dir / "out" / "plant_summary.tsv").exists())

        self.assertGreater(visualization_file.stat().st_size, 1000)

    def test_plant_core_sets(self):
        """Test per-method core taxa of the plant dataset."""
        config_file = self.write_config(self.config)

        results = compare_core_sets(config_file, str(self.work_dir / "fig.svg"), log_level="CRITICAL")

        plant = results['Plant']
        core = {
            method_name: set(plant[(plant['method_name'] == method_name) & (plant['included'] == 1)]['taxon_id'])
            for method_name in METHOD_ORDER
        }
        self.assertEqual(core, {
            "Proportion of Reads": {'T1'},
            "Proportion of Replicates": {'T1', 'T3'},
            "Proportion of Reads and Replicates": {'T1', 'T3'},
            "Hard Cutoff": {'T1'},
        })

    def test_default_thresholds(self):
        """Test that a config without thresholds gives the same result."""
        config = dict(self.config)
        del config['thresholds']
        config_file = self.write_config(config)

        with_defaults = compare_core_sets(config_file, str(self.work_dir / "fig.svg"), log_level="CRITICAL")

        config_file = self.write_config(self.config)
        explicit = compare_core_sets(config_file, str(self.work_dir / "fig.svg"), log_level="CRITICAL")

        for name in ['Human', 'Plant']:
            pd.testing.assert_frame_equal(with_defaults[name], explicit[name])

    def test_max_taxa(self):
        """Test limiting each table to its first taxa."""
        config_file = self.write_config(self.config)

        results = compare_core_sets(
            config_file, str(self.work_dir / "fig.svg"), log_level="CRITICAL", max_taxa=3)

        self.assertEqual(len(results['Human']), 4 * 3)
        self.assertEqual(results['Human']['taxon_id'].unique().tolist(), ['OTU_1', 'OTU_2', 'OTU_3'])

    def test_missing_input_aborts(self):
        """Test that a missing table aborts the run before the figure is drawn."""
        config = dict(self.config)
        config['datasets'] = [dict(self.config['datasets'][0], file=str(self.work_dir / "missing.tsv"))]
        config_file = self.write_config(config)
        visualization_file = self.work_dir / "fig.svg"

        with self.assertRaises(ValueError) as cm:
            compare_core_sets(config_file, str(visualization_file), log_level="CRITICAL")

        self.assertIn("Error loading abundance table", str(cm.exception))
        self.assertFalse(visualization_file.exists())


if __name__ == "__main__":
    unittest.main()
