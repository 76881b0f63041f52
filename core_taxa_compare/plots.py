"""
Visualization utilities for Core Taxa Compare.
"""

import logging
from itertools import cycle
from typing import Dict, List, Mapping, Tuple

import matplotlib
import numpy as np
import pandas as pd

matplotlib.use('SVG')  # Use SVG backend
import matplotlib.pyplot as plt
from matplotlib.colors import Normalize

from .classifiers import METHOD_ORDER

# Configure matplotlib for SVG text rendering
plt.rcParams['svg.fonttype'] = 'none'  # Ensure text is saved as text, not paths

# Set up module-level logger
logger = logging.getLogger(__name__)

DEFAULT_PALETTES = ['Blues', 'Greens', 'Oranges', 'Purples']
EXCLUDED_PALETTE = 'Greys'
GRIDSIZE = 25
EXTENT_PAD = 0.5
INCLUDED_ALPHA = 0.6


def plot_coordinates(combined: pd.DataFrame) -> pd.DataFrame:
    """Add log_mean and drop rows that cannot be placed on the plot."""
    df = combined.copy()
    with np.errstate(divide='ignore', invalid='ignore'):
        df["log_mean"] = np.log(df["mean"].astype(float))

    finite = np.isfinite(df["log_mean"]) & np.isfinite(df["coefficient_of_variation"].astype(float))
    n_dropped = int((~finite).sum())
    if n_dropped:
        logger.debug(f"   Skipping {n_dropped} rows with non-finite log(mean) or CV")

    return df[finite]


def axis_limits(values: pd.Series) -> Tuple[float, float]:
    """Min/max of a coordinate, widened by EXTENT_PAD when all values are equal."""
    low, high = float(values.min()), float(values.max())
    if low == high:
        return low - EXTENT_PAD, high + EXTENT_PAD
    return low, high


def hexbin_extent(df: pd.DataFrame) -> Tuple[float, float, float, float]:
    """Hexagon grid extent shared by all facets of one dataset."""
    return (*axis_limits(df["log_mean"]), *axis_limits(df["coefficient_of_variation"]))


def plot_dataset_row(
    row_axes,
    combined: pd.DataFrame,
    dataset_name: str,
    palette: str,
    show_titles: bool = True,
) -> List:
    """
    Draw one dataset's facets, one per core definition.

    Excluded taxa are drawn in grey, included taxa on top in `palette` with
    transparency so overlapping grey cells stay visible. All included layers
    share one colour norm (and all excluded layers another), so a shade means
    the same count in every facet of the row.

    Returns:
        The hexbin collections of the included taxa, for the colour bar
    """
    df = plot_coordinates(combined)
    logger.info(f"   {dataset_name}: plotting {df['taxon_id'].nunique()} taxa with palette {palette}")

    extent = hexbin_extent(df) if len(df) > 0 else None

    layers = {0: [], 1: []}
    for col_idx, method_name in enumerate(METHOD_ORDER):
        ax = row_axes[col_idx]
        method_df = df[df["method_name"] == method_name]

        for flag, cmap, alpha in ((0, EXCLUDED_PALETTE, 1.0), (1, palette, INCLUDED_ALPHA)):
            subset = method_df[method_df["included"] == flag]
            if len(subset) == 0:
                continue
            layers[flag].append(ax.hexbin(
                subset["log_mean"],
                subset["coefficient_of_variation"],
                gridsize=GRIDSIZE,
                extent=extent,
                mincnt=1,
                cmap=cmap,
                alpha=alpha,
                linewidths=0.2,
            ))

        if show_titles:
            ax.set_title(method_name, fontsize=12, fontweight='bold')
        ax.set_xlabel('log(mean)', fontsize=10)
        if col_idx == 0:
            ax.set_ylabel(f'{dataset_name}\nCV', fontsize=10)

        ax.grid(True, alpha=0.3)
        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)

    for collections in layers.values():
        if not collections:
            continue
        row_max = max(float(np.max(c.get_array())) for c in collections)
        norm = Normalize(vmin=1, vmax=max(row_max, 1.0))
        for collection in collections:
            collection.set_norm(norm)

    return layers[1]


def create_visualization(
    results: Mapping[str, pd.DataFrame],
    output_file: str,
    palettes: Dict[str, str] = None,
):
    """Create SVG figure: one row per dataset, one hexbin facet per core definition."""
    if len(results) == 0:
        raise ValueError("No datasets to plot")

    palettes = palettes or {}
    default_palettes = cycle(DEFAULT_PALETTES)

    n_rows = len(results)
    n_cols = len(METHOD_ORDER)
    fig, axes = plt.subplots(
        n_rows, n_cols,
        figsize=(4 * n_cols + 1, 3.5 * n_rows),
        sharey='row',
        squeeze=False,
    )

    for row_idx, (dataset_name, combined) in enumerate(results.items()):
        palette = palettes.get(dataset_name) or next(default_palettes)
        included = plot_dataset_row(axes[row_idx, :], combined, dataset_name, palette, show_titles=row_idx == 0)

        # Colour bar for the core taxa of this dataset
        if included:
            colorbar = fig.colorbar(included[0], ax=list(axes[row_idx, :]), fraction=0.02, pad=0.01)
            colorbar.set_label('count', fontsize=10)

    plt.savefig(output_file, format='svg', bbox_inches='tight', metadata={'Creator': 'Core Taxa Compare'})
    plt.close(fig)

    logger.info(f"   Visualization saved to: {output_file}")
