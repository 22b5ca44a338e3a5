"""
Static matplotlib rendering of a MicromapState.

A reference renderer: it places every panel in the state's grid and draws
with the shared domains and link-index colors. Interactive toolkits consume
the same state; nothing here is needed to compute the layout.

Usage:
    from micromap_package.viz_micromaps import plot_micromaps

    fig, axes = plot_micromaps(state, polygons=polygons)
    plt.show()
"""

from typing import Dict, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.collections import PolyCollection
from matplotlib.gridspec import GridSpec

from .coordinate_mapper import (LABEL_DELTA_X, LABEL_PAN_X, LABEL_POINT_X, LABEL_TEXT_X,
                                SCALE_LABEL_Y)

FONTS = {
    'header': {'size': 12, 'weight': 'bold'},
    'label': {'size': 9},
    'tick_label': {'size': 8},
}

SCALE_BACKGROUND = '#f2f2f2'   # gray95


def _blank(ax):
    ax.set_xticks([])
    ax.set_yticks([])
    for sp in ax.spines.values():
        sp.set_visible(False)


def _set_y_world(ax, extent):
    ax.set_ylim(extent.pan_y, extent.pan_y + extent.zoom_y * extent.delta_y)


def _draw_label_panel(ax, panel, size):
    n = len(panel)
    ax.scatter([LABEL_POINT_X] * n, panel.y_positions, c=panel.colors, s=size ** 2,
               edgecolors='none', zorder=3)
    for y, text in zip(panel.y_positions, panel.labels):
        ax.text(LABEL_TEXT_X, y, text, ha='left', va='center', color='black',
                fontsize=FONTS['label']['size'])
    ax.set_xlim(LABEL_PAN_X, LABEL_PAN_X + LABEL_DELTA_X)
    _set_y_world(ax, panel.extent)
    _blank(ax)


def _draw_dot_strip(ax, panel, values, domain, size):
    ax.scatter(values, panel.y_positions, c=panel.colors, s=size ** 2,
               edgecolors='none', zorder=3)
    for t in domain.ticks:
        ax.axvline(t, color='#dddddd', lw=0.6, zorder=1)
    ax.set_xlim(domain.pan_x, domain.pan_x + domain.zoom_x * domain.delta_x)
    _set_y_world(ax, panel.extent)
    ax.set_xticks([])
    ax.set_yticks([])


def _draw_scale(ax, domain):
    ax.set_facecolor(SCALE_BACKGROUND)
    for xs, ys in domain.scale_segments():
        ax.plot(xs, ys, color='black', lw=0.8)
    for t, label in zip(domain.ticks, domain.tick_labels()):
        ax.text(t, SCALE_LABEL_Y, label, ha='center', va='center',
                fontsize=FONTS['tick_label']['size'])
    ax.set_xlim(domain.pan_x, domain.pan_x + domain.delta_x)
    ax.set_ylim(0, 1)
    _blank(ax)


def _draw_map(ax, part_colors, polygons: Optional[Sequence[np.ndarray]]):
    if polygons is not None:
        if len(polygons) != len(part_colors):
            raise ValueError(f"Expected {len(part_colors)} polygon parts, got {len(polygons)}")
        ax.add_collection(PolyCollection(polygons, facecolors=part_colors,
                                         edgecolors='gray', linewidths=0.5))
        ax.autoscale_view()
        ax.set_aspect('equal')
    _blank(ax)


def plot_micromaps(state, polygons: Optional[Sequence[np.ndarray]] = None,
                   figsize: Optional[Tuple[float, float]] = None):
    """
    Draw the whole display.

    Args:
        state: MicromapState from build_micromaps
        polygons: Optional part coordinates (N x 2 arrays) in draw order
        figsize: Figure size, defaults to one inch per grid row/column pair

    Returns:
        (fig, axes) with axes keyed by (grid row, grid column)
    """
    grid = state.grid
    size = state.config.size
    if figsize is None:
        figsize = (2.2 * grid.n_columns, 1.4 * state.n_groups + 1.5)

    heights = [0.4] + [grid.row_weights[r] for r in range(1, grid.n_rows - 1)] + [0.4]
    heights[grid.n_rows - 2] = 0.8
    widths = [grid.column_weights[c] for c in range(grid.n_columns)]

    fig = plt.figure(figsize=figsize)
    gs = GridSpec(grid.n_rows, grid.n_columns, figure=fig,
                  height_ratios=heights, width_ratios=widths, hspace=0.15, wspace=0.1)
    fig.suptitle(state.config.title, fontsize=FONTS['header']['size'] + 2)

    specs = {s.name: s for s in state.specs}
    axes: Dict[Tuple[int, int], plt.Axes] = {}
    for cell in grid.cells:
        ax = fig.add_subplot(gs[cell.row, cell.column])
        axes[(cell.row, cell.column)] = ax

        if cell.kind in ('header_label', 'header_variable', 'header_map', 'axis_label'):
            weight = FONTS['header']['weight'] if cell.kind != 'axis_label' else 'normal'
            ax.text(0.5, 0.5, cell.text, ha='center', va='center',
                    fontsize=FONTS['header']['size'], fontweight=weight)
            ax.axis('off')
        elif cell.kind == 'label_panel':
            _draw_label_panel(ax, state.panel(cell.group), size)
        elif cell.kind == 'scatterplot':
            panel = state.panel(cell.group)
            domain = state.domain(specs[cell.variable])
            _draw_dot_strip(ax, panel, panel.values[cell.variable], domain, size)
        elif cell.kind == 'scale':
            _draw_scale(ax, state.domain(specs[cell.variable]))
        elif cell.kind == 'map':
            _draw_map(ax, state.panel(cell.group).part_colors, polygons)

    return fig, axes
