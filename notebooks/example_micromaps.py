#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Example Linked Micromaps Workflow
Builds a micromaps layout from the synthetic dataset, simulates inspector edits
and linked selections, and draws the static figure.
"""

# %% [markdown]
# # Example Linked Micromaps Workflow
#
# - **Config-driven**: display options and variables come from configs/micromaps_example.yaml
# - **Linked panels**: dot strips, labels and maps share row order and colors
# - **Inspector edits**: reconfiguration patches rebuild the whole layout

# %% [setup]
import os
import sys
from pathlib import Path

import matplotlib.pyplot as plt

# Auto-detect working directory and adjust paths accordingly
current_dir = Path.cwd()
if current_dir.name == 'notebooks':
    base_dir = current_dir.parent
    os.chdir(base_dir)
    print(f"Detected notebook execution. Changed working directory to: {base_dir}")
else:
    base_dir = current_dir
    print(f"Detected script execution from: {base_dir}")

# Add package to path
sys.path.append(str(base_dir))

from micromap_package import (MicromapSession, build_micromaps, create_micromap_synthetic_data,
                              describe_layout, load_config)
from micromap_package.inspector import form_from_state
from micromap_package.viz_micromaps import plot_micromaps

SHOW_FIGURES = False

# %% [data]
data, catalog, polygons = create_micromap_synthetic_data(n_regions=16)
config, variables = load_config(base_dir / 'configs' / 'micromaps_example.yaml')
print(data.head())

# %% [build]
state = build_micromaps(data, variables, catalog, config)
print(describe_layout(state))

# %% [linking]
# Selecting the top point of group 1 highlights every polygon part of that state
link = state.link_index.group(1)
parts = link.rows_to_parts([0])
print(f"Point 0 of group 1 ({state.panel(1).names[0]}) -> polygon parts {parts}")
print(f"Parts {parts} -> points {link.parts_to_rows(parts)}")
highlighted = link.part_colors(state.panel(1).colors, highlighted_parts=parts)

# %% [inspector]
session = MicromapSession(state)
form = form_from_state(session.state)
form['n_groups'] = '3'
error = session.submit_form(form)
print(f"After inspector submit: groups {session.state.group_sizes}, error={error}")

form['grouping'] = '10, 10'   # does not sum to 16; previous display stays
error = session.submit_form(form)
print(f"Rejected: {error}; groups still {session.state.group_sizes}")

form.update({'grouping': '', 'n_groups': 'three'})   # unparseable text is reported too
error = session.submit_form(form)
print(f"Rejected: {error}; groups still {session.state.group_sizes}")

# %% [plot]
fig, axes = plot_micromaps(session.state, polygons=polygons)
if SHOW_FIGURES:
    plt.show()
plt.close(fig)
