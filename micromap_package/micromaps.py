"""
Linked micromaps: builds every derived structure a display needs.

Pipeline (all-or-nothing, no incremental updates):

    allocate_groups -> resolve_variables -> assign_rows -> layout_panels
        -> build_link_index -> assign_colors

The result, ``MicromapState``, is what the rendering layer consumes: one
``GroupPanels`` per row of the display, shared axis domains, the link index
for selection/recolor events and the grid placement of every panel.

Usage:
    from micromap_package import build_micromaps, MicromapConfig, MicromapSession

    state = build_micromaps(
        data=df, geometry=catalog,
        variables={'id_var': 'ST_NAME',
                   'grouping_var': {'name': 'pov', 'xlab': 'Percent'},
                   'var2': {'name': 'ed', 'xlab': 'Percent'}},
        config=MicromapConfig(spacing='max', sync='push'),
    )

    session = MicromapSession(state)
    error = session.submit({'n_groups': 5})   # previous state kept on error
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple

import pandas as pd
from jinja2 import Template

from .attributes import StateOverrides, build_state_overrides
from .color_assigner import assign_colors
from .config import MicromapConfig, replace_config
from .coordinate_mapper import AxisDomain, GroupExtent, PanelLayout, layout_panels
from .errors import (EmptyDatasetError, InvalidAttributeLengthError, MicromapError,
                     NonUniqueIdError, RebuildInProgressError)
from .group_allocator import allocate_groups
from .inspector import parse_inspector_form
from .link_index import GeometryProvider, LinkIndex, build_link_index
from .row_orderer import assign_rows
from .variable_resolver import ID_KEY, VariableSpec, resolve_variable_mapping

logger = logging.getLogger(__name__)

MAX_LABEL_CHARS = 25


def truncate_label(text: str, max_chars: int = MAX_LABEL_CHARS) -> str:
    text = str(text)
    return text[:max_chars] + '...' if len(text) > max_chars else text


def default_linking_key(n: int) -> List[str]:
    return [str(i) for i in range(n)]


def check_linking_key(linking_key, n: int) -> List[str]:
    if linking_key is None:
        return default_linking_key(n)
    keys = [str(k) for k in linking_key]
    if len(keys) != n:
        raise InvalidAttributeLengthError(f"linking_key must be of length {n}, got {len(keys)}")
    if len(set(keys)) != n:
        raise NonUniqueIdError("linking_key values must be unique")
    return keys


# =============================================================================
# PANEL SPECS
# =============================================================================

@dataclass
class GroupPanels:
    """Everything needed to draw one row of the display."""
    group: int
    extent: GroupExtent
    region_ids: List[Hashable]
    names: List[str]
    labels: List[str]
    positions: List[int]
    linking_keys: List[str]
    colors: List[str]
    part_colors: List[str]
    values: Dict[str, List[float]]
    states: Dict[str, Any] = field(default_factory=dict)

    @property
    def y_positions(self) -> List[int]:
        return self.extent.y_positions

    def __len__(self):
        return len(self.region_ids)


@dataclass
class GridCell:
    row: int
    column: int
    kind: str
    group: Optional[int] = None
    variable: Optional[str] = None
    text: Optional[str] = None


@dataclass
class GridLayout:
    """
    Grid placement: header row, one row per group, scale row, axis-label row;
    columns are labels, one per variable, then the map.

    x_links couples each variable column with its scale panel, y_links couples
    each group row (labels and dot strips) and x_fixed lists cells that must not
    pan or zoom horizontally. Cells are given as (row, column).
    """
    n_rows: int
    n_columns: int
    cells: List[GridCell]
    row_weights: Dict[int, int]
    row_minsize: Dict[int, int]
    column_weights: Dict[int, int]
    x_links: Dict[str, List[Tuple[int, int]]] = field(default_factory=dict)
    y_links: Dict[int, List[Tuple[int, int]]] = field(default_factory=dict)
    x_fixed: List[Tuple[int, int]] = field(default_factory=list)

    def cells_of(self, kind: str) -> List[GridCell]:
        return [c for c in self.cells if c.kind == kind]

    def cell_at(self, row: int, column: int) -> Optional[GridCell]:
        for c in self.cells:
            if c.row == row and c.column == column:
                return c
        return None


def build_grid(n_groups: int, specs: List[VariableSpec], config: MicromapConfig) -> GridLayout:
    n_vars = len(specs)
    n_columns = n_vars + 2
    map_column = n_columns - 1
    scale_row = n_groups + 1
    axis_row = n_groups + 2

    cells = [GridCell(0, 0, 'header_label', text=config.lab_label)]
    cells += [GridCell(0, j, 'header_variable', variable=s.name, text=s.label)
              for j, s in enumerate(specs, start=1)]
    cells.append(GridCell(0, map_column, 'header_map', text=config.map_label))

    for g in range(1, n_groups + 1):
        cells.append(GridCell(g, 0, 'label_panel', group=g))
        cells += [GridCell(g, j, 'scatterplot', group=g, variable=s.name)
                  for j, s in enumerate(specs, start=1)]
        cells.append(GridCell(g, map_column, 'map', group=g))

    for j, s in enumerate(specs, start=1):
        cells.append(GridCell(scale_row, j, 'scale', variable=s.name))
        cells.append(GridCell(axis_row, j, 'axis_label', variable=s.name, text=s.xlab))

    row_weights = {r: 2 for r in range(1, scale_row)}
    row_weights[scale_row] = 3
    return GridLayout(
        n_rows=n_groups + 3,
        n_columns=n_columns,
        cells=cells,
        row_weights=row_weights,
        row_minsize={scale_row: 20},
        column_weights={c: 2 for c in range(n_columns)},
        x_links={s.name: [(g, j) for g in range(1, scale_row)] + [(scale_row, j)]
                 for j, s in enumerate(specs, start=1)},
        y_links={g: [(g, j) for j in range(0, n_vars + 1)] for g in range(1, scale_row)},
        x_fixed=[(g, 0) for g in range(1, scale_row)],
    )


# =============================================================================
# STATE
# =============================================================================

@dataclass
class MicromapState:
    """Complete derived state of one display. Rebuilt from scratch on every change."""
    data: pd.DataFrame
    variables: Dict[str, Any]
    geometry: GeometryProvider
    config: MicromapConfig
    specs: List[VariableSpec]
    group_sizes: List[int]
    rows: pd.DataFrame
    layout: PanelLayout
    link_index: LinkIndex
    colors: List[str]
    linking_key: List[str]
    overrides: StateOverrides
    panels: List[GroupPanels]
    grid: GridLayout

    @property
    def id_var(self) -> str:
        return self.variables[ID_KEY]

    @property
    def n_groups(self) -> int:
        return len(self.group_sizes)

    @property
    def grouping_spec(self) -> VariableSpec:
        return self.specs[0]

    def panel(self, group: int) -> GroupPanels:
        return self.panels[group - 1]

    def domain(self, spec: VariableSpec) -> AxisDomain:
        return self.layout.domains[spec.name]


def build_micromaps(data: pd.DataFrame, variables: Mapping[str, Any],
                    geometry: GeometryProvider,
                    config: Optional[MicromapConfig] = None) -> MicromapState:
    """
    Build the full linked micromaps state.

    Args:
        data: Region attribute table, one row per region (not modified)
        variables: ``{'id_var': col, 'grouping_var': {'name': ...}, <key>: {...}}``
        geometry: Polygon part provider for the regions
        config: Display configuration, defaults to MicromapConfig()

    Returns:
        MicromapState

    Raises:
        MicromapError: any invalid input; nothing is built in that case
    """
    config = config or MicromapConfig()
    n = len(data)
    if n == 0:
        raise EmptyDatasetError("spdf data has no regions")

    # Validation phase
    specs = resolve_variable_mapping(data, variables)
    id_var = variables[ID_KEY]
    sizes = allocate_groups(n, n_groups=config.n_groups, grouping=config.grouping)
    linking_key = check_linking_key(config.linking_key, n)
    colors = assign_colors(max(sizes), config.color)
    overrides = build_state_overrides(config.states, n, data.columns)

    # Derivation phase
    rows = assign_rows(data, sizes, specs[0].name, id_var)
    ordered = rows.sort_values(['group', 'row'])
    groups = {int(g): chunk['region_id'].tolist() for g, chunk in ordered.groupby('group')}
    layout = layout_panels(sizes, config.spacing,
                           {s.name: data[s.name].to_numpy() for s in specs})
    link_index = build_link_index(groups, geometry)

    panels = []
    for g, chunk in ordered.groupby('group'):
        g = int(g)
        positions = chunk['position'].tolist()
        row_colors = colors[:len(chunk)]
        panels.append(GroupPanels(
            group=g,
            extent=layout.extent(g),
            region_ids=chunk['region_id'].tolist(),
            names=chunk['name'].tolist(),
            labels=[truncate_label(name) for name in chunk['name']],
            positions=positions,
            linking_keys=[linking_key[p] for p in positions],
            colors=row_colors,
            part_colors=link_index.part_colors(g, row_colors),
            values={s.name: data[s.name].iloc[positions].tolist() for s in specs},
            states=overrides.for_rows(positions),
        ))

    state = MicromapState(
        data=data,
        variables=dict(variables),
        geometry=geometry,
        config=config,
        specs=specs,
        group_sizes=sizes,
        rows=rows,
        layout=layout,
        link_index=link_index,
        colors=colors,
        linking_key=linking_key,
        overrides=overrides,
        panels=panels,
        grid=build_grid(len(sizes), specs, config),
    )
    logger.info(f"Built micromaps: {n} regions in {len(sizes)} groups {sizes}, "
                f"{len(specs)} variables, {link_index.n_parts} polygon parts")
    return state


def reconfigure(state: MicromapState, patch: Mapping[str, Any]) -> MicromapState:
    """
    Discard and rebuild ``state`` with ``patch`` applied.

    ``patch`` may hold MicromapConfig fields and/or a new ``variables`` mapping.
    The input state is left untouched.
    """
    patch = dict(patch)
    variables = patch.pop('variables') if 'variables' in patch else state.variables
    config = replace_config(state.config, **patch) if patch else state.config
    return build_micromaps(state.data, variables, state.geometry, config)


class MicromapSession:
    """
    Holds the current display state and applies reconfigurations atomically.

    Listeners registered with ``subscribe`` receive every new state; a listener
    that triggers another reconfiguration while one is running is rejected.
    Listener failures are logged; the new state stays current.
    """

    def __init__(self, state: MicromapState):
        self.state = state
        self._rebuilding = False
        self._listeners: List[Callable[[MicromapState], None]] = []

    @classmethod
    def create(cls, data: pd.DataFrame, variables: Mapping[str, Any],
               geometry: GeometryProvider,
               config: Optional[MicromapConfig] = None) -> 'MicromapSession':
        return cls(build_micromaps(data, variables, geometry, config))

    def subscribe(self, listener: Callable[[MicromapState], None]) -> None:
        self._listeners.append(listener)

    def submit(self, patch: Mapping[str, Any]) -> Optional[MicromapError]:
        """
        Apply an inspector patch.

        Returns:
            None on success, otherwise the MicromapError that aborted the
            rebuild (the previous state stays current)

        Raises:
            RebuildInProgressError: called while a rebuild is running
        """
        return self._apply(lambda: reconfigure(self.state, patch))

    def submit_form(self, form: Mapping[str, Any]) -> Optional[MicromapError]:
        """
        Parse raw inspector form values and apply them.

        Text that does not parse (group counts, grouping lists, sizes) is
        reported the same way as a failed rebuild.
        """
        def rebuild():
            patch = parse_inspector_form(form, id_var=self.state.id_var)
            return reconfigure(self.state, patch)

        return self._apply(rebuild)

    def _apply(self, rebuild: Callable[[], MicromapState]) -> Optional[MicromapError]:
        if self._rebuilding:
            raise RebuildInProgressError("A micromaps rebuild is already in progress")

        self._rebuilding = True
        try:
            try:
                new_state = rebuild()
            except MicromapError as err:
                logger.error(f"Linked micromaps update ran into the following error: {err}")
                return err
            self.state = new_state
            self._notify(new_state)
            return None
        finally:
            self._rebuilding = False

    def _notify(self, state: MicromapState) -> None:
        # The new state is already current; one failing listener must not hide it from the rest
        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                logger.exception(f"Micromaps listener {listener!r} failed")

    def resize(self, step: int) -> int:
        """Grow or shrink glyph and label size; never below 1."""
        new_size = max(1, self.state.config.size + step)
        self.state = replace(self.state, config=replace_config(self.state.config, size=new_size))
        return new_size


_SUMMARY_TEMPLATE = Template(
    "{{ title }}: {{ n_regions }} regions in {{ n_groups }} groups "
    "(spacing={{ spacing }}, sync={{ sync }}, linkingGroup={{ linking_group }})\n"
    "{% for v in variables %}"
    "  {{ v.label }} [{{ v.name }}]: x in [{{ '%.4g'|format(v.low) }}, {{ '%.4g'|format(v.high) }}]"
    "{% if v.degenerate %} (padded){% endif %}\n"
    "{% endfor %}"
    "{% for p in panels %}"
    "  Group {{ p.group }} (delta_y={{ p.delta_y|int }}): {{ p.labels|join(', ') }}\n"
    "{% endfor %}"
)


def describe_layout(state: MicromapState) -> str:
    """Plain-text summary of groups, rows and axis domains."""
    variables = []
    for spec in state.specs:
        d = state.domain(spec)
        variables.append({'label': spec.label, 'name': spec.name, 'low': d.low,
                          'high': d.high, 'degenerate': d.degenerate})
    panels = [{'group': p.group, 'delta_y': p.extent.delta_y, 'labels': p.labels}
              for p in state.panels]
    return _SUMMARY_TEMPLATE.render(
        title=state.config.title,
        n_regions=len(state.data),
        n_groups=state.n_groups,
        spacing=state.config.spacing,
        sync=state.config.sync,
        linking_group=state.config.linking_group,
        variables=variables,
        panels=panels,
    )
