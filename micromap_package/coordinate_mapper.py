"""
Coordinate mapping for micromap panels.

Vertical: every panel in a row (labels, dot strips) shares one y scale so a
region sits at the same height across the row. Two spacing schemes:

    equal - a group of k regions uses y = k..1 with delta_y = k + 1
    max   - every group uses delta_y = M + 1 (M = largest group) and is
            top-aligned at y = M, so equal heights mean equal spacing

Horizontal: every dot strip for a variable shares one x domain across groups,
built from "pretty" tick breakpoints over the full dataset, extended by 5%.

Panel world coordinates follow the (pan, zoom, delta) convention:
    fraction = (x - pan) / (zoom * delta)
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

from .errors import DegenerateDomainError, EmptyDatasetError, InvalidConfigurationError

logger = logging.getLogger(__name__)

# Fractional margin added on both sides of the tick range
DOMAIN_EXTENSION = 0.05

# Label column world: point glyph at x=1, text from x=2, visible width 6
LABEL_PAN_X = 0.0
LABEL_DELTA_X = 6.0
LABEL_POINT_X = 1.0
LABEL_TEXT_X = 2.0

# Scale row geometry (y in a 0..1 world)
SCALE_BASELINE_Y = 0.7
SCALE_TICK_BOTTOM_Y = 0.5
SCALE_LABEL_Y = 0.3


class SpacingPolicy(Enum):
    EQUAL = "equal"
    MAX = "max"

    @classmethod
    def parse(cls, value) -> 'SpacingPolicy':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidConfigurationError(
                f"spacing must be 'equal' or 'max', got {value!r}") from None


@dataclass
class GroupExtent:
    """Vertical placement of one group's rows."""
    group: int
    size: int
    y_positions: List[int]   # row 1 (top) first
    pan_y: float
    zoom_y: float
    delta_y: float


@dataclass
class AxisDomain:
    """Shared horizontal extent of one variable's dot strips."""
    variable: str
    low: float
    high: float
    ticks: List[float]
    degenerate: bool = False

    @property
    def pan_x(self) -> float:
        return self.low

    @property
    def zoom_x(self) -> float:
        return 1.0

    @property
    def delta_x(self) -> float:
        return self.high - self.low

    def scale_segments(self) -> List[Tuple[Tuple[float, float], Tuple[float, float]]]:
        """Baseline followed by one vertical segment per tick, as (xs, ys)."""
        segments = [((self.low, self.high), (SCALE_BASELINE_Y, SCALE_BASELINE_Y))]
        segments.extend(((t, t), (SCALE_TICK_BOTTOM_Y, SCALE_BASELINE_Y)) for t in self.ticks)
        return segments

    def tick_labels(self) -> List[str]:
        return [format_tick(t) for t in self.ticks]


@dataclass
class PanelLayout:
    spacing: SpacingPolicy
    max_group_size: int
    groups: List[GroupExtent]
    domains: Dict[str, AxisDomain] = field(default_factory=dict)

    def extent(self, group: int) -> GroupExtent:
        return self.groups[group - 1]


def format_tick(value: float) -> str:
    return f"{value:g}"


def pretty(values, n: int = 5, min_n: int = None, shrink_sml: float = 0.75,
           high_u_bias: float = 1.5, u5_bias: float = None) -> np.ndarray:
    """
    Equally spaced round breakpoints (multiples of 1, 2 or 5 times a power of
    ten) covering the range of ``values``, about ``n`` intervals wide.

    Args:
        values: Numbers to cover. Non-finite values are ignored.
        n: Desired number of intervals
        min_n: Minimal number of intervals, defaults to n // 3
        shrink_sml: Shrink factor for the unit when the range is tiny
        high_u_bias: Bias towards larger units
        u5_bias: Bias towards 5-units, defaults to 0.5 + 1.5 * high_u_bias

    Returns:
        numpy array of breakpoints
    """
    x = np.asarray(values, dtype=float)
    x = x[np.isfinite(x)]
    if x.size == 0:
        raise DegenerateDomainError("pretty() needs at least one finite value")
    lo, hi = float(x.min()), float(x.max())

    if min_n is None:
        min_n = n // 3
    h = high_u_bias
    h5 = 0.5 + 1.5 * h if u5_bias is None else u5_bias

    dx = hi - lo
    if dx == 0 and hi == 0:
        cell = 1.0
        i_small = True
    else:
        cell = max(abs(lo), abs(hi))
        U = 1 + (1 / (1 + h) if h5 >= 1.5 * h + 0.5 else 1.5 / (1 + h5))
        U *= max(1, n) * np.finfo(float).eps
        i_small = dx < cell * U * 3

    if i_small:
        if cell > 10:
            cell = 9 + cell / 10
        cell *= shrink_sml
        if min_n > 1:
            cell /= min_n
    else:
        cell = dx
        if n > 1:
            cell /= n

    cell = max(cell, 20 * np.finfo(float).tiny)
    base = 10.0 ** math.floor(math.log10(cell))
    unit = base
    if 2 * base - cell < h * (cell - unit):
        unit = 2 * base
        if 5 * base - cell < h5 * (cell - unit):
            unit = 5 * base
            if 10 * base - cell < h * (cell - unit):
                unit = 10 * base

    eps = 1e-10
    ns = math.floor(lo / unit + eps)
    nu = math.ceil(hi / unit - eps)
    while ns * unit > lo + eps * unit:
        ns -= 1
    while nu * unit < hi - eps * unit:
        nu += 1

    k = int(0.5 + nu - ns)
    if k < min_n:
        k = min_n - k
        if ns >= 0:
            nu += k // 2
            ns -= k // 2 + k % 2
        else:
            ns -= k // 2
            nu += k // 2 + k % 2

    ticks = np.linspace(ns * unit, nu * unit, int(nu - ns) + 1)
    decimals = max(0, -math.floor(math.log10(unit)))
    ticks = np.round(ticks, decimals)
    ticks[np.abs(ticks) < 1e-14 * unit] = 0.0
    return ticks


def extend_range(low: float, high: float, f: float = DOMAIN_EXTENSION) -> Tuple[float, float]:
    pad = f * (high - low)
    return low - pad, high + pad


def data_range(values) -> Tuple[float, float]:
    """Finite min/max of values; zero-width or empty ranges are degenerate."""
    x = np.asarray(values, dtype=float)
    x = x[np.isfinite(x)]
    if x.size == 0:
        raise DegenerateDomainError("no finite values")
    lo, hi = float(x.min()), float(x.max())
    if lo == hi:
        raise DegenerateDomainError(f"constant value {lo:g}")
    return lo, hi


def axis_domain(variable: str, values) -> AxisDomain:
    """Shared x domain for one variable's dot strips."""
    degenerate = False
    try:
        lo, hi = data_range(values)
    except DegenerateDomainError as e:
        # A constant column is legitimate data; pretty() widens a point range
        logger.warning(f"Variable '{variable}' has a degenerate domain ({e}); padding it")
        x = np.asarray(values, dtype=float)
        x = x[np.isfinite(x)]
        lo = hi = float(x[0]) if x.size else 0.0
        degenerate = True

    ticks = pretty([lo, hi])
    low, high = extend_range(float(ticks[0]), float(ticks[-1]))
    return AxisDomain(variable=variable, low=low, high=high,
                      ticks=[float(t) for t in ticks], degenerate=degenerate)


def group_extents(group_sizes: Sequence[int], spacing) -> List[GroupExtent]:
    spacing = SpacingPolicy.parse(spacing)
    if not group_sizes or sum(group_sizes) == 0:
        raise EmptyDatasetError("No regions to lay out")

    max_size = max(group_sizes)
    extents = []
    for group, size in enumerate(group_sizes, start=1):
        top = max_size if spacing is SpacingPolicy.MAX else size
        extents.append(GroupExtent(
            group=group,
            size=size,
            y_positions=list(range(top, top - size, -1)),
            pan_y=0.0,
            zoom_y=1.0,
            delta_y=float(top + 1),
        ))
    return extents


def layout_panels(group_sizes: Sequence[int], spacing,
                  variable_values: Mapping[str, Sequence[float]]) -> PanelLayout:
    """
    Compute vertical extents per group and horizontal domains per variable.

    Args:
        group_sizes: Sizes from allocate_groups
        spacing: 'equal' or 'max' (or a SpacingPolicy)
        variable_values: Column name -> values over the full dataset

    Returns:
        PanelLayout
    """
    spacing = SpacingPolicy.parse(spacing)
    extents = group_extents(group_sizes, spacing)
    domains = {name: axis_domain(name, values) for name, values in variable_values.items()}
    ranges = {k: (round(d.low, 4), round(d.high, 4)) for k, d in domains.items()}
    logger.info(f"Layout: {len(extents)} groups, spacing={spacing.value}, domains={ranges}")
    return PanelLayout(spacing=spacing, max_group_size=max(group_sizes),
                       groups=extents, domains=domains)


def to_panel_fraction(x, pan: float, zoom: float, delta: float):
    return (np.asarray(x, dtype=float) - pan) / (zoom * delta)


def from_panel_fraction(y, pan: float, zoom: float, delta: float):
    return np.asarray(y, dtype=float) * zoom * delta + pan
