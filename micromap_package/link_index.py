"""
Linking between dot-strip points and map polygon parts.

Each group's map draws every polygon part of the dataset, but only the parts
of the group's own regions carry a data color. A region can own several parts
(islands), so the point -> parts direction is one-to-many while parts -> point
is many-to-one, with NOT_IN_PANEL for parts of regions shown in other groups.

Point indices are 0-based positions in the group's row order (row 1 is point 0).
Part indices are 0-based positions in the expanded draw order.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .color_assigner import BACKGROUND_COLOR, HIGHLIGHT_COLOR
from .errors import GeometryMismatchError

logger = logging.getLogger(__name__)

NOT_IN_PANEL = -1


class GeometryProvider:
    """
    What the link index needs from the geometry collaborator.

    ``draw_order`` lists region ids in the order their polygons are drawn and
    ``parts_for`` returns a region's polygon part ids in draw order.
    """

    @property
    def draw_order(self) -> List[Hashable]:
        raise NotImplementedError

    def parts_for(self, region_id) -> List[Hashable]:
        raise NotImplementedError


class PolygonCatalog(GeometryProvider):
    """In-memory geometry provider: region id -> ordered part ids."""

    def __init__(self, parts: Mapping[Hashable, Sequence[Hashable]],
                 draw_order: Optional[Sequence[Hashable]] = None):
        self._parts = {rid: list(p) for rid, p in parts.items()}
        self._draw_order = list(draw_order) if draw_order is not None else list(self._parts)
        empty = [rid for rid, p in self._parts.items() if len(p) == 0]
        if empty:
            raise GeometryMismatchError(f"Regions without polygon parts: {empty[:5]}")
        missing = [rid for rid in self._draw_order if rid not in self._parts]
        if missing:
            raise GeometryMismatchError(f"draw_order names unknown regions: {missing[:5]}")

    @classmethod
    def from_frame(cls, df: pd.DataFrame, region_column: str = 'region_id',
                   part_column: str = 'part_id') -> 'PolygonCatalog':
        """Build from a long table with one row per polygon part, in draw order."""
        parts: Dict[Hashable, List[Hashable]] = {}
        for rid, pid in zip(df[region_column], df[part_column]):
            parts.setdefault(rid, []).append(pid)
        return cls(parts)

    @property
    def draw_order(self) -> List[Hashable]:
        return list(self._draw_order)

    def parts_for(self, region_id) -> List[Hashable]:
        return list(self._parts[region_id])


def expand_draw_order(geometry: GeometryProvider, region_ids: Sequence[Hashable]) -> List[Hashable]:
    """
    Owning region id for every polygon part, in draw order.

    Raises:
        GeometryMismatchError: draw order does not cover each region exactly once
    """
    order = geometry.draw_order
    if len(set(order)) != len(region_ids) or len(order) != len(set(order)):
        raise GeometryMismatchError(
            f"draw order has {len(set(order))} unique regions "
            f"({len(order)} entries) but there are {len(region_ids)} regions")
    unknown = set(order) - set(region_ids)
    if unknown:
        raise GeometryMismatchError(f"draw order names regions not in the data: {sorted(map(str, unknown))[:5]}")

    owners = []
    for rid in order:
        n_parts = len(geometry.parts_for(rid))
        if n_parts == 0:
            raise GeometryMismatchError(f"Region '{rid}' has no polygon parts")
        owners.extend([rid] * n_parts)
    return owners


@dataclass
class GroupLink:
    """Forward and backward tables for one group's map."""
    group: int
    region_ids: List[Hashable]
    point_to_parts: Dict[int, List[int]]
    part_to_point: np.ndarray

    def rows_to_parts(self, points: Iterable[int]) -> List[int]:
        parts = []
        for p in points:
            parts.extend(self.point_to_parts[int(p)])
        return sorted(set(parts))

    def parts_to_rows(self, parts: Iterable[int]) -> List[int]:
        points = {int(self.part_to_point[int(p)]) for p in parts}
        points.discard(NOT_IN_PANEL)
        return sorted(points)

    def part_colors(self, point_colors: Sequence[str],
                    highlighted_parts: Iterable[int] = ()) -> List[str]:
        """Per-part map colors: row colors, background elsewhere, highlight on top."""
        if len(point_colors) != len(self.region_ids):
            raise ValueError(
                f"Need {len(self.region_ids)} point colors for group {self.group}, got {len(point_colors)}")
        colors = [BACKGROUND_COLOR if idx == NOT_IN_PANEL else point_colors[idx]
                  for idx in self.part_to_point]
        for part in highlighted_parts:
            colors[int(part)] = HIGHLIGHT_COLOR
        return colors


@dataclass
class LinkIndex:
    part_owners: List[Hashable]
    groups: List[GroupLink] = field(default_factory=list)

    @property
    def n_parts(self) -> int:
        return len(self.part_owners)

    def group(self, group: int) -> GroupLink:
        return self.groups[group - 1]

    def region_for_part(self, part: int) -> Hashable:
        return self.part_owners[part]

    def parts_of_region(self, region_id) -> List[int]:
        return [i for i, owner in enumerate(self.part_owners) if owner == region_id]

    def rows_to_parts(self, group: int, points: Iterable[int]) -> List[int]:
        return self.group(group).rows_to_parts(points)

    def parts_to_rows(self, group: int, parts: Iterable[int]) -> List[int]:
        return self.group(group).parts_to_rows(parts)

    def part_colors(self, group: int, point_colors: Sequence[str],
                    highlighted_parts: Iterable[int] = ()) -> List[str]:
        return self.group(group).part_colors(point_colors, highlighted_parts)


def build_link_index(groups: Mapping[int, Sequence[Hashable]],
                     geometry: GeometryProvider) -> LinkIndex:
    """
    Build forward/backward tables for every group.

    Args:
        groups: Group number -> region ids in row order (from order_rows)
        geometry: Provider of draw order and per-region parts

    Returns:
        LinkIndex
    """
    all_ids = [rid for g in sorted(groups) for rid in groups[g]]
    owners = expand_draw_order(geometry, all_ids)

    index = LinkIndex(part_owners=owners)
    for g in sorted(groups):
        region_ids = list(groups[g])
        point_of = {rid: i for i, rid in enumerate(region_ids)}
        part_to_point = np.array([point_of.get(rid, NOT_IN_PANEL) for rid in owners], dtype=int)
        point_to_parts = {i: np.flatnonzero(part_to_point == i).tolist()
                          for i in range(len(region_ids))}
        index.groups.append(GroupLink(group=g, region_ids=region_ids,
                                      point_to_parts=point_to_parts,
                                      part_to_point=part_to_point))
        logger.debug(f"Group {g}: {int((part_to_point != NOT_IN_PANEL).sum())} of {len(owners)} parts linked")
    return index
