"""
Row ordering: ranks regions by the grouping variable and cuts the ranking
into consecutive groups.
"""

import logging
from typing import Dict, List, Sequence

import pandas as pd

from .errors import InvalidGroupingError
from .group_allocator import group_labels

logger = logging.getLogger(__name__)


def rank_regions(data: pd.DataFrame, grouping_var: str, id_var: str) -> pd.DataFrame:
    """
    Sort regions by grouping value (descending), then display name.

    Ties on both keep the original row order, so identical input always gives
    identical output. Missing values sort last.
    """
    ranked = pd.DataFrame({
        'position': range(len(data)),
        'region_id': data[id_var].to_numpy(),
        'name': data[id_var].astype(str).to_numpy(),
        'value': data[grouping_var].to_numpy(),
    })
    return ranked.sort_values(
        ['value', 'name', 'position'],
        ascending=[False, True, True],
        na_position='last',
        kind='mergesort',
    ).reset_index(drop=True)


def assign_rows(data: pd.DataFrame, sizes: Sequence[int], grouping_var: str,
                id_var: str) -> pd.DataFrame:
    """
    Assign each region a group and a 1-based row within that group.

    Args:
        data: Region attribute table
        sizes: Group sizes from allocate_groups, top group first
        grouping_var: Column used for ranking
        id_var: Column with unique region names

    Returns:
        DataFrame with columns position, region_id, name, value, group, row,
        in the original region order
    """
    if sum(sizes) != len(data):
        raise InvalidGroupingError(
            f"group sizes sum to {sum(sizes)} but there are {len(data)} regions")

    ranked = rank_regions(data, grouping_var, id_var)
    ranked['group'] = group_labels(sizes)
    ranked['row'] = ranked.groupby('group').cumcount() + 1

    for group, rows in ranked.groupby('group'):
        logger.debug(f"Group {group}: {rows['name'].tolist()}")

    return ranked.sort_values('position').reset_index(drop=True)


def order_rows(data: pd.DataFrame, sizes: Sequence[int], grouping_var: str,
               id_var: str) -> Dict[int, List]:
    """Map each group number to its region ids, top row first."""
    rows = assign_rows(data, sizes, grouping_var, id_var)
    rows = rows.sort_values(['group', 'row'])
    return {int(g): chunk['region_id'].tolist() for g, chunk in rows.groupby('group')}
