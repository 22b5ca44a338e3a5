"""
Group allocation for micromap rows.

Splits N regions into consecutive groups. Each group becomes one row of the
display (a label panel, one dot strip per variable, and one map).
"""

import logging
import math
from numbers import Integral, Real
from typing import List, Optional, Sequence

from .errors import EmptyDatasetError, InvalidGroupingError

logger = logging.getLogger(__name__)

# Default number of regions per row when neither grouping nor n_groups is given
TARGET_GROUP_SIZE = 5


def _as_count(value, what: str) -> int:
    """Coerce an integral number (including 4.0) to int, otherwise fail."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidGroupingError(f"{what} must be an integer, got {value!r}")
    if isinstance(value, Integral):
        return int(value)
    if not float(value).is_integer():
        raise InvalidGroupingError(f"{what} must be an integer, got {value!r}")
    return int(value)


def split_evenly(n: int, n_groups: int) -> List[int]:
    """Sizes differing by at most one, remainder given to the earliest groups."""
    base, remainder = divmod(n, n_groups)
    return [base + 1] * remainder + [base] * (n_groups - remainder)


def default_group_count(n: int) -> int:
    return max(1, math.ceil(n / TARGET_GROUP_SIZE))


def allocate_groups(n: int, n_groups: Optional[int] = None,
                    grouping: Optional[Sequence[int]] = None) -> List[int]:
    """
    Decide how many regions go into each row.

    Args:
        n: Number of regions
        n_groups: Optional number of rows. Ignored when ``grouping`` is given.
        grouping: Optional explicit group sizes, top row first

    Returns:
        List of group sizes summing to ``n``

    Raises:
        EmptyDatasetError: n is zero
        InvalidGroupingError: sizes do not sum to n, a size is not a positive
            integer, or n_groups is outside 1..n
    """
    n = _as_count(n, "n")
    if n <= 0:
        raise EmptyDatasetError("Cannot allocate groups for an empty dataset")

    if grouping is not None:
        sizes = [_as_count(g, "grouping size") for g in grouping]
        if not sizes:
            raise InvalidGroupingError("grouping must contain at least one group")
        bad = [s for s in sizes if s <= 0]
        if bad:
            raise InvalidGroupingError(f"grouping sizes must be positive, got {bad}")
        if sum(sizes) != n:
            raise InvalidGroupingError(
                f"grouping sums to {sum(sizes)} but there are {n} regions")
        if n_groups is not None:
            logger.debug(f"Explicit grouping given; ignoring n_groups={n_groups}")
        return sizes

    if n_groups is not None:
        n_groups = _as_count(n_groups, "n_groups")
        if n_groups <= 0 or n_groups > n:
            raise InvalidGroupingError(
                f"n_groups must be between 1 and {n}, got {n_groups}")
        return split_evenly(n, n_groups)

    sizes = split_evenly(n, default_group_count(n))
    logger.debug(f"Default grouping for {n} regions: {sizes}")
    return sizes


def group_labels(sizes: Sequence[int]) -> List[int]:
    """Expand group sizes into a 1-based group number per ranked region."""
    labels = []
    for group, size in enumerate(sizes, start=1):
        labels.extend([group] * size)
    return labels
