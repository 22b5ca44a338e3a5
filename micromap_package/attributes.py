"""
Per-row visual attribute overrides (glyph, item labels, margins, ...).

Overrides are handed through to the rendering layer untouched apart from
length checks and broadcasting. They are kept in an explicit table next to
the region data; a name that collides with a data column is stored with
COLLISION_SUFFIX appended while keeping its public name for rendering.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence

import numpy as np
import pandas as pd

from .errors import InvalidAttributeLengthError, InvalidConfigurationError

logger = logging.getLogger(__name__)

MARGIN_STATES = ('minimumMargins', 'labelMargins', 'scalesMargins')
COLLISION_SUFFIX = 'MM'


def _length(value) -> int:
    if isinstance(value, (str, bytes)) or np.isscalar(value) or value is None:
        return 1
    return len(value)


def _as_list(value) -> List[Any]:
    if isinstance(value, (str, bytes)) or np.isscalar(value) or value is None:
        return [value]
    return list(value)


@dataclass
class StateOverrides:
    """Validated overrides: margins applied as-is, row states one value per region."""
    n: int
    margins: Dict[str, List[float]] = field(default_factory=dict)
    table: pd.DataFrame = field(default_factory=pd.DataFrame)
    public_names: Dict[str, str] = field(default_factory=dict)

    def __bool__(self):
        return bool(self.margins) or not self.table.empty

    def for_rows(self, positions: Sequence[int]) -> Dict[str, Any]:
        """
        Row states for the regions at ``positions`` (original order indices).

        A state whose values are all equal collapses to a single scalar.
        """
        out = {}
        for stored, public in self.public_names.items():
            values = self.table[stored].iloc[list(positions)].tolist()
            if len(values) and all(v == values[0] for v in values):
                out[public] = values[0]
            else:
                out[public] = values
        return out


def build_state_overrides(states: Mapping[str, Any], n: int,
                          existing_columns: Iterable[str] = ()) -> StateOverrides:
    """
    Validate named overrides against the number of regions.

    Args:
        states: State name -> scalar, length-1 or length-n sequence
        n: Number of regions
        existing_columns: Dataset columns a state must not shadow

    Raises:
        InvalidConfigurationError: a state has no name
        InvalidAttributeLengthError: margins are not length 4, or a row state
            is neither length 1 nor length n
    """
    overrides = StateOverrides(n=n, table=pd.DataFrame(index=range(n)))
    if not states:
        return overrides

    if any(not isinstance(name, str) or name == '' for name in states):
        raise InvalidConfigurationError("state overrides must be named")

    margins = {k: v for k, v in states.items() if k in MARGIN_STATES}
    bad_margins = [k for k, v in margins.items() if _length(v) != 4]
    if bad_margins:
        raise InvalidAttributeLengthError(f"{', '.join(bad_margins)} must be of length 4")
    overrides.margins = {k: _as_list(v) for k, v in margins.items()}

    row_states = {k: v for k, v in states.items() if k not in MARGIN_STATES}
    bad = [k for k, v in row_states.items() if _length(v) not in (1, n)]
    if bad:
        raise InvalidAttributeLengthError(f"{', '.join(bad)} must be of length 1 or {n}")

    taken = set(existing_columns)
    for name, value in row_states.items():
        stored = name + COLLISION_SUFFIX if name in taken else name
        values = _as_list(value)
        overrides.table[stored] = values * n if len(values) == 1 else values
        overrides.public_names[stored] = name
        taken.add(stored)
        if stored != name:
            logger.debug(f"State '{name}' collides with a data column; stored as '{stored}'")

    return overrides
