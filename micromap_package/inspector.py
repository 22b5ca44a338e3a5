"""
Inspector form handling, independent of any widget toolkit.

The inspector shows text entries and combo boxes; on submit their raw string
values are turned into a reconfiguration patch for ``MicromapSession.submit``.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .errors import InvalidConfigurationError, InvalidGroupingError

logger = logging.getLogger(__name__)

NOT_AVAILABLE = 'N/A'
RESERVED_COLUMNS = ('id', 'name', 'NAME', 'group', 'linkingKey')


def variable_choices(data: pd.DataFrame) -> List[str]:
    """Numeric columns offered in the variable combo boxes."""
    return [c for c in data.columns
            if pd.api.types.is_numeric_dtype(data[c])
            and not pd.api.types.is_bool_dtype(data[c])
            and c not in RESERVED_COLUMNS]


def inspector_slot_count(state) -> int:
    """Number of optional-variable rows the inspector shows."""
    return max(1, len(state.specs) - 1, state.config.num_optvars or 0)


def _parse_grouping(text: str) -> Optional[List[float]]:
    text = (text or '').strip()
    if not text:
        return None
    try:
        return [float(part.strip()) for part in text.split(',')]
    except ValueError:
        raise InvalidGroupingError(f"Grouping must be comma separated numbers, got '{text}'") from None


def _parse_n_groups(text: str) -> Optional[float]:
    text = (text or '').strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        raise InvalidGroupingError(f"Number of groups must be a number, got '{text}'") from None


def parse_inspector_form(form: Mapping[str, Any], id_var: str) -> Dict[str, Any]:
    """
    Turn raw inspector field values into a reconfiguration patch.

    Expected keys: lab_label, map_label, grouping_var, grouping_var_xlab,
    grouping_var_label, n_groups, grouping, optional (list of dicts with
    name/xlab/label) and optionally size.

    Returns:
        Patch with labels, grouping, n_groups, variables (and size when given)
    """
    grouping_var = form.get('grouping_var')
    if not grouping_var:
        raise InvalidConfigurationError("A grouping variable must be selected")

    optional = [slot for slot in form.get('optional', ())
                if slot.get('name') and slot.get('name') != NOT_AVAILABLE]

    variables: Dict[str, Any] = {
        'id_var': id_var,
        'grouping_var': {'name': grouping_var,
                         'xlab': form.get('grouping_var_xlab', ''),
                         'label': form.get('grouping_var_label', '')},
    }
    for i, slot in enumerate(optional, start=1):
        variables[f'var{i}'] = {'name': slot['name'],
                                'xlab': slot.get('xlab', ''),
                                'label': slot.get('label', '')}

    patch = {
        'lab_label': form.get('lab_label') or 'Labels',
        'map_label': form.get('map_label') or 'Maps',
        'grouping': _parse_grouping(form.get('grouping', '')),
        'n_groups': _parse_n_groups(form.get('n_groups', '')),
        'variables': variables,
    }
    if form.get('size') not in (None, ''):
        try:
            patch['size'] = int(form['size'])
        except ValueError:
            raise InvalidConfigurationError(f"Font size must be an integer, got '{form['size']}'") from None
    logger.debug(f"Inspector patch: {patch}")
    return patch


def form_from_state(state, slots: Optional[int] = None) -> Dict[str, Any]:
    """Initial inspector field values for the current state."""
    grouping = state.grouping_spec
    optional: List[Dict[str, str]] = [
        {'name': s.name, 'xlab': s.xlab, 'label': s.label} for s in state.specs[1:]
    ]
    slots = slots if slots is not None else inspector_slot_count(state)
    while len(optional) < slots:
        optional.append({'name': NOT_AVAILABLE, 'xlab': '', 'label': ''})

    return {
        'lab_label': state.config.lab_label,
        'map_label': state.config.map_label,
        'grouping_var': grouping.name,
        'grouping_var_xlab': grouping.xlab,
        'grouping_var_label': grouping.label,
        'n_groups': '' if state.config.n_groups is None else str(state.config.n_groups),
        'grouping': '' if state.config.grouping is None
        else ','.join(f"{g:g}" for g in state.config.grouping),
        'optional': optional,
        'size': str(state.config.size),
    }
