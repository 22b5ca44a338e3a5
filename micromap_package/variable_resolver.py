"""
Variable resolution against the dataset schema.

Turns user-facing variable specs (``{"name": ..., "xlab": ..., "label": ...}``)
into canonical ``VariableSpec`` objects. Nothing here touches the data values
beyond the uniqueness and dtype checks.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from .errors import NonNumericVariableError, NonUniqueIdError, UnknownVariableError

logger = logging.getLogger(__name__)

ID_KEY = 'id_var'
GROUPING_KEY = 'grouping_var'

VarSpecInput = Union[str, Mapping[str, Any]]


@dataclass(frozen=True)
class VariableSpec:
    """A statistic to plot as one dot-strip column."""
    key: str
    name: str
    xlab: str
    label: str
    is_grouping: bool = False


def check_id_variable(data: pd.DataFrame, id_var: str) -> None:
    if id_var not in data.columns:
        raise UnknownVariableError(f"id_var '{id_var}' does not exist in the data")
    if data[id_var].duplicated().any():
        dupes = data.loc[data[id_var].duplicated(), id_var].astype(str).unique().tolist()
        raise NonUniqueIdError(f"id_var '{id_var}' has duplicate values: {dupes[:5]}")


def _resolve_one(data: pd.DataFrame, key: str, spec: Optional[VarSpecInput],
                 is_grouping: bool = False) -> VariableSpec:
    if spec is None:
        raise UnknownVariableError(f"Variable '{key}' must be given as {{'name': ...}}")
    if isinstance(spec, str):
        spec = {'name': spec}
    if not isinstance(spec, Mapping):
        raise UnknownVariableError(f"Variable '{key}' must be a name or a mapping with 'name'")
    name = spec.get('name')
    if not name:
        raise UnknownVariableError(f"Variable '{key}' is missing a 'name'")
    if name not in data.columns:
        raise UnknownVariableError(f"Variable '{key}': '{name}' does not exist in the data")
    if not pd.api.types.is_numeric_dtype(data[name]) or pd.api.types.is_bool_dtype(data[name]):
        raise NonNumericVariableError(f"Variable '{key}': '{name}' is not numeric")

    # Empty strings count as absent so the inspector can clear a label
    xlab = spec.get('xlab') or name
    label = spec.get('label') or name
    return VariableSpec(key=key, name=name, xlab=str(xlab), label=str(label),
                        is_grouping=is_grouping)


def resolve_variables(data: pd.DataFrame, id_var: str, grouping_var: VarSpecInput,
                      optional_vars: Optional[Mapping[str, VarSpecInput]] = None
                      ) -> List[VariableSpec]:
    """
    Validate and normalize the variables to plot.

    Args:
        data: Region attribute table
        id_var: Column holding the unique region names
        grouping_var: Spec of the variable that orders and groups regions
        optional_vars: Extra variables keyed by spec name, in display order

    Returns:
        List of VariableSpec, grouping variable first
    """
    check_id_variable(data, id_var)
    specs = [_resolve_one(data, GROUPING_KEY, grouping_var, is_grouping=True)]
    for key, spec in (optional_vars or {}).items():
        specs.append(_resolve_one(data, key, spec))
    logger.debug(f"Resolved variables: {[s.name for s in specs]}")
    return specs


def resolve_variable_mapping(data: pd.DataFrame,
                             variables: Mapping[str, Any]) -> List[VariableSpec]:
    """Resolve the nested ``{'id_var': ..., 'grouping_var': {...}, ...}`` form."""
    if not isinstance(variables, Mapping):
        raise UnknownVariableError("variables should be given as a nested mapping")
    if ID_KEY not in variables:
        raise UnknownVariableError("variables must name the id_var")
    if GROUPING_KEY not in variables:
        raise UnknownVariableError("variables must give grouping_var as {'name': ...}")
    optional = {k: v for k, v in variables.items() if k not in (ID_KEY, GROUPING_KEY)}
    return resolve_variables(data, variables[ID_KEY], variables[GROUPING_KEY], optional)


def specs_to_mapping(id_var: str, specs: List[VariableSpec]) -> Dict[str, Any]:
    """Inverse of resolve_variable_mapping, used to build reconfiguration patches."""
    out: Dict[str, Any] = {ID_KEY: id_var}
    for spec in specs:
        out[spec.key] = {'name': spec.name, 'xlab': spec.xlab, 'label': spec.label}
    return out
