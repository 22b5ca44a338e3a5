"""
Display configuration for linked micromaps.

The configuration is a plain value passed into every build; nothing is kept
in module-level state. It can be written in YAML:

    title: Education and Poverty
    lab_label: States
    spacing: max
    sync: push
    variables:
      id_var: ST_NAME
      grouping_var: {name: pov, xlab: Percent, label: "% in Poverty"}
      var2: {name: ed, xlab: Percent}
    states:
      showItemLabels: true
"""

import logging
import numbers
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .coordinate_mapper import SpacingPolicy
from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

SYNC_POLICIES = ('pull', 'push')


def _is_sequence(value) -> bool:
    return (not isinstance(value, (str, bytes, Mapping))
            and hasattr(value, '__len__') and hasattr(value, '__iter__'))


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class MicromapConfig:
    """Options for one micromaps display."""
    title: str = 'Micromaps'
    map_label: str = 'Map'
    lab_label: str = 'Labels'
    spacing: str = 'equal'
    sync: str = 'pull'
    size: int = 6
    linking_group: str = 'Micromaps'
    linking_key: Optional[List[str]] = None
    color: Optional[List[str]] = None
    grouping: Optional[List[int]] = None
    n_groups: Optional[int] = None
    num_optvars: Optional[int] = None
    states: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in ('title', 'map_label', 'lab_label', 'linking_group'):
            value = getattr(self, name)
            if not isinstance(value, str) or value == '':
                raise InvalidConfigurationError(f"{name} must be a single non-empty string")
        SpacingPolicy.parse(self.spacing)
        if self.sync not in SYNC_POLICIES:
            raise InvalidConfigurationError("sync for linking states must be either pull or push")
        if isinstance(self.size, bool) or not isinstance(self.size, int) or self.size < 1:
            raise InvalidConfigurationError(f"size must be a positive integer, got {self.size!r}")
        optvars = self.num_optvars
        if optvars is not None and (isinstance(optvars, bool) or not isinstance(optvars, numbers.Integral)
                                    or optvars < 0):
            raise InvalidConfigurationError("num_optvars must be a non-negative integer")
        if self.color is not None and not isinstance(self.color, (str, list, tuple)):
            raise InvalidConfigurationError("color, if specified, should be a color name or a list of colors")
        for name in ('grouping', 'linking_key'):
            value = getattr(self, name)
            if value is not None and not _is_sequence(value):
                raise InvalidConfigurationError(f"{name}, if specified, must be a list, got {value!r}")
        if self.n_groups is not None and not _is_number(self.n_groups):
            raise InvalidConfigurationError(f"n_groups must be a number, got {self.n_groups!r}")
        if not isinstance(self.states, Mapping):
            raise InvalidConfigurationError("states must be a mapping of state name to values")

    @property
    def spacing_policy(self) -> SpacingPolicy:
        return SpacingPolicy.parse(self.spacing)


CONFIG_FIELDS = {f.name for f in fields(MicromapConfig)}


def config_from_dict(raw: Optional[Dict[str, Any]]) -> Tuple[MicromapConfig, Optional[Dict[str, Any]]]:
    """
    Split a raw mapping into a MicromapConfig and the ``variables`` mapping.

    Raises:
        InvalidConfigurationError: unknown keys or invalid values
    """
    raw = dict(raw or {})
    variables = raw.pop('variables', None)
    unknown = sorted(set(raw) - CONFIG_FIELDS)
    if unknown:
        raise InvalidConfigurationError(f"Unknown configuration options: {unknown}")
    return MicromapConfig(**raw), variables


def load_config(yaml_path: str) -> Tuple[MicromapConfig, Optional[Dict[str, Any]]]:
    """
    Load and parse a YAML display configuration.

    Args:
        yaml_path: Path to the YAML configuration file

    Returns:
        (MicromapConfig, variables mapping or None)
    """
    try:
        with open(yaml_path, 'r') as file:
            raw = yaml.safe_load(file)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"Error parsing YAML configuration: {e}")

    if raw is not None and not isinstance(raw, dict):
        raise InvalidConfigurationError(f"{yaml_path} must contain a mapping at the top level")
    logger.info(f"Loaded micromap configuration from {yaml_path}")
    return config_from_dict(raw)


def replace_config(config: MicromapConfig, **patch) -> MicromapConfig:
    """New validated config with ``patch`` applied."""
    unknown = sorted(set(patch) - CONFIG_FIELDS)
    if unknown:
        raise InvalidConfigurationError(f"Unknown configuration options: {unknown}")
    return replace(config, **patch)
