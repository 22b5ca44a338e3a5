"""
Linked micromaps layout and linking engine.

This package computes the grouping, row ordering, shared coordinate
transforms, polygon linking tables and colors for a linked micromaps display.
Drawing and event handling are left to the rendering layer.
"""

__version__ = "0.1.0"

# Import errors
from .errors import (
    MicromapError,
    InvalidGroupingError,
    UnknownVariableError,
    NonNumericVariableError,
    NonUniqueIdError,
    EmptyDatasetError,
    DegenerateDomainError,
    ReservedColorError,
    InvalidColorError,
    InvalidAttributeLengthError,
    InvalidConfigurationError,
    GeometryMismatchError,
    RebuildInProgressError
)

# Import layout building blocks
from .group_allocator import allocate_groups, group_labels
from .variable_resolver import VariableSpec, resolve_variables, resolve_variable_mapping
from .row_orderer import assign_rows, order_rows
from .coordinate_mapper import SpacingPolicy, PanelLayout, layout_panels, pretty
from .link_index import NOT_IN_PANEL, GeometryProvider, PolygonCatalog, LinkIndex, build_link_index
from .color_assigner import BACKGROUND_COLOR, HIGHLIGHT_COLOR, assign_colors, canonical_color
from .attributes import build_state_overrides

# Import configuration
from .config import MicromapConfig, load_config, config_from_dict, replace_config

# Import display state
from .micromaps import (
    MicromapState,
    MicromapSession,
    build_micromaps,
    reconfigure,
    describe_layout
)

from .example_data import create_micromap_synthetic_data

# Define what should be available in "from micromap_package import *"
__all__ = [
    # Errors
    'MicromapError',
    'InvalidGroupingError',
    'UnknownVariableError',
    'NonNumericVariableError',
    'NonUniqueIdError',
    'EmptyDatasetError',
    'DegenerateDomainError',
    'ReservedColorError',
    'InvalidColorError',
    'InvalidAttributeLengthError',
    'InvalidConfigurationError',
    'GeometryMismatchError',
    'RebuildInProgressError',

    # Layout building blocks
    'allocate_groups',
    'group_labels',
    'VariableSpec',
    'resolve_variables',
    'resolve_variable_mapping',
    'assign_rows',
    'order_rows',
    'SpacingPolicy',
    'PanelLayout',
    'layout_panels',
    'pretty',
    'NOT_IN_PANEL',
    'GeometryProvider',
    'PolygonCatalog',
    'LinkIndex',
    'build_link_index',
    'BACKGROUND_COLOR',
    'HIGHLIGHT_COLOR',
    'assign_colors',
    'canonical_color',
    'build_state_overrides',

    # Configuration
    'MicromapConfig',
    'load_config',
    'config_from_dict',
    'replace_config',

    # Display state
    'MicromapState',
    'MicromapSession',
    'build_micromaps',
    'reconfigure',
    'describe_layout',
    'create_micromap_synthetic_data'
]
