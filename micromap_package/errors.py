"""
Error taxonomy for the linked micromaps engine.

Every error derives from ``MicromapError`` (itself a ``ValueError``) so callers
can catch invalid input in one place. All of them are raised while resolving
and allocating, before any panel spec is produced.
"""


class MicromapError(ValueError):
    """Base class for invalid micromap input."""


class InvalidGroupingError(MicromapError):
    """Grouping vector or group count cannot partition the regions."""


class UnknownVariableError(MicromapError):
    """A variable spec names a column that is not in the dataset."""


class NonNumericVariableError(UnknownVariableError):
    """A plotted variable exists but is not numeric."""


class NonUniqueIdError(MicromapError):
    """Id column or linking keys contain duplicates."""


class EmptyDatasetError(MicromapError):
    """There are no regions to lay out."""


class DegenerateDomainError(MicromapError):
    """A variable has zero-width range. Handled by padding, never surfaced."""


class ReservedColorError(MicromapError):
    """A requested color collides with a reserved sentinel color."""


class InvalidColorError(MicromapError):
    """A requested color cannot be parsed."""


class InvalidAttributeLengthError(MicromapError):
    """A per-row attribute override has the wrong length."""


class InvalidConfigurationError(MicromapError):
    """A configuration option is missing or has an unsupported value."""


class GeometryMismatchError(MicromapError):
    """Polygon draw order does not line up with the regions."""


class RebuildInProgressError(MicromapError):
    """A reconfiguration was triggered while another one was running."""
