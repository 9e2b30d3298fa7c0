"""Custom exception hierarchy for edge-matching search."""


class EdgeMatchError(Exception):
    """Base exception for solver failures."""


class CatalogLoadError(EdgeMatchError):
    """Raised when the tile catalog CSV cannot be parsed."""


class ConfigurationError(EdgeMatchError):
    """Raised when solver options are inconsistent with the catalog."""


class InvariantViolationError(EdgeMatchError):
    """Raised when search bookkeeping breaks an invariant it must keep.

    This is never a normal search outcome: it signals a defect in tracker
    bookkeeping and aborts the run.
    """
