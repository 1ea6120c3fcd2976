# dataselect/core/exceptions.py
"""Exception types raised by the data selection engine.

Only capability violations are raised to callers. Malformed query input,
out-of-range pages and unknown properties degrade instead of failing, and
metric failures are reported on the result rather than raised.
"""


class DataSelectError(Exception):
    """Base class for all data selection errors."""


class CapabilityError(DataSelectError, TypeError):
    """An item or item type cannot take part in a selection.

    Raised when an object does not satisfy the property extraction contract,
    or when a non-cell class is registered as a cell factory.
    """


class MetricsUnavailableError(DataSelectError):
    """The metrics collaborator could not deliver series for a request."""
