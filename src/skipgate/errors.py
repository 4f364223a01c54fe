"""
Exception types raised by skipgate.

Configuration and validation problems surface while an exclusion registry is
being built, never while it is consulted. Once a registry exists, resolving
and selecting tests cannot fail.
"""


class SkipgateError(Exception):
    """Base class for all skipgate errors."""

    pass


class ConfigurationError(SkipgateError):
    """Raised for malformed conditions, unknown condition kinds, or bad exclusion files."""

    pass


class ValidationError(SkipgateError, ValueError):
    """Raised when an exclusion is missing its test id or reason."""

    pass


class RegistryFrozenError(SkipgateError):
    """Raised when registering into a registry that has already been frozen."""

    pass
