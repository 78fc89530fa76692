"""Domain-specific exceptions"""


class EconomyError(Exception):
    """Base exception for the economy domain"""

    pass


class ValidationError(EconomyError, ValueError):
    """
    Caller supplied malformed input (missing user ID, bad amount, ...).

    Business-rule outcomes such as insufficient funds are never raised;
    they come back as `success=False` results.
    """

    pass
