"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidConfigError(DomainException):
    """Model configuration violates its invariants (rate outside [0, 1], non-positive lag)"""

    pass
