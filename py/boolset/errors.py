class BooleanSetException(Exception):
    """
    Base class for all exceptions raised by the boolset package.

    Every exception here is a local precondition failure. Nothing is retried or recovered
    internally, since the data structures involved perform no I/O of their own.
    """
    pass


class ValidationError(BooleanSetException):
    """
    Raised when a state object handed to BooleanSet (or loaded from a snapshot) violates the
    structural invariants of the range store. The offending state is never silently corrected.
    """
    pass


class DomainError(BooleanSetException):
    """
    Raised when a caller passes an index or range that falls outside the domain of an operation:
    a negative or non-integer index, start > end, or an unbounded range passed to to_array().
    """
    pass


class ConfigError(BooleanSetException):
    """
    Raised when a config.txt file cannot be parsed.
    """
    pass
