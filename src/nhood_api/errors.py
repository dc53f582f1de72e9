"""Exception types raised by the neighborhood resolver and datasets."""


class NeighborhoodError(Exception):
    """Base class for all nhood_api errors."""


class InvalidInputError(NeighborhoodError, ValueError):
    """A query argument is unusable (non-finite coordinate, missing subject, bad radius)."""


class DataUnavailableError(NeighborhoodError):
    """A dataset could not be read or parsed.

    Raised instead of returning an empty dataset, since an empty neighborhood
    set would make every containment query quietly answer "not found".
    """


class GeometryError(NeighborhoodError):
    """A geometry operation failed for a single neighborhood."""

    def __init__(self, code: str, operation: str, cause: Exception | None = None):
        self.code = code
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed for neighborhood {code}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
