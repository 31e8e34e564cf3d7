"""
Exceptions raised by the percentile engine and its storage glue.
"""


class KidChartError(Exception):
    """Base class for exceptions in this package"""


class NotFoundError(KidChartError, LookupError):
    """Raised when no reference table is registered for a
    (measurement type, gender, standard) combination.
    """

    def __init__(self, measurement_type, gender, standard):
        self.measurement_type = measurement_type
        self.gender = gender
        self.standard = standard
        super().__init__(
            f"No reference table for {measurement_type}/{gender}/{standard}"
        )


class EmptyTableError(KidChartError, ValueError):
    """Raised when a registered reference table has no rows."""


class InvalidDateError(KidChartError, ValueError):
    """Raised when a calendar date cannot be read from the input."""


class InvalidShareIdError(KidChartError, ValueError):
    """Raised when a share id is not of the form word-word-1234."""


class ShareNotFoundError(KidChartError, LookupError):
    """Raised when nothing has been saved under a share id."""
