# cm_dashboard/boq_query/exceptions.py
"""Error types raised by the BOQ query engine and its export adapter."""


class BoqQueryError(Exception):
    """Base class for BOQ explorer errors."""


class InvalidQueryError(BoqQueryError):
    """The compiled search pattern is not a valid regular expression."""

    def __init__(self, text: str, reason: str = ""):
        self.text = text
        self.reason = reason
        super().__init__(f"Invalid search pattern for {text!r}: {reason}" if reason
                         else f"Invalid search pattern for {text!r}")


class ExportTooLargeError(BoqQueryError):
    """The filtered view exceeds the export row cap."""

    def __init__(self, row_count: int, limit: int):
        self.row_count = row_count
        self.limit = limit
        super().__init__(
            f"{row_count:,} rows is too many to export; "
            f"filter down to at most {limit:,} rows first"
        )


class SourceDataError(BoqQueryError):
    """An uploaded BOQ file could not be read into a row table."""
