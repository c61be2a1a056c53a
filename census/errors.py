"""Exception types raised by the component census.

Only precondition failures are fatal. Everything else degrades to a
partially-populated profile rather than aborting the scan.
"""


class CensusError(Exception):
    """Base class for census errors."""


class RecordMalformed(CensusError, ValueError):
    """A raw import or tag occurrence is missing required fields.

    Raised by record validation and caught per record; the record is skipped.
    """

    def __init__(self, record, reason: str):
        self.record = record
        self.reason = reason
        super().__init__(f"Malformed record ({reason}): {record!r}")


class ScanPreconditionError(CensusError, ValueError):
    """The scan cannot start (no files, missing path, no root package.json)."""
