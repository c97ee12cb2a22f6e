"""
Archiving exceptions.
"""


class ArchivingError(Exception):
    """Base exception for archiving failures."""


class MalformedRowError(ArchivingError):
    """Raised when a visit row cannot be bucketed, e.g. an unknown referrer type."""

    def __init__(self, message: str, row=None):
        super().__init__(message)
        self.row = row


class DuplicateRecordError(ArchivingError):
    """Raised when a record name is written twice for the same site and period."""


class BlobFormatError(ArchivingError):
    """Raised when a stored report blob cannot be deserialized."""


class ArchiveNotFoundError(ArchivingError):
    """Raised when a requested archive does not exist."""
