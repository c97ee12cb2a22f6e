"""
Archiving Module
"""
from visitarchive.core.periods import Period, PeriodType
from .records import ArchiveRecordSet
from .processor import ArchiveProcessor, DayArchiveProcessor, PeriodArchiveProcessor
from .runner import ArchiveRunner

__all__ = [
    "Period",
    "PeriodType",
    "ArchiveRecordSet",
    "ArchiveProcessor",
    "DayArchiveProcessor",
    "PeriodArchiveProcessor",
    "ArchiveRunner",
]
