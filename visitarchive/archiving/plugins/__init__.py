"""
Report Archivers
"""
from .base import ReportArchiver
from .referrers import ReferrersArchiver
from .user_country import UserCountryArchiver

ARCHIVERS = (ReferrersArchiver, UserCountryArchiver)

__all__ = [
    "ARCHIVERS",
    "ReportArchiver",
    "ReferrersArchiver",
    "UserCountryArchiver",
]
