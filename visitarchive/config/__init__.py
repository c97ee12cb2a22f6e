"""
Visit Archive
Configuration Module
"""
from .settings import ArchivingSettings, Settings, get_settings

__all__ = ["ArchivingSettings", "Settings", "get_settings"]
