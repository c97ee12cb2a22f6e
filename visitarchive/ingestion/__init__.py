"""
Log Ingestion Module
"""
from .log_loader import LogFileConfig, LogFormat, LogKind, LogLoader

__all__ = [
    "LogFileConfig",
    "LogFormat",
    "LogKind",
    "LogLoader",
]
