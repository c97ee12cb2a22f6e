"""
Visit Archive

Aggregates visit and conversion logs into hierarchical daily reports and
rolls daily reports up into week, month and year archives.
"""

__version__ = "1.0.0"
