"""Appointment calendar sync and notification dispatch backend"""

__version__ = "1.0.0"
