"""CTC tea manufacturing records: derived metrics and windowed reports."""

__version__ = "0.1.0"
