"""drillbook: drill scheduling, execution history and attachment retention."""

__version__ = "0.1.0"
