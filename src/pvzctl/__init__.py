"""pvzctl: pickup-point goods receiving control utility."""

__version__ = "0.3.0"
