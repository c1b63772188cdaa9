"""Load profiles, response metrics, reports and chart values for API server benchmarks."""

__version__ = "0.1.0"