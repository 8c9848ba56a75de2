"""Release decision and publication pipeline."""

__version__ = "0.1.0"
