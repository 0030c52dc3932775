"""Route-sequence filtering and fare computation for jeepney routes."""

__version__ = "1.0.0"
