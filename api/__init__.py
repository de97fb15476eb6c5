"""HTTP API for the fertilizer point-of-sale system."""

__version__ = "0.1.0"
