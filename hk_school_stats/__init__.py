"""Hong Kong Catholic school statistics dashboard."""

__version__ = "0.1.0"
