"""toolkeeper: catalog sync and registry search for reusable agent assets."""

__version__ = "0.1.0"
