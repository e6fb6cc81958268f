"""Real-estate listing scraper service."""

__version__ = "0.1.0"
