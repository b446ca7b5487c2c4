"""osintel - concurrent open-source intelligence aggregation."""

__version__ = "0.1.0"
