"""PartsMarket backend: category hierarchy and seller product catalog."""

__version__ = "0.1.0"
