"""Product catalog explorer: federated search over unmapped catalog tables."""

__version__ = "0.1.0"
