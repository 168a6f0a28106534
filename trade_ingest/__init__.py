"""Trade-history CSV ingestion and normalization."""

__version__ = "1.0.0"
