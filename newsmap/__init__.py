"""News feed ingestion and article content extraction."""

__version__ = "0.1.0"
