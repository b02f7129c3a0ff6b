"""Sentiment pipeline: an HTTP ingestor publishing to Redis streams and a processor storing to SQL."""

__version__ = "0.1.0"