"""gcovview - gcov coverage ingestion, aggregation and reporting."""

__version__ = "0.1.0"
