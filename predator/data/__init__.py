"""Dataset ingestion helpers."""

from .csv_source import consume_csv, spread_record_fields

__all__ = ["consume_csv", "spread_record_fields"]
