from tickreplay.data.loader import DataKind, InMemoryMarketDataLoader, MarketDataLoader
from tickreplay.data.parquet_loader import ParquetMarketDataLoader, write_parquet_records

__all__ = [
    "DataKind",
    "InMemoryMarketDataLoader",
    "MarketDataLoader",
    "ParquetMarketDataLoader",
    "write_parquet_records",
]
