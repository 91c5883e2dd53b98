from .ingest import Ingestor, IngestionLog, TopQuery, TopQueryKey
from .news import NewsService

__all__ = ["Ingestor", "IngestionLog", "NewsService", "TopQuery", "TopQueryKey"]
