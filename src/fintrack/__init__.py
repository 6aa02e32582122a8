"""Bank statement ingestion and transaction categorization"""

__version__ = "0.1.0"

from .pipeline import IngestionPipeline, categorize, normalize

__all__ = ['IngestionPipeline', 'categorize', 'normalize', '__version__']
